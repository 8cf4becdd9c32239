"""Shared domain models for the Publik installer."""

import re
from dataclasses import dataclass, field
from typing import Dict, Optional
from urllib.parse import quote, unquote

from .constants import DEFAULT_DIRECTORY, PROXY_VARIABLES
from .errors import InstallerError
from .errors_catalog import actionable_error

PROXY_URL_RE = re.compile(
    r"^http://(?:(?P<user>[^@:/]+):(?P<password>[^@:/]+)@)?(?P<host>[^@:/]+)(?::(?P<port>[0-9]+))?"
)
PROXY_HOST_FORBIDDEN_RE = re.compile(r"[@:/\s]")


@dataclass(frozen=True)
class ProxySettings:
    """HTTP proxy used by every command spawned after the proxy prompt."""

    host: str
    user: str = ""
    password: str = field(default="", repr=False)
    port: str = ""

    def __post_init__(self):
        if not self.host:
            raise InstallerError(actionable_error("invalid_proxy", reason="the host is mandatory."))
        if PROXY_HOST_FORBIDDEN_RE.search(self.host):
            raise InstallerError(
                actionable_error("invalid_proxy", reason=f"host '{self.host}' is not a host name.")
            )
        if bool(self.user) != bool(self.password):
            raise InstallerError(
                actionable_error(
                    "invalid_proxy",
                    reason="a user requires a password and a password requires a user.",
                )
            )
        if self.port and not self.port.isdigit():
            raise InstallerError(
                actionable_error("invalid_proxy", reason=f"port '{self.port}' is not a number.")
            )

    @classmethod
    def parse(cls, url: Optional[str]) -> Optional["ProxySettings"]:
        """Parse ``http://[user:password@]host[:port]``, or return None."""
        match = PROXY_URL_RE.match(url or "")
        if not match:
            return None
        return cls(
            host=match.group("host"),
            user=unquote(match.group("user") or ""),
            password=unquote(match.group("password") or ""),
            port=match.group("port") or "",
        )

    def url(self) -> str:
        """Serialize back to a proxy URL, percent-encoding the credentials."""
        credentials = ""
        if self.user:
            credentials = f"{quote(self.user, safe='')}:{quote(self.password, safe='')}@"
        port = f":{self.port}" if self.port else ""
        return f"http://{credentials}{self.host}{port}"

    def environment(self) -> Dict[str, str]:
        url = self.url()
        return {name: url for name in PROXY_VARIABLES}


@dataclass(frozen=True)
class RepositorySpec:
    name: str
    url: str


@dataclass
class InstallSession:
    """Operator choices collected by the prompts, threaded through every step."""

    directory: str = DEFAULT_DIRECTORY
    sudo_password: str = field(default="", repr=False)
    proxy: Optional[ProxySettings] = None
    static_root: Optional[str] = None
    proxy_disabled: bool = False

    def command_environment(self) -> Dict[str, str]:
        return self.proxy.environment() if self.proxy else {}

    def request_proxies(self) -> Optional[Dict[str, Optional[str]]]:
        """Proxies for ``requests``; None values drop the inherited environment ones."""
        if self.proxy:
            url = self.proxy.url()
            return {"http": url, "https": url}
        if self.proxy_disabled:
            return {"http": None, "https": None, "all": None}
        return None
