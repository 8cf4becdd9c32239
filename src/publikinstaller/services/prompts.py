"""Operator prompts collecting the installation session."""

import os
from enum import Enum
from typing import Optional

from publikinstaller.errors import DirectoryConflict, InstallerError
from publikinstaller.errors_catalog import actionable_error
from publikinstaller.models import InstallSession, ProxySettings


class PromptState(Enum):
    INIT = "init"
    PROMPT_PASSWORD = "prompt_password"
    PROMPT_PROXY = "prompt_proxy"
    PROMPT_DIRECTORY = "prompt_directory"
    CONFIRMED = "confirmed"
    ABORTED = "aborted"


class PromptFlow:
    """Walks the operator through password, proxy and directory prompts."""

    def __init__(self, dialog, logger):
        self.dialog = dialog
        self.logger = logger
        self.state = PromptState.INIT

    def run(self, session: InstallSession, proxy_signal: Optional[str] = None) -> InstallSession:
        try:
            self.ask_password(session)
            if proxy_signal:
                self.ask_proxy(session, proxy_signal)
            self.ask_directory(session)
        except InstallerError:
            self.state = PromptState.ABORTED
            raise
        return session

    def ask_password(self, session: InstallSession):
        self.state = PromptState.PROMPT_PASSWORD
        session.sudo_password = self.dialog.passwordbox("Type in the SUDO password")

    def ask_proxy(self, session: InstallSession, proxy_signal: str):
        self.state = PromptState.PROMPT_PROXY
        defaults = ProxySettings.parse(proxy_signal)
        user, password, host, port = self.dialog.form(
            "Proxy settings",
            [
                ("User", defaults.user if defaults else "", 20),
                ("Password", defaults.password if defaults else "", 20),
                ("URL", defaults.host if defaults else "", 50),
                ("Port", defaults.port if defaults else "", 6),
            ],
        )

        host = host.strip()
        if not host:
            self.logger.info("No proxy host given, continuing without proxy.")
            session.proxy = None
            session.proxy_disabled = True
            return

        session.proxy = ProxySettings(
            host=host,
            user=user.strip(),
            password=password,
            port=port.strip(),
        )
        session.proxy_disabled = False
        self.logger.info("Using proxy %s", session.proxy.host)

    def ask_directory(self, session: InstallSession):
        self.state = PromptState.PROMPT_DIRECTORY
        directory = self.dialog.inputbox("Directory to create", session.directory).strip()
        session.directory = directory or session.directory

        if os.path.exists(session.directory):
            self.dialog.msgbox(f"{session.directory} already exists!")
            raise DirectoryConflict(actionable_error("directory_exists", path=session.directory))

        self.state = PromptState.CONFIRMED
