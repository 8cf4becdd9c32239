"""Configuration loader for the Publik installer."""

from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from publikinstaller.errors import InstallerError


class ConfigLoader:
    """Loads YAML configuration files for CLI defaults."""

    SUPPORTED_KEYS = {
        "directory",
        "log_file",
        "error_log",
        "verbose",
        "introduction",
        "migrate",
        "combo_repository",
        "wcs_repository",
        "apt_packages",
        "get_pip_url",
        "settings_file",
        "static_root",
    }

    def load(self, config_path: Optional[str]) -> Dict[str, Any]:
        if not config_path:
            return {}

        path = Path(config_path)
        if not path.exists():
            raise InstallerError(f"Config file not found: {config_path}")

        try:
            parsed = yaml.safe_load(path.read_text(encoding="utf-8"))
        except (yaml.YAMLError, OSError) as exc:
            raise InstallerError(f"Invalid config file '{config_path}': {exc}") from exc

        if parsed is None:
            return {}
        if not isinstance(parsed, dict):
            raise InstallerError("Config file must contain a YAML mapping at the root.")

        unknown = sorted(set(parsed.keys()) - self.SUPPORTED_KEYS)
        if unknown:
            unknown_list = ", ".join(unknown)
            raise InstallerError(f"Unknown configuration keys: {unknown_list}")

        for key in ("combo_repository", "wcs_repository"):
            value = parsed.get(key)
            is_mapping = isinstance(value, dict) and set(value) == {"name", "url"}
            if value is not None and not is_mapping:
                raise InstallerError(f"'{key}' must be a mapping with 'name' and 'url'.")

        packages = parsed.get("apt_packages")
        if packages is not None and not (
            isinstance(packages, list) and all(isinstance(group, list) for group in packages)
        ):
            raise InstallerError("'apt_packages' must be a list of package lists.")

        return parsed
