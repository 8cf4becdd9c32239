"""Actionable error catalog for the Publik installer."""

from typing import Dict

_ERROR_MESSAGES: Dict[str, Dict[str, str]] = {
    "missing_command": {
        "what": "Required command not found: {command}.",
        "next": "Install `{command}` with your package manager and run the installer again.",
    },
    "directory_exists": {
        "what": "{path} already exists!",
        "next": "Choose another directory or remove `{path}` first.",
    },
    "command_failed": {
        "what": "Step '{title}' failed with exit code {returncode}.",
        "next": "Inspect `{log_file}` for the command output, fix the cause and start again.",
    },
    "invalid_proxy": {
        "what": "Invalid proxy settings: {reason}",
        "next": "Provide a host, and either both a user and a password or neither.",
    },
    "download_failed": {
        "what": "Download of {url} failed: {reason}",
        "next": "Check the network or proxy settings and run the installer again.",
    },
}


def actionable_error(code: str, **kwargs: str) -> str:
    if code not in _ERROR_MESSAGES:
        raise KeyError(f"Unknown error catalog key: {code}")

    template = _ERROR_MESSAGES[code]
    what = template["what"].format(**kwargs)
    next_step = template["next"].format(**kwargs)
    return f"{what} Suggested action: {next_step}"
