"""Shared constants for the Publik installer."""

APPLICATION = "Publik (Entrouvert) installation"

EXIT_USER_CANCELLED = 1
EXIT_DIRECTORY_CONFLICT = 3
EXIT_COMMAND_FAILURE = 4
EXIT_INSTALLER_ERROR = 5
EXIT_PREREQUISITE_MISSING = 10

DEFAULT_DIRECTORY = "publik-env"
DEFAULT_ERROR_LOG = "stderr.log"
DEFAULT_CONFIG_FILE = ".publik-installer.yml"

REQUIRED_COMMANDS = {
    "dialog": "This script requires the dialog command.",
    "apt-get": "This script works only with Debian or Ubuntu.",
}

DEFAULT_APT_PACKAGES = [
    ["git"],
    ["python3-virtualenv"],
    ["python3-dev"],
    ["ruby", "ruby-dev"],
]

COMBO_REPOSITORY = {"name": "combo", "url": "http://repos.entrouvert.org/combo.git"}
WCS_REPOSITORY = {"name": "wcs", "url": "http://repos.entrouvert.org/wcs.git"}

GET_PIP_URL = "https://bootstrap.pypa.io/get-pip.py"
COMBO_SETTINGS_FILE = "combo/settings.py"

NEUTRAL_LOCALE = {"LANG": "C", "LC_ALL": "C"}
PROXY_VARIABLES = ("http_proxy", "https_proxy", "all_proxy")
