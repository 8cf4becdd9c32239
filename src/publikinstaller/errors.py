"""Domain errors for the Publik installer."""

from .constants import (
    EXIT_COMMAND_FAILURE,
    EXIT_DIRECTORY_CONFLICT,
    EXIT_INSTALLER_ERROR,
    EXIT_PREREQUISITE_MISSING,
    EXIT_USER_CANCELLED,
)


class InstallerError(RuntimeError):
    """Raised when the installation cannot continue."""

    exit_code = EXIT_INSTALLER_ERROR


class PrerequisiteMissing(InstallerError):
    """A host tool required by the installer is absent."""

    exit_code = EXIT_PREREQUISITE_MISSING


class UserCancelled(InstallerError):
    """The operator dismissed a prompt."""

    exit_code = EXIT_USER_CANCELLED


class DirectoryConflict(InstallerError):
    """The chosen installation directory already exists."""

    exit_code = EXIT_DIRECTORY_CONFLICT


class CommandFailure(InstallerError):
    """An external command exited with a non-zero status."""

    exit_code = EXIT_COMMAND_FAILURE

    def __init__(self, message: str, title: str = "", cmd=None, returncode=None):
        super().__init__(message)
        self.title = title
        self.cmd = list(cmd or [])
        self.returncode = returncode
