"""Host prerequisite checks for the Publik installer."""

import shutil
from typing import Callable, Dict, Optional

from publikinstaller.constants import REQUIRED_COMMANDS
from publikinstaller.errors import PrerequisiteMissing


class ValidationService:
    """Ensures the host provides the tools the installer shells out to."""

    def __init__(self, logger, which: Callable[[str], Optional[str]] = shutil.which):
        self.logger = logger
        self.which = which

    def check_prerequisites(self, required: Optional[Dict[str, str]] = None):
        for command, message in (required or REQUIRED_COMMANDS).items():
            location = self.which(command)
            if not location:
                raise PrerequisiteMissing(message)
            self.logger.debug("Found %s at %s", command, location)
