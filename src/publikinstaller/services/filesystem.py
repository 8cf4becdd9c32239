"""Filesystem helpers for the Publik installer."""

import glob
import logging
import os
from typing import List


class FileSystemService:
    """Encapsulates file side effects on the installed tree."""

    def __init__(self, logger: logging.Logger):
        self.logger = logger

    def append_line(self, path: str, line: str):
        with open(path, "a", encoding="utf-8") as file_obj:
            file_obj.write(f"\n{line}\n")
        self.logger.info("Appended to %s: %s", path, line)

    def site_package_dirs(self, env_dir: str, package: str) -> List[str]:
        pattern = os.path.join(env_dir, "lib", "python*", "site-packages", package)
        return sorted(path for path in glob.glob(pattern) if os.path.isdir(path))
