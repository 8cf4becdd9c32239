"""Static discovery of dependency units used as progress denominators."""

import os
import re
from pathlib import Path
from typing import Iterable, List, Optional, Set

from packaging.requirements import InvalidRequirement, Requirement

INSTALL_REQUIRES_RE = re.compile(r"install_requires\s*=\s*\[(?P<body>(?:[^\[\]]|\[[^\[\]]*\])*)\]")
QUOTED_TOKEN_RE = re.compile(r"""(?P<quote>['"])(?P<token>.+?)(?P=quote)""")
NAME_PREFIX_RE = re.compile(r"^\s*([A-Za-z0-9][A-Za-z0-9._-]*)")

MIGRATION_FILE_RE = re.compile(r"^(?P<name>\d{4}_\w+)\.py$")
DEPENDENCIES_RE = re.compile(r"dependencies\s*=\s*\[(?P<body>[^\[\]]*)\]")
DEPENDENCY_PAIR_RE = re.compile(r"""\(\s*['"](?P<app>\w+)['"]\s*,\s*['"](?P<name>\w+)['"]\s*\)""")


def requirement_name(token: str) -> Optional[str]:
    """Strip version qualifiers, extras and markers from a requirement string."""
    try:
        return Requirement(token).name
    except InvalidRequirement:
        match = NAME_PREFIX_RE.match(token)
        return match.group(1) if match else None


class RequirementDiscoverer:
    """Extracts package requirement names from a project descriptor."""

    DESCRIPTOR = "setup.py"
    REQUIREMENTS_FILE = "requirements.txt"

    def __init__(self, logger):
        self.logger = logger

    def discover(self, project_dir: str) -> List[str]:
        names = self.parse_descriptor(self._read(Path(project_dir) / self.DESCRIPTOR))
        if not names:
            names = self.parse_requirements_file(
                self._read(Path(project_dir) / self.REQUIREMENTS_FILE)
            )
        self.logger.debug("Discovered %s requirements in %s", len(names), project_dir)
        return names

    def parse_descriptor(self, text: str) -> List[str]:
        match = INSTALL_REQUIRES_RE.search(text)
        if not match:
            return []
        tokens = [m.group("token") for m in QUOTED_TOKEN_RE.finditer(match.group("body"))]
        return self._ordered(tokens)

    def parse_requirements_file(self, text: str) -> List[str]:
        tokens = []
        for line in text.splitlines():
            cleaned = line.split("#", 1)[0].strip()
            if not cleaned or cleaned.startswith("-"):
                continue
            tokens.append(cleaned)
        return self._ordered(tokens)

    def _ordered(self, tokens: Iterable[str]) -> List[str]:
        names = {name for name in (requirement_name(token) for token in tokens) if name}
        return sorted(names, reverse=True)

    def _read(self, path: Path) -> str:
        if not path.is_file():
            return ""
        try:
            return path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            self.logger.warning("Could not read %s: %s", path, exc)
            return ""


class MigrationDiscoverer:
    """Collects ``app.migration`` identifiers from Django migration packages."""

    def __init__(self, logger):
        self.logger = logger

    def discover(self, project_dir: str, shared_dirs: Iterable[str] = ()) -> List[str]:
        units: Set[str] = set()
        for root in [project_dir, *shared_dirs]:
            if not root or not os.path.isdir(root):
                self.logger.debug("Skipping missing migration tree: %s", root)
                continue
            for migration_file in self._find_migration_files(Path(root)):
                app = migration_file.parent.parent.name
                name = MIGRATION_FILE_RE.match(migration_file.name).group("name")
                units.add(f"{app}.{name}")
                units.update(self.parse_dependencies(self._read(migration_file)))

        self.logger.debug("Discovered %s migrations under %s", len(units), project_dir)
        return sorted(units)

    def parse_dependencies(self, text: str) -> List[str]:
        match = DEPENDENCIES_RE.search(text)
        if not match:
            return []
        return [
            f"{pair.group('app')}.{pair.group('name')}"
            for pair in DEPENDENCY_PAIR_RE.finditer(match.group("body"))
            if not pair.group("name").startswith("__")
        ]

    def _find_migration_files(self, root: Path) -> List[Path]:
        found = []
        for current_root, dirs, files in os.walk(root):
            dirs[:] = [d for d in dirs if not d.startswith(".") and d != "__pycache__"]
            if os.path.basename(current_root) != "migrations":
                continue
            for file_name in files:
                if MIGRATION_FILE_RE.match(file_name):
                    found.append(Path(current_root) / file_name)
        return sorted(found)

    def _read(self, path: Path) -> str:
        try:
            return path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            self.logger.warning("Could not read %s: %s", path, exc)
            return ""
