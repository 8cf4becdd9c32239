"""Progress estimation from the output of external tools.

Estimators turn the standard output of a command into percentages for the
dialog gauge. They only approximate: the checkpoints are hand tuned against
the usual log format of each tool, and every estimator ends with 100 once the
stream closes, whatever matched before.
"""

import re
from typing import Callable, Iterable, Iterator, List, Sequence, Tuple

from packaging.utils import canonicalize_name

Checkpoints = Sequence[Tuple[str, int]]
Estimator = Callable[[Iterable[str]], Iterator[int]]


def _clamp(value: int) -> int:
    return max(0, min(100, int(value)))


class ProgressState:
    """Non-decreasing gauge value for one command run."""

    def __init__(self):
        self.value = 0

    def advance(self, value: int) -> int:
        self.value = max(self.value, _clamp(value))
        return self.value

    def finish(self) -> int:
        self.value = 100
        return self.value


class CheckpointEstimator:
    """Emits a fixed percentage the first time each pattern matches a line."""

    def __init__(self, checkpoints: Checkpoints):
        self.checkpoints: List[Tuple[re.Pattern, int]] = [
            (re.compile(pattern), _clamp(percent)) for pattern, percent in checkpoints
        ]

    def __call__(self, lines: Iterable[str]) -> Iterator[int]:
        pending = list(self.checkpoints)
        for line in lines:
            if not pending:
                continue
            fired = [item for item in pending if item[0].search(line)]
            for item in fired:
                pending.remove(item)
                yield item[1]
        yield 100


class DependencyTracker:
    """Counts units reported as satisfied in a live stream.

    ``units`` only provides the denominator; ``matcher`` extracts the unit ids a
    line reports. Each newly seen unit emits ``100 * matched // (len(units) + 1)``.
    """

    def __init__(self, units: Iterable[str], matcher: Callable[[str], Iterable[str]]):
        self.units = set(units)
        self.matcher = matcher

    def __call__(self, lines: Iterable[str]) -> Iterator[int]:
        denominator = max(1, len(self.units) + 1)
        seen = set()
        for line in lines:
            for unit in self.matcher(line):
                if unit in self.units and unit not in seen:
                    seen.add(unit)
                    yield _clamp(100 * len(seen) // denominator)
        yield 100


_COLLECTING_RE = re.compile(r"^\s*Collecting\s+([A-Za-z0-9][A-Za-z0-9._-]*)")
_APPLYING_RE = re.compile(r"^\s*Applying\s+([\w]+\.[\w]+)\.\.\.")


def requirement_matcher(line: str) -> List[str]:
    match = _COLLECTING_RE.match(line)
    if not match:
        return []
    return [canonicalize_name(match.group(1))]


def migration_matcher(line: str) -> List[str]:
    match = _APPLYING_RE.match(line)
    return [match.group(1)] if match else []


def requirements_progression(requirements: Iterable[str]) -> DependencyTracker:
    return DependencyTracker(
        (canonicalize_name(name) for name in requirements),
        requirement_matcher,
    )


def migrations_progression(migrations: Iterable[str]) -> DependencyTracker:
    return DependencyTracker(migrations, migration_matcher)


APT_CHECKPOINTS: Checkpoints = [
    (r"Reading package lists", 15),
    (r"Reading state information", 30),
    (r"upgraded", 45),
    (r"Reading database", 60),
    (r"Preparing to unpack", 75),
    (r"Setting up", 90),
]

VIRTUALENV_CHECKPOINTS: Checkpoints = [
    (r"Running virtualenv with", 20),
    (r"New python executable in|created virtual environment", 40),
    (r"Also creating executable in|creator ", 60),
    (r"Installing setuptools|seeder ", 80),
]

GIT_CHECKPOINTS: Checkpoints = [
    (r"Cloning into", 20),
    (r"Checking connectivity|Receiving objects", 80),
]

GET_PIP_CHECKPOINTS: Checkpoints = [
    (r"Collecting pip", 30),
    (r"Downloading pip", 50),
    (r"Collecting (?!pip)", 70),
    (r"Installing collected packages", 80),
    (r"Successfully installed", 90),
]

GEM_SASS_CHECKPOINTS: Checkpoints = [
    (r"Building native extensions", 8),
    (r"Successfully installed ffi", 16),
    (r"Successfully installed rb-inotify", 24),
    (r"Successfully installed rb-fsevent", 32),
    (r"Successfully installed sass-listen", 40),
    (r"Successfully installed sass-[^l]", 48),
    (r"Installing ri documentation for ffi", 56),
    (r"Installing ri documentation for rb-fsevent", 64),
    (r"Installing ri documentation for rb-inotify", 72),
    (r"Installing ri documentation for sass-[^l]", 80),
    (r"Installing ri documentation for sass-listen", 88),
    (r"gems? installed", 96),
]

PIP_INSTALL_CHECKPOINTS: Checkpoints = [
    (r"Obtaining", 10),
    (r"Collecting", 30),
    (r"Building wheels? for", 60),
    (r"Installing collected packages", 80),
    (r"Successfully installed", 90),
]

apt_progression = CheckpointEstimator(APT_CHECKPOINTS)
virtualenv_progression = CheckpointEstimator(VIRTUALENV_CHECKPOINTS)
git_progression = CheckpointEstimator(GIT_CHECKPOINTS)
get_pip_progression = CheckpointEstimator(GET_PIP_CHECKPOINTS)
gem_sass_progression = CheckpointEstimator(GEM_SASS_CHECKPOINTS)
pip_progression = CheckpointEstimator(PIP_INSTALL_CHECKPOINTS)
