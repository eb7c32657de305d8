"""Source unit discovery: find parseable files and the directories grouping them."""

from __future__ import annotations

import fnmatch
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterator

from type_deps.errors import InvalidRoot
from type_deps.models import DEFAULT_SKIP_DIRS

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Discovery:
    """Result of walking a source tree.

    ``groupings`` maps every directory that directly contains at least one
    unit to the units it contains. Directories holding only subdirectories
    never appear.
    """
    root: Path
    groupings: dict[Path, tuple[Path, ...]] = field(default_factory=dict)

    @property
    def grouping_dirs(self) -> frozenset[Path]:
        return frozenset(self.groupings)

    @property
    def unit_count(self) -> int:
        return sum(len(units) for units in self.groupings.values())

    def iter_units(self) -> Iterator[Path]:
        """Iterate over every unit. Each call starts a fresh pass."""
        for units in self.groupings.values():
            yield from units

    def __iter__(self) -> Iterator[Path]:
        return self.iter_units()


class SourceScanner:
    """Walks a root directory looking for files with matching extensions."""

    def __init__(
        self,
        extensions: tuple[str, ...] = (".java",),
        skip_dirs: list[str] | None = None,
    ):
        self.extensions = tuple(extensions)
        self.skip_dirs = list(DEFAULT_SKIP_DIRS) if skip_dirs is None else skip_dirs

    def discover(self, root: Path) -> Discovery:
        root = Path(root)
        if not root.exists():
            raise InvalidRoot(f"{root} does not exist")
        if not root.is_dir():
            raise InvalidRoot(f"{root} is not a directory")

        groupings: dict[Path, list[Path]] = {}
        for path in sorted(root.rglob("*")):
            if not path.is_file():
                continue
            if not self.is_unit(path):
                continue
            if self._should_skip(path.relative_to(root)):
                continue
            groupings.setdefault(path.parent, []).append(path)

        discovery = Discovery(
            root=root,
            groupings={d: tuple(units) for d, units in groupings.items()},
        )
        logger.debug(
            "Discovered %d units in %d groupings under %s",
            discovery.unit_count, len(discovery.groupings), root,
        )
        return discovery

    def units_in(self, directory: Path) -> list[Path]:
        """Units directly inside ``directory`` (no recursion)."""
        directory = Path(directory)
        if not directory.is_dir():
            raise InvalidRoot(f"{directory} is not a directory")
        return sorted(
            p for p in directory.iterdir()
            if p.is_file() and self.is_unit(p)
        )

    def is_unit(self, path: Path) -> bool:
        return path.suffix in self.extensions

    def _should_skip(self, relative: Path) -> bool:
        # Only directory components are matched, never the file name.
        for part in relative.parts[:-1]:
            for pattern in self.skip_dirs:
                if fnmatch.fnmatch(part, pattern):
                    return True
        return False


def discover_units(
    root: Path,
    extensions: tuple[str, ...] = (".java",),
    skip_dirs: list[str] | None = None,
) -> Discovery:
    """Discover all units below ``root``."""
    return SourceScanner(extensions=extensions, skip_dirs=skip_dirs).discover(root)
