"""
Catalog — discover source units in a directory.

Responsibilities:
  - Enumerate regular files directly under the root (no recursion).
  - Classify them by extension into COMPILED and INTERPRETED units.
  - Enumerate the shared header set before any unit is built, and attach
    it to every COMPILED unit (no per-unit include tracking).
  - Derive each unit's artifact paths from the profile.

Ordering is lexicographic by file name.  Dot-prefixed names are never
sources or headers.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Tuple

from buildcache.errors import DiscoveryError
from buildcache.policy.profile import Profile, SourceKind

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SourceUnit:
    """One source file and the artifacts derived from it."""

    path: Path
    kind: SourceKind
    primary_path: Path
    diagnostic_path: Path
    temp_diagnostic_path: Path
    extra_deps: Tuple[Path, ...] = field(default_factory=tuple)

    @property
    def name(self) -> str:
        return self.path.name

    @property
    def stem(self) -> str:
        return self.path.stem

    @property
    def directory(self) -> Path:
        return self.path.parent

    @property
    def inputs(self) -> Tuple[Path, ...]:
        return (self.path,) + self.extra_deps


def make_unit(
    path: Path,
    kind: SourceKind,
    profile: Profile,
    extra_deps: Tuple[Path, ...] = (),
) -> SourceUnit:
    """Build a SourceUnit with artifact paths next to *path*."""
    stem = path.name[: -len(profile.source_ext(kind)) - 1]
    d = path.parent
    return SourceUnit(
        path=path,
        kind=kind,
        primary_path=d / profile.primary_name(kind, stem),
        diagnostic_path=d / profile.diagnostic_name(kind, stem),
        temp_diagnostic_path=d / profile.temp_diagnostic_name(kind, stem),
        extra_deps=tuple(extra_deps),
    )


def list_files(root: Path) -> List[Path]:
    """Regular files directly under *root*, sorted by name."""
    if not root.exists():
        raise DiscoveryError(root, "no such directory")
    if not root.is_dir():
        raise DiscoveryError(root, "not a directory")
    try:
        entries = list(root.iterdir())
    except OSError as e:
        raise DiscoveryError(root, e.strerror or str(e)) from e
    return sorted((p for p in entries if p.is_file()), key=lambda p: p.name)


def _has_ext(path: Path, ext: str) -> bool:
    # "x.cpp" matches "cpp"; dotfiles (".cpp", "._x.py", ".scratch.py") never do,
    # like a shell "*.cpp" glob
    name = path.name
    return not name.startswith(".") and name.endswith(f".{ext}")


def list_headers(root: Path, profile: Profile) -> Tuple[Path, ...]:
    """All shared header files under *root*, sorted by name."""
    return tuple(p for p in list_files(root) if _has_ext(p, profile.header_ext))


def discover(root: Path, profile: Profile | None = None) -> List[SourceUnit]:
    """
    Discover every source unit directly under *root*.

    Raises
    ------
    DiscoveryError
        If *root* is missing, not a directory, or unreadable.
    """
    if profile is None:
        profile = Profile.v0()

    files = list_files(root)

    # Headers first: the full set must be known before any unit is judged
    headers = tuple(p for p in files if _has_ext(p, profile.header_ext))

    units: List[SourceUnit] = []
    for p in files:
        if _has_ext(p, profile.cpp_ext):
            units.append(make_unit(p, SourceKind.COMPILED, profile, headers))
        elif _has_ext(p, profile.py_ext):
            units.append(make_unit(p, SourceKind.INTERPRETED, profile))

    logger.debug(
        "Discovered %d units (%d headers) in %s", len(units), len(headers), root
    )
    return units
