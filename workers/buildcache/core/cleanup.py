"""
Cleanup — remove derived artifacts; list expected diagnostic names.

``clean`` deletes by naming convention, so diagnostics and temp files
whose source has since been removed are deleted too.  Source and header
files are never deleted, even if a derived name collides with one.
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional, Set

from buildcache.core.catalog import list_files, discover
from buildcache.policy.profile import Profile, SourceKind

logger = logging.getLogger(__name__)


def _derived_paths(root: Path, profile: Profile) -> Set[Path]:
    """Every existing file under *root* that the naming convention owns."""
    files = list_files(root)
    derived: Set[Path] = set()

    # Interpreted run outputs are only recognizable through their source
    for unit in discover(root, profile):
        if unit.kind is SourceKind.INTERPRETED:
            derived.add(unit.primary_path)

    exe_suffix = f".{profile.exe_ext}"
    compile_patterns = (profile.compile_out_suffix, profile.compile_tmp_out_suffix)
    err_patterns = (profile.err_out_suffix, profile.err_tmp_out_suffix)

    for p in files:
        name = p.name
        if name.endswith(exe_suffix):
            derived.add(p)
        elif name.startswith(profile.compile_out_prefix) and name.endswith(compile_patterns):
            derived.add(p)
        elif name.startswith(profile.err_out_prefix) and name.endswith(err_patterns):
            derived.add(p)
    return derived


def _protected_paths(root: Path, profile: Profile) -> Set[Path]:
    """Sources and headers, which clean must never touch."""
    exts = {profile.cpp_ext, profile.py_ext, profile.header_ext}
    return {
        p for p in list_files(root)
        if any(p.name.endswith(f".{ext}") for ext in exts)
    }


def clean(root: Path, profile: Profile | None = None) -> List[Path]:
    """
    Delete every primary and diagnostic artifact under *root*.

    Returns the removed paths, sorted by name.
    """
    if profile is None:
        profile = Profile.v0()

    protected = _protected_paths(root, profile)
    removed: List[Path] = []
    for p in sorted(_derived_paths(root, profile), key=lambda p: p.name):
        if p in protected or not p.is_file():
            continue
        p.unlink()
        removed.append(p)
        logger.debug("Removed %s", p.name)

    logger.info("Removed %d files from %s", len(removed), root)
    return removed


def list_diagnostics(
    root: Path,
    profile: Profile | None = None,
    kind: Optional[SourceKind] = None,
) -> List[str]:
    """Expected diagnostic file names for every unit (or one kind) under *root*."""
    if profile is None:
        profile = Profile.v0()
    return [
        unit.diagnostic_path.name
        for unit in discover(root, profile)
        if kind is None or unit.kind is kind
    ]
