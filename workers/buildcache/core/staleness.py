"""
Staleness — timestamp rule deciding whether a unit must be rebuilt.

With T(p) the modification time of p (or -inf when p is absent), a unit
is stale iff

    min(T(primary), T(diagnostic)) < max(T(source), T(dep) for dep in deps)

The max over an empty dependency set is -inf, so a unit without shared
dependencies is governed by its source alone.  Comparison is strict:
equal timestamps count as up to date.  Only the final diagnostic name is
inspected; an orphaned temp file never makes a unit look fresh.
"""
import logging
import math
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable

from buildcache.core.catalog import SourceUnit
from buildcache.policy.verdict import StaleReason

logger = logging.getLogger(__name__)

MISSING = -math.inf


@dataclass(frozen=True)
class StalenessDecision:
    """Outcome of comparing a unit's artifacts against its inputs."""

    stale: bool
    reason: StaleReason
    oldest_artifact: float
    newest_input: float


def mtime(path: Path) -> float:
    """Modification time in nanoseconds, or -inf if *path* does not exist."""
    try:
        return path.stat().st_mtime_ns
    except FileNotFoundError:
        return MISSING


def newest(paths: Iterable[Path]) -> float:
    return max((mtime(p) for p in paths), default=MISSING)


def resolve(unit: SourceUnit) -> StalenessDecision:
    """
    Decide whether *unit* needs to be executed.

    Raises
    ------
    FileNotFoundError
        If the unit's source file no longer exists.
    """
    source_time = mtime(unit.path)
    if source_time == MISSING:
        raise FileNotFoundError(f"Source not found: {unit.path}")

    newest_input = max(source_time, newest(unit.extra_deps))
    primary_time = mtime(unit.primary_path)
    diagnostic_time = mtime(unit.diagnostic_path)
    oldest_artifact = min(primary_time, diagnostic_time)

    if primary_time == MISSING:
        reason = StaleReason.MISSING_PRIMARY
    elif diagnostic_time == MISSING:
        reason = StaleReason.MISSING_DIAGNOSTIC
    elif oldest_artifact < newest_input:
        reason = StaleReason.OUTDATED
    else:
        reason = StaleReason.UP_TO_DATE

    decision = StalenessDecision(
        stale=reason != StaleReason.UP_TO_DATE,
        reason=reason,
        oldest_artifact=oldest_artifact,
        newest_input=newest_input,
    )
    logger.debug("%s: %s", unit.name, reason.value)
    return decision


def is_stale(unit: SourceUnit) -> bool:
    return resolve(unit).stale
