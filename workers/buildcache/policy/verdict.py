"""
Verdict — unit outcome vocabulary and exit-code policy.

Two layers:
  1. Per-unit status (judge_execution, unit_exit_code).
  2. Run-level exit code (run_exit_code): the first failing unit wins.

Exit codes follow the shell: a child's own code passes through, a child
killed by signal N maps to 128+N, and a missing tool maps to 127.
"""
from enum import Enum, unique
from typing import Iterable, Optional


EXIT_OK = 0
EXIT_CAPTURE_ERROR = 1
EXIT_DISCOVERY_ERROR = 2
EXIT_TOOLCHAIN_MISSING = 127


# ── Staleness reasons ────────────────────────────────────────────────────────

@unique
class StaleReason(str, Enum):
    MISSING_PRIMARY = "MISSING_PRIMARY"
    MISSING_DIAGNOSTIC = "MISSING_DIAGNOSTIC"
    OUTDATED = "OUTDATED"
    UP_TO_DATE = "UP_TO_DATE"


# ── Unit status ──────────────────────────────────────────────────────────────

@unique
class UnitStatus(str, Enum):
    UP_TO_DATE = "UP_TO_DATE"
    BUILT = "BUILT"
    FAILED = "FAILED"
    TOOLCHAIN_MISSING = "TOOLCHAIN_MISSING"
    CAPTURE_ERROR = "CAPTURE_ERROR"


def judge_execution(exit_code: int) -> UnitStatus:
    """A finished child is BUILT on exit 0 and FAILED otherwise."""
    if exit_code == 0:
        return UnitStatus.BUILT
    return UnitStatus.FAILED


def normalize_exit_code(code: int) -> int:
    """Map a Popen return code to a process exit status."""
    if code < 0:
        return 128 - code
    return code


def unit_exit_code(status: UnitStatus, child_exit_code: Optional[int]) -> int:
    """Exit status contributed by one unit."""
    if status in (UnitStatus.UP_TO_DATE, UnitStatus.BUILT):
        return EXIT_OK
    if status == UnitStatus.TOOLCHAIN_MISSING:
        return EXIT_TOOLCHAIN_MISSING
    if status == UnitStatus.CAPTURE_ERROR:
        return EXIT_CAPTURE_ERROR
    if child_exit_code is None or child_exit_code == 0:
        return EXIT_CAPTURE_ERROR
    return normalize_exit_code(child_exit_code)


def run_exit_code(unit_codes: Iterable[int]) -> int:
    """First nonzero unit code in catalog order, else 0."""
    for code in unit_codes:
        if code != EXIT_OK:
            return code
    return EXIT_OK
