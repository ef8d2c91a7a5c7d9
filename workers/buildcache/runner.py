"""
Runner — top-level orchestration: directory → built units + run report.

This module ties the catalog, staleness rule, engine, and commit protocol
together into ``run_all``, and exposes the three targets on the command
line:

    buildcache [all]              build/run every stale unit
    buildcache clean              delete every derived artifact
    buildcache list-diagnostics   print expected diagnostic file names
"""
from __future__ import annotations

import argparse
import logging
import sys
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from dataclasses import asdict
from pathlib import Path
from typing import Dict, List, Optional, Sequence

from buildcache import __version__
from buildcache.config import Settings
from buildcache.core.artifact_meta import describe_artifact
from buildcache.core.catalog import SourceUnit, discover
from buildcache.core.cleanup import clean, list_diagnostics
from buildcache.core.commit import commit
from buildcache.core.engine import ColorMode, ExecutionContext, execute
from buildcache.core.staleness import resolve
from buildcache.errors import CaptureIOError, DiscoveryError, ToolchainMissingError
from buildcache.io.schema import ArtifactMeta, RunReport, UnitCounts, UnitOutcome
from buildcache.io.writer import write_report
from buildcache.policy.profile import SourceKind
from buildcache.policy.verdict import (
    EXIT_DISCOVERY_ERROR,
    UnitStatus,
    judge_execution,
    run_exit_code,
    unit_exit_code,
)

logger = logging.getLogger(__name__)


# ── Per-unit pipeline ────────────────────────────────────────────────────────

def process_unit(unit: SourceUnit, context: ExecutionContext) -> UnitOutcome:
    """
    Resolve, execute and commit a single unit.

    A nonzero exit still commits the diagnostic so the failure output
    stays inspectable.  A missing toolchain or a capture error commits
    nothing and leaves any previous diagnostic in place.
    """
    decision = resolve(unit)
    base = dict(
        source=str(unit.path),
        kind=unit.kind,
        stale_reason=decision.reason,
        primary_path=str(unit.primary_path),
        diagnostic_path=str(unit.diagnostic_path),
    )

    if not decision.stale:
        return UnitOutcome(status=UnitStatus.UP_TO_DATE, **base)

    try:
        result = execute(unit, context)
        # Only reached once the stream hit EOF and the child was waited for
        if result.diagnostic_captured:
            try:
                commit(unit.temp_diagnostic_path, unit.diagnostic_path)
            except OSError as e:
                raise CaptureIOError(unit.temp_diagnostic_path, e.strerror or str(e)) from e
    except (ToolchainMissingError, CaptureIOError) as e:
        logger.error("%s", e)
        if isinstance(e, ToolchainMissingError):
            status = UnitStatus.TOOLCHAIN_MISSING
        else:
            status = UnitStatus.CAPTURE_ERROR
        return UnitOutcome(
            status=status,
            error=str(e),
            unit_exit_code=unit_exit_code(status, None),
            **base,
        )

    status = judge_execution(result.exit_code)
    facts = describe_artifact(unit.primary_path, unit.kind)
    return UnitOutcome(
        status=status,
        diagnostic_committed=result.diagnostic_captured,
        command=result.command,
        exit_code=result.exit_code,
        duration_ms=result.duration_ms,
        artifact=ArtifactMeta(**asdict(facts)) if facts is not None else None,
        unit_exit_code=unit_exit_code(status, result.exit_code),
        **base,
    )


def _run_parallel(
    units: List[SourceUnit],
    context: ExecutionContext,
    jobs: int,
) -> Dict[int, UnitOutcome]:
    """Run units on a thread pool; stop scheduling after a capture error."""
    outcomes: Dict[int, UnitOutcome] = {}
    with ThreadPoolExecutor(max_workers=jobs) as pool:
        pending: Dict[Future, int] = {
            pool.submit(process_unit, unit, context): i
            for i, unit in enumerate(units)
        }
        while pending:
            done, _ = wait(pending, return_when=FIRST_COMPLETED)
            for fut in done:
                outcome = fut.result()
                outcomes[pending.pop(fut)] = outcome
                if outcome.status == UnitStatus.CAPTURE_ERROR:
                    for other in list(pending):
                        if other.cancel():
                            pending.pop(other)
    return outcomes


def _count(outcomes: List[UnitOutcome]) -> UnitCounts:
    counts = UnitCounts(total=len(outcomes))
    for o in outcomes:
        if o.status == UnitStatus.UP_TO_DATE:
            counts.up_to_date += 1
        elif o.status == UnitStatus.BUILT:
            counts.built += 1
        elif o.status == UnitStatus.FAILED:
            counts.failed += 1
        else:
            counts.errors += 1
    return counts


# ── Public API ───────────────────────────────────────────────────────────────

def run_all(
    root: Path,
    context: ExecutionContext,
    jobs: int = 1,
    report_path: Path | None = None,
) -> RunReport:
    """
    Bring every unit under *root* up to date.

    Parameters
    ----------
    root : Path
        Directory holding the sources.
    context : ExecutionContext
        Profile, color flag and echo sink, resolved once by the caller.
    jobs : int
        Number of units executed concurrently.  1 runs them in order.
    report_path : Path, optional
        Where to write run_report.json.  If None, nothing is written.

    Raises
    ------
    DiscoveryError
        If *root* cannot be read.  No unit is executed.
    """
    units = discover(root, context.profile)

    if jobs > 1 and len(units) > 1:
        by_index = _run_parallel(units, context, jobs)
        outcomes = [by_index[i] for i in sorted(by_index)]
    else:
        outcomes = []
        for unit in units:
            outcome = process_unit(unit, context)
            outcomes.append(outcome)
            if outcome.status == UnitStatus.CAPTURE_ERROR:
                break

    aborted = len(outcomes) < len(units)
    if aborted:
        logger.error(
            "Run aborted after a capture error; %d units not started",
            len(units) - len(outcomes),
        )

    report = RunReport(
        profile_id=context.profile.profile_id,
        root=str(root),
        color=context.color,
        aborted=aborted,
        counts=_count(outcomes),
        units=outcomes,
        exit_code=run_exit_code(o.unit_exit_code for o in outcomes),
    )

    if report_path is not None:
        write_report(report, report_path)

    return report


# ── CLI ──────────────────────────────────────────────────────────────────────

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="buildcache",
        description="Compile C++ sources and run Python scripts, caching "
                    "their outputs and diagnostics",
    )
    parser.add_argument(
        "target",
        nargs="?",
        default="all",
        choices=["all", "clean", "list-diagnostics"],
        help="What to do (default: all)",
    )
    parser.add_argument(
        "-C", "--directory",
        type=Path,
        default=Path("."),
        help="Source directory (default: current directory)",
    )
    parser.add_argument(
        "--color",
        choices=[m.value for m in ColorMode],
        default=None,
        help="Colorize compiler diagnostics (default: auto, from stderr)",
    )
    parser.add_argument(
        "-j", "--jobs",
        type=int,
        default=None,
        help="Units to execute concurrently",
    )
    parser.add_argument(
        "--kind",
        choices=[k.value for k in SourceKind],
        default=None,
        help="list-diagnostics: only list this kind of unit",
    )
    parser.add_argument(
        "--report",
        type=Path,
        default=None,
        help="Write a JSON run report to this path",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    """CLI entry point for buildcache.  Returns the process exit code."""
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )

    settings = Settings()
    profile = settings.to_profile()
    root: Path = args.directory

    try:
        if args.target == "list-diagnostics":
            kind = SourceKind(args.kind) if args.kind else None
            print(" ".join(list_diagnostics(root, profile, kind)))
            return 0

        if args.target == "clean":
            clean(root, profile)
            return 0

        context = ExecutionContext.from_environment(
            profile, ColorMode(args.color or settings.COLOR)
        )
        jobs = args.jobs if args.jobs is not None else settings.JOBS
        report = run_all(root, context, jobs=max(jobs, 1), report_path=args.report)
    except DiscoveryError as e:
        logger.error("%s", e)
        return EXIT_DISCOVERY_ERROR

    c = report.counts
    print(f"Units: {c.total} "
          f"(built={c.built}, up_to_date={c.up_to_date}, "
          f"failed={c.failed}, errors={c.errors})")
    if args.report:
        print(f"Report written to: {args.report}")

    return report.exit_code


if __name__ == "__main__":
    sys.exit(main())
