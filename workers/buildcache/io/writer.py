"""
Writer — serialize the run report to JSON.

The report goes through the same temp-then-rename commit as diagnostics,
so an interrupted write never leaves a truncated report behind.
"""
import json
from pathlib import Path

from buildcache.core.commit import commit, open_temp, seal_temp
from buildcache.io.schema import RunReport


def report_json(report: RunReport) -> str:
    return json.dumps(
        report.model_dump(mode="json"),
        indent=2,
        sort_keys=True,
    ) + "\n"


def write_report(report: RunReport, path: Path) -> Path:
    """
    Write *report* to *path* atomically.

    Creates the parent directory if it does not exist.
    Returns *path*.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    temp_path = path.with_name(f"{path.name}.tmp")

    with open_temp(temp_path) as fh:
        fh.write(report_json(report).encode("utf-8"))
        seal_temp(fh)

    return commit(temp_path, path)
