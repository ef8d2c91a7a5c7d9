"""
Schema — Pydantic models for the JSON run report.

One report per invocation of ``buildcache all``:
  run_report.json: per-unit outcome + summary counts + exit code.

Runtime contract fields (present in every report):
  package_name, package_version, schema_version, profile_id.
"""
from datetime import datetime, timezone
from typing import List, Optional

from pydantic import BaseModel, Field

from buildcache import PACKAGE_NAME, SCHEMA_VERSION, __version__
from buildcache.policy.profile import SourceKind
from buildcache.policy.verdict import StaleReason, UnitStatus


# ── Per-unit outcome ─────────────────────────────────────────────────────────

class ArtifactMeta(BaseModel):
    """Primary artifact on disk after the unit ran."""
    sha256: str
    size_bytes: int
    elf_type: Optional[str] = None
    elf_machine: Optional[str] = None


class UnitOutcome(BaseModel):
    """What the run did with one source unit."""

    source: str
    kind: SourceKind
    status: UnitStatus
    stale_reason: StaleReason

    primary_path: str
    diagnostic_path: str
    diagnostic_committed: bool = False

    # Populated only when the unit was executed
    command: List[str] = Field(default_factory=list)
    exit_code: Optional[int] = None
    duration_ms: int = 0
    artifact: Optional[ArtifactMeta] = None

    error: Optional[str] = None
    unit_exit_code: int = 0


# ── Run-level report ─────────────────────────────────────────────────────────

class UnitCounts(BaseModel):
    total: int = 0
    up_to_date: int = 0
    built: int = 0
    failed: int = 0
    errors: int = 0       # TOOLCHAIN_MISSING + CAPTURE_ERROR


class RunReport(BaseModel):
    """Summary of one ``all`` invocation (run_report.json)."""

    package_name: str = PACKAGE_NAME
    package_version: str = __version__
    schema_version: str = SCHEMA_VERSION
    profile_id: str

    root: str
    color: bool = False
    aborted: bool = False   # a capture error stopped the run early

    counts: UnitCounts = Field(default_factory=UnitCounts)
    units: List[UnitOutcome] = Field(default_factory=list)
    exit_code: int = 0

    timestamp: str = Field(
        default_factory=lambda: datetime.now(timezone.utc).isoformat()
    )

    @property
    def executed(self) -> List[UnitOutcome]:
        return [u for u in self.units if u.status != UnitStatus.UP_TO_DATE]
