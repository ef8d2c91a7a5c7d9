"""
Engine — run the compiler or interpreter for one stale unit.

Compiled units:
    <compiler> <flags...> name.cpp -o name.exe -fdiagnostics-color=...
    stdout and stderr are merged and captured as the diagnostic.

Interpreted units:
    <interpreter> name.py
    stdout is redirected into the primary artifact (truncated first, like
    a shell ``>``); stderr is captured as the diagnostic.

The captured stream is copied to the unit's temp diagnostic file and
echoed to the orchestrator's stderr (``tee``).  The reported exit code is
always the child's own return code, never the status of the copy loop.
The engine does not commit; the caller promotes the temp file only when
the result reports ``diagnostic_captured``.  Failures to capture raise
instead of returning a result.
"""
import logging
import shutil
import subprocess
import sys
import time
from dataclasses import dataclass, field
from enum import Enum, unique
from pathlib import Path
from typing import BinaryIO, List, Optional, TextIO

from buildcache.core.catalog import SourceUnit
from buildcache.core.commit import discard_temp, open_temp, seal_temp
from buildcache.errors import CaptureIOError, ToolchainMissingError
from buildcache.policy.profile import Profile, SourceKind

logger = logging.getLogger(__name__)

CHUNK_SIZE = 65536


# ── Process-wide context ─────────────────────────────────────────────────────

@unique
class ColorMode(str, Enum):
    AUTO = "auto"
    ALWAYS = "always"
    NEVER = "never"


def detect_color(stream: Optional[TextIO] = None) -> bool:
    """True when *stream* (default: stderr) is attached to a terminal."""
    if stream is None:
        stream = sys.stderr
    try:
        return stream.isatty()
    except (AttributeError, ValueError):
        return False


def resolve_color(mode: ColorMode, stream: Optional[TextIO] = None) -> bool:
    if mode == ColorMode.ALWAYS:
        return True
    if mode == ColorMode.NEVER:
        return False
    return detect_color(stream)


@dataclass(frozen=True)
class ExecutionContext:
    """
    Configuration shared by every execution in one run.

    Resolved once at startup and never mutated; ``color`` is the
    terminal probe result, ``echo`` receives a copy of every captured
    diagnostic byte (None disables echoing).
    """

    profile: Profile
    color: bool = False
    echo: Optional[BinaryIO] = None

    @classmethod
    def from_environment(
        cls,
        profile: Profile,
        color_mode: ColorMode = ColorMode.AUTO,
        echo: bool = True,
    ) -> "ExecutionContext":
        sink = getattr(sys.stderr, "buffer", None) if echo else None
        return cls(profile=profile, color=resolve_color(color_mode), echo=sink)


@dataclass(frozen=True)
class ExecutionResult:
    """What happened when a unit's child process ran."""

    exit_code: int
    primary_written: bool
    diagnostic_captured: bool
    command: List[str] = field(default_factory=list)
    duration_ms: int = 0

    @property
    def succeeded(self) -> bool:
        return self.exit_code == 0


# ── Command construction ─────────────────────────────────────────────────────

def build_command(unit: SourceUnit, context: ExecutionContext) -> List[str]:
    """Command line for *unit*, with file names relative to its directory."""
    profile = context.profile
    if unit.kind is SourceKind.COMPILED:
        return [
            profile.compiler,
            *profile.compiler_flags,
            unit.name,
            "-o",
            unit.primary_path.name,
            profile.color_flag(context.color),
        ]
    return [profile.interpreter, unit.name]


def _resolve_tool(tool: str, unit: SourceUnit) -> str:
    found = shutil.which(tool)
    if found is None:
        raise ToolchainMissingError(tool, unit.path)
    return found


def _spawn(cmd: List[str], unit: SourceUnit, **kwargs) -> subprocess.Popen:
    try:
        return subprocess.Popen(cmd, cwd=str(unit.directory), **kwargs)
    except (FileNotFoundError, PermissionError) as e:
        raise ToolchainMissingError(cmd[0], unit.path) from e


# ── Stream capture ───────────────────────────────────────────────────────────

def _drain(stream: BinaryIO, temp: BinaryIO, echo: Optional[BinaryIO]) -> int:
    """
    Copy *stream* into *temp* (and *echo*) until EOF.  Returns bytes copied.

    A failing temp write raises CaptureIOError.  A failing echo sink (e.g.
    stderr piped into a closed reader) only stops the echo; capture goes on.
    """
    total = 0
    while True:
        chunk = stream.read1(CHUNK_SIZE)
        if not chunk:
            return total
        try:
            temp.write(chunk)
        except OSError as e:
            raise CaptureIOError(Path(temp.name), e.strerror or str(e)) from e
        if echo is not None:
            try:
                echo.write(chunk)
                echo.flush()
            except OSError as e:
                logger.warning("Diagnostic echo stopped: %s", e.strerror or e)
                echo = None
        total += len(chunk)


def _kill(proc: subprocess.Popen) -> None:
    if proc.poll() is None:
        proc.kill()
    proc.wait()


def _start(unit: SourceUnit, cmd: List[str]) -> subprocess.Popen:
    if unit.kind is SourceKind.COMPILED:
        # 2>&1: warnings and errors land in one stream
        return _spawn(cmd, unit, stdout=subprocess.PIPE, stderr=subprocess.STDOUT)

    try:
        out = open(unit.primary_path, "wb")
    except OSError as e:
        raise CaptureIOError(unit.primary_path, e.strerror or str(e)) from e
    with out:
        return _spawn(cmd, unit, stdout=out, stderr=subprocess.PIPE)


def execute(unit: SourceUnit, context: ExecutionContext) -> ExecutionResult:
    """
    Run the child process for *unit*, capturing its diagnostic stream
    into ``unit.temp_diagnostic_path``.

    Raises
    ------
    ToolchainMissingError
        If the compiler/interpreter cannot be found.  Nothing is written.
    CaptureIOError
        If the temp diagnostic (or the interpreted run output) cannot be
        written.  The child is killed and the temp file removed.
    """
    profile = context.profile
    tool = profile.compiler if unit.kind is SourceKind.COMPILED else profile.interpreter
    executable = _resolve_tool(tool, unit)

    cmd = build_command(unit, context)
    logger.info("%s", " ".join(cmd))

    t0 = time.monotonic()
    temp = open_temp(unit.temp_diagnostic_path)
    try:
        proc = _start(unit, [executable] + cmd[1:])
        stream = proc.stdout if unit.kind is SourceKind.COMPILED else proc.stderr
        try:
            with stream:
                _drain(stream, temp, context.echo)
        except BaseException:
            _kill(proc)
            raise
        exit_code = proc.wait()
        seal_temp(temp)
    except (CaptureIOError, ToolchainMissingError):
        temp.close()
        discard_temp(unit.temp_diagnostic_path)
        raise
    finally:
        temp.close()

    duration = int((time.monotonic() - t0) * 1000)
    if exit_code != 0:
        logger.warning("%s exited with code %d", unit.name, exit_code)

    return ExecutionResult(
        exit_code=exit_code,
        primary_written=unit.primary_path.exists(),
        diagnostic_captured=True,
        command=cmd,
        duration_ms=duration,
    )
