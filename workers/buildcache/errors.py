"""
Errors raised by buildcache core modules.

The runner translates unit-level errors into ``UnitStatus`` values;
``DiscoveryError`` aborts the whole run.
"""
from pathlib import Path
from typing import Optional


class BuildCacheError(Exception):
    """Base class for all buildcache errors."""


class DiscoveryError(BuildCacheError):
    """The source directory could not be enumerated."""

    def __init__(self, root: Path, reason: str):
        self.root = root
        self.reason = reason
        super().__init__(f"Cannot read source directory {root}: {reason}")


class ToolchainMissingError(BuildCacheError):
    """The compiler or interpreter for a unit could not be found."""

    def __init__(self, tool: str, source: Optional[Path] = None):
        self.tool = tool
        self.source = source
        where = f" (needed for {source.name})" if source is not None else ""
        super().__init__(f"Toolchain not found: {tool}{where}")


class CaptureIOError(BuildCacheError):
    """Writing the temporary diagnostic file failed."""

    def __init__(self, temp_path: Path, reason: str):
        self.temp_path = temp_path
        self.reason = reason
        super().__init__(f"Diagnostic capture failed for {temp_path}: {reason}")
