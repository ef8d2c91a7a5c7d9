"""
Profile — naming conventions and toolchain knobs.

The profile encapsulates every extension, prefix, and command so that
core modules contain no hard-coded names.  Changing the compiled language
or the diagnostic prefix is a profile change, not a code change.

Naming per kind (v0 defaults):

    Compiled:     name.cpp -> name.exe,  ._name.cpp.compile.out
    Interpreted:  name.py  -> name,      ._name.py.err.out

Each diagnostic has a temp sibling (``.compile.tmp.out`` / ``.err.tmp.out``)
that receives output while the child is still running.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, unique
from typing import Tuple


@unique
class SourceKind(str, Enum):
    """How a source unit is turned into its primary artifact."""
    COMPILED = "compiled"
    INTERPRETED = "interpreted"


@dataclass(frozen=True)
class Profile:
    """Naming conventions and toolchain for one source directory."""

    # Identity
    profile_id: str

    # Compiled units
    cpp_ext: str = "cpp"
    header_ext: str = "h"
    exe_ext: str = "exe"
    compile_out_prefix: str = "._"
    compiler: str = "g++"
    compiler_flags: Tuple[str, ...] = ("-std=c++17", "-Wall", "-Wextra", "-O2")

    # Interpreted units
    py_ext: str = "py"
    err_out_prefix: str = "._"
    interpreter: str = "python3"

    @classmethod
    def v0(cls) -> Profile:
        """The default profile: g++ for .cpp, python3 for .py."""
        return cls(profile_id="cpp-gxx-py-python3")

    # ── Suffixes ─────────────────────────────────────────────────────

    @property
    def compile_out_suffix(self) -> str:
        return f".{self.cpp_ext}.compile.out"

    @property
    def compile_tmp_out_suffix(self) -> str:
        return f".{self.cpp_ext}.compile.tmp.out"

    @property
    def err_out_suffix(self) -> str:
        return f".{self.py_ext}.err.out"

    @property
    def err_tmp_out_suffix(self) -> str:
        return f".{self.py_ext}.err.tmp.out"

    # ── Per-kind naming ──────────────────────────────────────────────

    def source_ext(self, kind: SourceKind) -> str:
        if kind is SourceKind.COMPILED:
            return self.cpp_ext
        return self.py_ext

    def primary_name(self, kind: SourceKind, stem: str) -> str:
        """Name of the executable (compiled) or run output (interpreted)."""
        if kind is SourceKind.COMPILED:
            return f"{stem}.{self.exe_ext}"
        return stem

    def diagnostic_name(self, kind: SourceKind, stem: str) -> str:
        """Final name of the captured compiler output / stderr."""
        if kind is SourceKind.COMPILED:
            return f"{self.compile_out_prefix}{stem}{self.compile_out_suffix}"
        return f"{self.err_out_prefix}{stem}{self.err_out_suffix}"

    def temp_diagnostic_name(self, kind: SourceKind, stem: str) -> str:
        """Name the diagnostic is written under until it is committed."""
        if kind is SourceKind.COMPILED:
            return f"{self.compile_out_prefix}{stem}{self.compile_tmp_out_suffix}"
        return f"{self.err_out_prefix}{stem}{self.err_tmp_out_suffix}"

    def color_flag(self, enabled: bool) -> str:
        return "-fdiagnostics-color=always" if enabled else "-fdiagnostics-color=never"
