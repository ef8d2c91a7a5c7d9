"""
Configuration

Settings are read from ``BUILDCACHE_*`` environment variables (or a
``.env`` file) and turned into a frozen ``Profile``.  CLI flags override
them.
"""
import shlex
from dataclasses import replace
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict

from buildcache.policy.profile import Profile


class Settings(BaseSettings):
    """buildcache settings"""

    model_config = SettingsConfigDict(
        env_prefix="BUILDCACHE_",
        env_file=".env",
        case_sensitive=True,
        extra="ignore",
    )

    # Toolchain
    CXX: str = "g++"
    CXXFLAGS: str = "-std=c++17 -Wall -Wextra -O2"
    PYTHON: str = "python3"

    # Naming
    CPP_EXT: str = "cpp"
    HEADER_EXT: str = "h"
    EXE_EXT: str = "exe"
    PY_EXT: str = "py"
    COMPILE_OUT_PREFIX: str = "._"
    ERR_OUT_PREFIX: str = "._"

    # Run
    COLOR: Literal["auto", "always", "never"] = "auto"
    JOBS: int = 1

    def to_profile(self) -> Profile:
        """Frozen profile for the engine; id reflects any overrides."""
        default = Profile.v0()
        profile = Profile(
            profile_id=default.profile_id,
            cpp_ext=self.CPP_EXT,
            header_ext=self.HEADER_EXT,
            exe_ext=self.EXE_EXT,
            compile_out_prefix=self.COMPILE_OUT_PREFIX,
            compiler=self.CXX,
            compiler_flags=tuple(shlex.split(self.CXXFLAGS)),
            py_ext=self.PY_EXT,
            err_out_prefix=self.ERR_OUT_PREFIX,
            interpreter=self.PYTHON,
        )
        if profile != default:
            return replace(profile, profile_id="custom")
        return profile
