"""
buildcache — incremental compile/run orchestrator with cached diagnostics.

Compiles C++ sources and runs Python scripts in a directory, keeping each
unit's executable (or run output) next to a diagnostic file holding the
compiler output or runtime stderr.  Diagnostics are committed atomically.
"""

__version__ = "0.1.0"
PACKAGE_NAME = "buildcache"
SCHEMA_VERSION = "0.1"
