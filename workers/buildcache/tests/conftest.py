"""
Shared pytest fixtures for buildcache tests.

Most tests run against fake toolchains: small Python scripts executed by
the current interpreter that behave like g++ (write ``-o`` target, emit
diagnostics, honor ``-fdiagnostics-color``) or like a failing script.
That keeps exit codes and diagnostic bytes deterministic.

Tests that need the real g++ request the ``gxx_ok`` fixture and are
skipped when it is not installed.

Timestamps are set explicitly with os.utime instead of sleeping.
"""
import os
import shutil
import sys
import textwrap
from pathlib import Path

import pytest

from buildcache.core.engine import ExecutionContext
from buildcache.policy.profile import Profile

# Fake g++: reads directives from the source text.
#   WARN   -> warning on stderr
#   STDOUT -> a note on stdout (checks 2>&1 merging)
#   FAIL   -> error on stderr, exit 1, no output file
FAKE_GXX = textwrap.dedent("""\
    import sys

    args = sys.argv[1:]
    out = args[args.index("-o") + 1]
    src = [a for a in args if a.endswith(".cpp")][0]
    text = open(src).read()
    color = "-fdiagnostics-color=always" in args

    def diag(kind, msg):
        if color:
            sys.stderr.write(
                f"\\x1b[01m\\x1b[K{src}:1:1:\\x1b[m\\x1b[K "
                f"\\x1b[01;35m\\x1b[K{kind}:\\x1b[m\\x1b[K {msg}\\n"
            )
        else:
            sys.stderr.write(f"{src}:1:1: {kind}: {msg}\\n")
        sys.stderr.flush()

    if "STDOUT" in text:
        print("note: compiler stdout", flush=True)
    if "WARN" in text:
        diag("warning", "unused variable 'x'")
    if "FAIL" in text:
        diag("error", "expected ';' before '}' token")
        sys.exit(1)
    with open(out, "wb") as f:
        f.write(b"FAKEBIN:" + text.encode())
""")

HELLO_PY = 'print("hello")\n'

WARN_PY = textwrap.dedent("""\
    import sys
    print("partial output")
    sys.stderr.write("warning: something odd\\n")
""")

CRASH_PY = textwrap.dedent("""\
    import sys
    print("partial output", flush=True)
    sys.stderr.buffer.write(b"boom: exit 3\\n")
    sys.exit(3)
""")

HELLO_CPP = textwrap.dedent("""\
    #include <cstdio>
    int main() { std::puts("hi"); return 0; }
""")


def write_tool(path: Path, body: str) -> Path:
    """Write an executable Python script run by the current interpreter."""
    path.write_text(f"#!{sys.executable}\n{body}")
    path.chmod(0o755)
    return path


def set_mtime(path: Path, seconds: float) -> None:
    ns = int(seconds * 1_000_000_000)
    os.utime(path, ns=(ns, ns))


@pytest.fixture
def tools_dir(tmp_path) -> Path:
    d = tmp_path / "tools"
    d.mkdir()
    return d


@pytest.fixture
def src_dir(tmp_path) -> Path:
    d = tmp_path / "src"
    d.mkdir()
    return d


@pytest.fixture
def fake_gxx(tools_dir) -> Path:
    if sys.platform == "win32":
        pytest.skip("shebang scripts require a POSIX platform")
    return write_tool(tools_dir / "fake-g++", FAKE_GXX)


@pytest.fixture
def profile(fake_gxx) -> Profile:
    """Default naming with the fake compiler and the current interpreter."""
    return Profile(
        profile_id="test",
        compiler=str(fake_gxx),
        interpreter=sys.executable,
    )


@pytest.fixture
def context(profile) -> ExecutionContext:
    """Plain (no color) context that does not echo diagnostics."""
    return ExecutionContext(profile=profile, color=False, echo=None)


@pytest.fixture
def gxx_ok():
    """Skip tests if g++ is not available."""
    if shutil.which("g++") is None:
        pytest.skip("g++ not available - install g++ to run these tests")


@pytest.fixture
def real_profile(gxx_ok) -> Profile:
    return Profile(profile_id="test-real", interpreter=sys.executable)
