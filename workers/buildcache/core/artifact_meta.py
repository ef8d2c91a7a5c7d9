"""
Artifact metadata — hash, size, and ELF header facts of a primary artifact.

Compiled outputs are opened with pyelftools to record their ELF type and
machine.  A compiled output that is not ELF (e.g. a PE executable from a
MinGW toolchain) is described without ELF facts.  No section parsing.
"""
import hashlib
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from elftools.common.exceptions import ELFError
from elftools.elf.elffile import ELFFile

from buildcache.policy.profile import SourceKind

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ArtifactFacts:
    """Facts about one primary artifact on disk."""

    sha256: str
    size_bytes: int
    elf_type: Optional[str] = None    # ET_EXEC, ET_DYN, ...
    elf_machine: Optional[str] = None  # EM_X86_64, ...


def hash_file(path: Path) -> str:
    """SHA-256 of a file."""
    h = hashlib.sha256()
    with open(path, "rb") as f:
        for chunk in iter(lambda: f.read(65536), b""):
            h.update(chunk)
    return h.hexdigest()


def read_elf_header(path: Path) -> Optional[tuple]:
    """Return (e_type, e_machine), or None if *path* is not ELF."""
    try:
        with open(path, "rb") as f:
            elf = ELFFile(f)
            return elf.header["e_type"], elf.header["e_machine"]
    except ELFError as e:
        logger.warning("Not an ELF executable: %s (%s)", path, e)
        return None


def describe_artifact(path: Path, kind: SourceKind) -> Optional[ArtifactFacts]:
    """Describe the primary artifact at *path*, or None if it does not exist."""
    if not path.is_file():
        return None

    elf_type = elf_machine = None
    if kind is SourceKind.COMPILED:
        header = read_elf_header(path)
        if header is not None:
            elf_type, elf_machine = header

    return ArtifactFacts(
        sha256=hash_file(path),
        size_bytes=path.stat().st_size,
        elf_type=elf_type,
        elf_machine=elf_machine,
    )
