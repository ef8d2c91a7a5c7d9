"""
Commit — temp-then-rename protocol for diagnostic files.

A child's diagnostic stream is written to the unit's temp path only.
Once the child has exited and the stream has been drained to EOF, the
temp file is renamed onto the final diagnostic name.  ``os.replace``
within one directory is atomic, so a reader of the final name sees either
the previous complete file or the new complete one.

If the process dies before the rename, the temp file is orphaned and the
final name keeps its last committed version.
"""
import logging
import os
from pathlib import Path
from typing import BinaryIO

from buildcache.errors import CaptureIOError

logger = logging.getLogger(__name__)


def open_temp(temp_path: Path) -> BinaryIO:
    """
    Open (and truncate) the temp diagnostic file for binary writing.

    An orphan left by an interrupted earlier run is overwritten.
    """
    try:
        return open(temp_path, "wb")
    except OSError as e:
        raise CaptureIOError(temp_path, e.strerror or str(e)) from e


def seal_temp(fh: BinaryIO) -> None:
    """Flush and fsync *fh* so the data is on disk before the rename."""
    try:
        fh.flush()
        os.fsync(fh.fileno())
    except OSError as e:
        raise CaptureIOError(Path(fh.name), e.strerror or str(e)) from e


def commit(temp_path: Path, final_path: Path) -> Path:
    """Atomically promote *temp_path* to *final_path*."""
    os.replace(temp_path, final_path)
    logger.debug("Committed %s -> %s", temp_path.name, final_path.name)
    return final_path


def discard_temp(temp_path: Path) -> bool:
    """Remove an unpromoted temp file.  Returns True if one was removed."""
    try:
        temp_path.unlink()
    except FileNotFoundError:
        return False
    logger.debug("Discarded %s", temp_path)
    return True
