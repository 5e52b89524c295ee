"""
Atomic file commit: write to a temporary file, fsync, then rename into place.

A reader of the destination path sees either the previous file or the
complete new one, never a partially written workbook.
"""

import contextlib
import logging
import os
import tempfile

from .errors import ExportIOError

logger = logging.getLogger(__name__)

# Permissions of committed files; mkstemp creates 0600 files
FILE_MODE = 0o644


def _remove_temp(temp_path):
    with contextlib.suppress(FileNotFoundError):
        os.remove(temp_path)


def atomic_write(path, write, temp_dir=None, fsync=True):
    """Call ``write(handle)`` on a temporary file and move it to *path*.

    Parameters
    ----------
    path : str or os.PathLike
        Final destination.
    write : callable
        Receives a binary file object and writes the complete content.
    temp_dir : str or None
        Where the temporary file lives. Must be on the same filesystem as
        *path*; defaults to the destination's directory.
    fsync : bool
        Flush the temporary file to disk before the rename.

    Raises
    ------
    ExportIOError
        On any :class:`OSError`. The temporary file has been removed by then.
    """
    path = os.path.abspath(os.fspath(path))
    directory = temp_dir or os.path.dirname(path)
    try:
        fd, temp_path = tempfile.mkstemp(
            prefix=f".{os.path.basename(path)}.", suffix=".tmp", dir=directory
        )
    except OSError as exc:
        raise ExportIOError(path, f"Cannot create a temporary file in {directory}") from exc

    logger.debug(f"Writing {path} via {temp_path}")
    try:
        with os.fdopen(fd, "wb") as handle:
            write(handle)
            handle.flush()
            if fsync:
                os.fsync(handle.fileno())
        os.chmod(temp_path, FILE_MODE)
        os.replace(temp_path, path)
    except OSError as exc:
        _remove_temp(temp_path)
        raise ExportIOError(path, "Cannot write workbook") from exc
    except BaseException:
        _remove_temp(temp_path)
        raise
    return path
