"""Utility functions for mayfly."""

import fcntl
import logging
import os
from pathlib import Path

from mayfly.constants import STATE_DIR_NAME


def get_mayfly_dir() -> Path:
    """Return the directory holding mayfly's local state.

    Returns
    -------
    Path
        ``$MAYFLY_DIR`` when set, otherwise ``~/.mayfly``
    """
    override = os.environ.get("MAYFLY_DIR")
    if override:
        return Path(override).expanduser()
    return Path.home() / STATE_DIR_NAME


def atomic_file_write(path: Path, content: str, mode: int = 0o600) -> None:
    """Write file atomically using temp file and rename with file locking.

    The temporary file is created with ``mode`` before any content is
    written, so secrets never sit on disk with wider permissions.

    Parameters
    ----------
    path : Path
        Target file path
    content : str
        File content to write
    mode : int
        Permission bits for the written file

    Raises
    ------
    OSError
        Propagated from the write after the temporary file is removed
    """
    temp_path = path.with_suffix(".tmp")
    lock_path = path.with_suffix(".lock")

    try:
        with open(lock_path, "w") as lock_file:
            fcntl.flock(lock_file.fileno(), fcntl.LOCK_EX)
            try:
                fd = os.open(temp_path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, mode)
                with os.fdopen(fd, "w") as f:
                    f.write(content)
                os.chmod(temp_path, mode)
                temp_path.rename(path)
            except OSError:
                if temp_path.exists():
                    temp_path.unlink()
                raise
            finally:
                fcntl.flock(lock_file.fileno(), fcntl.LOCK_UN)
    finally:
        try:
            lock_path.unlink()
        except OSError:
            logging.debug("Lock file %s already removed", lock_path)


def format_duration(seconds: float) -> str:
    """Format seconds as a compact countdown string.

    Parameters
    ----------
    seconds : float
        Remaining time in seconds. Negative values are clamped to zero.

    Returns
    -------
    str
        ``H:MM:SS`` when an hour or more remains, ``MM:SS`` otherwise
    """
    total = max(0, int(round(seconds)))
    hours, remainder = divmod(total, 3600)
    minutes, secs = divmod(remainder, 60)

    if hours:
        return f"{hours}:{minutes:02d}:{secs:02d}"

    return f"{minutes:02d}:{secs:02d}"
