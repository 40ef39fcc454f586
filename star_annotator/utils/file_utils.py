"""File handling utilities."""

import os
import logging
import tempfile
from pathlib import Path
from typing import Optional, Union

logger = logging.getLogger(__name__)


def ensure_dirs(*paths: Union[str, Path]) -> None:
    """Ensure directories exist."""
    for p in paths:
        if p:
            Path(p).mkdir(parents=True, exist_ok=True)


def create_temp_file(prefix: str, suffix: str, directory: Optional[Union[str, Path]] = None) -> Path:
    """Create an empty, uniquely named file and return its path.

    Names come from :func:`tempfile.mkstemp`, so concurrent callers never
    collide.
    """
    if directory:
        ensure_dirs(directory)
    fd, name = tempfile.mkstemp(prefix=prefix, suffix=suffix, dir=str(directory) if directory else None)
    os.close(fd)
    return Path(name)


def remove_file_quietly(path: Optional[Union[str, Path]]) -> bool:
    """Delete a file if it exists. Returns True when a file was removed."""
    if path is None:
        return False
    try:
        Path(path).unlink()
        return True
    except FileNotFoundError:
        return False
    except OSError as e:
        logger.warning(f"Failed to remove temporary file {path}: {e}")
        return False
