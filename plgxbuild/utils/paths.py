"""
Path and timestamp helpers for archive entries.
"""

import re
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional, Union

from .logging import logError

_DUPLICATE_SEPARATORS = re.compile(r'/{2,}')


def to_plgx_separators(path: Optional[str]) -> str:
    """
    Normalize an archive entry path.

    Backslashes become forward slashes and runs of separators collapse
    to one: "a\\b//c" -> "a/b/c". None or "" gives "".
    """
    if not path:
        return ""
    return _DUPLICATE_SEPARATORS.sub('/', path.replace('\\', '/'))


def to_plgx_timestamp(dt: datetime) -> str:
    """
    Render a creation timestamp as UTC, second precision, trailing 'Z'.

    Naive datetimes are taken to be UTC already.
    """
    if dt.tzinfo is not None:
        dt = dt.astimezone(timezone.utc)
    return dt.strftime('%Y-%m-%dT%H:%M:%S') + 'Z'


def ensure_directory_exists(path: Union[str, Path]) -> Path:
    """
    Create a directory and any missing ancestors. Existing directories
    are left alone.

    Args:
        path: Absolute directory path

    Returns:
        The directory as a Path

    Raises:
        ValueError: path is not absolute
        OSError: the directory could not be created
    """
    path = Path(path)
    if not path.is_absolute():
        raise ValueError(f"Must be a full, rooted path: {path}")

    try:
        path.mkdir(parents=True, exist_ok=True)
    except OSError:
        logError(f"Failed to create directory '{path}'.")
        raise

    return path
