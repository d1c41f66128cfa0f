"""
PLGX Errors

Exception types raised by the archive encoder.

- PlgxFormatError: format preconditions (version, magic) not met
- PlgxCapacityError: a source file is too large for the container
- PlgxStreamError: the output sink cannot be used (not seekable)
- PlgxStateError: writer used out of order (after close, etc.)

Plain OSError from the file system is propagated untouched.
"""


class PlgxError(Exception):
    """Base class for all PLGX encoder errors."""


class PlgxFormatError(PlgxError, ValueError):
    """Unsupported format version, generator version or bad magic."""


class PlgxCapacityError(PlgxError):
    """Source data does not fit the container's length fields."""

    def __init__(self, message: str, source: str = None):
        super().__init__(message)
        self.source = source


class PlgxStreamError(PlgxError, ValueError):
    """Output stream lacks a capability the writer needs."""


class PlgxStateError(PlgxError, RuntimeError):
    """Writer operation attempted in the wrong lifecycle state."""
