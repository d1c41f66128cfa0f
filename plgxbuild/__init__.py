"""
PLGX build tools.

Streaming encoder for the .plgx plugin container plus the build
orchestration that feeds it from a plugin project description.
"""

__version__ = "1.0.0"

from .errors import (PlgxError, PlgxFormatError, PlgxCapacityError, PlgxStreamError,
                     PlgxStateError)
from .serialization import (ArchiveDescriptor, PlgxWriter, WriterState, Version,
                            encode32, encode64, decode32, decode64)

__all__ = [
    "__version__",
    "PlgxError", "PlgxFormatError", "PlgxCapacityError", "PlgxStreamError", "PlgxStateError",
    "ArchiveDescriptor", "PlgxWriter", "WriterState", "Version",
    "encode32", "encode64", "decode32", "decode64",
]
