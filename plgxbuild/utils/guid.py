"""
Archive identifiers.

Each archive carries a GUID the host uses to key its compile cache.
Ordinary builds take a random one. Reproducible builds derive it from
the project identity so rebuilding the same project reuses the cache.
"""

import hashlib
import uuid
from typing import Union

GuidPart = Union[str, bytes, int, float]


def new_file_guid() -> uuid.UUID:
    """Return a fresh random archive identifier."""
    return uuid.uuid4()


def _part_bytes(part: GuidPart) -> bytes:
    if isinstance(part, bytes):
        return part
    return str(part).encode('utf-8')


def generate_guid(*parts: GuidPart) -> uuid.UUID:
    """
    Derive a stable GUID from project identity.

    The parts are NUL-terminated and hashed with SHA-256; the first 16
    digest bytes become the GUID. ("ab", "c") and ("a", "bc") differ.

    Example:
        generate_guid("plgx", config.assembly_name, config.archive_name)
    """
    digest = hashlib.sha256(b''.join(_part_bytes(p) + b'\x00' for p in parts)).digest()
    return uuid.UUID(bytes=digest[:16])


def guid_to_wire_bytes(guid: uuid.UUID) -> bytes:
    """
    GUID bytes in the order .NET's Guid.ToByteArray() produces, which
    is what the host reads back: first three fields little-endian.
    """
    return guid.bytes_le
