"""
Binary File Utilities

Tagged-record helpers for writing the PLGX container format.

PLGX record format:
- u16 tag
- u32 length (payload bytes only)
- [length bytes of payload]

All integers are little-endian. A zero-length record is a marker.
"""

import struct
import io
from typing import BinaryIO, Union

from plgxbuild.constants import RECORD_HEADER_SIZE

Buffer = Union[BinaryIO, io.BytesIO]

# Placeholder written into a reserved length slot before it is patched
LENGTH_PLACEHOLDER = 0


def write_tag(buffer: Buffer, tag: int):
    """Write a bare u16 tag (the section opener used by FILE and DATA)."""
    buffer.write(struct.pack('<H', tag))


def write_record_header(buffer: Buffer, tag: int, size: int):
    """
    Write just a record header (useful when the payload is streamed).

    Args:
        buffer: Output buffer
        tag: Record tag
        size: Number of payload bytes that will follow
    """
    buffer.write(struct.pack('<HI', tag, size))


def write_record(buffer: Buffer, tag: int, data: Union[bytes, str, None] = b''):
    """
    Write a tagged record to a buffer.

    Strings are encoded as UTF-8 first. None or empty data writes a
    zero-length marker record.

    Args:
        buffer: Output buffer (file or BytesIO)
        tag: Record tag
        data: Payload bytes or text
    """
    if data is None:
        data = b''
    elif isinstance(data, str):
        data = data.encode('utf-8')

    write_record_header(buffer, tag, len(data))
    if data:
        buffer.write(data)


def write_record_u64(buffer: Buffer, tag: int, value: int):
    """Write a record carrying a u64 payload (length field is always 8)."""
    buffer.write(struct.pack('<HIQ', tag, 8, value))


def write_record_u32(buffer: Buffer, tag: int, value: int):
    """Write a record carrying a u32 payload (length field is always 4)."""
    buffer.write(struct.pack('<HII', tag, 4, value))


def record_size(payload_size: int) -> int:
    """Total on-disk size of a record with the given payload size."""
    return RECORD_HEADER_SIZE + payload_size


def reserve_length(buffer: Buffer) -> int:
    """
    Reserve a u32 length slot at the current position.

    Returns:
        Offset of the slot, to be handed to patch_length() later.
    """
    position = buffer.tell()
    buffer.write(struct.pack('<I', LENGTH_PLACEHOLDER))
    return position


def patch_length(buffer: Buffer, position: int, value: int):
    """
    Overwrite a slot reserved with reserve_length().

    Leaves the stream positioned just after the patched slot; callers
    seek back to the end themselves once all slots are patched.

    Args:
        buffer: Seekable output buffer
        position: Offset returned by reserve_length()
        value: Final u32 value
    """
    buffer.seek(position)
    buffer.write(struct.pack('<I', value))
