#!/usr/bin/env python3
"""
File Section Serializer

Streams one file entry into an open archive.

Section layout:
    u16 FILE
    u32 section_length          (patched; covers everything below)
    PATH record                 (normalized destination path)
    u16 DATA
    u32 data_length             (patched; compressed bytes only)
    [data_length bytes of gzip data]
    EOF record                  (zero-length, NOT counted in data_length)

The compressed payload goes straight to the sink. Both length fields are
reserved up front and patched by seeking back once the sizes are known.
"""

import gzip
import io
from dataclasses import dataclass
from typing import BinaryIO, Optional

from plgxbuild.constants import ArchiveTag, FileTag, MAX_SOURCE_SIZE
from plgxbuild.errors import PlgxCapacityError
from plgxbuild.utils import (write_tag, write_record, record_size, reserve_length,
                             patch_length, to_plgx_separators)

COPY_CHUNK_SIZE = 64 * 1024


@dataclass
class FileSection:
    """Sizes recorded for one written section."""
    path: str
    source_size: int
    data_length: int
    section_length: int
    offset: int  # Offset of the FILE tag in the archive


def measure_source(source: BinaryIO) -> Optional[int]:
    """
    Bytes remaining in a seekable source, or None if it cannot seek.
    The read position is left unchanged.
    """
    seekable = getattr(source, 'seekable', None)
    if seekable is None or not seekable():
        return None

    start = source.tell()
    end = source.seek(0, io.SEEK_END)
    source.seek(start)
    return end - start


def check_source_size(size: int, name: str):
    """
    Raises:
        PlgxCapacityError: size exceeds what the host will load
    """
    if size > MAX_SOURCE_SIZE:
        raise PlgxCapacityError(
            f"'{name}' is {size:,} bytes; archives may not contain files "
            f"larger than 1 GB.", name)


def _compress_into(buffer: BinaryIO, source: BinaryIO, name: str) -> int:
    """Gzip source into buffer. Returns the number of source bytes read."""
    copied = 0
    with gzip.GzipFile(filename='', mode='wb', fileobj=buffer, mtime=0) as gz:
        while True:
            chunk = source.read(COPY_CHUNK_SIZE)
            if not chunk:
                break
            copied += len(chunk)
            check_source_size(copied, name)
            gz.write(chunk)
    return copied


def write_file_section(buffer: BinaryIO, source: BinaryIO, dest_path: str) -> FileSection:
    """
    Append one file section to a seekable archive stream.

    Seekable sources are size-checked before anything is written. Other
    sources are checked while copying. If the copy fails for any reason
    (overflow, a read error, interruption), the partial section is
    truncated away and the error re-raised, so earlier sections stay
    intact.

    Args:
        buffer: Seekable archive stream, positioned at its end
        source: Readable binary stream with the file content
        dest_path: Path of the entry inside the archive

    Returns:
        FileSection with the patched length values

    Raises:
        PlgxCapacityError: the source is too large
        OSError: reading the source failed
    """
    path = to_plgx_separators(dest_path)

    size = measure_source(source)
    if size is not None:
        check_source_size(size, path)

    section_start = buffer.tell()

    try:
        write_tag(buffer, ArchiveTag.FILE)
        outer_length_pos = reserve_length(buffer)

        write_record(buffer, FileTag.PATH, path)

        write_tag(buffer, FileTag.DATA)
        data_length_pos = reserve_length(buffer)
        data_start = buffer.tell()

        copied = _compress_into(buffer, source, path)
        data_length = buffer.tell() - data_start

        write_record(buffer, FileTag.EOF)
    except BaseException:
        buffer.seek(section_start)
        buffer.truncate()
        raise

    # PATH record + DATA record + EOF marker
    section_length = (record_size(len(path.encode('utf-8')))
                      + record_size(data_length)
                      + record_size(0))

    patch_length(buffer, data_length_pos, data_length)
    patch_length(buffer, outer_length_pos, section_length)
    buffer.seek(0, io.SEEK_END)

    return FileSection(
        path=path,
        source_size=copied,
        data_length=data_length,
        section_length=section_length,
        offset=section_start,
    )
