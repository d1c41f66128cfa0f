#!/usr/bin/env python3
"""
Archive Header Builder

Creates the fixed preamble of a .plgx file, up to and including the
BEGIN_CONTENT marker after which file sections follow.
"""

import struct
import io

from plgxbuild.constants import PLGX_MAGIC, ArchiveTag
from plgxbuild.utils import (write_record, write_record_u32, write_record_u64,
                             guid_to_wire_bytes)

from .descriptor import ArchiveDescriptor
from .version_codec import encode32, encode64


def create_header(descriptor: ArchiveDescriptor) -> bytes:
    """
    Create the archive header.

    Structure:
    - magic (8 bytes)
    - u32 format version (packed major/minor, not a tagged record)
    - FILE_UUID, BASE_FILE_NAME, CREATION_TIME, GENERATOR_NAME, GENERATOR_VER
    - PREREQ_KP, PREREQ_NET_FW, TARGET_OS, PREREQ_PTR_SIZE, PRE_PROC,
      POST_PROC (each only when set)
    - BEGIN_CONTENT (zero-length)
    """
    buffer = io.BytesIO()

    buffer.write(PLGX_MAGIC)
    buffer.write(struct.pack('<I', encode32(descriptor.format_version)))

    # Identity
    write_record(buffer, ArchiveTag.FILE_UUID, guid_to_wire_bytes(descriptor.file_guid))
    write_record(buffer, ArchiveTag.BASE_FILE_NAME, descriptor.base_name or "")
    write_record(buffer, ArchiveTag.CREATION_TIME, descriptor.creation_time)
    write_record(buffer, ArchiveTag.GENERATOR_NAME, descriptor.generator_name)
    write_record_u64(buffer, ArchiveTag.GENERATOR_VER, encode64(descriptor.generator_version))

    # Prerequisites
    if descriptor.target_keepass_version is not None:
        write_record_u64(buffer, ArchiveTag.PREREQ_KP,
                         encode64(descriptor.target_keepass_version))

    if descriptor.target_framework_version is not None:
        write_record_u64(buffer, ArchiveTag.PREREQ_NET_FW,
                         encode64(descriptor.target_framework_version))

    if descriptor.target_os:
        write_record(buffer, ArchiveTag.TARGET_OS, descriptor.target_os)

    if descriptor.target_pointer_size is not None:
        write_record_u32(buffer, ArchiveTag.PREREQ_PTR_SIZE, descriptor.target_pointer_size)

    if descriptor.pre_process_command:
        write_record(buffer, ArchiveTag.PRE_PROC, descriptor.pre_process_command)

    if descriptor.post_process_command:
        write_record(buffer, ArchiveTag.POST_PROC, descriptor.post_process_command)

    write_record(buffer, ArchiveTag.BEGIN_CONTENT)

    return buffer.getvalue()
