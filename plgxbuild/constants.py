"""
Constants used across the PLGX build modules.

Consolidates the wire values of the PLGX container format so the
serializers never carry bare magic numbers.
"""

from enum import IntEnum

# 8-byte signature at the very start of every .plgx file
PLGX_MAGIC = bytes((0x19, 0x07, 0xD9, 0x65, 0x03, 0x05, 0xDD, 0x3D))

# Container format version, packed as a 32-bit version (major, minor)
PLGX_FORMAT_VERSION = "1.0"

# Generator identity recorded in every header
GENERATOR_NAME = "KeePass"
GENERATOR_VERSION = "2.35.0.0"

# Oldest generator version the host accepts
MIN_GENERATOR_VERSION = GENERATOR_VERSION

# Largest uncompressed source the host will load (just under 1 GiB)
MAX_SOURCE_SIZE = (2 ** 31 - 1) // 2 - 1

# u16 tag + u32 length
RECORD_HEADER_SIZE = 6

# Zero-length terminator record
SENTINEL_SIZE = RECORD_HEADER_SIZE

# Archive file extension
PLGX_EXTENSION = ".plgx"


class ArchiveTag(IntEnum):
    """Top-level record tags (u16 on the wire)."""
    EOF = 0
    FILE_UUID = 1
    BASE_FILE_NAME = 2
    BEGIN_CONTENT = 3
    FILE = 4
    END_CONTENT = 5
    CREATION_TIME = 6
    GENERATOR_NAME = 7
    GENERATOR_VER = 8
    PREREQ_KP = 9
    PREREQ_NET_FW = 10
    TARGET_OS = 11
    PREREQ_PTR_SIZE = 12
    PRE_PROC = 13
    POST_PROC = 14


class FileTag(IntEnum):
    """Record tags nested inside a FILE section."""
    EOF = 0
    PATH = 1
    DATA = 2
