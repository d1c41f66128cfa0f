"""
Archive Descriptor

Identity and prerequisite metadata written into the archive header.
Validated once at construction; immutable afterwards.
"""

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional

from plgxbuild.constants import (
    PLGX_MAGIC,
    PLGX_FORMAT_VERSION,
    GENERATOR_NAME,
    GENERATOR_VERSION,
    MIN_GENERATOR_VERSION,
)
from plgxbuild.errors import PlgxFormatError
from plgxbuild.utils.guid import new_file_guid
from plgxbuild.utils.paths import to_plgx_timestamp

from .version_codec import Version

VALID_POINTER_SIZES = (4, 8)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc).replace(microsecond=0)


def validate_magic(magic: Optional[bytes]):
    """
    Check an archive signature read back from disk.

    Raises:
        PlgxFormatError: signature missing or not the PLGX magic
    """
    if magic is None or bytes(magic) != PLGX_MAGIC:
        raise PlgxFormatError("Input file has invalid header.")


@dataclass(frozen=True)
class ArchiveDescriptor:
    """
    Header metadata for one archive.

    Empty strings for the optional text fields count as absent, so the
    corresponding header record is omitted.
    """
    base_name: str = ""
    file_guid: uuid.UUID = field(default_factory=new_file_guid)
    created: datetime = field(default_factory=_utc_now)
    generator_version: Version = Version.parse(GENERATOR_VERSION)
    format_version: Version = Version.parse(PLGX_FORMAT_VERSION)
    target_keepass_version: Optional[Version] = None
    target_framework_version: Optional[Version] = None
    target_os: Optional[str] = None
    target_pointer_size: Optional[int] = None
    pre_process_command: Optional[str] = None
    post_process_command: Optional[str] = None

    def __post_init__(self):
        """Validate format preconditions before any byte is written."""
        if self.format_version != Version.parse(PLGX_FORMAT_VERSION):
            raise PlgxFormatError(
                f"Unsupported .PLGX format {self.format_version.to_string(2)}.")

        if self.generator_version < Version.parse(MIN_GENERATOR_VERSION):
            raise PlgxFormatError(
                f"Unsupported .PLGX file version {self.generator_version}.")

        if (self.target_pointer_size is not None
                and self.target_pointer_size not in VALID_POINTER_SIZES):
            raise ValueError(
                f"Target pointer size must be 4 or 8, got {self.target_pointer_size}")

    @property
    def generator_name(self) -> str:
        return GENERATOR_NAME

    @property
    def creation_time(self) -> str:
        """Creation timestamp as written into the header."""
        return to_plgx_timestamp(self.created)
