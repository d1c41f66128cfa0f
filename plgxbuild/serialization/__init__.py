"""
Serialization Package

Writes the .plgx plugin container.

Archive layout:
- Header (header_serializer): magic, format version, identity and
  prerequisite records, BEGIN_CONTENT
- File sections (file_section): one per added file, gzip payload
- END_CONTENT and EOF markers (archive_writer)
"""

from .version_codec import Version, encode32, encode64, decode32, decode64
from .descriptor import ArchiveDescriptor, validate_magic
from .header_serializer import create_header
from .file_section import FileSection, write_file_section
from .archive_writer import PlgxWriter, WriterState
