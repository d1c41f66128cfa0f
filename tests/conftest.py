"""Shared pytest fixtures for all tests."""

import gzip
import io
import struct
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, List, Optional

import pytest

from plgxbuild.constants import PLGX_MAGIC, ArchiveTag, FileTag
from plgxbuild.serialization import ArchiveDescriptor, Version
from plgxbuild.utils import logging as plgx_logging

FIXED_GUID = uuid.UUID("0f8fad5b-d9cb-469f-a165-70867728950e")
FIXED_TIME = datetime(2021, 3, 4, 5, 6, 7, tzinfo=timezone.utc)


@dataclass
class ParsedFile:
    """One decoded file section."""
    path: str
    content: bytes
    data_length: int
    section_length: int
    path_record_size: int


@dataclass
class ParsedArchive:
    """Decoded archive, for checking bytes in tests only."""
    format_version: int
    header: Dict[int, bytes] = field(default_factory=dict)
    header_order: List[int] = field(default_factory=list)
    files: List[ParsedFile] = field(default_factory=list)
    trailer: List[int] = field(default_factory=list)


def _record(data: bytes, offset: int):
    tag, length = struct.unpack_from('<HI', data, offset)
    start = offset + 6
    return tag, data[start:start + length], start + length


def parse_archive(data: bytes) -> ParsedArchive:
    """
    Decode a complete archive, asserting every structural invariant.
    """
    assert data[:8] == PLGX_MAGIC
    archive = ParsedArchive(format_version=struct.unpack_from('<I', data, 8)[0])
    offset = 12

    while True:
        tag, payload, offset = _record(data, offset)
        archive.header_order.append(tag)
        if tag == ArchiveTag.BEGIN_CONTENT:
            assert payload == b''
            break
        archive.header[tag] = payload

    while struct.unpack_from('<H', data, offset)[0] == ArchiveTag.FILE:
        (section_length,) = struct.unpack_from('<I', data, offset + 2)
        body_start = offset + 6

        path_tag, path_bytes, pos = _record(data, body_start)
        assert path_tag == FileTag.PATH

        data_tag, data_length = struct.unpack_from('<HI', data, pos)
        assert data_tag == FileTag.DATA
        blob = data[pos + 6:pos + 6 + data_length]

        eof_tag, eof_payload, end = _record(data, pos + 6 + data_length)
        assert eof_tag == FileTag.EOF
        assert eof_payload == b''
        assert end - body_start == section_length

        archive.files.append(ParsedFile(
            path=path_bytes.decode('utf-8'),
            content=gzip.decompress(blob),
            data_length=data_length,
            section_length=section_length,
            path_record_size=6 + len(path_bytes),
        ))
        offset = end

    for expected in (ArchiveTag.END_CONTENT, ArchiveTag.EOF):
        tag, payload, offset = _record(data, offset)
        assert tag == expected
        assert payload == b''
        archive.trailer.append(tag)

    assert offset == len(data)
    return archive


class NonSeekableStream(io.RawIOBase):
    """Readable/writable stream that refuses to seek."""

    def __init__(self, data: bytes = b''):
        self._buffer = io.BytesIO(data)

    def readable(self):
        return True

    def writable(self):
        return True

    def readinto(self, b):
        return self._buffer.readinto(b)

    def write(self, b):
        return self._buffer.write(b)


@pytest.fixture(autouse=True)
def reset_logging():
    """Start every test with fresh warning/error counters."""
    plgx_logging.reset_counts()
    yield
    plgx_logging.close_logging()


@pytest.fixture
def descriptor():
    """Descriptor with a fixed identity so header bytes are predictable."""
    return ArchiveDescriptor(
        base_name="Test",
        file_guid=FIXED_GUID,
        created=FIXED_TIME,
        generator_version=Version(2, 35, 0, 0),
    )


@pytest.fixture
def archive_parser():
    """The test-only archive decoder."""
    return parse_archive


@pytest.fixture
def sample_files(tmp_path):
    """
    A few source files on disk.

    Returns:
        Dict mapping archive path -> source Path
    """
    files = {
        "x.txt": b"hello",
        "src/Plugin.cs": b"namespace Sample { class Plugin {} }\n" * 50,
        "empty.bin": b"",
    }
    result = {}
    for name, content in files.items():
        path = tmp_path / "sources" / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(content)
        result[name] = path
    return result


SAMPLE_PROJECT_INI = """\
[plgx]
assembly_name = SamplePlugin
target_keepass = 2.40
target_framework = v4.7.2
{extra}

[compile]
items = SamplePluginExt.cs
        Properties/AssemblyInfo.cs
        Generated.cs | ExcludeFromPlgx

[embedded_resource]
items = Resources/Strings.resx | OutputResource=obj/SamplePlugin.Resources.Strings.resources
        Resources/Strings.de.resx | WithCulture=true; Culture=de

[none]
items = readme.txt
        notes.txt | ExcludeFromPlgx
        license.txt | IncludeInPlgx

[resolved_reference]
items = lib/Helper.dll
        lib/KeePass.exe
        lib/Helper.pdb

[reference]
items = System
        System.Xml
        KeePass
        lib/Helper.dll
        other/Missing.dll

[satellite_resource]
items = obj/de/SamplePlugin.resources.dll | Culture=de
"""

SAMPLE_PROJECT_FILES = {
    "SamplePluginExt.cs": b"namespace SamplePlugin { public sealed class SamplePluginExt {} }\n",
    "Properties/AssemblyInfo.cs": b"[assembly: AssemblyVersion(\"1.0.0.0\")]\n",
    "Resources/Strings.resx": b"<root />\n",
    "obj/SamplePlugin.Resources.Strings.resources": b"\xce\xca\xef\xbe",
    "readme.txt": b"Sample plugin\n",
    "license.txt": b"MIT\n",
    "lib/Helper.dll": b"MZ\x90\x00helper",
    "obj/de/SamplePlugin.resources.dll": b"MZ\x90\x00satellite",
}


def write_sample_project(root, extra: str = ""):
    """
    Lay out a small plugin project under root.

    Returns:
        Path of the project INI
    """
    for name, content in SAMPLE_PROJECT_FILES.items():
        path = root / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(content)

    ini_path = root / "plgx.ini"
    ini_path.write_text(SAMPLE_PROJECT_INI.format(extra=extra), encoding='utf-8')
    return ini_path


@pytest.fixture
def sample_project(tmp_path):
    """Project INI path for the default sample project."""
    return write_sample_project(tmp_path / "SamplePlugin")


class FailingSource(io.RawIOBase):
    """Non-seekable source whose reads fail after the first chunk."""

    def __init__(self, first_chunk: bytes = b"partial data",
                 error: Optional[BaseException] = None):
        self._first_chunk = first_chunk
        self._error = error or OSError(5, "Input/output error")
        self.reads = 0

    def readable(self):
        return True

    def readinto(self, b):
        self.reads += 1
        if self.reads > 1:
            raise self._error
        n = len(self._first_chunk)
        b[:n] = self._first_chunk
        return n
