#!/usr/bin/env python3
"""
PLGX Archive Writer

Owns the output stream and sequences the archive:

    header (once) -> file sections (any number, caller order) -> closing markers

Lifecycle:
    NOT_STARTED -> STREAMING   first add_file()/add_source() or start()
    STREAMING   -> CLOSED      close() writes END_CONTENT and EOF markers

Closing a writer that never started writes nothing. Closing twice is a
no-op. Used as a context manager, the writer always closes on exit so a
started archive never lacks its closing markers.

Usage:
    descriptor = ArchiveDescriptor(base_name="SamplePlugin")
    with PlgxWriter(descriptor, output_path=Path("out/SamplePlugin.plgx")) as writer:
        writer.add_file(Path("SamplePluginExt.cs"), "SamplePluginExt.cs")
"""

from enum import Enum
from pathlib import Path
from typing import BinaryIO, List, Optional, Union

from plgxbuild.constants import ArchiveTag
from plgxbuild.errors import PlgxStateError, PlgxStreamError
from plgxbuild.utils import log, logDebug, write_record, ensure_directory_exists

from .descriptor import ArchiveDescriptor
from .file_section import FileSection, check_source_size, write_file_section
from .header_serializer import create_header


class WriterState(Enum):
    NOT_STARTED = "not_started"
    STREAMING = "streaming"
    CLOSED = "closed"


class PlgxWriter:
    """
    Streaming writer for one .plgx archive.

    Either hand it a seekable binary stream (which stays open after
    close()) or an output path (the writer creates, and closes, the file).
    """

    def __init__(self, descriptor: Optional[ArchiveDescriptor] = None,
                 stream: Optional[BinaryIO] = None,
                 output_path: Union[str, Path, None] = None):
        """
        Args:
            descriptor: Header metadata. Defaults to an empty descriptor.
            stream: Caller-owned output stream; must support seeking.
            output_path: File to create when no stream is given.

        Raises:
            PlgxStreamError: stream is not seekable
        """
        if stream is not None:
            seekable = getattr(stream, 'seekable', None)
            if seekable is None or not seekable():
                raise PlgxStreamError("Output stream needs random access capability")

        self._stream = stream
        self._owns_stream = False
        self._descriptor = descriptor if descriptor is not None else ArchiveDescriptor()
        self._output_path = Path(output_path) if output_path is not None else None
        self._state = WriterState.NOT_STARTED
        self.sections: List[FileSection] = []

    # =========================================================================
    # Properties
    # =========================================================================

    @property
    def state(self) -> WriterState:
        return self._state

    @property
    def descriptor(self) -> ArchiveDescriptor:
        return self._descriptor

    @descriptor.setter
    def descriptor(self, value: ArchiveDescriptor):
        self._require_not_started("descriptor")
        self._descriptor = value

    @property
    def output_path(self) -> Optional[Path]:
        return self._output_path

    @output_path.setter
    def output_path(self, value: Union[str, Path, None]):
        self._require_not_started("output path")
        self._output_path = Path(value) if value is not None else None

    def _require_not_started(self, what: str):
        if self._state is not WriterState.NOT_STARTED:
            raise PlgxStateError(f"Cannot change {what} once the archive is {self._state.value}")

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def start(self):
        """
        Open the output and write the header. No-op if already streaming.

        Raises:
            PlgxStateError: writer is closed, or has neither stream nor path
            OSError: the output could not be written; a file the writer
                opened is closed again
        """
        if self._state is WriterState.STREAMING:
            return
        if self._state is WriterState.CLOSED:
            raise PlgxStateError("Archive is already closed")

        if self._stream is None:
            if self._output_path is None:
                raise PlgxStateError("No output stream or output path set")
            ensure_directory_exists(self._output_path.absolute().parent)
            self._stream = open(self._output_path, 'wb')
            self._owns_stream = True

        self._log_manifest()
        try:
            self._stream.write(create_header(self._descriptor))
        except BaseException:
            if self._owns_stream:
                self._stream.close()
                self._stream = None
                self._owns_stream = False
            raise
        self._state = WriterState.STREAMING

        logDebug("Streaming PLGX archive items:")

    def close(self):
        """
        Write the closing markers and release a writer-owned file.
        No-op if the archive never started or is already closed.
        """
        if self._state is not WriterState.STREAMING:
            return

        try:
            write_record(self._stream, ArchiveTag.END_CONTENT)
            write_record(self._stream, ArchiveTag.EOF)
        finally:
            self._state = WriterState.CLOSED
            if self._owns_stream:
                self._stream.close()
            else:
                self._stream.flush()

        logDebug(f"'{self._output_path or '<stream>'}' archive closed.")

    def __enter__(self) -> 'PlgxWriter':
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False

    # =========================================================================
    # Content
    # =========================================================================

    def add_file(self, source_path: Union[str, Path], dest_path: str) -> FileSection:
        """
        Add a file from disk.

        Args:
            source_path: File to read
            dest_path: Path of the entry inside the archive

        Raises:
            PlgxCapacityError: file larger than the host accepts
            PlgxStateError: archive already closed
        """
        source_path = Path(source_path)
        self._require_open()
        check_source_size(source_path.stat().st_size, str(source_path))

        with open(source_path, 'rb') as f:
            return self.add_source(f, dest_path)

    def add_source(self, source: BinaryIO, dest_path: str) -> FileSection:
        """
        Add a file from any readable binary stream.

        Raises:
            PlgxCapacityError: source larger than the host accepts
            PlgxStateError: archive already closed
        """
        self._require_open()
        self.start()

        logDebug(f"  {dest_path}")

        section = write_file_section(self._stream, source, dest_path)
        self.sections.append(section)
        return section

    def _require_open(self):
        if self._state is WriterState.CLOSED:
            raise PlgxStateError("Cannot add files to a closed archive")

    # =========================================================================
    # Manifest
    # =========================================================================

    def _log_manifest(self):
        """Log the prerequisite summary once, as the header is written."""
        d = self._descriptor

        def line(description: str, value):
            if value is None or value == "":
                value = "(not specified)"
            log(f"{description:>25}: {value}")

        log(f"PLGX archive manifest for '{d.base_name}':")
        line("KeePass version",
             d.target_keepass_version.to_string(2) if d.target_keepass_version else None)
        line(".NET Framework",
             d.target_framework_version.to_string(2) if d.target_framework_version else None)
        line("Operating system", d.target_os)
        line("Pointer size", d.target_pointer_size)
        line("Pre-restore command", d.pre_process_command)
        line("Post-restore command", d.post_process_command)
