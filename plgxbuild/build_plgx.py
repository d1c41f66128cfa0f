#!/usr/bin/env python3
"""
Build PLGX

Build script for packaging a plugin project into a .plgx archive.

Pipeline:
1. Load the project configuration (project INI)
2. Create a private temp folder
3. Stream compile items, resources, references and satellites into the archive
4. Write the generated project manifest and add it last
5. Close the archive and remove the temp folder

Usage:
    plgx-build --config SamplePlugin/plgx.ini
    python -m plgxbuild.build_plgx --config SamplePlugin/plgx.ini --output-dir bin/plgx
"""

import os
import sys
import shutil
import tempfile
import argparse
import time
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from plgxbuild.config import PlgxProjectConfig, ProjectManifestBuilder, post_process_command
from plgxbuild.serialization import ArchiveDescriptor, PlgxWriter, Version
from plgxbuild.utils import (log, logWarning, logError, init_logging, print_summary,
                             get_counts, generate_guid, new_file_guid)

FRAMEWORK_MONIKER_PREFIX = ".NETFramework,Version=v"


def parse_framework_version(moniker: Optional[str]) -> Optional[Version]:
    """
    Parse a target framework version as forgivingly as possible.

    Accepts "4.7.2", "v4.7.2" and ".NETFramework,Version=v4.7.2". Anything
    else is reported with a warning and ignored.
    """
    if not moniker:
        return None

    text = moniker.lstrip('v')
    if text.startswith(FRAMEWORK_MONIKER_PREFIX):
        text = text[len(FRAMEWORK_MONIKER_PREFIX):]

    version = Version.try_parse(text)
    if version is None:
        logWarning(f"Unrecognized target framework version '{moniker}'.")
    return version


def source_date() -> datetime:
    """Build timestamp, pinned by SOURCE_DATE_EPOCH when set."""
    epoch = os.environ.get('SOURCE_DATE_EPOCH')
    if epoch:
        return datetime.fromtimestamp(int(epoch), tz=timezone.utc)
    return datetime.now(timezone.utc).replace(microsecond=0)


class PlgxBuilder:
    """
    Orchestrates the build of one .plgx archive
    """

    def __init__(self, config: PlgxProjectConfig, output_dir: Optional[str] = None,
                 file_guid: Optional[uuid.UUID] = None, reproducible: bool = False,
                 keep_temp: bool = False):
        """
        Initialize builder

        Args:
            config: Project configuration
            output_dir: Override for the project's output_dir (relative)
            file_guid: Fixed archive identifier
            reproducible: Derive GUID and timestamp from inputs
            keep_temp: Leave the temp folder (with the manifest) behind
        """
        self.config = config
        self.output_path = config.get_output_path(output_dir)
        self.file_guid = file_guid
        self.reproducible = reproducible
        self.keep_temp = keep_temp
        self.temp_dir: Optional[Path] = None

    def create_descriptor(self) -> ArchiveDescriptor:
        """Archive header metadata for this project"""
        config = self.config

        file_guid = self.file_guid
        if file_guid is None:
            if self.reproducible:
                file_guid = generate_guid("plgx", config.assembly_name, config.archive_name)
            else:
                file_guid = new_file_guid()

        created = source_date() if self.reproducible else datetime.now(timezone.utc)

        return ArchiveDescriptor(
            base_name=config.assembly_name,
            file_guid=file_guid,
            created=created.replace(microsecond=0),
            target_keepass_version=Version.try_parse(config.target_keepass),
            target_framework_version=parse_framework_version(config.target_framework),
            target_os=config.target_os,
            target_pointer_size=config.target_pointer_size,
            pre_process_command=config.before_command,
            post_process_command=post_process_command(config),
        )

    def build(self) -> Optional[Path]:
        """
        Build the archive.

        Returns:
            Path of the written archive, or None if the build failed
        """
        log("=" * 70)
        log("PLGX BUILDER")
        log("=" * 70)
        self.config.print_summary()
        log()

        start_time = time.time()
        errors_before, _ = get_counts()

        self.temp_dir = Path(tempfile.mkdtemp(prefix="plgx_"))
        try:
            ok = self._build_archive()
        finally:
            if self.keep_temp:
                log(f"Temp folder kept: {self.temp_dir}")
            else:
                shutil.rmtree(self.temp_dir, ignore_errors=True)

        errors_after, _ = get_counts()
        if not ok or errors_after > errors_before:
            logError(f"PLGX build failed: {self.output_path}")
            return None

        elapsed = time.time() - start_time
        size_kb = self.output_path.stat().st_size / 1024
        log(f"\nArchive written: {self.output_path} ({size_kb:.1f} KB)")
        log(f"BUILD COMPLETE in {elapsed:.1f} seconds")
        return self.output_path

    def _build_archive(self) -> bool:
        """Stream project files and the generated manifest into the archive"""
        manifest_name = f"{self.config.assembly_name}.csproj"
        manifest_path = self.temp_dir / manifest_name

        with PlgxWriter(self.create_descriptor(), output_path=self.output_path) as writer:
            builder = ProjectManifestBuilder(self.config, writer)
            project = builder.build()
            if project is None:
                return False

            builder.write(project, manifest_path, indent=self.keep_temp)
            writer.add_file(manifest_path, manifest_name)

            log(f"  Files archived: {len(writer.sections)}")

        return True


def main(argv=None):
    parser = argparse.ArgumentParser(
        description='Package a plugin project as a .plgx archive',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Example:
    plgx-build --config SamplePlugin/plgx.ini

    # Pin the identifier and timestamp for byte-identical rebuilds:
    SOURCE_DATE_EPOCH=1700000000 plgx-build --config plgx.ini --reproducible

Project INI:
    [plgx]
    assembly_name = SamplePlugin
    target_keepass = 2.40

    [compile]
    items = SamplePluginExt.cs
        """
    )

    parser.add_argument('--config', required=True,
                        help='Path to the project INI file')
    parser.add_argument('--output-dir', default=None,
                        help='Output directory, relative to the project directory')
    parser.add_argument('--log', default=None,
                        help='Write a build log to this file')
    parser.add_argument('--guid', default=None,
                        help='Fixed archive GUID')
    parser.add_argument('--reproducible', action='store_true',
                        help='Derive GUID and timestamp from inputs (honours SOURCE_DATE_EPOCH)')
    parser.add_argument('--keep-temp', action='store_true',
                        help='Keep the temp folder with the generated project file')
    parser.add_argument('--verbose', action='store_true',
                        help='Echo debug messages to the console')
    args = parser.parse_args(argv)

    init_logging(Path(args.log) if args.log else None, verbose=args.verbose)

    try:
        config = PlgxProjectConfig(args.config)

        file_guid = uuid.UUID(args.guid) if args.guid else None

        builder = PlgxBuilder(
            config,
            output_dir=args.output_dir,
            file_guid=file_guid,
            reproducible=args.reproducible,
            keep_temp=args.keep_temp,
        )
        output = builder.build()

    except Exception as e:
        logError(f"{e}")
        import traceback
        traceback.print_exc()
        sys.exit(1)

    print_summary()
    if output is None:
        sys.exit(1)


if __name__ == '__main__':
    main()
