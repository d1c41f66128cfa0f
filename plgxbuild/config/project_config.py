#!/usr/bin/env python3
"""
PLGX Project Configuration

Parser for the plugin project INI file that drives a build.

INI Format:
    [plgx]
    assembly_name = SamplePlugin
    archive_name = SamplePlugin
    output_dir = bin/plgx
    target_keepass = 2.40
    target_framework = v4.7.2

    [compile]
    items = SamplePluginExt.cs
            Properties/AssemblyInfo.cs

    [embedded_resource]
    items = Resources/Strings.resx | OutputResource=obj/SamplePlugin.Resources.Strings.resources
            Resources/Strings.de.resx | WithCulture=true; Culture=de

Each item line is a path, optionally followed by '|' and ';'-separated
metadata. A bare key (e.g. ExcludeFromPlgx) is present with an empty value.
"""

import configparser
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, List, Optional

from plgxbuild.constants import PLGX_EXTENSION
from plgxbuild.serialization import Version
from plgxbuild.utils import log

# Marker metadata
EXCLUDE_FROM_PLGX = "ExcludeFromPlgx"
INCLUDE_IN_PLGX = "IncludeInPlgx"

PLGX_SECTION = "plgx"

ITEM_GROUPS = (
    "compile",
    "embedded_resource",
    "none",
    "content",
    "reference",
    "resolved_reference",
    "satellite_resource",
)


@dataclass
class ProjectItem:
    """One project item: a path plus string metadata"""
    spec: str
    metadata: Dict[str, str] = field(default_factory=dict)

    def has_metadata(self, name: str) -> bool:
        return bool(name) and name in self.metadata

    def get_metadata(self, name: str) -> str:
        return self.metadata.get(name, "")

    @staticmethod
    def parse(line: str) -> 'ProjectItem':
        """Parse 'path | Key=Value; Flag'."""
        spec, _, meta_str = line.partition('|')
        metadata: Dict[str, str] = {}
        for entry in meta_str.split(';'):
            entry = entry.strip()
            if not entry:
                continue
            key, _, value = entry.partition('=')
            metadata[key.strip()] = value.strip()
        return ProjectItem(spec=spec.strip(), metadata=metadata)


def except_with(items: Iterable[ProjectItem], name: str) -> List[ProjectItem]:
    """Items that do not carry the given metadata."""
    return [i for i in items if not i.has_metadata(name)]


def only_with(items: Iterable[ProjectItem], name: str) -> List[ProjectItem]:
    """Items that carry the given metadata."""
    return [i for i in items if i.has_metadata(name)]


def _parse_bool(value: Optional[str]) -> bool:
    return (value or '').strip().lower() in ('true', '1', 'yes', 'on')


def _opt(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None


class PlgxProjectConfig:
    """
    Plugin project configuration

    Loads the [plgx] settings and the item groups of one project.
    Relative item paths resolve against the INI file's directory.
    """

    def __init__(self, config_path):
        """
        Load project configuration

        Args:
            config_path: Path to the project INI file
        """
        self.config_path = Path(config_path)
        self.project_dir = self.config_path.absolute().parent

        self.assembly_name: str = ""
        self.archive_name: str = ""
        self.output_dir: str = "plgx"
        self.references_dir: str = "References"
        self.satellite_dir: str = "Satellites"
        self.use_compiled_resources: bool = False
        self.before_command: Optional[str] = None
        self.after_command: Optional[str] = None
        self.target_os: Optional[str] = None
        self.target_pointer_size: Optional[int] = None
        self.target_framework: Optional[str] = None
        self.target_keepass: Optional[str] = None

        self.items: Dict[str, List[ProjectItem]] = {group: [] for group in ITEM_GROUPS}

        self._load_config()

    def _load_config(self):
        """Load and parse the project INI"""
        if not self.config_path.exists():
            raise FileNotFoundError(f"Project config not found: {self.config_path}")

        # No interpolation: commands may legitimately contain '%'
        config = configparser.ConfigParser(interpolation=None)
        config.read(self.config_path, encoding='utf-8')

        if not config.has_section(PLGX_SECTION):
            raise ValueError(f"Missing [{PLGX_SECTION}] section in {self.config_path}")

        self._parse_plgx_section(config[PLGX_SECTION])

        for group in ITEM_GROUPS:
            if config.has_section(group):
                self.items[group] = self._parse_items(config[group].get('items', ''))

    def _parse_plgx_section(self, data):
        """Parse the scalar build settings"""
        self.assembly_name = (data.get('assembly_name') or '').strip()
        if not self.assembly_name:
            raise ValueError("Missing 'assembly_name' field")

        self.archive_name = (data.get('archive_name') or self.assembly_name).strip()

        output_dir = (data.get('output_dir') or self.output_dir).strip()
        if Path(output_dir).is_absolute():
            raise ValueError("'output_dir' must be a path relative to the project directory")
        self.output_dir = output_dir

        self.references_dir = (data.get('references_dir') or self.references_dir).strip()
        self.satellite_dir = (data.get('satellite_dir') or self.satellite_dir).strip()
        self.use_compiled_resources = _parse_bool(data.get('use_compiled_resources'))

        self.before_command = _opt(data.get('before_command'))
        self.after_command = _opt(data.get('after_command'))
        self.target_os = _opt(data.get('target_os'))
        self.target_framework = _opt(data.get('target_framework'))

        self.target_keepass = _opt(data.get('target_keepass'))
        if self.target_keepass and Version.try_parse(self.target_keepass) is None:
            raise ValueError(f"Specified target KeePass version '{self.target_keepass}' is invalid.")

        pointer_size = _opt(data.get('target_pointer_size'))
        if pointer_size and pointer_size != '0':
            if pointer_size not in ('4', '8'):
                raise ValueError(f"'target_pointer_size' must be 4 or 8, got {pointer_size}")
            self.target_pointer_size = int(pointer_size)

    def _parse_items(self, value: str) -> List[ProjectItem]:
        """Parse a multi-line items list"""
        return [ProjectItem.parse(line) for line in value.splitlines() if line.strip()]

    def resolve(self, spec: str) -> Path:
        """Resolve an item path against the project directory."""
        path = Path(spec)
        if path.is_absolute():
            return path
        return self.project_dir / path

    def get_output_path(self, output_dir: Optional[str] = None) -> Path:
        """Full path of the archive this project builds."""
        directory = self.project_dir / (output_dir or self.output_dir)
        return directory / f"{self.archive_name}{PLGX_EXTENSION}"

    def print_summary(self):
        """Print configuration summary"""
        log(f"Project: {self.config_path}")
        log(f"  Assembly: {self.assembly_name}")
        log(f"  Archive: {self.archive_name}")
        for group in ITEM_GROUPS:
            if self.items[group]:
                log(f"  {group}: {len(self.items[group])} item(s)")

    def __repr__(self) -> str:
        return f"PlgxProjectConfig({self.config_path}, assembly={self.assembly_name})"
