#!/usr/bin/env python3
"""
Project Manifest Builder

Builds the project file the plugin host compiles the archive from, and
streams every file that project needs into the archive as it goes.

Manifest structure:
    <Project>
      <PropertyGroup><AssemblyName>...</AssemblyName></PropertyGroup>
      <ItemGroup>
        Compile, EmbeddedResource, Reference (resolved, with HintPath),
        Reference (system), None, Content
      </ItemGroup>
    </Project>

Satellite resource assemblies are not listed in the manifest; they are
copied into the archive and restored by the post-process command.
"""

import xml.etree.ElementTree as ET
from pathlib import Path
from typing import Callable, Iterable, List, Optional

from plgxbuild.serialization import PlgxWriter
from plgxbuild.utils import logWarning, logError, to_plgx_separators

from .project_config import (PlgxProjectConfig, ProjectItem, except_with, only_with,
                             EXCLUDE_FROM_PLGX, INCLUDE_IN_PLGX)

# The host adds its own executable to the compiler command line
HOST_EXECUTABLE = "keepass.exe"
HOST_ASSEMBLY_PREFIX = "keepass"

# Windows path separator used inside the generated project file
PROJECT_SEPARATOR = "\\"


def post_process_command(config: PlgxProjectConfig) -> Optional[str]:
    """
    Post-restore command for the archive header.

    With satellite resources present, an xcopy of the staged satellite
    folder into the host's cache runs first.
    """
    if not config.items["satellite_resource"]:
        return config.after_command

    command = (f'cmd /c xcopy "{{PLGX_TEMP_DIR}}{config.satellite_dir}'
               f'{PROJECT_SEPARATOR}*" "{{PLGX_CACHE_DIR}}" /s')
    if config.after_command:
        command += f" & {config.after_command}"
    return command


def _is_satellite(item: ProjectItem) -> bool:
    return bool(item.get_metadata("WithCulture")) and bool(item.get_metadata("Culture"))


def _item_path(spec: str) -> Path:
    """Item paths may use either separator, as MSBuild item specs do."""
    return Path(to_plgx_separators(spec))


class ProjectManifestBuilder:
    """
    Generate the project manifest and add its files to an archive.
    """

    def __init__(self, config: PlgxProjectConfig, writer: PlgxWriter):
        """
        Args:
            config: Loaded project configuration
            writer: Archive to stream item files into
        """
        self.config = config
        self.writer = writer
        self.added_paths: List[str] = []
        self.errors: List[str] = []

    # =========================================================================
    # Entry point
    # =========================================================================

    def build(self) -> Optional[ET.Element]:
        """
        Build the manifest, adding item files to the archive.

        Returns:
            Root <Project> element, or None if the project is unusable
        """
        if not self.config.assembly_name:
            self._error("AssemblyName not specified.")
            return None

        project = ET.Element("Project")
        property_group = ET.SubElement(project, "PropertyGroup")
        ET.SubElement(property_group, "AssemblyName").text = self.config.assembly_name

        item_group = ET.SubElement(project, "ItemGroup")

        self._add_compile_items(item_group)
        self._add_resource_items(item_group)
        self._add_reference_items(item_group)
        self._add_system_reference_items(item_group)

        if not self.config.use_compiled_resources:
            # The host compiles .resx files itself and may need these
            self._add_items(item_group, "None", self._items("none"), copy=True)
            self._add_items(item_group, "Content", self._items("content"), copy=True)
        else:
            self._add_explicit_items(item_group, "None", self._items("none"))
            self._add_explicit_items(item_group, "Content", self._items("content"))

        self._add_satellite_resource_items()

        if self.errors:
            return None
        return project

    def write(self, project: ET.Element, path: Path, indent: bool = False):
        """Write the manifest as UTF-8 XML without a declaration."""
        tree = ET.ElementTree(project)
        if indent:
            ET.indent(tree)
        tree.write(path, encoding='utf-8', xml_declaration=False)

    # =========================================================================
    # Item groups
    # =========================================================================

    def _items(self, group: str) -> List[ProjectItem]:
        return self.config.items[group]

    def _add_compile_items(self, item_group: ET.Element):
        self._add_items(item_group, "Compile", self._items("compile"), copy=True)

    def _add_resource_items(self, item_group: ET.Element):
        resources = [r for r in self._items("embedded_resource") if not _is_satellite(r)]

        if not self.config.use_compiled_resources:
            self._add_items(item_group, "EmbeddedResource", resources, copy=True)
            return

        # Pre-compiled .resources files go in as-is so the host does not
        # rebuild them; the assembly namespace prefix is stripped.
        def include(item: ProjectItem) -> str:
            return self._strip_namespace_prefix(_item_path(item.get_metadata("OutputResource")).name)

        def adorn(element: ET.Element, item: ProjectItem):
            self._add_item_file(item.get_metadata("OutputResource"), flatten=True,
                                rename=self._strip_namespace_prefix)

        self._add_items(item_group, "EmbeddedResource", resources,
                        include=include, adorn=adorn)

    def _add_reference_items(self, item_group: ET.Element):
        """Resolved references: copied into the references folder."""
        def keep(item: ProjectItem) -> bool:
            name = _item_path(item.spec).name.lower()
            return bool(name) and name != HOST_EXECUTABLE and not name.endswith(".pdb")

        def include(item: ProjectItem) -> str:
            return _item_path(item.spec).stem

        def adorn(element: ET.Element, item: ProjectItem):
            hint_path = self.config.references_dir + PROJECT_SEPARATOR + _item_path(item.spec).name
            ET.SubElement(element, "HintPath").text = hint_path
            self._add_item_file(item.spec, dest_subdir=self.config.references_dir,
                                flatten=True)

        references = [r for r in self._items("resolved_reference") if keep(r)]
        self._add_items(item_group, "Reference", references, include=include, adorn=adorn)

    def _add_system_reference_items(self, item_group: ET.Element):
        """System references: listed only, the host resolves them."""
        resolved = self._items("resolved_reference")
        resolved_specs = {to_plgx_separators(r.spec).lower() for r in resolved}
        resolved_stems = {_item_path(r.spec).stem.lower() for r in resolved}

        def keep(item: ProjectItem) -> bool:
            spec = to_plgx_separators(item.spec)
            if not spec or spec.lower() in resolved_specs:
                return False
            if spec.lower().startswith(HOST_ASSEMBLY_PREFIX):
                return False
            if item.has_metadata("HintPath"):
                if _item_path(item.get_metadata("HintPath")).name.lower() == HOST_EXECUTABLE:
                    return False

            # A hard path that was not resolved for this build's framework
            if _item_path(spec).parent != Path('.'):
                stem = _item_path(spec).stem
                if stem.lower() not in resolved_stems:
                    logWarning(f"Excluding unresolved assembly reference '{stem}'. "
                               f"Perhaps the assembly isn't referenced by the plugin's "
                               f"code, or the file for the reference ({spec}) targets a "
                               f"different .NET Framework version than the plugin.")
                return False

            return True

        self._add_items(item_group, "Reference", [r for r in self._items("reference") if keep(r)])

    def _add_satellite_resource_items(self):
        for satellite in self._items("satellite_resource"):
            dest_subdir = f"{self.config.satellite_dir}/{satellite.get_metadata('Culture')}"
            self._add_item_file(satellite.spec, dest_subdir=dest_subdir, flatten=True)

    # =========================================================================
    # Helpers
    # =========================================================================

    def _add_items(self, item_group: ET.Element, name: str, items: Iterable[ProjectItem],
                   copy: bool = False,
                   include: Optional[Callable[[ProjectItem], str]] = None,
                   adorn: Optional[Callable[[ET.Element, ProjectItem], None]] = None):
        """Add items not marked ExcludeFromPlgx."""
        self._add_filtered_items(item_group, name, except_with(items, EXCLUDE_FROM_PLGX),
                                 copy, include, adorn)

    def _add_explicit_items(self, item_group: ET.Element, name: str, items: Iterable[ProjectItem]):
        """Add only items marked IncludeInPlgx."""
        self._add_filtered_items(item_group, name, only_with(items, INCLUDE_IN_PLGX),
                                 copy=True)

    def _add_filtered_items(self, item_group: ET.Element, name: str, items: List[ProjectItem],
                            copy: bool = False, include=None, adorn=None):
        for item in items:
            element = ET.SubElement(item_group, name)
            element.set("Include", include(item) if include else item.spec)
            if adorn:
                adorn(element, item)
            elif copy:
                self._add_item_file(item.spec)

    def _add_item_file(self, source_spec: str, dest_subdir: str = "", flatten: bool = False,
                       rename: Optional[Callable[[str], str]] = None) -> str:
        """
        Stream one item file into the archive.

        Relative sources keep their project-relative path; rooted sources
        (or flatten=True) keep only their file name.

        Returns:
            Destination path inside the archive
        """
        source = _item_path(source_spec)
        if source.is_absolute() or flatten:
            dest = source.name
        else:
            dest = to_plgx_separators(source_spec)

        if dest_subdir:
            dest = f"{dest_subdir}/{dest}"
        if rename:
            dest = rename(dest)

        self.writer.add_file(self.config.resolve(str(source)), dest)
        self.added_paths.append(dest)
        return dest

    def _strip_namespace_prefix(self, name: str) -> str:
        prefix = self.config.assembly_name + '.'
        if name.startswith(prefix):
            return name[len(prefix):]
        return name

    def _error(self, msg: str):
        logError(msg)
        self.errors.append(msg)
