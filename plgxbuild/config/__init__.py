#!/usr/bin/env python3
"""
Config module for plugin project handling.
"""

from .project_config import PlgxProjectConfig, ProjectItem, except_with, only_with
from .project_manifest import ProjectManifestBuilder, post_process_command

__all__ = ['PlgxProjectConfig', 'ProjectItem', 'except_with', 'only_with',
           'ProjectManifestBuilder', 'post_process_command']
