"""Workspace discovery and the project dependency graph."""

from pyrepo.workspace.discovery import discover_projects, scan_directory
from pyrepo.workspace.graph import DependencyGraph
from pyrepo.workspace.manifest import (
    ManifestData,
    read_manifest,
    update_dependency_version,
    write_version,
)
from pyrepo.workspace.project import Project
from pyrepo.workspace.workspace import Workspace

__all__ = [
    "DependencyGraph",
    "ManifestData",
    "Project",
    "Workspace",
    "discover_projects",
    "read_manifest",
    "scan_directory",
    "update_dependency_version",
    "write_version",
]
