"""Project discovery."""

from __future__ import annotations

from pathlib import Path

import structlog

from pyrepo.config.schema import PyRepoConfig
from pyrepo.errors import ConfigurationError, ManifestError
from pyrepo.workspace.manifest import manifest_path
from pyrepo.workspace.project import Project

logger = structlog.get_logger()


def scan_directory(root: Path, directory: str) -> list[Project]:
    """Find projects among the immediate children of `root / directory`.

    Children without a manifest are skipped. Children with a malformed
    manifest are skipped with a warning. A missing directory yields no
    projects.
    """
    base = root / directory
    if not base.is_dir():
        logger.debug("Discovery directory does not exist", directory=directory)
        return []

    projects: list[Project] = []
    for child in sorted(base.iterdir(), key=lambda p: p.name):
        if not child.is_dir() or not manifest_path(child).is_file():
            continue
        try:
            projects.append(Project.from_directory(child, root))
        except ManifestError as e:
            logger.warning(
                "Skipping project with invalid manifest", path=str(child), error=e.message
            )

    return projects


def discover_projects(root: Path, config: PyRepoConfig) -> list[Project]:
    """Discover the projects of a repository.

    Args:
        root: Repository root.
        config: Repository configuration.

    Returns:
        Projects in discovery order: configured directories in order,
        children of each directory by name.

    Raises:
        ConfigurationError: If single-project mode has no root manifest, or
            two projects share a name.
        ManifestError: If the root manifest in single-project mode is malformed.
    """
    if config.mono is False:
        if not manifest_path(root).is_file():
            raise ConfigurationError(
                "Single-project mode requires a manifest at the repository root",
                path=manifest_path(root),
            )
        projects = [Project.from_directory(root, root)]
    else:
        projects = [p for directory in config.mono for p in scan_directory(root, directory)]

    seen: dict[str, Project] = {}
    for project in projects:
        other = seen.get(project.canonical_name)
        if other is not None:
            raise ConfigurationError(
                f"Duplicate project name '{project.name}' in {other.folder} and {project.folder}"
            )
        seen[project.canonical_name] = project

    logger.debug("Discovered projects", count=len(projects), names=[p.name for p in projects])
    return projects
