"""Workspace: the repository root, its configuration and its projects."""

from __future__ import annotations

import fnmatch
from functools import cached_property
from pathlib import Path

import structlog

from pyrepo.config import PyRepoConfig, find_root, load_config
from pyrepo.errors import ProjectNotFoundError
from pyrepo.workspace.discovery import discover_projects
from pyrepo.workspace.graph import DependencyGraph
from pyrepo.workspace.project import Project

logger = structlog.get_logger()


def _matches(project: Project, pattern: str) -> bool:
    if project.name == pattern or project.name.lower() == pattern.lower():
        return True
    if fnmatch.fnmatch(project.name, pattern):
        return True
    # Try with normalized names (replace - with _)
    return fnmatch.fnmatch(project.name.replace("-", "_"), pattern.replace("-", "_"))


class Workspace:
    """A repository with its discovered projects.

    Projects are discovered once when the workspace is created and do not
    change for the rest of the invocation.

    Attributes:
        root: Repository root directory.
        config: Immutable repository configuration.
        projects: Projects in discovery order.
    """

    def __init__(self, root: Path, config: PyRepoConfig, projects: list[Project]) -> None:
        self.root = root
        self.config = config
        self.projects = projects

    @classmethod
    def discover(cls, path: Path | None = None) -> Workspace:
        """Load the workspace containing `path` (default: cwd).

        Raises:
            ConfigurationError: If no repository root or configuration is valid.
            ManifestError: If the root manifest is malformed in single-project mode.
        """
        root = find_root(path)
        config = load_config(root)
        projects = discover_projects(root, config)
        logger.debug("Workspace loaded", root=str(root), projects=len(projects))
        return cls(root, config, projects)

    @cached_property
    def graph(self) -> DependencyGraph:
        """Dependency graph of all projects."""
        return DependencyGraph(self.projects)

    @property
    def project_names(self) -> list[str]:
        return [p.name for p in self.projects]

    def get_project(self, name: str) -> Project:
        """Get a project by name.

        Raises:
            ProjectNotFoundError: If no project has that name.
        """
        return self.graph.get(name)

    def select(self, names: list[str] | None = None) -> list[Project]:
        """Resolve a projects filter.

        Each entry is a project name or a glob pattern; entries may also be
        comma-separated. An empty filter selects every project.

        Returns:
            Matching projects in discovery order.

        Raises:
            ProjectNotFoundError: If an entry matches no project.
        """
        patterns = [p.strip() for entry in names or [] for p in entry.split(",") if p.strip()]
        if not patterns:
            return list(self.projects)

        selected: set[str] = set()
        for pattern in patterns:
            matched = [p for p in self.projects if _matches(p, pattern)]
            if not matched:
                raise ProjectNotFoundError(pattern, self.project_names)
            selected.update(p.name for p in matched)

        return [p for p in self.projects if p.name in selected]
