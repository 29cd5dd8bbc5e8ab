"""pyrepo - Python monorepo task orchestrator.

Runs per-project tasks across the projects of a repository, providing:
- Project discovery from pyproject.toml manifests
- Dependency-ordered parallel execution of bootstrap, build, lint, test and scripts
- Checkpointed multi-project releases (version bump, commit, tag, push, publish)
"""

from pyrepo.config import PyRepoConfig, load_config
from pyrepo.errors import (
    ConfigurationError,
    CyclicDependencyError,
    ManifestError,
    ProjectNotFoundError,
    PublishError,
    PyRepoError,
    ReleaseError,
    ScriptNotFoundError,
    TaskFailure,
    VcsError,
)
from pyrepo.execution import RunReport, TaskResult, TaskRunner, TaskStatus
from pyrepo.release import ReleaseCoordinator, ReleasePlan, ReleaseStage
from pyrepo.workspace import DependencyGraph, Project, Workspace

__version__ = "0.1.0"

__all__ = [
    # Version
    "__version__",
    # Core
    "Workspace",
    "Project",
    "DependencyGraph",
    "PyRepoConfig",
    "load_config",
    # Execution
    "TaskRunner",
    "TaskResult",
    "TaskStatus",
    "RunReport",
    # Release
    "ReleaseCoordinator",
    "ReleasePlan",
    "ReleaseStage",
    # Errors
    "PyRepoError",
    "ConfigurationError",
    "ManifestError",
    "CyclicDependencyError",
    "ProjectNotFoundError",
    "ScriptNotFoundError",
    "TaskFailure",
    "VcsError",
    "PublishError",
    "ReleaseError",
]
