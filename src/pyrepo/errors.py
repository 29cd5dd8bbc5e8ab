"""Exception hierarchy for pyrepo."""

from __future__ import annotations

from pathlib import Path


class PyRepoError(Exception):
    """Base class for all pyrepo errors.

    Attributes:
        message: Human readable description.
    """

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ConfigurationError(PyRepoError):
    """Invalid repository setup, fatal before any work starts."""

    def __init__(self, message: str, path: Path | None = None) -> None:
        if path is not None:
            message = f"{message} ({path})"
        super().__init__(message)
        self.path = path


class ManifestError(PyRepoError):
    """A project manifest is missing or malformed."""

    def __init__(self, message: str, path: Path) -> None:
        super().__init__(f"{message}: {path}")
        self.path = path


class CyclicDependencyError(PyRepoError):
    """Projects depend on each other in a cycle."""

    def __init__(self, cycle: list[str]) -> None:
        super().__init__(f"Cyclic dependency detected: {' -> '.join(cycle)}")
        self.cycle = cycle

    @property
    def members(self) -> list[str]:
        """Distinct project names taking part in the cycle."""
        return list(dict.fromkeys(self.cycle))


class ProjectNotFoundError(PyRepoError):
    """A requested project is not part of the repository."""

    def __init__(self, name: str, available: list[str]) -> None:
        listing = ", ".join(available) if available else "none"
        super().__init__(f"Project '{name}' not found. Available: {listing}")
        self.name = name
        self.available = available


class ScriptNotFoundError(PyRepoError):
    """A script passed to `run` is not configured."""

    def __init__(self, name: str, available: list[str]) -> None:
        listing = ", ".join(available) if available else "none"
        super().__init__(f"Script '{name}' not found. Available: {listing}")
        self.name = name
        self.available = available


class TaskFailure(PyRepoError):
    """A per-project action failed."""

    def __init__(self, project: str, message: str) -> None:
        super().__init__(f"[{project}] {message}")
        self.project = project


class VcsError(PyRepoError):
    """A version control operation failed."""

    def __init__(self, message: str, command: str | None = None) -> None:
        if command:
            message = f"{message} (command: {command})"
        super().__init__(message)
        self.command = command


class PublishError(PyRepoError):
    """Publishing a project to the registry failed."""

    def __init__(self, project: str, message: str) -> None:
        super().__init__(f"Failed to publish {project}: {message}")
        self.project = project


class ReleaseError(PyRepoError):
    """A release could not be started or resumed."""

    def __init__(self, message: str, stage: str | None = None) -> None:
        if stage:
            message = f"{message} (stage: {stage})"
        super().__init__(message)
        self.stage = stage
