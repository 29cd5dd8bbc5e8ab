"""Project model."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from packaging.utils import canonicalize_name

from pyrepo.workspace.manifest import manifest_path, read_manifest


@dataclass(frozen=True, slots=True)
class Project:
    """A project of the repository.

    Attributes:
        name: Name declared in the manifest.
        path: Absolute path to the project directory.
        version: Version declared in the manifest.
        dependencies: Canonical names of all declared dependencies. Names
            of projects outside the repository are kept but never matched.
        folder: Discovery path relative to the repository root.
        description: Optional project description.
    """

    name: str
    path: Path
    version: str
    dependencies: frozenset[str] = field(default_factory=frozenset)
    folder: str = "."
    description: str | None = None

    @classmethod
    def from_directory(cls, path: Path, root: Path) -> Project:
        """Load a project from a directory holding a manifest.

        Raises:
            ManifestError: If the manifest is missing or malformed.
        """
        path = path.resolve()
        data = read_manifest(manifest_path(path))
        return cls(
            name=data.name,
            path=path,
            version=data.version,
            dependencies=data.dependencies - {canonicalize_name(data.name)},
            folder=path.relative_to(root.resolve()).as_posix(),
            description=data.description,
        )

    @property
    def canonical_name(self) -> str:
        """PEP 503 normalised name used for matching."""
        return canonicalize_name(self.name)

    @property
    def manifest(self) -> Path:
        """Path to the project's manifest."""
        return manifest_path(self.path)
