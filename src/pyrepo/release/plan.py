"""Release plan: what gets released and how far the release got."""

from __future__ import annotations

from enum import Enum
from pathlib import Path

from pydantic import BaseModel, Field

from pyrepo.config.schema import ReleaseConfig
from pyrepo.errors import ReleaseError
from pyrepo.versioning import BumpType, bump_version
from pyrepo.workspace.project import Project
from pyrepo.workspace.workspace import Workspace


class ReleaseStage(str, Enum):
    """Release states, in the order they are reached."""

    PLANNED = "planned"
    PRECONDITIONS_CHECKED = "preconditions_checked"
    BUILT = "built"
    VERSION_BUMPED = "version_bumped"
    COMMITTED = "committed"
    PUSHED = "pushed"
    PUBLISHED = "published"
    DONE = "done"

    @property
    def position(self) -> int:
        return list(ReleaseStage).index(self)


class ReleaseFlags(BaseModel):
    """Which release stages have side effects enabled."""

    clean: bool = True
    build: bool = True
    test: bool = False
    git: bool = True
    push: bool = True
    publish: bool = True
    dist_tag: str = "latest"
    remote: str = "origin"

    @classmethod
    def from_config(cls, config: ReleaseConfig, **overrides: bool | str | None) -> ReleaseFlags:
        """Flags from configuration, with non-None overrides applied."""
        values = {
            "clean": config.clean,
            "build": config.build,
            "test": config.test,
            "git": config.git,
            "push": config.push,
            "publish": config.publish,
            "dist_tag": config.dist_tag,
            "remote": config.remote,
        }
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls.model_validate(values)


class ReleaseEntry(BaseModel):
    """One project of a release.

    Attributes:
        committed: Checkpoint; the version bump is part of a commit.
        published: The new version is on the registry.
    """

    name: str
    path: str
    from_version: str
    to_version: str
    tag: str
    committed: bool = False
    published: bool = False


class ReleasePlan(BaseModel):
    """Ordered release entries plus the progress of the release.

    `stage` is the last stage completed. When a stage fails,
    `failed_stage` names it and `error` explains why.
    """

    entries: list[ReleaseEntry] = Field(default_factory=list)
    flags: ReleaseFlags = Field(default_factory=ReleaseFlags)
    stage: ReleaseStage = ReleaseStage.PLANNED
    failed_stage: ReleaseStage | None = None
    error: str | None = None
    commit_sha: str | None = None
    changed_files: list[str] = Field(default_factory=list)

    @property
    def names(self) -> list[str]:
        return [e.name for e in self.entries]

    @property
    def is_failed(self) -> bool:
        return self.failed_stage is not None

    @property
    def is_done(self) -> bool:
        return self.stage is ReleaseStage.DONE

    @property
    def committed(self) -> bool:
        """Whether a durable side effect exists, after which nothing is rolled back."""
        return any(e.committed for e in self.entries)

    @property
    def published(self) -> list[str]:
        return [e.name for e in self.entries if e.published]

    @property
    def unpublished(self) -> list[str]:
        return [e.name for e in self.entries if not e.published]

    def advance(self, stage: ReleaseStage) -> None:
        self.stage = stage
        self.failed_stage = None
        self.error = None

    def fail(self, stage: ReleaseStage, error: str) -> None:
        self.failed_stage = stage
        self.error = error

    def save(self, path: Path) -> None:
        path.write_text(self.model_dump_json(indent=2), encoding="utf-8")

    @classmethod
    def load(cls, path: Path) -> ReleasePlan:
        return cls.model_validate_json(path.read_text(encoding="utf-8"))


def format_tag(tag_format: str, name: str, version: str) -> str:
    return tag_format.replace("{name}", name).replace("{version}", version)


def build_plan(
    workspace: Workspace,
    projects: list[Project],
    bump: BumpType,
    *,
    prerelease: str | None = None,
    flags: ReleaseFlags | None = None,
) -> ReleasePlan:
    """Plan a release of `projects`.

    Entries follow dependency order so a dependency's new version is
    written before the dependents that pin it.

    Raises:
        CyclicDependencyError: If the selected projects contain a cycle.
        ReleaseError: If a current version cannot be bumped.
    """
    ordered = workspace.graph.subgraph(projects).topological_order()
    tag_format = workspace.config.release.tag_format

    entries = []
    for project in ordered:
        try:
            target = bump_version(project.version, bump, prerelease)
        except ValueError as e:
            raise ReleaseError(f"{project.name}: {e}") from e
        entries.append(
            ReleaseEntry(
                name=project.name,
                path=str(project.path),
                from_version=project.version,
                to_version=target,
                tag=format_tag(tag_format, project.name, target),
            )
        )

    return ReleasePlan(
        entries=entries,
        flags=flags or ReleaseFlags.from_config(workspace.config.release),
    )
