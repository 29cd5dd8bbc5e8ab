"""Configuration schema for pyrepo.yaml."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class _Frozen(BaseModel):
    """Base for immutable configuration sections."""

    model_config = ConfigDict(frozen=True, extra="forbid")


class ScriptConfig(_Frozen):
    """A named script runnable with `pyrepo run`.

    Attributes:
        run: Shell command executed in every selected project.
        description: Text shown by `pyrepo run --list`.
        env: Extra environment variables.
        topological: Respect dependency order between projects.
    """

    run: str
    description: str | None = None
    env: dict[str, str] = Field(default_factory=dict)
    topological: bool = True


class CommandsConfig(_Frozen):
    """Shell commands backing the per-project operations.

    Commands run inside the project directory. `{name}`, `{version}` and
    `{path}` are substituted with the project's values. `commit` runs once at
    the repository root.
    """

    bootstrap: str = "uv pip install -e ."
    build: str = "uv build"
    lint: str = "ruff check ."
    lint_fix_flag: str = "--fix"
    test: str = "pytest"
    unlink: str = "uv pip uninstall {name}"
    commit: str = "cz commit"
    timeout: float | None = Field(default=None, gt=0)


class CleanConfig(_Frozen):
    """Clean operation settings."""

    patterns: list[str] = Field(
        default_factory=lambda: [
            "**/__pycache__",
            "**/*.pyc",
            ".pytest_cache",
            ".mypy_cache",
            ".ruff_cache",
            "*.egg-info",
            "dist",
            "build",
        ]
    )
    protected: list[str] = Field(default_factory=lambda: [".venv", ".git"])


class ReleaseConfig(_Frozen):
    """Release defaults; every flag can be overridden on the command line."""

    clean: bool = True
    build: bool = True
    test: bool = False
    git: bool = True
    push: bool = True
    publish: bool = True
    dist_tag: str = "latest"
    remote: str = "origin"
    branch: str | None = None
    require_clean: bool = True
    tag_format: str = "{name}@{version}"
    commit_message: str = "chore(release): {projects}"
    after_build: list[str] = Field(default_factory=list)

    @field_validator("tag_format")
    @classmethod
    def _tag_has_version(cls, value: str) -> str:
        if "{version}" not in value:
            raise ValueError("tag_format must contain '{version}'")
        return value


class DistTagTarget(_Frozen):
    """Where one dist-tag publishes to.

    A plain string in `publish.tags` is taken as the upload URL.

    Attributes:
        upload: Upload URL passed to `uv publish`.
        index: Index whose JSON API reports existing versions. Derived from
            `upload` when omitted (`upload.pypi.org/legacy/` -> `pypi.org`).
    """

    upload: str
    index: str | None = None

    @model_validator(mode="before")
    @classmethod
    def _from_url(cls, value: Any) -> Any:
        if isinstance(value, str):
            return {"upload": value}
        return value


class PublishConfig(_Frozen):
    """Registry settings.

    Attributes:
        registry: Upload URL used for the default dist-tag.
        index_url: Index queried for the default dist-tag.
        tags: Upload and index URLs for other dist-tags.
        token_env: Environment variable holding the upload token.
    """

    registry: str = "https://upload.pypi.org/legacy/"
    index_url: str = "https://pypi.org"
    tags: dict[str, DistTagTarget] = Field(default_factory=dict)
    token_env: str = "UV_PUBLISH_TOKEN"


class PyRepoConfig(_Frozen):
    """Root configuration model.

    Attributes:
        name: Repository name.
        mono: Directories scanned for projects, or False for a single
            project at the repository root.
        concurrency: Default number of parallel project operations.
    """

    name: str = "repo"
    mono: list[str] | Literal[False] = Field(default_factory=lambda: ["packages"])
    concurrency: int | None = Field(default=None, ge=1, le=64)
    env: dict[str, str] = Field(default_factory=dict)
    commands: CommandsConfig = Field(default_factory=CommandsConfig)
    scripts: dict[str, ScriptConfig] = Field(default_factory=dict)
    clean: CleanConfig = Field(default_factory=CleanConfig)
    release: ReleaseConfig = Field(default_factory=ReleaseConfig)
    publish: PublishConfig = Field(default_factory=PublishConfig)

    @field_validator("mono", mode="before")
    @classmethod
    def _normalize_mono(cls, value: Any) -> Any:
        if isinstance(value, str):
            return [value]
        return value

    @field_validator("scripts", mode="before")
    @classmethod
    def _normalize_scripts(cls, value: Any) -> Any:
        if not isinstance(value, dict):
            return value
        return {
            name: {"run": script} if isinstance(script, str) else script
            for name, script in value.items()
        }

    @property
    def is_mono(self) -> bool:
        """Whether projects live in subdirectories."""
        return self.mono is not False

    @property
    def script_names(self) -> list[str]:
        """Names of all configured scripts."""
        return list(self.scripts)

    def get_script(self, name: str) -> ScriptConfig | None:
        """Look up a script by name."""
        return self.scripts.get(name)
