"""Status command: release state of each project."""

from __future__ import annotations

from dataclasses import dataclass

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from pyrepo.commands.base import CommandContext, SyncCommand
from pyrepo.errors import PyRepoError
from pyrepo.release.plan import format_tag
from pyrepo.vcs import count_commits_since, get_latest_tag, has_changes, is_git_repo, tag_exists
from pyrepo.workspace.project import Project
from pyrepo.workspace.workspace import Workspace


@dataclass
class ProjectStatus:
    """Release status of one project.

    Attributes:
        released: The tag for the current version exists. None outside git.
        last_tag: Latest release tag of the project reachable from HEAD.
        commits_since: Commits touching the project since `last_tag`.
        dirty: Uncommitted changes under the project directory.
    """

    name: str
    version: str
    released: bool | None = None
    last_tag: str | None = None
    commits_since: int | None = None
    dirty: bool | None = None

    @property
    def has_unreleased_changes(self) -> bool:
        return bool(self.dirty or self.commits_since or self.released is False)


@dataclass
class StatusResult:
    projects: list[ProjectStatus]
    in_git: bool


class StatusCommand(SyncCommand[StatusResult]):
    """Compare each project's version with the release tags in git."""

    def __init__(self, context: CommandContext, projects: list[str] | None = None) -> None:
        super().__init__(context)
        self.projects = projects

    def _status(self, project: Project, tag_format: str) -> ProjectStatus:
        root = self.workspace.root
        current_tag = format_tag(tag_format, project.name, project.version)
        last_tag = get_latest_tag(format_tag(tag_format, project.name, "*"), cwd=root)
        return ProjectStatus(
            name=project.name,
            version=project.version,
            released=tag_exists(current_tag, cwd=root),
            last_tag=last_tag,
            commits_since=count_commits_since(last_tag, project.path, cwd=root),
            dirty=has_changes(project.path, cwd=root),
        )

    def execute(self) -> StatusResult:
        selected = self.workspace.select(self.projects)
        if not is_git_repo(self.workspace.root):
            return StatusResult(
                projects=[ProjectStatus(name=p.name, version=p.version) for p in selected],
                in_git=False,
            )

        tag_format = self.workspace.config.release.tag_format
        return StatusResult(
            projects=[self._status(p, tag_format) for p in selected],
            in_git=True,
        )


def get_status(workspace: Workspace, *, projects: list[str] | None = None) -> StatusResult:
    """Convenience function for the release status of projects."""
    context = CommandContext(workspace=workspace)
    return StatusCommand(context, projects).execute()


def _flag(value: bool | None) -> str:
    if value is None:
        return "-"
    return "[green]yes[/green]" if value else "[yellow]no[/yellow]"


def handle_status_command(
    workspace: Workspace,
    *,
    console: Console,
    error_console: Console,
    projects: list[str] | None = None,
) -> None:
    try:
        result = get_status(workspace, projects=projects)
    except PyRepoError as e:
        error_console.print(f"[red]Error:[/red] {e.message}")
        raise typer.Exit(1) from e

    if not result.projects:
        console.print("[yellow]Nothing found.[/yellow]")
        return

    if not result.in_git:
        console.print("[yellow]Not a git repository, release tags unavailable[/yellow]")

    table = Table(title="Release status")
    table.add_column("Project", style="bold")
    table.add_column("Version")
    table.add_column("Tagged")
    table.add_column("Last tag")
    table.add_column("Commits since")
    table.add_column("Uncommitted")

    for status in result.projects:
        commits = "-" if status.commits_since is None else str(status.commits_since)
        table.add_row(
            escape(status.name),
            status.version,
            _flag(status.released),
            escape(status.last_tag or "-"),
            commits,
            _flag(status.dirty),
        )
    console.print(table)

    pending = [s.name for s in result.projects if s.has_unreleased_changes]
    if pending:
        console.print(f"\nUnreleased changes: {escape(', '.join(pending))}")
