"""List command implementation."""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass
from enum import Enum

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from pyrepo.commands.base import CommandContext, SyncCommand
from pyrepo.errors import PyRepoError
from pyrepo.workspace.workspace import Workspace


class ListFormat(Enum):
    """Output format for list command."""

    TABLE = "table"
    JSON = "json"
    GRAPH = "graph"


@dataclass
class ProjectInfo:
    """Information about a project for display."""

    name: str
    version: str
    path: str
    description: str | None
    dependencies: list[str]
    dependents: list[str]


@dataclass
class ListResult:
    """Result of list command."""

    projects: list[ProjectInfo]


@dataclass
class ListOptions:
    """Options for list command."""

    projects: list[str] | None = None
    topological: bool = False


class ListCommand(SyncCommand[ListResult]):
    """List projects in the repository.

    Projects keep their discovery order, or dependency order when
    `topological` is set.
    """

    def __init__(self, context: CommandContext, options: ListOptions | None = None) -> None:
        super().__init__(context)
        self.options = options or ListOptions()

    def execute(self) -> ListResult:
        selected = self.workspace.select(self.options.projects)
        graph = self.workspace.graph
        if self.options.topological:
            selected = graph.subgraph(selected).topological_order()

        infos = [
            ProjectInfo(
                name=project.name,
                version=project.version,
                path=project.folder,
                description=project.description,
                dependencies=[d.name for d in graph.dependencies_of(project.name)],
                dependents=[d.name for d in graph.dependents_of(project.name)],
            )
            for project in selected
        ]
        return ListResult(projects=infos)


def list_projects(
    workspace: Workspace,
    *,
    projects: list[str] | None = None,
    topological: bool = False,
) -> ListResult:
    """Convenience function to list projects."""
    context = CommandContext(workspace=workspace)
    options = ListOptions(projects=projects, topological=topological)
    return ListCommand(context, options).execute()


def handle_list_command(
    workspace: Workspace,
    *,
    console: Console,
    error_console: Console,
    projects: list[str] | None = None,
    json_output: bool = False,
    graph: bool = False,
) -> None:
    fmt = ListFormat.TABLE
    if json_output:
        fmt = ListFormat.JSON
    elif graph:
        fmt = ListFormat.GRAPH

    try:
        result = list_projects(workspace, projects=projects, topological=fmt is ListFormat.GRAPH)
    except PyRepoError as e:
        error_console.print(f"[red]Error:[/red] {e.message}")
        raise typer.Exit(1) from e

    if fmt is ListFormat.JSON:
        console.print_json(json.dumps([asdict(p) for p in result.projects]))
        return

    if not result.projects:
        console.print("[yellow]Nothing found.[/yellow]")
        return

    if fmt is ListFormat.GRAPH:
        for info in result.projects:
            line = f"[bold]{escape(info.name)}[/bold] v{info.version}"
            if info.dependencies:
                line += f" -> {escape(', '.join(info.dependencies))}"
            console.print(line)
        return

    table = Table(title="Projects")
    table.add_column("Name", style="bold")
    table.add_column("Version")
    table.add_column("Path")
    table.add_column("Dependencies")

    for info in result.projects:
        deps = ", ".join(info.dependencies) if info.dependencies else "-"
        table.add_row(escape(info.name), info.version, info.path, escape(deps))

    console.print(table)
