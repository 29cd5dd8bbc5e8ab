"""Clean command implementation."""

from __future__ import annotations

import typer
from rich.console import Console
from rich.markup import escape

from pyrepo.commands.base import CommandContext
from pyrepo.commands.tasks import TaskCommand, TaskOptions
from pyrepo.errors import PyRepoError
from pyrepo.execution import RunReport
from pyrepo.operations import OperationKind
from pyrepo.workspace.workspace import Workspace


async def clean(
    workspace: Workspace,
    *,
    projects: list[str] | None = None,
    dry_run: bool = False,
) -> RunReport:
    """Convenience function to clean projects.

    Args:
        workspace: Workspace to clean.
        projects: Project filter.
        dry_run: Show what would be cleaned.

    Returns:
        Report whose outputs list the removed paths.
    """
    context = CommandContext(workspace=workspace, dry_run=dry_run)
    options = TaskOptions(kind=OperationKind.CLEAN, projects=list(projects or []))
    return await TaskCommand(context, options).execute()


async def handle_clean_command(
    workspace: Workspace,
    *,
    console: Console,
    error_console: Console,
    projects: list[str] | None = None,
    dry_run: bool = False,
) -> None:
    try:
        report = await clean(workspace, projects=projects, dry_run=dry_run)
    except PyRepoError as e:
        error_console.print(f"[red]Error:[/red] {e.message}")
        raise typer.Exit(1) from e

    if not len(report):
        console.print("[yellow]Nothing found.[/yellow]")
        return

    if dry_run:
        console.print("[yellow]Dry run - no files removed[/yellow]")

    for result in report:
        if result.failed:
            error_console.print(f"[red]✗[/red] {escape(f'[{result.project}]')} {result.error}")
            continue
        console.print(f"[bold]{escape(result.project)}[/bold]")
        for line in result.output.splitlines():
            console.print(f"  {escape(line)}")

    if report.any_failure:
        raise typer.Exit(1)
