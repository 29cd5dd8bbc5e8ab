"""Run command implementation."""

from __future__ import annotations

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from pyrepo.commands.tasks import handle_task_command, run_task
from pyrepo.execution import RunReport
from pyrepo.operations import OperationKind
from pyrepo.workspace.workspace import Workspace


async def run_script(
    workspace: Workspace,
    script_name: str,
    *,
    projects: list[str] | None = None,
    concurrency: int | None = None,
    topological: bool = True,
    extra_args: list[str] | None = None,
) -> RunReport:
    """Convenience function to run a configured script.

    Args:
        workspace: Workspace to run in.
        script_name: Name of script to run.
        projects: Project filter.
        concurrency: Parallel jobs.
        topological: Respect dependency order (if the script does).
        extra_args: Arguments appended to the script command.

    Returns:
        Report with one result per project.

    Raises:
        ScriptNotFoundError: If the script is not configured.
    """
    return await run_task(
        workspace,
        OperationKind.RUN,
        projects=projects,
        concurrency=concurrency,
        extra_args=extra_args,
        script=script_name,
        topological=topological,
    )


def print_scripts(workspace: Workspace, console: Console) -> None:
    """Table of configured scripts."""
    scripts = workspace.config.scripts
    if not scripts:
        console.print("[yellow]No scripts configured.[/yellow]")
        return

    table = Table(title="Scripts")
    table.add_column("Name", style="bold")
    table.add_column("Command")
    table.add_column("Description")
    table.add_column("Ordered")
    for name, script in scripts.items():
        table.add_row(
            name,
            escape(script.run),
            escape(script.description or "-"),
            "yes" if script.topological else "no",
        )
    console.print(table)


async def handle_run_script(
    workspace: Workspace,
    script_name: str | None,
    *,
    console: Console,
    error_console: Console,
    projects: list[str] | None = None,
    concurrency: int | None = None,
    topological: bool = True,
    list_scripts: bool = False,
    extra_args: list[str] | None = None,
) -> None:
    if list_scripts or not script_name:
        print_scripts(workspace, console)
        return

    await handle_task_command(
        workspace,
        OperationKind.RUN,
        console=console,
        error_console=error_console,
        projects=projects,
        concurrency=concurrency,
        extra_args=extra_args,
        script=script_name,
        topological=topological,
    )
