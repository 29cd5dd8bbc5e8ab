"""Per-project task commands: bootstrap, build, lint, test, run, unlink."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field

import typer
from rich.console import Console
from rich.markup import escape

from pyrepo.commands.base import Command, CommandContext, cancel_on_interrupt
from pyrepo.errors import PyRepoError
from pyrepo.execution import RunReport, TaskResult, TaskRunner, TaskStatus
from pyrepo.operations import OperationKind, OperationOptions, create_operation
from pyrepo.workspace.project import Project
from pyrepo.workspace.workspace import Workspace


@dataclass
class TaskOptions:
    """Options for a per-project task command."""

    kind: OperationKind
    projects: list[str] = field(default_factory=list)
    concurrency: int | None = None
    extra_args: list[str] = field(default_factory=list)
    fix: bool = False
    script: str | None = None
    topological: bool = True


class TaskCommand(Command[RunReport]):
    """Run one operation across the selected projects.

    The operation is created from the configuration and handed to a
    TaskRunner; `runner` is exposed so callers can cancel the run.
    """

    def __init__(
        self,
        context: CommandContext,
        options: TaskOptions,
        output_handler: Callable[[str, str, bool], None] | None = None,
        on_result: Callable[[TaskResult], None] | None = None,
    ) -> None:
        super().__init__(context)
        self.options = options
        self.output_handler = output_handler
        self.on_result = on_result
        self.runner = TaskRunner(options.concurrency or self.workspace.config.concurrency)

    def get_projects(self) -> list[Project]:
        return self.workspace.select(self.options.projects)

    async def execute(self) -> RunReport:
        """Execute the operation.

        Raises:
            ScriptNotFoundError: For `run` with an unknown script.
            ProjectNotFoundError: If the projects filter matches nothing.
            CyclicDependencyError: If the operation needs an order that
                the selected projects cannot have.
        """
        operation = create_operation(
            self.options.kind,
            self.workspace.config,
            extra_args=self.options.extra_args,
            fix=self.options.fix,
            script=self.options.script,
            topological=self.options.topological,
        )

        projects = self.get_projects()
        if not projects:
            return RunReport(operation=operation.name)

        run_options = OperationOptions(
            env=self.context.command_env(),
            timeout=self.workspace.config.commands.timeout,
            dry_run=self.context.dry_run,
            output_handler=self.output_handler,
        )
        return await self.runner.run(
            operation,
            projects,
            self.workspace.graph,
            run_options,
            on_result=self.on_result,
        )


async def run_task(
    workspace: Workspace,
    kind: OperationKind,
    *,
    projects: list[str] | None = None,
    concurrency: int | None = None,
    extra_args: list[str] | None = None,
    fix: bool = False,
    script: str | None = None,
    topological: bool = True,
    dry_run: bool = False,
    output_handler: Callable[[str, str, bool], None] | None = None,
) -> RunReport:
    """Convenience function to run a task across projects.

    Args:
        workspace: Workspace to run in.
        kind: Operation to run.
        projects: Project names or glob patterns (all when empty).
        concurrency: Parallel jobs.
        extra_args: Arguments appended to the command.
        fix: For lint, let the linter apply fixes.
        script: For run, the script name.
        topological: For run, respect dependency order.
        dry_run: Print commands instead of running them.
        output_handler: Callback for output streaming.

    Returns:
        Report with one result per project.
    """
    context = CommandContext(workspace=workspace, dry_run=dry_run)
    options = TaskOptions(
        kind=kind,
        projects=list(projects or []),
        concurrency=concurrency,
        extra_args=list(extra_args or []),
        fix=fix,
        script=script,
        topological=topological,
    )
    cmd = TaskCommand(context, options, output_handler=output_handler)
    return await cmd.execute()


_STATUS_MARKS = {
    TaskStatus.SUCCESS: "[green]✓[/green]",
    TaskStatus.FAILED: "[red]✗[/red]",
    TaskStatus.SKIPPED: "[yellow]-[/yellow]",
}


def print_result(console: Console, result: TaskResult) -> None:
    """One status line per project."""
    name = escape(f"[{result.project}]")
    mark = _STATUS_MARKS[result.status]
    if result.succeeded:
        console.print(f"{mark} {name} ({result.duration_ms}ms)")
    elif result.failed:
        console.print(f"{mark} {name} {escape(result.error or '')}")
    else:
        console.print(f"{mark} {name} skipped: {escape(result.reason or '')}")


def print_summary(console: Console, report: RunReport) -> None:
    if report.all_success:
        console.print(f"\n[green]All {len(report)} projects passed[/green]")
        return
    parts = [f"{report.failure_count} failed", f"{report.success_count} passed"]
    if report.skipped_count:
        parts.append(f"{report.skipped_count} skipped")
    console.print(f"\n[red]{', '.join(parts)}[/red]")


async def handle_task_command(
    workspace: Workspace,
    kind: OperationKind,
    *,
    console: Console,
    error_console: Console,
    projects: list[str] | None = None,
    concurrency: int | None = None,
    extra_args: list[str] | None = None,
    fix: bool = False,
    script: str | None = None,
    topological: bool = True,
    dry_run: bool = False,
    stream: bool = True,
) -> RunReport:
    """Handle a task command from the CLI: stream output, print results.

    Raises:
        typer.Exit: With code 1 if any project failed or was skipped, or
            the command could not start.
    """

    def output_handler(project_name: str, line: str, is_stderr: bool) -> None:
        prefix = escape(f"[{project_name}] ")
        if is_stderr:
            error_console.print(f"[red]{prefix}[/red]{escape(line)}")
        else:
            console.print(f"[dim]{prefix}[/dim]{escape(line)}")

    context = CommandContext(workspace=workspace, dry_run=dry_run)
    options = TaskOptions(
        kind=kind,
        projects=list(projects or []),
        concurrency=concurrency,
        extra_args=list(extra_args or []),
        fix=fix,
        script=script,
        topological=topological,
    )
    cmd = TaskCommand(
        context,
        options,
        output_handler=output_handler if stream else None,
        on_result=lambda result: print_result(console, result),
    )

    try:
        with cancel_on_interrupt(cmd.runner.cancel):
            report = await cmd.execute()
    except PyRepoError as e:
        error_console.print(f"[red]Error:[/red] {e.message}")
        raise typer.Exit(1) from e

    if not len(report):
        console.print("[yellow]Nothing found.[/yellow]")
        return report

    if dry_run or not stream:
        for result in report:
            if result.output:
                console.print(escape(result.output.rstrip()))

    print_summary(console, report)
    if not report.all_success:
        raise typer.Exit(1)
    return report
