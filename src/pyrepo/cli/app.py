"""pyrepo CLI application."""

from __future__ import annotations

import asyncio
import sys
from pathlib import Path
from typing import Annotated

import structlog
import typer
from rich.console import Console

from pyrepo.commands.list import handle_list_command
from pyrepo.commands.status import handle_status_command
from pyrepo.errors import PyRepoError
from pyrepo.operations import OperationKind
from pyrepo.workspace import Workspace

LOG_LEVELS = ("debug", "info", "warning", "error", "critical")


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        from pyrepo import __version__

        print(f"pyrepo {__version__}")
        raise typer.Exit()


def configure_logging(log_level: str) -> None:
    """Send structlog events at or above `log_level` to stderr."""
    structlog.configure(
        wrapper_class=structlog.make_filtering_bound_logger(min_level=log_level.lower()),
        logger_factory=structlog.PrintLoggerFactory(sys.stderr),
    )


app = typer.Typer(
    name="pyrepo",
    help="Run tasks and releases across the projects of a Python monorepo",
    no_args_is_help=True,
    add_completion=False,
)


@app.callback()
def _app_callback(
    version: Annotated[  # noqa: ARG001
        bool,
        typer.Option("--version", "-V", help="Show version and exit", callback=version_callback),
    ] = False,
    log_level: Annotated[
        str,
        typer.Option("--log-level", help=f"Log level ({', '.join(LOG_LEVELS)})"),
    ] = "warning",
) -> None:
    """Python monorepo task orchestrator."""
    if log_level.lower() not in LOG_LEVELS:
        raise typer.BadParameter(
            f"must be one of {', '.join(LOG_LEVELS)}", param_hint="--log-level"
        )
    configure_logging(log_level)


console = Console()
error_console = Console(stderr=True)

ScopeOption = Annotated[
    str | None,
    typer.Option("--scope", "-s", help="Project names or globs (comma-separated)"),
]
ConcurrencyOption = Annotated[
    int | None,
    typer.Option("--concurrency", "-c", min=1, help="Parallel jobs (default: CPU count)"),
]
DryRunOption = Annotated[
    bool,
    typer.Option("--dry-run", help="Print commands without running them"),
]
PASSTHROUGH = {"allow_extra_args": True, "ignore_unknown_options": True}


def parse_comma_list(value: str | None) -> list[str] | None:
    """Parse comma-separated string into list."""
    return [v.strip() for v in value.split(",") if v.strip()] if value else None


def get_workspace(path: Path | None = None) -> Workspace:
    """Load workspace from current directory or specified path."""
    try:
        return Workspace.discover(path)
    except PyRepoError as e:
        error_console.print(f"[red]Error:[/red] {e.message}")
        raise typer.Exit(1) from e


def _run_task(
    kind: OperationKind,
    *,
    scope: str | None,
    concurrency: int | None,
    dry_run: bool = False,
    extra_args: list[str] | None = None,
    fix: bool = False,
) -> None:
    from pyrepo.commands import handle_task_command

    workspace = get_workspace()

    async def run() -> None:
        await handle_task_command(
            workspace,
            kind,
            console=console,
            error_console=error_console,
            projects=parse_comma_list(scope),
            concurrency=concurrency,
            extra_args=extra_args,
            fix=fix,
            dry_run=dry_run,
        )

    asyncio.run(run())


@app.command()
def bootstrap(
    scope: ScopeOption = None,
    concurrency: ConcurrencyOption = None,
    dry_run: DryRunOption = False,
    extra: Annotated[
        list[str] | None,
        typer.Option("--extra", "-e", help="Extra package to install into each project"),
    ] = None,
) -> None:
    """Install projects in editable mode, dependencies first."""
    _run_task(
        OperationKind.BOOTSTRAP,
        scope=scope,
        concurrency=concurrency,
        dry_run=dry_run,
        extra_args=list(extra or []),
    )


@app.command()
def build(
    scope: ScopeOption = None,
    concurrency: ConcurrencyOption = None,
    dry_run: DryRunOption = False,
) -> None:
    """Build projects, dependencies first."""
    _run_task(OperationKind.BUILD, scope=scope, concurrency=concurrency, dry_run=dry_run)


@app.command(context_settings=PASSTHROUGH)
def lint(
    ctx: typer.Context,
    scope: ScopeOption = None,
    concurrency: ConcurrencyOption = None,
    fix: Annotated[
        bool,
        typer.Option("--fix", help="Let the linter fix problems"),
    ] = False,
) -> None:
    """Lint projects. Extra arguments are passed to the linter."""
    _run_task(
        OperationKind.LINT,
        scope=scope,
        concurrency=concurrency,
        extra_args=list(ctx.args),
        fix=fix,
    )


@app.command(context_settings=PASSTHROUGH)
def test(
    ctx: typer.Context,
    scope: ScopeOption = None,
    concurrency: ConcurrencyOption = None,
) -> None:
    """Test projects. Extra arguments are passed to the test runner."""
    _run_task(OperationKind.TEST, scope=scope, concurrency=concurrency, extra_args=list(ctx.args))


@app.command(context_settings=PASSTHROUGH)
def commit(ctx: typer.Context, dry_run: DryRunOption = False) -> None:
    """Commit with the configured commit tool. Extra arguments are passed to it."""
    from pyrepo.commands import handle_commit_command

    workspace = get_workspace()
    handle_commit_command(
        workspace,
        console=console,
        error_console=error_console,
        extra_args=list(ctx.args),
        dry_run=dry_run,
    )


@app.command()
def unlink(
    scope: ScopeOption = None,
    concurrency: ConcurrencyOption = None,
    dry_run: DryRunOption = False,
) -> None:
    """Uninstall projects from the environment."""
    _run_task(OperationKind.UNLINK, scope=scope, concurrency=concurrency, dry_run=dry_run)


@app.command()
def clean(
    scope: ScopeOption = None,
    dry_run: Annotated[
        bool,
        typer.Option("--dry-run", help="Show what would be cleaned"),
    ] = False,
) -> None:
    """Clean build artifacts."""
    from pyrepo.commands import handle_clean_command

    workspace = get_workspace()

    async def run() -> None:
        await handle_clean_command(
            workspace,
            console=console,
            error_console=error_console,
            projects=parse_comma_list(scope),
            dry_run=dry_run,
        )

    asyncio.run(run())


@app.command("run", context_settings=PASSTHROUGH)
def run_cmd(
    ctx: typer.Context,
    script: Annotated[str | None, typer.Argument(help="Script name to run")] = None,
    scope: ScopeOption = None,
    concurrency: ConcurrencyOption = None,
    no_topological: Annotated[
        bool,
        typer.Option("--no-topological", help="Ignore dependency order"),
    ] = False,
    list_scripts: Annotated[
        bool,
        typer.Option("--list", "-l", help="List configured scripts"),
    ] = False,
) -> None:
    """Run a configured script across projects."""
    from pyrepo.commands import handle_run_script

    workspace = get_workspace()

    async def run() -> None:
        await handle_run_script(
            workspace,
            script,
            console=console,
            error_console=error_console,
            projects=parse_comma_list(scope),
            concurrency=concurrency,
            topological=not no_topological,
            list_scripts=list_scripts,
            extra_args=list(ctx.args),
        )

    asyncio.run(run())


@app.command("list")
def list_cmd(
    scope: ScopeOption = None,
    json_output: Annotated[
        bool,
        typer.Option("--json", help="Output as JSON"),
    ] = False,
    graph: Annotated[
        bool,
        typer.Option("--graph", help="Show dependency graph"),
    ] = False,
) -> None:
    """List repository projects."""
    workspace = get_workspace()
    handle_list_command(
        workspace,
        console=console,
        error_console=error_console,
        projects=parse_comma_list(scope),
        json_output=json_output,
        graph=graph,
    )


@app.command()
def status(scope: ScopeOption = None) -> None:
    """Show which projects have unreleased changes."""
    workspace = get_workspace()
    handle_status_command(
        workspace,
        console=console,
        error_console=error_console,
        projects=parse_comma_list(scope),
    )


@app.command()
def release(
    scope: ScopeOption = None,
    bump: Annotated[
        str,
        typer.Option("--bump", "-b", help="Bump type (major, minor, patch, prerelease)"),
    ] = "patch",
    prerelease: Annotated[
        str | None,
        typer.Option("--prerelease", help="Prerelease identifier (alpha, beta, rc, dev)"),
    ] = None,
    clean: Annotated[
        bool | None,
        typer.Option("--clean/--no-clean", help="Clean before building"),
    ] = None,
    build: Annotated[
        bool | None,
        typer.Option("--build/--no-build", help="Build before versioning"),
    ] = None,
    test: Annotated[
        bool | None,
        typer.Option("--test/--no-test", help="Run tests before versioning"),
    ] = None,
    git: Annotated[
        bool | None,
        typer.Option("--git/--no-git", help="Commit and tag the release"),
    ] = None,
    push: Annotated[
        bool | None,
        typer.Option("--push/--no-push", help="Push the release commit and tags"),
    ] = None,
    publish: Annotated[
        bool | None,
        typer.Option("--publish/--no-publish", help="Publish to the registry"),
    ] = None,
    dist_tag: Annotated[
        str | None,
        typer.Option("--tag", help="Dist-tag selecting the registry"),
    ] = None,
    concurrency: ConcurrencyOption = None,
    dry_run: Annotated[
        bool,
        typer.Option("--dry-run", help="Show what would be released"),
    ] = False,
    resume: Annotated[
        bool,
        typer.Option("--resume", help="Continue an interrupted release"),
    ] = False,
    yes: Annotated[
        bool,
        typer.Option("--yes", "-y", help="Skip confirmation"),
    ] = False,
) -> None:
    """Version, commit, tag, push and publish projects."""
    from pyrepo.commands import handle_release_command

    workspace = get_workspace()

    async def run() -> None:
        await handle_release_command(
            workspace,
            console=console,
            error_console=error_console,
            projects=parse_comma_list(scope),
            bump=bump,
            prerelease=prerelease,
            clean=clean,
            build=build,
            test=test,
            git=git,
            push=push,
            publish=publish,
            dist_tag=dist_tag,
            concurrency=concurrency,
            dry_run=dry_run,
            resume=resume,
            yes=yes,
        )

    asyncio.run(run())


def main() -> None:
    """Main entry point."""
    app()


if __name__ == "__main__":
    main()
