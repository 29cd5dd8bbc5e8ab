"""Release command implementation."""

from __future__ import annotations

import contextlib
from collections.abc import Callable
from dataclasses import dataclass

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from pyrepo.commands.base import Command, CommandContext, cancel_on_interrupt
from pyrepo.errors import PyRepoError, ReleaseError
from pyrepo.execution import TaskRunner
from pyrepo.registry import UvRegistry
from pyrepo.release import (
    ReleaseCoordinator,
    ReleaseFlags,
    ReleaseLock,
    ReleasePlan,
    ReleaseStage,
    build_plan,
    state_path,
)
from pyrepo.vcs import GitAdapter
from pyrepo.versioning import BumpType
from pyrepo.workspace.workspace import Workspace


@dataclass
class ReleaseOptions:
    """Options for release command.

    Flag options left as None fall back to the `release:` configuration.
    """

    projects: list[str] | None = None
    bump: BumpType = BumpType.PATCH
    prerelease: str | None = None
    clean: bool | None = None
    build: bool | None = None
    test: bool | None = None
    git: bool | None = None
    push: bool | None = None
    publish: bool | None = None
    dist_tag: str | None = None
    concurrency: int | None = None
    resume: bool = False


class ReleaseCommand(Command[ReleasePlan]):
    """Plan and execute a release of the selected projects."""

    def __init__(self, context: CommandContext, options: ReleaseOptions | None = None) -> None:
        super().__init__(context)
        self.options = options or ReleaseOptions()
        self.lock = ReleaseLock(self.workspace.root)
        self.coordinator: ReleaseCoordinator | None = None

    def flags(self) -> ReleaseFlags:
        opts = self.options
        return ReleaseFlags.from_config(
            self.workspace.config.release,
            clean=opts.clean,
            build=opts.build,
            test=opts.test,
            git=opts.git,
            push=opts.push,
            publish=opts.publish,
            dist_tag=opts.dist_tag,
        )

    def plan(self) -> ReleasePlan:
        """The plan to execute: a fresh one, or the saved one when resuming.

        Raises:
            ReleaseError: If resuming and no interrupted release exists.
            ProjectNotFoundError: If the projects filter matches nothing.
            CyclicDependencyError: If the selected projects form a cycle.
        """
        if self.options.resume:
            path = state_path(self.workspace.root)
            if not path.exists():
                raise ReleaseError("No interrupted release to resume")
            return ReleasePlan.load(path)

        projects = self.workspace.select(self.options.projects)
        return build_plan(
            self.workspace,
            projects,
            self.options.bump,
            prerelease=self.options.prerelease,
            flags=self.flags(),
        )

    def coordinate(
        self, plan: ReleasePlan, on_stage: Callable[[ReleaseStage], None] | None = None
    ) -> ReleaseCoordinator:
        root = self.workspace.root
        concurrency = self.options.concurrency or self.workspace.config.concurrency
        self.coordinator = ReleaseCoordinator(
            self.workspace,
            plan,
            vcs=GitAdapter(root) if plan.flags.git else None,
            registry=UvRegistry(self.workspace.config.publish) if plan.flags.publish else None,
            runner=TaskRunner(concurrency),
            on_stage=on_stage,
            lock=self.lock,
        )
        return self.coordinator

    def guard(self) -> contextlib.AbstractContextManager[object]:
        """Hold the release lock from planning to the end of execution.

        A dry run takes no lock and leaves no files behind.
        """
        if self.context.dry_run:
            return contextlib.nullcontext()
        return self.lock

    async def execute(self, plan: ReleasePlan | None = None) -> ReleasePlan:
        with self.guard():
            if plan is None:
                plan = self.plan()
            if self.context.dry_run:
                return plan
            return await self.coordinate(plan).execute()


async def release(
    workspace: Workspace,
    *,
    projects: list[str] | None = None,
    bump: BumpType = BumpType.PATCH,
    prerelease: str | None = None,
    dry_run: bool = False,
    resume: bool = False,
    **flags: bool | str | None,
) -> ReleasePlan:
    """Convenience function to release projects.

    Args:
        workspace: Workspace to release from.
        projects: Project filter.
        bump: Version increment.
        prerelease: Prerelease identifier (alpha, beta, rc, dev).
        dry_run: Only compute the plan.
        resume: Continue the interrupted release instead of planning.
        **flags: Overrides for clean, build, test, git, push, publish, dist_tag.

    Returns:
        The plan, DONE or failed at a stage.
    """
    context = CommandContext(workspace=workspace, dry_run=dry_run)
    options = ReleaseOptions(
        projects=projects, bump=bump, prerelease=prerelease, resume=resume, **flags
    )
    return await ReleaseCommand(context, options).execute()


def print_plan(console: Console, plan: ReleasePlan) -> None:
    table = Table()
    table.add_column("Project", style="cyan")
    table.add_column("Current", style="dim")
    table.add_column("Next", style="green")
    table.add_column("Tag", style="magenta")

    for entry in plan.entries:
        table.add_row(
            escape(entry.name), entry.from_version, entry.to_version, escape(entry.tag)
        )
    console.print(table)

    flags = plan.flags
    steps = [
        name
        for name, enabled in (
            ("clean", flags.clean),
            ("build", flags.build),
            ("test", flags.test),
            ("commit+tag", flags.git),
            (f"push to {flags.remote}", flags.git and flags.push),
            (f"publish ({flags.dist_tag})", flags.publish),
        )
        if enabled
    ]
    console.print(f"Steps: {escape(', '.join(steps) or 'version bump only')}")


def print_outcome(console: Console, error_console: Console, plan: ReleasePlan) -> None:
    if not plan.is_failed:
        console.print(f"\n[green]Released {len(plan.entries)} projects[/green]")
        if plan.commit_sha:
            console.print(f"Commit: [blue]{plan.commit_sha[:8]}[/blue]")
        return

    stage = plan.failed_stage.value if plan.failed_stage else "unknown"
    error_console.print(f"\n[red]Release failed at {stage}:[/red] {escape(plan.error or '')}")
    if plan.flags.publish and plan.stage.position >= ReleaseStage.PUSHED.position:
        if plan.published:
            error_console.print(f"Published: {escape(', '.join(plan.published))}")
        error_console.print(f"Not published: {escape(', '.join(plan.unpublished))}")
    if plan.committed:
        error_console.print(
            "The release commit exists and was not rolled back. "
            "Fix the problem and run [bold]pyrepo release --resume[/bold]."
        )


async def handle_release_command(
    workspace: Workspace,
    *,
    console: Console,
    error_console: Console,
    projects: list[str] | None = None,
    bump: str | None = None,
    prerelease: str | None = None,
    clean: bool | None = None,
    build: bool | None = None,
    test: bool | None = None,
    git: bool | None = None,
    push: bool | None = None,
    publish: bool | None = None,
    dist_tag: str | None = None,
    concurrency: int | None = None,
    dry_run: bool = False,
    resume: bool = False,
    yes: bool = False,
) -> None:
    """Handle the release command from the CLI with plan and confirmation."""
    try:
        bump_type = BumpType.parse(bump) if bump else BumpType.PATCH
    except ValueError as e:
        error_console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1) from e

    context = CommandContext(workspace=workspace, dry_run=dry_run)
    options = ReleaseOptions(
        projects=projects,
        bump=bump_type,
        prerelease=prerelease,
        clean=clean,
        build=build,
        test=test,
        git=git,
        push=push,
        publish=publish,
        dist_tag=dist_tag,
        concurrency=concurrency,
        resume=resume,
    )
    cmd = ReleaseCommand(context, options)

    def on_stage(stage: ReleaseStage) -> None:
        console.print(f"[green]✓[/green] {stage.value}")

    try:
        with cmd.guard():
            # 1. Plan
            plan = cmd.plan()
            if not plan.entries:
                console.print("[yellow]Nothing found.[/yellow]")
                return

            if resume:
                console.print(f"[bold]Resuming release after {plan.stage.value}:[/bold]")
            elif dry_run:
                console.print("[yellow]Dry run - no changes will be made[/yellow]\n")
            else:
                console.print("[bold]Pending releases:[/bold]")
            print_plan(console, plan)

            if dry_run:
                return

            # 2. Confirmation
            if not yes and not typer.confirm("\nProceed with this release?", default=False):
                console.print("[yellow]Release cancelled.[/yellow]")
                return

            # 3. Execution
            coordinator = cmd.coordinate(plan, on_stage=on_stage)
            with cancel_on_interrupt(coordinator.cancel):
                result = await coordinator.execute()
    except PyRepoError as e:
        error_console.print(f"[red]Error:[/red] {e.message}")
        raise typer.Exit(1) from e

    print_outcome(console, error_console, result)
    if result.is_failed:
        raise typer.Exit(1)
