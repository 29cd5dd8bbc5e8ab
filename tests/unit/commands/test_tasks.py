"""Tests for the per-project task commands."""

from __future__ import annotations

from pathlib import Path

import pytest
import typer
from helpers import console_text, make_console

from pyrepo.commands import handle_task_command, run_task
from pyrepo.commands.base import CommandContext
from pyrepo.commands.tasks import TaskCommand, TaskOptions
from pyrepo.errors import ProjectNotFoundError, ScriptNotFoundError
from pyrepo.execution import TaskStatus
from pyrepo.operations import OperationKind
from pyrepo.workspace import Workspace


@pytest.fixture
def workspace(workspace_dir: Path) -> Workspace:
    return Workspace.discover(workspace_dir)


class TestRunTask:
    """Tests for run_task."""

    async def test_build_in_dependency_order(self, workspace: Workspace) -> None:
        """Should build every project, dependencies first."""
        report = await run_task(workspace, OperationKind.BUILD)

        assert report.all_success
        assert [r.project for r in report] == ["pkg-a", "pkg-b", "pkg-c"]
        assert report.get("pkg-b").output == "building pkg-b\n"

    async def test_projects_filter(self, workspace: Workspace) -> None:
        """Should only run the selected projects."""
        report = await run_task(workspace, OperationKind.TEST, projects=["pkg-c"])
        assert [r.project for r in report] == ["pkg-c"]

    async def test_extra_args(self, workspace: Workspace) -> None:
        """Should append passthrough arguments to the command."""
        report = await run_task(
            workspace, OperationKind.TEST, projects=["pkg-a"], extra_args=["-k", "fast"]
        )
        assert report.get("pkg-a").output == "testing pkg-a -k fast\n"

    async def test_bootstrap_extra_packages(self, workspace: Workspace) -> None:
        """Extra packages are installed alongside each project."""
        report = await run_task(workspace, OperationKind.BOOTSTRAP, extra_args=["rich", "typer"])
        assert report.get("pkg-b").output == "installing pkg-b rich typer\n"

    async def test_lint_fix(self, workspace: Workspace) -> None:
        report = await run_task(workspace, OperationKind.LINT, projects=["pkg-a"], fix=True)
        assert report.get("pkg-a").output == "linting pkg-a --fix\n"

    async def test_dry_run(self, workspace: Workspace) -> None:
        """Should report the commands without running them."""
        report = await run_task(workspace, OperationKind.BUILD, dry_run=True)
        assert report.get("pkg-a").output == "Would run: echo building pkg-a\n"

    async def test_script(self, workspace: Workspace) -> None:
        report = await run_task(workspace, OperationKind.RUN, script="hello")
        assert report.get("pkg-c").output == "hello from pkg-c\n"
        assert report.operation == "run hello"

    async def test_unknown_script(self, workspace: Workspace) -> None:
        with pytest.raises(ScriptNotFoundError):
            await run_task(workspace, OperationKind.RUN, script="missing")

    async def test_unknown_project(self, workspace: Workspace) -> None:
        with pytest.raises(ProjectNotFoundError):
            await run_task(workspace, OperationKind.BUILD, projects=["nope"])

    async def test_repository_env(self, workspace_dir: Path, sample_pyrepo_yaml: str) -> None:
        """Should pass the configured env to every command."""
        yaml = sample_pyrepo_yaml.replace(
            "commands:\n", "env:\n  STAGE: ci\n\ncommands:\n"
        ).replace("test: echo testing {name}", 'test: echo "$STAGE {name}"')
        (workspace_dir / "pyrepo.yaml").write_text(yaml)
        workspace = Workspace.discover(workspace_dir)

        report = await run_task(workspace, OperationKind.TEST, projects=["pkg-a"])

        assert report.get("pkg-a").output == "ci pkg-a\n"

    def test_context_env_is_merged(self, workspace: Workspace) -> None:
        context = CommandContext(workspace=workspace, env={"EXTRA": "1"})
        assert context.command_env() == {"EXTRA": "1"}

    async def test_concurrency_option(self, workspace: Workspace) -> None:
        context = CommandContext(workspace=workspace)
        cmd = TaskCommand(context, TaskOptions(kind=OperationKind.BUILD, concurrency=2))
        assert cmd.runner.concurrency == 2


class TestHandleTaskCommand:
    """Tests for the CLI handler."""

    async def test_prints_results_and_summary(self, workspace: Workspace) -> None:
        console, error_console = make_console(), make_console()

        await handle_task_command(
            workspace, OperationKind.BUILD, console=console, error_console=error_console
        )

        text = console_text(console)
        assert "[pkg-a] building pkg-a" in text
        assert "✓ [pkg-c]" in text
        assert "All 3 projects passed" in text

    async def test_failure_exits_nonzero(
        self, workspace_dir: Path, sample_pyrepo_yaml: str
    ) -> None:
        """Should skip dependents of a failed project and exit 1."""
        yaml = sample_pyrepo_yaml.replace(
            "build: echo building {name}",
            "build: test {name} != pkg-a || { echo broken >&2; exit 3; }",
        )
        (workspace_dir / "pyrepo.yaml").write_text(yaml)
        workspace = Workspace.discover(workspace_dir)
        console, error_console = make_console(), make_console()

        with pytest.raises(typer.Exit) as exc_info:
            await handle_task_command(
                workspace, OperationKind.BUILD, console=console, error_console=error_console
            )

        assert exc_info.value.exit_code == 1
        text = console_text(console)
        assert "✗ [pkg-a]" in text
        assert "skipped: dependency pkg-a failed" in text
        assert "1 failed, 0 passed, 2 skipped" in text
        assert "[pkg-a] broken" in console_text(error_console)

    async def test_error_before_start(self, workspace: Workspace) -> None:
        console, error_console = make_console(), make_console()

        with pytest.raises(typer.Exit):
            await handle_task_command(
                workspace,
                OperationKind.RUN,
                script="missing",
                console=console,
                error_console=error_console,
            )

        assert "Script 'missing' not found" in console_text(error_console)

    async def test_nothing_found(self, temp_dir: Path) -> None:
        (temp_dir / "pyrepo.yaml").write_text("mono: [packages]\n")
        (temp_dir / "packages").mkdir()
        workspace = Workspace.discover(temp_dir)
        console = make_console()

        report = await handle_task_command(
            workspace, OperationKind.BUILD, console=console, error_console=make_console()
        )

        assert len(report) == 0
        assert "Nothing found." in console_text(console)

    async def test_dry_run_prints_commands(self, workspace: Workspace) -> None:
        console = make_console()

        report = await handle_task_command(
            workspace,
            OperationKind.BUILD,
            console=console,
            error_console=make_console(),
            dry_run=True,
        )

        assert all(r.status is TaskStatus.SUCCESS for r in report)
        assert "Would run: echo building pkg-b" in console_text(console)
