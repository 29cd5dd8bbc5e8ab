"""Commit command: hand the terminal to the configured commit tool."""

from __future__ import annotations

import os
import shlex
import subprocess

import structlog
import typer
from rich.console import Console
from rich.markup import escape

from pyrepo.commands.base import CommandContext, SyncCommand
from pyrepo.workspace.workspace import Workspace

logger = structlog.get_logger()


class CommitCommand(SyncCommand[int]):
    """Run `commands.commit` once at the repository root.

    The tool inherits the terminal so interactive prompts work. Extra
    arguments are appended to the command.
    """

    def __init__(self, context: CommandContext, extra_args: list[str] | None = None) -> None:
        super().__init__(context)
        self.extra_args = list(extra_args or [])

    def render(self) -> str:
        command = self.workspace.config.commands.commit
        if self.extra_args:
            command = " ".join([command, *(shlex.quote(a) for a in self.extra_args)])
        return command

    def execute(self) -> int:
        """Run the commit tool and return its exit code."""
        command = self.render()
        logger.debug("Running commit tool", command=command, cwd=str(self.workspace.root))
        result = subprocess.run(
            command,
            shell=True,
            cwd=self.workspace.root,
            env={**os.environ, **self.context.command_env()},
            check=False,
        )
        return result.returncode


def commit(workspace: Workspace, extra_args: list[str] | None = None) -> int:
    """Convenience function to run the commit tool."""
    context = CommandContext(workspace=workspace)
    return CommitCommand(context, extra_args).execute()


def handle_commit_command(
    workspace: Workspace,
    *,
    console: Console,
    error_console: Console,
    extra_args: list[str] | None = None,
    dry_run: bool = False,
) -> None:
    """Handle the commit command from the CLI.

    Raises:
        typer.Exit: With the tool's exit code when it fails.
    """
    cmd = CommitCommand(CommandContext(workspace=workspace, dry_run=dry_run), extra_args)
    if dry_run:
        console.print(f"Would run: {escape(cmd.render())}")
        return

    code = cmd.execute()
    if code != 0:
        error_console.print(f"[red]Error:[/red] `{escape(cmd.render())}` exited with code {code}")
        raise typer.Exit(code)
