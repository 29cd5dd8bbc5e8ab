"""Operations backed by a configured shell command."""

from __future__ import annotations

import shlex
from collections.abc import Callable
from typing import TYPE_CHECKING

from pyrepo.config.schema import ScriptConfig
from pyrepo.execution.runner import run_command
from pyrepo.operations.base import ActionOutcome, Operation, OperationKind, OperationOptions

if TYPE_CHECKING:
    from pyrepo.workspace.project import Project


def render_command(template: str, project: Project, extra_args: list[str] | None = None) -> str:
    """Substitute project placeholders and append extra arguments."""
    command = (
        template.replace("{name}", project.name)
        .replace("{version}", project.version)
        .replace("{path}", shlex.quote(str(project.path)))
    )
    if extra_args:
        command = " ".join([command, *(shlex.quote(a) for a in extra_args)])
    return command


def project_env(project: Project, env: dict[str, str] | None = None) -> dict[str, str]:
    """Environment for a command running in a project."""
    run_env = dict(env or {})
    run_env["PYREPO_PROJECT_NAME"] = project.name
    run_env["PYREPO_PROJECT_PATH"] = str(project.path)
    run_env["PYREPO_PROJECT_VERSION"] = project.version
    return run_env


class ShellOperation(Operation):
    """Run a shell command inside each project directory."""

    def __init__(
        self,
        kind: OperationKind,
        command: str,
        *,
        extra_args: list[str] | None = None,
        env: dict[str, str] | None = None,
    ) -> None:
        self.kind = kind
        self.command = command
        self.extra_args = list(extra_args or [])
        self.env = dict(env or {})

    def render(self, project: Project) -> str:
        return render_command(self.command, project, self.extra_args)

    async def execute(self, project: Project, options: OperationOptions) -> ActionOutcome:
        command = self.render(project)
        if options.dry_run:
            return ActionOutcome(success=True, output=f"Would run: {command}\n")

        on_out: Callable[[str], None] | None = None
        on_err: Callable[[str], None] | None = None
        if options.output_handler:
            handler = options.output_handler

            def _on_out(line: str) -> None:
                handler(project.name, line, False)

            def _on_err(line: str) -> None:
                handler(project.name, line, True)

            on_out = _on_out
            on_err = _on_err

        result = await run_command(
            command,
            project.path,
            env=project_env(project, {**options.env, **self.env}),
            timeout=options.timeout,
            on_stdout=on_out,
            on_stderr=on_err,
        )

        if result.ok:
            return ActionOutcome(
                success=True, output=result.combined, duration_ms=result.duration_ms
            )

        detail = result.stderr.strip().splitlines()[-1] if result.stderr.strip() else ""
        error = f"`{command}` exited with code {result.exit_code}"
        if detail:
            error = f"{error}: {detail}"
        return ActionOutcome(
            success=False, output=result.combined, error=error, duration_ms=result.duration_ms
        )


class ScriptOperation(ShellOperation):
    """Run a named script from the configuration."""

    def __init__(
        self, script_name: str, script: ScriptConfig, *, extra_args: list[str] | None = None
    ) -> None:
        super().__init__(OperationKind.RUN, script.run, extra_args=extra_args, env=script.env)
        self.script_name = script_name
        self.topological = script.topological

    @property
    def name(self) -> str:
        return f"run {self.script_name}"

    @property
    def requires_order(self) -> bool:
        return self.topological
