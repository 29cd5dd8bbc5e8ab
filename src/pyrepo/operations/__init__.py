"""Per-project operations and their dispatch."""

from __future__ import annotations

from pyrepo.config.schema import PyRepoConfig
from pyrepo.errors import ScriptNotFoundError
from pyrepo.operations.base import ActionOutcome, Operation, OperationKind, OperationOptions
from pyrepo.operations.clean import CleanOperation
from pyrepo.operations.shell import ScriptOperation, ShellOperation, render_command


def create_operation(
    kind: OperationKind,
    config: PyRepoConfig,
    *,
    extra_args: list[str] | None = None,
    fix: bool = False,
    script: str | None = None,
    topological: bool = True,
) -> Operation:
    """Build the operation for `kind` from the configuration.

    Args:
        kind: Operation to create.
        config: Repository configuration.
        extra_args: Arguments appended to the underlying command.
        fix: For lint, let the linter apply fixes.
        script: For run, the script name.
        topological: For run, False drops the script's dependency ordering.

    Raises:
        ScriptNotFoundError: If `kind` is RUN and the script is not configured.
    """
    commands = config.commands

    if kind is OperationKind.CLEAN:
        return CleanOperation(config.clean.patterns, config.clean.protected)

    if kind is OperationKind.RUN:
        script_config = config.get_script(script or "")
        if script is None or script_config is None:
            raise ScriptNotFoundError(script or "", config.script_names)
        if not topological:
            script_config = script_config.model_copy(update={"topological": False})
        return ScriptOperation(script, script_config, extra_args=extra_args)

    if kind is OperationKind.LINT:
        args = list(extra_args or [])
        if fix:
            args.insert(0, commands.lint_fix_flag)
        return ShellOperation(kind, commands.lint, extra_args=args)

    templates = {
        OperationKind.BOOTSTRAP: commands.bootstrap,
        OperationKind.BUILD: commands.build,
        OperationKind.TEST: commands.test,
        OperationKind.UNLINK: commands.unlink,
    }
    return ShellOperation(kind, templates[kind], extra_args=extra_args)


__all__ = [
    "ActionOutcome",
    "CleanOperation",
    "Operation",
    "OperationKind",
    "OperationOptions",
    "ScriptOperation",
    "ShellOperation",
    "create_operation",
    "render_command",
]
