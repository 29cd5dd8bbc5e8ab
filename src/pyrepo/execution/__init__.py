"""Execution of operations across projects."""

from pyrepo.execution.results import RunReport, TaskResult, TaskStatus
from pyrepo.execution.runner import CommandOutput, run_command
from pyrepo.execution.scheduler import TaskRunner, default_concurrency

__all__ = [
    "CommandOutput",
    "RunReport",
    "TaskResult",
    "TaskRunner",
    "TaskStatus",
    "default_concurrency",
    "run_command",
]
