"""pyrepo commands."""

from pyrepo.commands.base import Command, CommandContext, SyncCommand, cancel_on_interrupt
from pyrepo.commands.clean import clean, handle_clean_command
from pyrepo.commands.commit import CommitCommand, commit, handle_commit_command
from pyrepo.commands.list import (
    ListCommand,
    ListFormat,
    ListOptions,
    ListResult,
    ProjectInfo,
    handle_list_command,
    list_projects,
)
from pyrepo.commands.release import (
    ReleaseCommand,
    ReleaseOptions,
    handle_release_command,
    release,
)
from pyrepo.commands.run import handle_run_script, print_scripts, run_script
from pyrepo.commands.status import (
    ProjectStatus,
    StatusCommand,
    StatusResult,
    get_status,
    handle_status_command,
)
from pyrepo.commands.tasks import TaskCommand, TaskOptions, handle_task_command, run_task

__all__ = [
    # Base
    "Command",
    "CommandContext",
    "SyncCommand",
    "cancel_on_interrupt",
    # Tasks
    "TaskCommand",
    "TaskOptions",
    "handle_task_command",
    "run_task",
    # Clean
    "clean",
    "handle_clean_command",
    # Commit
    "CommitCommand",
    "commit",
    "handle_commit_command",
    # Run
    "handle_run_script",
    "print_scripts",
    "run_script",
    # List
    "ListCommand",
    "ListFormat",
    "ListOptions",
    "ListResult",
    "ProjectInfo",
    "handle_list_command",
    "list_projects",
    # Status
    "ProjectStatus",
    "StatusCommand",
    "StatusResult",
    "get_status",
    "handle_status_command",
    # Release
    "ReleaseCommand",
    "ReleaseOptions",
    "handle_release_command",
    "release",
]
