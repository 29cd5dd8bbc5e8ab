"""Version control helpers and the release adapter."""

from pyrepo.vcs.adapter import GitAdapter, VersionControl
from pyrepo.vcs.repo import (
    count_commits_since,
    get_current_branch,
    get_current_commit,
    get_latest_tag,
    get_repo_root,
    has_changes,
    is_clean,
    is_git_repo,
    run_git_command,
    tag_exists,
)

__all__ = [
    "GitAdapter",
    "VersionControl",
    "count_commits_since",
    "get_current_branch",
    "get_current_commit",
    "get_latest_tag",
    "get_repo_root",
    "has_changes",
    "is_clean",
    "is_git_repo",
    "run_git_command",
    "tag_exists",
]
