"""Git command helpers."""

from __future__ import annotations

import subprocess
from pathlib import Path

from pyrepo.errors import VcsError


def run_git_command(
    args: list[str],
    cwd: Path | None = None,
    *,
    check: bool = True,
) -> subprocess.CompletedProcess[str]:
    """Run a git command synchronously.

    Args:
        args: Git command arguments (without 'git').
        cwd: Working directory.
        check: Raise on non-zero exit code.

    Returns:
        Completed process result.

    Raises:
        VcsError: If git is missing, or the command fails and check is True.
    """
    cmd = ["git", *args]

    try:
        result = subprocess.run(
            cmd,
            cwd=cwd,
            capture_output=True,
            text=True,
            check=False,
        )
    except FileNotFoundError as e:
        raise VcsError("Git is not installed") from e

    if check and result.returncode != 0:
        raise VcsError(
            result.stderr.strip() or f"Command failed with exit code {result.returncode}",
            command=" ".join(cmd),
        )
    return result


def is_git_repo(path: Path) -> bool:
    """Check if path is inside a git repository."""
    try:
        result = run_git_command(["rev-parse", "--git-dir"], cwd=path, check=False)
    except VcsError:
        return False
    return result.returncode == 0


def get_repo_root(path: Path) -> Path:
    """Get the root directory of the git repository.

    Raises:
        VcsError: If not inside a git repository.
    """
    result = run_git_command(["rev-parse", "--show-toplevel"], cwd=path, check=False)
    if result.returncode != 0:
        raise VcsError("Not inside a git repository", command="git rev-parse --show-toplevel")
    return Path(result.stdout.strip())


def get_current_branch(cwd: Path | None = None) -> str:
    """Get the current git branch name."""
    result = run_git_command(["rev-parse", "--abbrev-ref", "HEAD"], cwd=cwd)
    return result.stdout.strip()


def get_current_commit(cwd: Path | None = None) -> str:
    """Get the current commit SHA."""
    result = run_git_command(["rev-parse", "HEAD"], cwd=cwd)
    return result.stdout.strip()


def is_clean(cwd: Path | None = None) -> bool:
    """Check if the working directory has no uncommitted changes."""
    result = run_git_command(["status", "--porcelain"], cwd=cwd)
    return not result.stdout.strip()


def tag_exists(name: str, cwd: Path | None = None) -> bool:
    """Check whether a tag exists locally."""
    result = run_git_command(
        ["rev-parse", "--verify", "--quiet", f"refs/tags/{name}"], cwd=cwd, check=False
    )
    return result.returncode == 0


def get_latest_tag(pattern: str, cwd: Path | None = None) -> str | None:
    """Most recent tag reachable from HEAD matching a glob pattern."""
    result = run_git_command(
        ["describe", "--tags", "--abbrev=0", f"--match={pattern}"], cwd=cwd, check=False
    )
    if result.returncode != 0:
        return None
    return result.stdout.strip() or None


def count_commits_since(ref: str | None, path: Path, cwd: Path | None = None) -> int:
    """Count commits touching `path` since `ref` (all history if ref is None)."""
    rev = f"{ref}..HEAD" if ref else "HEAD"
    result = run_git_command(["rev-list", "--count", rev, "--", str(path)], cwd=cwd, check=False)
    if result.returncode != 0:
        return 0
    return int(result.stdout.strip() or 0)


def has_changes(path: Path, cwd: Path | None = None) -> bool:
    """Check for uncommitted changes under `path`."""
    result = run_git_command(["status", "--porcelain", "--", str(path)], cwd=cwd)
    return bool(result.stdout.strip())
