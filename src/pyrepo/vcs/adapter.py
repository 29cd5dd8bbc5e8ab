"""Version control adapter used by releases."""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path
from typing import Protocol

import structlog

from pyrepo.errors import VcsError
from pyrepo.vcs import repo

logger = structlog.get_logger()


class VersionControl(Protocol):
    """Operations a release needs from version control.

    Each call is atomic: on failure it raises VcsError and leaves the
    repository as it was.
    """

    def commit(self, message: str, files: Sequence[Path]) -> str: ...

    def tag(self, name: str, message: str | None = None) -> None: ...

    def push(self, remote: str, tags: Sequence[str] = ()) -> None: ...

    def is_clean(self) -> bool: ...

    def current_branch(self) -> str: ...

    def tag_exists(self, name: str) -> bool: ...


class GitAdapter:
    """VersionControl implementation backed by the git CLI."""

    def __init__(self, root: Path) -> None:
        self.root = root

    def commit(self, message: str, files: Sequence[Path]) -> str:
        """Commit exactly `files` and return the new commit SHA."""
        paths = [str(f) for f in files]
        if not paths:
            raise VcsError("Nothing to commit")

        repo.run_git_command(["add", "--", *paths], cwd=self.root)
        try:
            repo.run_git_command(["commit", "-m", message, "--", *paths], cwd=self.root)
        except VcsError:
            # Unstage so the index is left as it was before the call
            repo.run_git_command(["reset", "-q", "--", *paths], cwd=self.root, check=False)
            raise

        sha = repo.get_current_commit(self.root)
        logger.info("Created commit", sha=sha[:8], files=len(paths))
        return sha

    def tag(self, name: str, message: str | None = None) -> None:
        """Create an annotated tag at HEAD."""
        repo.run_git_command(["tag", "-a", name, "-m", message or name], cwd=self.root)
        logger.info("Created tag", tag=name)

    def push(self, remote: str, tags: Sequence[str] = ()) -> None:
        """Push the current branch and `tags` in a single atomic push."""
        branch = self.current_branch()
        refs = [f"HEAD:refs/heads/{branch}", *(f"refs/tags/{t}" for t in tags)]
        repo.run_git_command(["push", "--atomic", remote, *refs], cwd=self.root)
        logger.info("Pushed", remote=remote, branch=branch, tags=len(tags))

    def is_clean(self) -> bool:
        return repo.is_clean(self.root)

    def current_branch(self) -> str:
        return repo.get_current_branch(self.root)

    def tag_exists(self, name: str) -> bool:
        return repo.tag_exists(name, self.root)
