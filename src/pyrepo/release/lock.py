"""Release lock and checkpoint files under `.pyrepo/`."""

from __future__ import annotations

import json
import os
import time
from pathlib import Path
from types import TracebackType

import structlog

from pyrepo.errors import ReleaseError

logger = structlog.get_logger()

STATE_DIRNAME = ".pyrepo"
LOCK_FILENAME = "release.lock"
STATE_FILENAME = "release-state.json"


def state_dir(root: Path) -> Path:
    """Create `.pyrepo/` with a .gitignore so it never dirties the tree."""
    directory = root / STATE_DIRNAME
    directory.mkdir(exist_ok=True)
    ignore = directory / ".gitignore"
    if not ignore.exists():
        ignore.write_text("*\n", encoding="utf-8")
    return directory


def state_path(root: Path) -> Path:
    return root / STATE_DIRNAME / STATE_FILENAME


class ReleaseLock:
    """Exclusive lock held for the lifetime of a release.

    The lock is a file created with O_EXCL; a second release in the same
    repository fails until the file is removed. The same instance may be
    entered again while held, so a command can hold it from planning
    through execution.
    """

    def __init__(self, root: Path) -> None:
        self.root = root
        self.path = root / STATE_DIRNAME / LOCK_FILENAME
        self._depth = 0

    @property
    def held(self) -> bool:
        return self._depth > 0

    def acquire(self) -> None:
        """Take the lock.

        Raises:
            ReleaseError: If another release holds it.
        """
        if self._depth:
            self._depth += 1
            return

        state_dir(self.root)
        try:
            fd = os.open(self.path, os.O_CREAT | os.O_EXCL | os.O_WRONLY, 0o644)
        except FileExistsError:
            raise ReleaseError(
                f"Another release is in progress (remove {self.path} if it is stale)"
            ) from None

        with os.fdopen(fd, "w", encoding="utf-8") as f:
            json.dump({"pid": os.getpid(), "created": time.time()}, f)
        self._depth = 1
        logger.debug("Release lock acquired", path=str(self.path))

    def release(self) -> None:
        if not self._depth:
            return
        self._depth -= 1
        if not self._depth:
            self.path.unlink(missing_ok=True)
            logger.debug("Release lock released", path=str(self.path))

    def __enter__(self) -> ReleaseLock:
        self.acquire()
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.release()
