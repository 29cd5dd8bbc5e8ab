"""Task result types."""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field
from enum import Enum

from pyrepo.errors import TaskFailure


class TaskStatus(Enum):
    """Outcome of one operation on one project."""

    SUCCESS = "success"
    FAILED = "failed"
    SKIPPED = "skipped"


@dataclass(frozen=True, slots=True)
class TaskResult:
    """Result of running an operation on a single project.

    Attributes:
        project: Project name.
        status: Final status.
        output: Captured output of the action.
        error: Failure description, set iff status is FAILED.
        reason: Why the project was skipped.
        duration_ms: Time spent in the action.
    """

    project: str
    status: TaskStatus
    output: str = ""
    error: str | None = None
    reason: str | None = None
    duration_ms: int = 0

    @classmethod
    def success(cls, project: str, output: str = "", duration_ms: int = 0) -> TaskResult:
        return cls(project, TaskStatus.SUCCESS, output=output, duration_ms=duration_ms)

    @classmethod
    def failure(
        cls, project: str, error: str, output: str = "", duration_ms: int = 0
    ) -> TaskResult:
        return cls(
            project, TaskStatus.FAILED, output=output, error=error, duration_ms=duration_ms
        )

    @classmethod
    def skipped(cls, project: str, reason: str) -> TaskResult:
        return cls(project, TaskStatus.SKIPPED, reason=reason)

    @property
    def succeeded(self) -> bool:
        return self.status is TaskStatus.SUCCESS

    @property
    def failed(self) -> bool:
        return self.status is TaskStatus.FAILED

    @property
    def was_skipped(self) -> bool:
        return self.status is TaskStatus.SKIPPED


@dataclass
class RunReport:
    """All results of one TaskRunner invocation, in scheduling order."""

    operation: str
    results: list[TaskResult] = field(default_factory=list)

    def __iter__(self) -> Iterator[TaskResult]:
        return iter(self.results)

    def __len__(self) -> int:
        return len(self.results)

    def get(self, project: str) -> TaskResult | None:
        """Result for a project, if it was part of the run."""
        return next((r for r in self.results if r.project == project), None)

    @property
    def succeeded(self) -> list[TaskResult]:
        return [r for r in self.results if r.succeeded]

    @property
    def failed(self) -> list[TaskResult]:
        return [r for r in self.results if r.failed]

    @property
    def skipped(self) -> list[TaskResult]:
        return [r for r in self.results if r.was_skipped]

    @property
    def all_success(self) -> bool:
        """True if no project failed or was skipped."""
        return all(r.succeeded for r in self.results)

    @property
    def any_failure(self) -> bool:
        return any(r.failed for r in self.results)

    @property
    def success_count(self) -> int:
        return len(self.succeeded)

    @property
    def failure_count(self) -> int:
        return len(self.failed)

    @property
    def skipped_count(self) -> int:
        return len(self.skipped)

    def raise_for_failures(self) -> None:
        """Raise TaskFailure for the first failed project, if any."""
        for result in self.results:
            if result.failed:
                raise TaskFailure(result.project, result.error or f"{self.operation} failed")
