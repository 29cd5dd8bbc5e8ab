"""Per-project operation contract."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from pyrepo.workspace.project import Project


class OperationKind(Enum):
    """Closed set of operations that run once per project."""

    BOOTSTRAP = "bootstrap"
    BUILD = "build"
    CLEAN = "clean"
    LINT = "lint"
    TEST = "test"
    RUN = "run"
    UNLINK = "unlink"

    @property
    def requires_order(self) -> bool:
        """Whether dependencies must complete before dependents start."""
        return self in _ORDERED


_ORDERED = frozenset({OperationKind.BOOTSTRAP, OperationKind.BUILD, OperationKind.RUN})


@dataclass(frozen=True, slots=True)
class ActionOutcome:
    """What a per-project action reports back.

    Attributes:
        success: Whether the action succeeded.
        output: Captured output.
        error: Failure description.
        duration_ms: Time spent.
    """

    success: bool
    output: str = ""
    error: str | None = None
    duration_ms: int = 0


@dataclass(frozen=True)
class OperationOptions:
    """Options shared by every project of one run.

    Attributes:
        env: Extra environment variables.
        timeout: Per-project timeout in seconds.
        dry_run: Report what would happen without side effects.
        output_handler: Callback (project_name, line, is_stderr) for streaming.
    """

    env: dict[str, str] = field(default_factory=dict)
    timeout: float | None = None
    dry_run: bool = False
    output_handler: Callable[[str, str, bool], None] | None = None


class Operation(ABC):
    """An action executed once per project.

    Operations are opaque to the scheduler: it only needs the kind, the
    ordering requirement and `execute`.
    """

    kind: OperationKind

    @property
    def name(self) -> str:
        return self.kind.value

    @property
    def requires_order(self) -> bool:
        return self.kind.requires_order

    @abstractmethod
    async def execute(self, project: Project, options: OperationOptions) -> ActionOutcome:
        """Run the action for one project.

        Implementations report failures through the outcome; an exception
        is also recorded as a failure by the scheduler.
        """
        ...
