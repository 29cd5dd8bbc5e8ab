"""Multi-project release pipeline."""

from pyrepo.release.coordinator import ReleaseCoordinator
from pyrepo.release.lock import ReleaseLock, state_path
from pyrepo.release.plan import (
    ReleaseEntry,
    ReleaseFlags,
    ReleasePlan,
    ReleaseStage,
    build_plan,
    format_tag,
)
from pyrepo.release.preconditions import (
    DEFAULT_CHECKS,
    PreconditionCheck,
    PreconditionContext,
    run_checks,
)

__all__ = [
    "DEFAULT_CHECKS",
    "PreconditionCheck",
    "PreconditionContext",
    "ReleaseCoordinator",
    "ReleaseEntry",
    "ReleaseFlags",
    "ReleaseLock",
    "ReleasePlan",
    "ReleaseStage",
    "build_plan",
    "format_tag",
    "run_checks",
]
