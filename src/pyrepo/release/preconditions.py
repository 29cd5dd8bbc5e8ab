"""Checks that must pass before a release has any side effect."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass

from pyrepo.config.schema import ReleaseConfig
from pyrepo.release.plan import ReleasePlan
from pyrepo.vcs.adapter import VersionControl


@dataclass(frozen=True)
class PreconditionContext:
    """What checks may look at."""

    config: ReleaseConfig
    vcs: VersionControl | None = None


PreconditionCheck = Callable[[ReleasePlan, PreconditionContext], list[str]]


def working_tree_clean(plan: ReleasePlan, context: PreconditionContext) -> list[str]:
    if not plan.flags.git or context.vcs is None or not context.config.require_clean:
        return []
    if context.vcs.is_clean():
        return []
    return ["Working tree has uncommitted changes"]


def on_release_branch(plan: ReleasePlan, context: PreconditionContext) -> list[str]:
    expected = context.config.branch
    if not plan.flags.git or context.vcs is None or not expected:
        return []
    current = context.vcs.current_branch()
    if current == expected:
        return []
    return [f"Releases must be made from '{expected}', current branch is '{current}'"]


def versions_are_new(plan: ReleasePlan, context: PreconditionContext) -> list[str]:
    if not plan.flags.git or context.vcs is None:
        return []
    return [
        f"Tag {entry.tag} already exists for {entry.name}"
        for entry in plan.entries
        if context.vcs.tag_exists(entry.tag)
    ]


def push_requires_git(plan: ReleasePlan, context: PreconditionContext) -> list[str]:
    if plan.flags.push and not plan.flags.git:
        return ["Pushing requires git commits to be enabled"]
    return []


DEFAULT_CHECKS: tuple[PreconditionCheck, ...] = (
    push_requires_git,
    working_tree_clean,
    on_release_branch,
    versions_are_new,
)


def run_checks(
    plan: ReleasePlan,
    context: PreconditionContext,
    checks: tuple[PreconditionCheck, ...] | list[PreconditionCheck] = DEFAULT_CHECKS,
) -> list[str]:
    """Run every check and collect all problems."""
    return [problem for check in checks for problem in check(plan, context)]
