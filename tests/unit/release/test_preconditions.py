"""Tests for release precondition checks."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from pyrepo.config.schema import ReleaseConfig
from pyrepo.release import (
    DEFAULT_CHECKS,
    PreconditionContext,
    ReleaseEntry,
    ReleaseFlags,
    ReleasePlan,
    run_checks,
)
from pyrepo.release.preconditions import (
    on_release_branch,
    push_requires_git,
    versions_are_new,
    working_tree_clean,
)


@pytest.fixture
def plan() -> ReleasePlan:
    return ReleasePlan(
        entries=[
            ReleaseEntry(
                name="pkg-a",
                path="/r/a",
                from_version="1.0.0",
                to_version="1.0.1",
                tag="pkg-a@1.0.1",
            ),
            ReleaseEntry(
                name="pkg-b",
                path="/r/b",
                from_version="2.0.0",
                to_version="2.0.1",
                tag="pkg-b@2.0.1",
            ),
        ],
        flags=ReleaseFlags(push=False, publish=False),
    )


@pytest.fixture
def vcs() -> MagicMock:
    vcs = MagicMock()
    vcs.is_clean.return_value = True
    vcs.current_branch.return_value = "main"
    vcs.tag_exists.return_value = False
    return vcs


class TestChecks:
    """Tests for the individual checks."""

    def test_dirty_tree(self, plan: ReleasePlan, vcs: MagicMock) -> None:
        vcs.is_clean.return_value = False
        context = PreconditionContext(ReleaseConfig(), vcs)
        assert working_tree_clean(plan, context) == ["Working tree has uncommitted changes"]

    def test_dirty_tree_allowed(self, plan: ReleasePlan, vcs: MagicMock) -> None:
        vcs.is_clean.return_value = False
        context = PreconditionContext(ReleaseConfig(require_clean=False), vcs)
        assert working_tree_clean(plan, context) == []

    def test_branch(self, plan: ReleasePlan, vcs: MagicMock) -> None:
        vcs.current_branch.return_value = "feature"
        assert on_release_branch(plan, PreconditionContext(ReleaseConfig(), vcs)) == []

        problems = on_release_branch(plan, PreconditionContext(ReleaseConfig(branch="main"), vcs))
        assert problems == ["Releases must be made from 'main', current branch is 'feature'"]

    def test_existing_tag(self, plan: ReleasePlan, vcs: MagicMock) -> None:
        vcs.tag_exists.side_effect = lambda tag: tag == "pkg-b@2.0.1"
        problems = versions_are_new(plan, PreconditionContext(ReleaseConfig(), vcs))
        assert problems == ["Tag pkg-b@2.0.1 already exists for pkg-b"]

    def test_push_requires_git(self, plan: ReleasePlan) -> None:
        plan.flags = ReleaseFlags(git=False, push=True)
        assert push_requires_git(plan, PreconditionContext(ReleaseConfig())) == [
            "Pushing requires git commits to be enabled"
        ]

    def test_git_checks_skip_without_git(self, plan: ReleasePlan, vcs: MagicMock) -> None:
        plan.flags = ReleaseFlags(git=False, push=False)
        vcs.is_clean.return_value = False
        vcs.tag_exists.return_value = True

        assert run_checks(plan, PreconditionContext(ReleaseConfig(branch="x"), vcs)) == []
        vcs.is_clean.assert_not_called()


class TestRunChecks:
    def test_collects_every_problem(self, plan: ReleasePlan, vcs: MagicMock) -> None:
        vcs.is_clean.return_value = False
        vcs.tag_exists.return_value = True

        problems = run_checks(plan, PreconditionContext(ReleaseConfig(), vcs), DEFAULT_CHECKS)

        assert problems == [
            "Working tree has uncommitted changes",
            "Tag pkg-a@1.0.1 already exists for pkg-a",
            "Tag pkg-b@2.0.1 already exists for pkg-b",
        ]

    def test_custom_checks(self, plan: ReleasePlan) -> None:
        def always(plan: ReleasePlan, context: PreconditionContext) -> list[str]:
            return ["nope"]

        assert run_checks(plan, PreconditionContext(ReleaseConfig()), [always]) == ["nope"]
