"""Checkpointed multi-project release pipeline.

Stages run strictly one after another:

    planned -> preconditions_checked -> built -> version_bumped
            -> committed -> pushed -> published -> done

Everything up to the version bump only touches the working tree and can
be discarded. The commit is the first durable side effect: once it
exists the plan is never rolled back, failures are reported with the
stage and projects involved so the operator can resume.
"""

from __future__ import annotations

import asyncio
import dataclasses
from collections.abc import Awaitable, Callable
from pathlib import Path

import structlog

from pyrepo.errors import PublishError, PyRepoError, ReleaseError
from pyrepo.execution.runner import run_command
from pyrepo.execution.scheduler import TaskRunner
from pyrepo.operations import OperationKind, OperationOptions, create_operation
from pyrepo.registry.adapter import PublishOutcome, Registry
from pyrepo.release.lock import ReleaseLock, state_dir, state_path
from pyrepo.release.plan import ReleasePlan, ReleaseStage
from pyrepo.release.preconditions import (
    DEFAULT_CHECKS,
    PreconditionCheck,
    PreconditionContext,
    run_checks,
)
from pyrepo.vcs.adapter import VersionControl
from pyrepo.workspace.manifest import (
    manifest_path,
    rejected_dependency_pins,
    update_dependency_version,
    write_version,
)
from pyrepo.workspace.workspace import Workspace

logger = structlog.get_logger()


class ReleaseCoordinator:
    """Drive a ReleasePlan through the release stages.

    Args:
        workspace: Workspace being released.
        plan: Plan to execute; updated in place.
        vcs: Version control adapter, required when `plan.flags.git`.
        registry: Registry adapter, required when `plan.flags.publish`.
        runner: TaskRunner for the clean/build/test stage.
        checks: Precondition checks.
        options: Options for the per-project build actions.
        on_stage: Called after every successful stage transition.
        lock: Release lock to hold while executing. Pass the lock the
            caller already holds for planning; a fresh one is taken
            otherwise.
    """

    def __init__(
        self,
        workspace: Workspace,
        plan: ReleasePlan,
        *,
        vcs: VersionControl | None = None,
        registry: Registry | None = None,
        runner: TaskRunner | None = None,
        checks: tuple[PreconditionCheck, ...] | list[PreconditionCheck] = DEFAULT_CHECKS,
        options: OperationOptions | None = None,
        on_stage: Callable[[ReleaseStage], None] | None = None,
        lock: ReleaseLock | None = None,
    ) -> None:
        self.workspace = workspace
        self.plan = plan
        self.vcs = vcs
        self.registry = registry
        self.runner = runner or TaskRunner(workspace.config.concurrency)
        self.checks = checks
        self.options = options or OperationOptions(env=dict(workspace.config.env))
        self.on_stage = on_stage
        self.lock = lock or ReleaseLock(workspace.root)
        self._cancelled = False

    def cancel(self) -> None:
        """Stop before the next stage, unless the commit already exists."""
        if self.plan.committed:
            logger.warning("Release is past the commit, cancellation ignored")
            return
        self._cancelled = True
        self.runner.cancel()

    def _pipeline(self) -> list[tuple[ReleaseStage, Callable[[], Awaitable[None]]]]:
        return [
            (ReleaseStage.PRECONDITIONS_CHECKED, self._check_preconditions),
            (ReleaseStage.BUILT, self._build),
            (ReleaseStage.VERSION_BUMPED, self._bump_versions),
            (ReleaseStage.COMMITTED, self._commit),
            (ReleaseStage.PUSHED, self._push),
            (ReleaseStage.PUBLISHED, self._publish),
            (ReleaseStage.DONE, self._finish),
        ]

    async def execute(self) -> ReleasePlan:
        """Run the remaining stages of the plan.

        Returns:
            The plan, either DONE or carrying `failed_stage` and `error`.

        Raises:
            ReleaseError: If the release lock is held by another release.
        """
        if not self.plan.entries:
            logger.warning("No projects to release")
            self.plan.advance(ReleaseStage.DONE)
            return self.plan

        with self.lock:
            try:
                await self._run_stages()
            finally:
                self._checkpoint()
        return self.plan

    async def _run_stages(self) -> None:
        for stage, action in self._pipeline():
            if self.plan.stage.position >= stage.position:
                continue

            if self._cancelled and not self.plan.committed:
                self.plan.fail(stage, "Release cancelled")
                logger.warning("Release cancelled", stage=stage.value)
                return

            logger.info("Release stage starting", stage=stage.value)
            try:
                await action()
            except PyRepoError as e:
                self.plan.fail(stage, e.message)
                logger.error("Release stage failed", stage=stage.value, error=e.message)
                return

            self.plan.advance(stage)
            self._checkpoint()
            if self.on_stage:
                self.on_stage(stage)

    def _checkpoint(self) -> None:
        """Persist the plan once it has durable effects; forget it otherwise."""
        path = state_path(self.workspace.root)
        if self.plan.committed and not self.plan.is_done:
            state_dir(self.workspace.root)
            self.plan.save(path)
        else:
            path.unlink(missing_ok=True)

    def _projects(self) -> list:
        return [self.workspace.get_project(name) for name in self.plan.names]

    async def _check_preconditions(self) -> None:
        context = PreconditionContext(config=self.workspace.config.release, vcs=self.vcs)
        problems = run_checks(self.plan, context, self.checks)
        if problems:
            raise ReleaseError("; ".join(problems))

    async def _run_operation(self, kind: OperationKind) -> None:
        if self._cancelled:
            raise ReleaseError("Release cancelled")
        operation = create_operation(kind, self.workspace.config)
        report = await self.runner.run(
            operation, self._projects(), self.workspace.graph, self.options
        )
        if self._cancelled:
            raise ReleaseError("Release cancelled")
        report.raise_for_failures()
        skipped = report.skipped
        if skipped:
            raise ReleaseError(
                f"{kind.value} skipped for {', '.join(r.project for r in skipped)}"
            )

    async def _build(self) -> None:
        flags = self.plan.flags
        if flags.clean:
            await self._run_operation(OperationKind.CLEAN)
        if flags.build:
            await self._run_operation(OperationKind.BUILD)
        if flags.test:
            await self._run_operation(OperationKind.TEST)

        for command in self.workspace.config.release.after_build:
            if self._cancelled:
                raise ReleaseError("Release cancelled")
            env = {**self.options.env, "PYREPO_RELEASE_PROJECTS": ",".join(self.plan.names)}
            result = await run_command(command, self.workspace.root, env=env)
            if not result.ok:
                raise ReleaseError(
                    f"After-build command `{command}` failed with exit code {result.exit_code}"
                )

    async def _bump_versions(self) -> None:
        released = {e.name: e.to_version for e in self.plan.entries}
        conflicts = [
            f"{entry.name}: {pin}"
            for entry in self.plan.entries
            for dependency in self.workspace.graph.dependencies_of(entry.name)
            if dependency.name in released
            for pin in rejected_dependency_pins(
                manifest_path(Path(entry.path)), dependency.name, released[dependency.name]
            )
        ]
        if conflicts:
            raise ReleaseError(
                f"Dependency pins reject released versions: {'; '.join(conflicts)}"
            )

        changed: list[str] = []
        for entry in self.plan.entries:
            manifest = manifest_path(Path(entry.path))
            write_version(manifest, entry.to_version)
            changed.append(str(manifest))
            logger.info(
                "Version bumped", project=entry.name, old=entry.from_version, new=entry.to_version
            )

        # Entries are in dependency order; repin dependents on released projects
        for entry in self.plan.entries:
            manifest = manifest_path(Path(entry.path))
            for dependency in self.workspace.graph.dependencies_of(entry.name):
                if dependency.name in released and update_dependency_version(
                    manifest, dependency.name, released[dependency.name]
                ):
                    logger.debug("Dependency repinned", project=entry.name, dep=dependency.name)

        self.plan.changed_files = changed

    async def _commit(self) -> None:
        if not self.plan.flags.git:
            logger.info("Git disabled, skipping commit")
            return
        if self.vcs is None:
            raise ReleaseError("No version control adapter configured")

        # A resumed release already has its commit and only lacks tags
        if self.plan.commit_sha is None:
            message = self.workspace.config.release.commit_message.replace(
                "{projects}", ", ".join(f"{e.name}@{e.to_version}" for e in self.plan.entries)
            )
            files = [Path(f) for f in self.plan.changed_files]
            self.plan.commit_sha = await asyncio.to_thread(self.vcs.commit, message, files)
            for entry in self.plan.entries:
                entry.committed = True
            self._checkpoint()

        for entry in self.plan.entries:
            if await asyncio.to_thread(self.vcs.tag_exists, entry.tag):
                continue
            await asyncio.to_thread(
                self.vcs.tag, entry.tag, f"Release {entry.name}@{entry.to_version}"
            )

    async def _push(self) -> None:
        if not (self.plan.flags.git and self.plan.flags.push):
            logger.info("Push disabled, skipping")
            return
        if self.vcs is None:
            raise ReleaseError("No version control adapter configured")
        await asyncio.to_thread(
            self.vcs.push, self.plan.flags.remote, [e.tag for e in self.plan.entries]
        )

    async def _publish(self) -> None:
        if not self.plan.flags.publish:
            logger.info("Publish disabled, skipping")
            return
        if self.registry is None:
            raise ReleaseError("No registry adapter configured")

        failures: list[str] = []
        for entry in self.plan.entries:
            if entry.published:
                logger.info("Already published, skipping", project=entry.name)
                continue

            project = dataclasses.replace(
                self.workspace.get_project(entry.name), version=entry.to_version
            )
            try:
                outcome = await asyncio.to_thread(
                    self.registry.publish, project, self.plan.flags.dist_tag
                )
            except PublishError as e:
                failures.append(f"{entry.name} ({e.message})")
                logger.error("Publish failed", project=entry.name, error=e.message)
                continue

            entry.published = True
            if outcome is PublishOutcome.ALREADY_PUBLISHED:
                logger.info("Version already on registry", project=entry.name)
            self._checkpoint()

        if failures:
            succeeded = ", ".join(self.plan.published) or "none"
            raise ReleaseError(f"Published: {succeeded}. Failed: {'; '.join(failures)}")

    async def _finish(self) -> None:
        logger.info("Release complete", projects=self.plan.names, commit=self.plan.commit_sha)
