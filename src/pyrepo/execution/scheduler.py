"""Dependency-aware parallel execution of per-project operations."""

from __future__ import annotations

import asyncio
import os
from collections.abc import Callable

import structlog

from pyrepo.execution.results import RunReport, TaskResult
from pyrepo.operations.base import Operation, OperationOptions
from pyrepo.workspace.graph import DependencyGraph
from pyrepo.workspace.project import Project

logger = structlog.get_logger()


def default_concurrency() -> int:
    """Number of available processing units."""
    return os.cpu_count() or 1


class TaskRunner:
    """Execute an operation across projects with bounded parallelism.

    When the operation requires ordering, a project starts only after
    every project it depends on (within the selected set) succeeded. A
    project whose dependency failed or was skipped is skipped without
    being attempted. Otherwise all projects are independent and are
    scheduled in discovery order.

    Attributes:
        concurrency: Maximum number of actions in flight.
    """

    def __init__(self, concurrency: int | None = None) -> None:
        self.concurrency = max(1, concurrency or default_concurrency())
        self._cancelled = False

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        """Stop starting new projects, in this run and every later one.

        In-flight actions run to completion.
        """
        if not self._cancelled:
            logger.warning("Cancellation requested, no new projects will start")
        self._cancelled = True

    def schedule(
        self,
        operation: Operation,
        projects: list[Project],
        graph: DependencyGraph | None = None,
    ) -> tuple[list[Project], DependencyGraph | None]:
        """Compute the scheduling order for a run.

        Returns:
            Projects in scheduling order, and the graph whose edges gate
            project starts (None for order-independent operations).

        Raises:
            CyclicDependencyError: If the operation requires ordering and
                the selected projects contain a cycle.
        """
        selected = graph.subgraph(projects) if graph is not None else DependencyGraph(projects)

        if operation.requires_order:
            return selected.topological_order(), selected

        cycle = selected.find_cycle()
        if cycle:
            logger.warning(
                "Cyclic dependency ignored, running in discovery order",
                operation=operation.name,
                cycle=cycle,
            )
        return list(selected.projects), None

    async def _attempt(
        self, operation: Operation, project: Project, options: OperationOptions
    ) -> TaskResult:
        logger.debug("Starting project", operation=operation.name, project=project.name)
        try:
            outcome = await operation.execute(project, options)
        except Exception as e:
            logger.error(
                "Operation raised", operation=operation.name, project=project.name, error=str(e)
            )
            return TaskResult.failure(project.name, f"{type(e).__name__}: {e}")

        if outcome.success:
            return TaskResult.success(project.name, outcome.output, outcome.duration_ms)
        return TaskResult.failure(
            project.name,
            outcome.error or f"{operation.name} failed",
            outcome.output,
            outcome.duration_ms,
        )

    async def run(
        self,
        operation: Operation,
        projects: list[Project],
        graph: DependencyGraph | None = None,
        options: OperationOptions | None = None,
        on_result: Callable[[TaskResult], None] | None = None,
    ) -> RunReport:
        """Run `operation` once per project.

        Args:
            operation: Per-project action.
            projects: Selected projects.
            graph: Dependency graph of the repository (defaults to the graph
                of `projects`).
            options: Options passed to every action.
            on_result: Called as each project reaches a final state.

        Returns:
            One result per project, in scheduling order. A failing project
            never makes this method raise.

        Raises:
            CyclicDependencyError: Before any project starts, if ordering is
                required and impossible.
        """
        options = options or OperationOptions()
        order, gating = self.schedule(operation, projects, graph)

        semaphore = asyncio.Semaphore(self.concurrency)
        loop = asyncio.get_running_loop()
        settled: dict[str, asyncio.Future[TaskResult]] = {
            p.canonical_name: loop.create_future() for p in order
        }

        async def run_one(project: Project) -> TaskResult:
            dependencies = gating.dependencies_of(project.name) if gating is not None else []
            for dependency in dependencies:
                dep_result = await settled[dependency.canonical_name]
                if not dep_result.succeeded:
                    return TaskResult.skipped(
                        project.name, f"dependency {dependency.name} {dep_result.status.value}"
                    )

            if self._cancelled:
                return TaskResult.skipped(project.name, "cancelled")

            async with semaphore:
                if self._cancelled:
                    return TaskResult.skipped(project.name, "cancelled")
                return await self._attempt(operation, project, options)

        async def settle(project: Project) -> TaskResult:
            result = await run_one(project)
            settled[project.canonical_name].set_result(result)
            if on_result:
                on_result(result)
            return result

        results = await asyncio.gather(*(settle(p) for p in order))
        report = RunReport(operation=operation.name, results=list(results))
        logger.debug(
            "Run finished",
            operation=operation.name,
            succeeded=report.success_count,
            failed=report.failure_count,
            skipped=report.skipped_count,
        )
        return report
