"""Dependency graph between the projects of a repository.

An edge A -> B exists when A declares a dependency on B. Dependencies on
names outside the project set are ignored. Orderings are deterministic:
projects that are not related by an edge keep their discovery order.
"""

from __future__ import annotations

import heapq
from collections.abc import Iterable, Iterator

from packaging.utils import canonicalize_name

from pyrepo.errors import CyclicDependencyError, ProjectNotFoundError
from pyrepo.workspace.project import Project


class DependencyGraph:
    """Directed graph of project dependencies.

    Attributes:
        projects: Projects in discovery order.
    """

    def __init__(self, projects: Iterable[Project]) -> None:
        self.projects: list[Project] = list(projects)
        self._index: dict[str, int] = {p.canonical_name: i for i, p in enumerate(self.projects)}
        self._deps: dict[str, list[str]] = {}
        self._rdeps: dict[str, list[str]] = {p.canonical_name: [] for p in self.projects}

        for project in self.projects:
            key = project.canonical_name
            deps = sorted(
                (d for d in project.dependencies if d in self._index and d != key),
                key=self._index.__getitem__,
            )
            self._deps[key] = deps
            for dep in deps:
                self._rdeps[dep].append(key)

    def __len__(self) -> int:
        return len(self.projects)

    def __iter__(self) -> Iterator[Project]:
        return iter(self.projects)

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and canonicalize_name(name) in self._index

    def _key(self, name: str) -> str:
        key = canonicalize_name(name)
        if key not in self._index:
            raise ProjectNotFoundError(name, [p.name for p in self.projects])
        return key

    def _project(self, key: str) -> Project:
        return self.projects[self._index[key]]

    def get(self, name: str) -> Project:
        """Look up a project by name (any normalisation).

        Raises:
            ProjectNotFoundError: If no project has that name.
        """
        return self._project(self._key(name))

    def edges(self) -> list[tuple[Project, Project]]:
        """All edges as (dependent, dependency) pairs."""
        return [
            (project, self._project(dep))
            for project in self.projects
            for dep in self._deps[project.canonical_name]
        ]

    def dependencies_of(self, name: str) -> list[Project]:
        """Direct dependencies of a project within the set."""
        return [self._project(d) for d in self._deps[self._key(name)]]

    def dependents_of(self, name: str) -> list[Project]:
        """Projects that directly depend on a project."""
        return [self._project(d) for d in self._rdeps[self._key(name)]]

    def transitive_dependents(self, name: str) -> list[Project]:
        """Every project that depends on `name`, directly or not, in discovery order."""
        seen: set[str] = set()
        stack = list(self._rdeps[self._key(name)])
        while stack:
            key = stack.pop()
            if key in seen:
                continue
            seen.add(key)
            stack.extend(self._rdeps[key])
        return [p for p in self.projects if p.canonical_name in seen]

    def subgraph(self, projects: Iterable[Project]) -> DependencyGraph:
        """Graph restricted to a subset; edges leaving the subset are dropped."""
        keep = {p.canonical_name for p in projects}
        return DependencyGraph(p for p in self.projects if p.canonical_name in keep)

    def find_cycle(self) -> list[str] | None:
        """Find one dependency cycle.

        Returns:
            Project names along the cycle, first name repeated at the end,
            or None if the graph is acyclic.
        """
        white, grey, black = 0, 1, 2
        color = dict.fromkeys(self._index, white)

        for project in self.projects:
            root = project.canonical_name
            if color[root] != white:
                continue

            color[root] = grey
            path = [root]
            stack = [iter(self._deps[root])]
            while stack:
                dep = next(stack[-1], None)
                if dep is None:
                    stack.pop()
                    color[path.pop()] = black
                elif color[dep] == grey:
                    cycle = path[path.index(dep) :] + [dep]
                    return [self._project(k).name for k in cycle]
                elif color[dep] == white:
                    color[dep] = grey
                    path.append(dep)
                    stack.append(iter(self._deps[dep]))
        return None

    def topological_order(self) -> list[Project]:
        """Order projects so that dependencies come before dependents.

        Uses Kahn's algorithm with a heap keyed on discovery index, so the
        result is the lexicographically smallest valid order by discovery.

        Raises:
            CyclicDependencyError: If the graph has a cycle.
        """
        in_degree = {key: len(deps) for key, deps in self._deps.items()}
        ready = [self._index[key] for key, degree in in_degree.items() if degree == 0]
        heapq.heapify(ready)

        order: list[Project] = []
        while ready:
            project = self.projects[heapq.heappop(ready)]
            order.append(project)
            for dependent in self._rdeps[project.canonical_name]:
                in_degree[dependent] -= 1
                if in_degree[dependent] == 0:
                    heapq.heappush(ready, self._index[dependent])

        if len(order) != len(self.projects):
            placed = {p.canonical_name for p in order}
            unplaced = [p.name for p in self.projects if p.canonical_name not in placed]
            raise CyclicDependencyError(self.find_cycle() or unplaced)

        return order
