"""Tests for list command."""

from __future__ import annotations

import json
from pathlib import Path

import pytest
import typer
from helpers import console_text, make_console

from pyrepo.commands import handle_list_command, list_projects
from pyrepo.workspace import Workspace


@pytest.fixture
def workspace(workspace_dir: Path) -> Workspace:
    return Workspace.discover(workspace_dir)


class TestListProjects:
    """Tests for list_projects."""

    def test_lists_all_projects_in_discovery_order(self, workspace: Workspace) -> None:
        """Should list all projects in workspace."""
        result = list_projects(workspace)
        assert [p.name for p in result.projects] == ["pkg-a", "pkg-b", "pkg-c"]

    def test_includes_version_and_path(self, workspace: Workspace) -> None:
        """Should include version and path relative to the root."""
        pkg_a = list_projects(workspace).projects[0]
        assert pkg_a.version == "1.0.0"
        assert pkg_a.path == "packages/pkg-a"
        assert pkg_a.description == "Package A"

    def test_dependencies_and_dependents(self, workspace: Workspace) -> None:
        """Should only list dependencies inside the repository."""
        infos = {p.name: p for p in list_projects(workspace).projects}
        assert infos["pkg-c"].dependencies == ["pkg-b"]
        assert infos["pkg-a"].dependents == ["pkg-b"]
        assert infos["pkg-c"].dependents == []

    def test_filter(self, workspace: Workspace) -> None:
        result = list_projects(workspace, projects=["pkg-b"])
        assert [p.name for p in result.projects] == ["pkg-b"]

    def test_topological(self, workspace_dir: Path) -> None:
        (workspace_dir / "packages" / "pkg-a" / "pyproject.toml").write_text(
            '[project]\nname = "pkg-a"\nversion = "1.0.0"\ndependencies = ["pkg-c"]\n'
        )
        (workspace_dir / "packages" / "pkg-c" / "pyproject.toml").write_text(
            '[project]\nname = "pkg-c"\nversion = "0.1.0"\n'
        )
        workspace = Workspace.discover(workspace_dir)

        result = list_projects(workspace, topological=True)

        assert [p.name for p in result.projects] == ["pkg-c", "pkg-a", "pkg-b"]


class TestHandleListCommand:
    """Tests for output formats."""

    def test_table(self, workspace: Workspace) -> None:
        console = make_console()
        handle_list_command(workspace, console=console, error_console=make_console())

        text = console_text(console)
        assert "Projects" in text
        assert "packages/pkg-b" in text
        assert "2.0.0" in text

    def test_json(self, workspace: Workspace) -> None:
        console = make_console()
        handle_list_command(
            workspace, console=console, error_console=make_console(), json_output=True
        )

        data = json.loads(console_text(console))
        assert [p["name"] for p in data] == ["pkg-a", "pkg-b", "pkg-c"]
        assert data[1]["dependencies"] == ["pkg-a"]

    def test_graph(self, workspace: Workspace) -> None:
        console = make_console()
        handle_list_command(workspace, console=console, error_console=make_console(), graph=True)

        lines = console_text(console).splitlines()
        assert lines == ["pkg-a v1.0.0", "pkg-b v2.0.0 -> pkg-a", "pkg-c v0.1.0 -> pkg-b"]

    def test_unknown_project(self, workspace: Workspace) -> None:
        error_console = make_console()
        with pytest.raises(typer.Exit):
            handle_list_command(
                workspace, console=make_console(), error_console=error_console, projects=["x"]
            )
        assert "Project 'x' not found" in console_text(error_console)
