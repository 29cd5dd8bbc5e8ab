"""Builders shared by the test modules."""

from __future__ import annotations

import io
import shutil
import subprocess
from pathlib import Path

import pytest
from rich.console import Console

from pyrepo.workspace.project import Project

requires_git = pytest.mark.skipif(shutil.which("git") is None, reason="git is not installed")


def write_project(
    directory: Path,
    name: str,
    version: str = "1.0.0",
    dependencies: list[str] | None = None,
    description: str | None = None,
) -> Path:
    """Create a project directory with a pyproject.toml."""
    directory.mkdir(parents=True, exist_ok=True)
    deps = ", ".join(f'"{d}"' for d in dependencies or [])
    lines = [
        "[project]",
        f'name = "{name}"',
        f'version = "{version}"',
        f"dependencies = [{deps}]",
    ]
    if description:
        lines.append(f'description = "{description}"')
    (directory / "pyproject.toml").write_text("\n".join(lines) + "\n")
    return directory


def make_project(
    name: str, dependencies: list[str] | None = None, version: str = "1.0.0"
) -> Project:
    """In-memory project for graph and scheduler tests."""
    return Project(
        name=name,
        path=Path("/repo/packages") / name,
        version=version,
        dependencies=frozenset(dependencies or []),
        folder=f"packages/{name}",
    )


def run_git(args: list[str], cwd: Path) -> subprocess.CompletedProcess[str]:
    return subprocess.run(["git", *args], cwd=cwd, capture_output=True, text=True, check=True)


def make_console() -> Console:
    """Console writing plain text to a buffer."""
    return Console(file=io.StringIO(), width=200, color_system=None, highlight=False)


def console_text(console: Console) -> str:
    return console.file.getvalue()  # type: ignore[attr-defined]
