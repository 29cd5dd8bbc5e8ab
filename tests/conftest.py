"""Shared test fixtures for pyrepo tests."""

from __future__ import annotations

import shutil
import tempfile
from collections.abc import Generator
from pathlib import Path

import pytest
import structlog
from dotenv import load_dotenv
from helpers import run_git, write_project

# Load .env from project root (doesn't override existing env vars)
load_dotenv(Path(__file__).parent.parent / ".env")


@pytest.fixture(autouse=True)
def _reset_structlog() -> Generator[None, None, None]:
    """Undo CLI logging configuration bound to a per-test captured stderr."""
    yield
    structlog.reset_defaults()


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for tests."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir).resolve()


@pytest.fixture
def sample_pyrepo_yaml() -> str:
    """Sample pyrepo.yaml content."""
    return """\
name: test-repo
mono:
  - packages

commands:
  build: echo building {name}
  test: echo testing {name}
  lint: echo linting {name}
  bootstrap: echo installing {name}
  unlink: echo uninstalling {name}
  commit: echo committed >> commit.log

scripts:
  hello: echo hello from {name}
  unordered:
    run: echo unordered
    topological: false

release:
  clean: false
  build: false
  push: false
  publish: false
"""


@pytest.fixture
def workspace_dir(temp_dir: Path, sample_pyrepo_yaml: str) -> Path:
    """Create a sample repository: pkg-c -> pkg-b -> pkg-a."""
    (temp_dir / "pyrepo.yaml").write_text(sample_pyrepo_yaml)

    packages_dir = temp_dir / "packages"
    write_project(packages_dir / "pkg-a", "pkg-a", "1.0.0", description="Package A")
    write_project(packages_dir / "pkg-b", "pkg-b", "2.0.0", ["pkg-a>=1.0.0"])
    write_project(packages_dir / "pkg-c", "pkg-c", "0.1.0", ["pkg-b>=2.0.0", "requests"])

    return temp_dir


@pytest.fixture
def git_workspace(workspace_dir: Path) -> Path:
    """Create a workspace with git initialized."""
    if shutil.which("git") is None:
        pytest.skip("git is not installed")
    run_git(["init", "-q", "-b", "main"], workspace_dir)
    run_git(["config", "user.email", "test@test.com"], workspace_dir)
    run_git(["config", "user.name", "Test"], workspace_dir)
    run_git(["config", "commit.gpgsign", "false"], workspace_dir)
    run_git(["config", "tag.gpgsign", "false"], workspace_dir)
    run_git(["add", "-A"], workspace_dir)
    run_git(["commit", "-q", "-m", "Initial commit"], workspace_dir)
    return workspace_dir
