"""uv build and publish commands."""

from __future__ import annotations

import shutil
import subprocess
from pathlib import Path

from pyrepo.errors import PyRepoError


def run_uv(
    args: list[str],
    cwd: Path,
    *,
    check: bool = True,
) -> subprocess.CompletedProcess[str]:
    """Run a uv command synchronously.

    Raises:
        PyRepoError: If uv is missing, or the command fails and check is True.
    """
    uv = shutil.which("uv")
    if uv is None:
        raise PyRepoError("uv is not installed")

    result = subprocess.run(
        [uv, *args],
        cwd=cwd,
        capture_output=True,
        text=True,
        check=False,
    )
    if check and result.returncode != 0:
        raise PyRepoError(
            f"uv {args[0]} failed: {result.stderr.strip() or f'exit code {result.returncode}'}"
        )
    return result


def build(project_dir: Path, out_dir: Path | None = None) -> Path:
    """Build sdist and wheel for a project.

    Returns:
        Directory containing the built distributions.
    """
    dist_dir = out_dir or project_dir / "dist"
    if dist_dir.exists():
        shutil.rmtree(dist_dir)
    run_uv(["build", "--out-dir", str(dist_dir)], cwd=project_dir)
    return dist_dir


def publish(
    project_dir: Path,
    *,
    publish_url: str,
    dist_dir: Path,
    token: str | None = None,
) -> None:
    """Upload every distribution in `dist_dir`."""
    files = sorted(str(f) for f in dist_dir.iterdir() if f.is_file())
    if not files:
        raise PyRepoError(f"No distributions found in {dist_dir}")

    args = ["publish", "--publish-url", publish_url]
    if token:
        args.extend(["--token", token])
    run_uv([*args, *files], cwd=project_dir)
