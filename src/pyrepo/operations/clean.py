"""Clean operation: remove build artifacts from a project."""

from __future__ import annotations

import fnmatch
import shutil
from pathlib import Path
from typing import TYPE_CHECKING

from pyrepo.operations.base import ActionOutcome, Operation, OperationKind, OperationOptions

if TYPE_CHECKING:
    from pyrepo.workspace.project import Project


def _calculate_size(path: Path) -> int:
    """Calculate total size of a path (file or directory)."""
    if path.is_file():
        return path.stat().st_size
    return sum(f.stat().st_size for f in path.rglob("*") if f.is_file())


class CleanOperation(Operation):
    """Delete paths matching the clean patterns, sparing protected ones.

    Patterns are globs relative to the project directory. A path is
    protected when its name, or the name of any parent inside the
    project, matches a protected pattern.
    """

    kind = OperationKind.CLEAN

    def __init__(self, patterns: list[str], protected: list[str]) -> None:
        self.patterns = list(patterns)
        self.protected = set(protected)

    def is_protected(self, path: Path, project_root: Path) -> bool:
        """Check if a path or one of its parents is protected."""
        relative = path.relative_to(project_root)
        return any(
            fnmatch.fnmatch(part, pattern) for part in relative.parts for pattern in self.protected
        )

    def paths_to_clean(self, project: Project) -> list[Path]:
        """Paths that would be removed, excluding those nested in another match."""
        found: set[Path] = set()
        for pattern in self.patterns:
            for path in project.path.glob(pattern):
                if not self.is_protected(path, project.path):
                    found.add(path)

        return sorted(p for p in found if not any(parent in found for parent in p.parents))

    async def execute(self, project: Project, options: OperationOptions) -> ActionOutcome:
        files_removed = 0
        dirs_removed = 0
        bytes_freed = 0
        lines: list[str] = []

        for path in self.paths_to_clean(project):
            bytes_freed += _calculate_size(path)
            lines.append(str(path.relative_to(project.path)))

            if path.is_dir() and not path.is_symlink():
                dirs_removed += 1
                if not options.dry_run:
                    shutil.rmtree(path)
            else:
                files_removed += 1
                if not options.dry_run:
                    path.unlink()

        verb = "Would clean" if options.dry_run else "Cleaned"
        summary = (
            f"{verb} {files_removed} files, {dirs_removed} directories "
            f"({bytes_freed / 1024:.1f} KB)"
        )
        return ActionOutcome(success=True, output="\n".join([*lines, summary]) + "\n")
