"""Reading and rewriting project manifests (pyproject.toml).

Reads go through tomllib. Writes use tomlkit so that formatting and
comments of the manifest survive a version bump.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import tomlkit
from packaging.requirements import InvalidRequirement, Requirement
from packaging.utils import canonicalize_name
from tomlkit.exceptions import ParseError as TOMLKitParseError

from pyrepo.compat import TOMLDecodeError, tomllib
from pyrepo.errors import ManifestError

MANIFEST_FILENAME = "pyproject.toml"
DEFAULT_VERSION = "0.0.0"

# Specifier operators whose version is moved along with a released dependency
PINNING_OPERATORS = frozenset({">=", "==", "~=", "==="})


@dataclass(frozen=True, slots=True)
class ManifestData:
    """The parts of a manifest pyrepo cares about."""

    name: str
    version: str
    dependencies: frozenset[str] = field(default_factory=frozenset)
    description: str | None = None


def manifest_path(project_dir: Path) -> Path:
    """Path of the manifest inside a project directory."""
    return project_dir / MANIFEST_FILENAME


def _dependency_strings(doc: dict[str, Any]) -> list[str]:
    """Collect raw requirement strings from every dependency table."""
    project = doc.get("project", {})
    deps: list[Any] = list(project.get("dependencies", []))
    for group in project.get("optional-dependencies", {}).values():
        deps.extend(group)
    for group in doc.get("dependency-groups", {}).values():
        deps.extend(group)
    # PEP 735 include-group entries are tables, not strings
    return [d for d in deps if isinstance(d, str)]


def _dependency_names(raw: list[str]) -> frozenset[str]:
    names = set()
    for spec in raw:
        try:
            names.add(canonicalize_name(Requirement(spec).name))
        except InvalidRequirement:
            continue
    return frozenset(names)


def read_manifest(path: Path) -> ManifestData:
    """Read a pyproject.toml file.

    Args:
        path: Path to the manifest file.

    Returns:
        Parsed manifest data.

    Raises:
        ManifestError: If the file is missing, not valid TOML, or has no
            [project].name.
    """
    try:
        with open(path, "rb") as f:
            doc = tomllib.load(f)
    except FileNotFoundError as e:
        raise ManifestError("Manifest not found", path) from e
    except OSError as e:
        raise ManifestError(f"Manifest not readable ({e.strerror})", path) from e
    except TOMLDecodeError as e:
        raise ManifestError(f"Invalid TOML ({e})", path) from e

    project = doc.get("project")
    if not isinstance(project, dict):
        raise ManifestError("Missing [project] table", path)

    name = project.get("name")
    if not isinstance(name, str) or not name.strip():
        raise ManifestError("Missing [project].name", path)

    version = project.get("version", DEFAULT_VERSION)
    if not isinstance(version, str):
        raise ManifestError("[project].version must be a string", path)

    description = project.get("description")

    return ManifestData(
        name=name.strip(),
        version=version,
        dependencies=_dependency_names(_dependency_strings(doc)),
        description=description if isinstance(description, str) else None,
    )


def _load_document(path: Path) -> tomlkit.TOMLDocument:
    try:
        return tomlkit.parse(path.read_text(encoding="utf-8"))
    except OSError as e:
        raise ManifestError(f"Manifest not readable ({e.strerror})", path) from e
    except TOMLKitParseError as e:
        raise ManifestError(f"Invalid TOML ({e})", path) from e


def write_version(path: Path, version: str) -> None:
    """Set [project].version, preserving the rest of the file."""
    doc = _load_document(path)
    project = doc.get("project")
    if project is None:
        raise ManifestError("Missing [project] table", path)
    project["version"] = version
    path.write_text(tomlkit.dumps(doc), encoding="utf-8")


def _repin(raw: str, dependency: str, version: str) -> str | None:
    """Return `raw` with its version pins moved to `version`, or None if untouched."""
    try:
        req = Requirement(raw)
    except InvalidRequirement:
        return None

    if canonicalize_name(req.name) != dependency or req.url or not req.specifier:
        return None

    specs = sorted(req.specifier, key=str)
    if not any(s.operator in PINNING_OPERATORS for s in specs):
        return None

    parts = ",".join(
        f"{s.operator}{version if s.operator in PINNING_OPERATORS else s.version}" for s in specs
    )
    extras = f"[{','.join(sorted(req.extras))}]" if req.extras else ""
    marker = f"; {req.marker}" if req.marker else ""
    updated = f"{req.name}{extras}{parts}{marker}"
    return updated if updated != raw else None


def _admits(raw: str, dependency: str, version: str) -> bool:
    """Whether a requirement on `dependency` can be satisfied by `version`."""
    try:
        req = Requirement(raw)
    except InvalidRequirement:
        return False
    if canonicalize_name(req.name) != dependency or req.url:
        return True
    return req.specifier.contains(version, prereleases=True)


def _requirement_arrays(doc: tomlkit.TOMLDocument) -> list[Any]:
    arrays: list[Any] = []
    project = doc.get("project", {})
    if "dependencies" in project:
        arrays.append(project["dependencies"])
    arrays.extend(project.get("optional-dependencies", {}).values())
    arrays.extend(doc.get("dependency-groups", {}).values())
    return arrays


def _plan_repins(
    doc: tomlkit.TOMLDocument, dependency: str, version: str
) -> tuple[list[tuple[Any, int, str]], list[str]]:
    """Compute rewrites for `dependency` and the requirements that would reject `version`."""
    rewrites: list[tuple[Any, int, str]] = []
    rejecting: list[str] = []
    for array in _requirement_arrays(doc):
        for index, item in enumerate(array):
            if not isinstance(item, str):
                continue
            raw = str(item)
            updated = _repin(raw, dependency, version)
            if not _admits(updated or raw, dependency, version):
                rejecting.append(updated or raw)
            elif updated is not None:
                rewrites.append((array, index, updated))
    return rewrites, rejecting


def rejected_dependency_pins(path: Path, dependency: str, version: str) -> list[str]:
    """Requirements on `dependency` that would not admit `version` after repinning.

    Bounds other than the pinning operators (`<`, `<=`, `!=`, ...) are kept
    as written, so a release can step outside them.
    """
    doc = _load_document(path)
    return _plan_repins(doc, canonicalize_name(dependency), version)[1]


def update_dependency_version(path: Path, dependency: str, version: str) -> bool:
    """Point every pinned requirement on `dependency` at `version`.

    Args:
        path: Manifest to rewrite.
        dependency: Name of the dependency (any normalisation).
        version: New version to pin.

    Returns:
        True if the file was changed.

    Raises:
        ManifestError: If a requirement on `dependency` would reject
            `version`. The file is left untouched.
    """
    doc = _load_document(path)
    rewrites, rejecting = _plan_repins(doc, canonicalize_name(dependency), version)
    if rejecting:
        raise ManifestError(
            f"Requirement {', '.join(rejecting)} does not admit {dependency} {version}", path
        )

    for array, index, updated in rewrites:
        array[index] = updated

    if rewrites:
        path.write_text(tomlkit.dumps(doc), encoding="utf-8")
    return bool(rewrites)
