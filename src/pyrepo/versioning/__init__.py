"""Version parsing and bumping."""

from pyrepo.versioning.versions import (
    PRERELEASE_IDENTIFIERS,
    BumpType,
    bump_version,
    format_version,
    parse_version,
)

__all__ = [
    "PRERELEASE_IDENTIFIERS",
    "BumpType",
    "bump_version",
    "format_version",
    "parse_version",
]
