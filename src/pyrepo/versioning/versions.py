"""Version parsing and bumping.

Manifests hold PEP 440 versions (`1.0`, `1.0.0rc1`, `0.1.0.dev0`). They are
mapped onto semver versions for bumping and written back in canonical
PEP 440 form.
"""

from __future__ import annotations

from enum import Enum

import semver
from packaging.version import InvalidVersion
from packaging.version import Version as PackagingVersion

# PEP 440 pre-release letters and the semver labels standing for them
_LABELS = {"a": "alpha", "b": "beta", "rc": "rc"}
_LETTERS = {label: letter for letter, label in _LABELS.items()}

PRERELEASE_IDENTIFIERS = ("alpha", "beta", "rc", "dev")


class BumpType(Enum):
    """Kind of version increment."""

    MAJOR = "major"
    MINOR = "minor"
    PATCH = "patch"
    PRERELEASE = "prerelease"

    @classmethod
    def parse(cls, value: str) -> BumpType:
        """Parse a bump name, case-insensitively.

        Raises:
            ValueError: If the name is unknown.
        """
        try:
            return cls[value.upper()]
        except KeyError:
            names = ", ".join(b.value for b in cls)
            raise ValueError(f"Invalid bump type '{value}'. Expected one of: {names}") from None


def parse_version(value: str) -> semver.Version:
    """Parse a manifest version into a semver.Version.

    Incomplete versions are padded with zeros ("1.0" -> 1.0.0). A
    pre-release or development segment becomes the semver prerelease
    ("1.0.0rc1" -> 1.0.0-rc.1, "0.1.0.dev0" -> 0.1.0-dev.0).

    Raises:
        ValueError: If the version is not PEP 440, or carries an epoch,
            a post or local segment, more than three release numbers, or
            both a pre-release and a development segment.
    """
    try:
        parsed = PackagingVersion(value)
    except InvalidVersion as e:
        raise ValueError(f"Invalid version: '{value}'") from e

    if (
        parsed.epoch
        or parsed.post is not None
        or parsed.local
        or len(parsed.release) > 3
        or (parsed.pre is not None and parsed.dev is not None)
    ):
        raise ValueError(f"Version '{value}' cannot be bumped")

    major, minor, patch = (*parsed.release, 0, 0)[:3]
    prerelease = None
    if parsed.pre is not None:
        letter, number = parsed.pre
        prerelease = f"{_LABELS[letter]}.{number}"
    elif parsed.dev is not None:
        prerelease = f"dev.{parsed.dev}"
    return semver.Version(major, minor, patch, prerelease)


def format_version(version: semver.Version) -> str:
    """Canonical PEP 440 string for a version built by this module."""
    base = f"{version.major}.{version.minor}.{version.patch}"
    if not version.prerelease:
        return base
    label, _, number = version.prerelease.partition(".")
    if label == "dev":
        return f"{base}.dev{number}"
    return f"{base}{_LETTERS[label]}{number}"


def bump_version(current: str, bump: BumpType, prerelease: str | None = None) -> str:
    """Return the version following `current`.

    Args:
        current: Manifest version.
        bump: Kind of increment. A pending pre-release is finalised by the
            increment it leads up to (2.0.0rc1 with MAJOR gives 2.0.0).
        prerelease: Pre-release identifier (alpha, beta, rc, dev). With
            MAJOR/MINOR/PATCH it produces e.g. `2.0.0rc1`; with PRERELEASE
            a different identifier restarts the counter.

    Raises:
        ValueError: If `current` cannot be bumped or the identifier is
            unknown.
    """
    if prerelease is not None and prerelease not in PRERELEASE_IDENTIFIERS:
        names = ", ".join(PRERELEASE_IDENTIFIERS)
        raise ValueError(f"Invalid prerelease identifier '{prerelease}'. Expected one of: {names}")

    version = parse_version(current)
    if bump is BumpType.PRERELEASE:
        label = version.prerelease.split(".")[0] if version.prerelease else None
        if label is None:
            bumped = version.bump_patch().replace(prerelease=f"{prerelease or 'rc'}.1")
        elif prerelease in (None, label):
            bumped = version.bump_prerelease()
        else:
            bumped = version.replace(prerelease=f"{prerelease}.1")
    else:
        bumped = version.next_version(bump.value)
        if prerelease:
            bumped = bumped.replace(prerelease=f"{prerelease}.1")
    return format_version(bumped)
