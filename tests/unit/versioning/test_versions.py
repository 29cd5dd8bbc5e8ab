"""Tests for version parsing and bumping."""

from __future__ import annotations

import pytest
import semver

from pyrepo.versioning import BumpType, bump_version, format_version, parse_version


class TestParseVersion:
    """Tests for parse_version."""

    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            ("1.2.3", semver.Version(1, 2, 3)),
            ("1.0", semver.Version(1, 0, 0)),
            ("2", semver.Version(2, 0, 0)),
            ("1.0.0rc1", semver.Version(1, 0, 0, "rc.1")),
            ("1.0.0-alpha.2", semver.Version(1, 0, 0, "alpha.2")),
            ("1.0.0b3", semver.Version(1, 0, 0, "beta.3")),
            ("0.1.0.dev0", semver.Version(0, 1, 0, "dev.0")),
        ],
    )
    def test_pep440_versions(self, value: str, expected: semver.Version) -> None:
        assert parse_version(value) == expected

    def test_invalid(self) -> None:
        with pytest.raises(ValueError, match="Invalid version"):
            parse_version("latest")

    @pytest.mark.parametrize("value", ["1.0.post1", "1!1.0", "1.0+local", "1.2.3.4", "1.0rc1.dev2"])
    def test_unsupported(self, value: str) -> None:
        with pytest.raises(ValueError, match="cannot be bumped"):
            parse_version(value)


class TestFormatVersion:
    def test_canonical_pep440(self) -> None:
        assert format_version(semver.Version(1, 2, 3)) == "1.2.3"
        assert format_version(semver.Version(1, 2, 3, "rc.1")) == "1.2.3rc1"
        assert format_version(semver.Version(1, 2, 3, "alpha.4")) == "1.2.3a4"
        assert format_version(semver.Version(0, 1, 0, "dev.2")) == "0.1.0.dev2"


class TestBumpVersion:
    """Tests for bump_version."""

    @pytest.mark.parametrize(
        ("current", "bump", "expected"),
        [
            ("1.2.3", BumpType.PATCH, "1.2.4"),
            ("1.2.3", BumpType.MINOR, "1.3.0"),
            ("1.2.3", BumpType.MAJOR, "2.0.0"),
            ("1.0", BumpType.PATCH, "1.0.1"),
            ("1.2.3rc1", BumpType.PATCH, "1.2.3"),
            ("1.3.0rc2", BumpType.MINOR, "1.3.0"),
            ("2.0.0b1", BumpType.MAJOR, "2.0.0"),
            ("1.2.3rc1", BumpType.PRERELEASE, "1.2.3rc2"),
            ("1.2.3", BumpType.PRERELEASE, "1.2.4rc1"),
            ("0.1.0.dev0", BumpType.PRERELEASE, "0.1.0.dev1"),
            ("0.1.0.dev0", BumpType.MINOR, "0.1.0"),
        ],
    )
    def test_bump(self, current: str, bump: BumpType, expected: str) -> None:
        assert bump_version(current, bump) == expected

    def test_bump_with_prerelease_identifier(self) -> None:
        assert bump_version("1.2.3", BumpType.MAJOR, "alpha") == "2.0.0a1"
        assert bump_version("1.0.0a3", BumpType.PRERELEASE, "beta") == "1.0.0b1"
        assert bump_version("1.0.0a3", BumpType.PRERELEASE, "alpha") == "1.0.0a4"

    def test_unknown_prerelease_identifier(self) -> None:
        with pytest.raises(ValueError, match="Invalid prerelease identifier 'nightly'"):
            bump_version("1.0.0", BumpType.PATCH, "nightly")


class TestBumpType:
    def test_parse_is_case_insensitive(self) -> None:
        assert BumpType.parse("Minor") is BumpType.MINOR

    def test_parse_unknown(self) -> None:
        with pytest.raises(ValueError, match="Expected one of: major, minor, patch, prerelease"):
            BumpType.parse("huge")
