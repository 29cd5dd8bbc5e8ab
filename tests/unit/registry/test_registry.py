"""Tests for the uv-backed registry adapter."""

from __future__ import annotations

import io
import subprocess
import urllib.error
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from pyrepo.config.schema import PublishConfig
from pyrepo.errors import PublishError, PyRepoError
from pyrepo.registry import PublishOutcome, UvRegistry, uv
from pyrepo.registry.adapter import index_for_upload
from pyrepo.workspace.project import Project


class FakeResponse(io.BytesIO):
    status = 200


def not_found(url: str, timeout: float) -> FakeResponse:
    raise urllib.error.HTTPError(url, 404, "Not Found", {}, None)  # type: ignore[arg-type]


@pytest.fixture
def project(temp_dir: Path) -> Project:
    return Project(name="pkg-a", path=temp_dir, version="1.0.1")


@pytest.fixture
def registry() -> UvRegistry:
    return UvRegistry(
        PublishConfig(index_url="https://index.test/", tags={"next": "https://next.test/upload"})
    )


class TestUploadUrl:
    def test_latest_uses_default_registry(self, registry: UvRegistry) -> None:
        assert registry.upload_url("latest") == "https://upload.pypi.org/legacy/"

    def test_configured_tag(self, registry: UvRegistry) -> None:
        assert registry.upload_url("next") == "https://next.test/upload"

    def test_unknown_tag(self, registry: UvRegistry) -> None:
        with pytest.raises(PyRepoError, match="dist-tag 'beta'"):
            registry.upload_url("beta")


class TestTarget:
    """Tests for the index that answers each dist-tag."""

    def test_latest_uses_index_url(self, registry: UvRegistry) -> None:
        assert registry.target("latest").index == "https://index.test/"

    def test_index_derived_from_upload_url(self) -> None:
        registry = UvRegistry(PublishConfig(tags={"next": "https://test.pypi.org/legacy/"}))
        assert registry.target("next").index == "https://test.pypi.org"

    def test_explicit_index(self) -> None:
        config = PublishConfig(
            tags={"next": {"upload": "https://up.test/legacy/", "index": "https://idx.test"}}
        )
        target = UvRegistry(config).target("next")
        assert (target.upload, target.index) == ("https://up.test/legacy/", "https://idx.test")

    def test_index_for_upload(self) -> None:
        assert index_for_upload("https://upload.pypi.org/legacy/") == "https://pypi.org"


class TestIsPublished:
    """Tests for the index lookup."""

    def test_found(self, registry: UvRegistry) -> None:
        with patch("urllib.request.urlopen", return_value=FakeResponse(b"{}")) as urlopen:
            assert registry.is_published("pkg-a", "1.0.0")
        assert urlopen.call_args.args[0] == "https://index.test/pypi/pkg-a/1.0.0/json"

    def test_not_found(self, registry: UvRegistry) -> None:
        with patch("urllib.request.urlopen", side_effect=not_found):
            assert not registry.is_published("pkg-a", "1.0.0")

    def test_server_error(self, registry: UvRegistry) -> None:
        error = urllib.error.HTTPError("u", 503, "Unavailable", {}, None)  # type: ignore[arg-type]
        with patch("urllib.request.urlopen", side_effect=error):
            with pytest.raises(PyRepoError, match="HTTP 503"):
                registry.is_published("pkg-a", "1.0.0")

    def test_network_error(self, registry: UvRegistry) -> None:
        with patch("urllib.request.urlopen", side_effect=urllib.error.URLError("offline")):
            with pytest.raises(PyRepoError, match="offline"):
                registry.is_published("pkg-a", "1.0.0")

    def test_timeout(self, registry: UvRegistry) -> None:
        with patch("urllib.request.urlopen", side_effect=TimeoutError("timed out")):
            with pytest.raises(PyRepoError, match="timed out"):
                registry.is_published("pkg-a", "1.0.0")

    def test_non_json_response(self, registry: UvRegistry) -> None:
        with patch("urllib.request.urlopen", return_value=FakeResponse(b"<html>")):
            with pytest.raises(PyRepoError, match="Index query failed"):
                registry.is_published("pkg-a", "1.0.0")


class TestPublish:
    """Tests for UvRegistry.publish."""

    def test_already_published_skips_upload(self, registry: UvRegistry, project: Project) -> None:
        with (
            patch.object(registry, "is_published", return_value=True),
            patch("pyrepo.registry.uv.build") as build,
        ):
            assert registry.publish(project, "latest") is PublishOutcome.ALREADY_PUBLISHED
        build.assert_not_called()

    def test_builds_and_uploads(
        self, registry: UvRegistry, project: Project, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("UV_PUBLISH_TOKEN", "secret")
        dist = project.path / "dist"
        with (
            patch.object(registry, "is_published", return_value=False),
            patch("pyrepo.registry.uv.build", return_value=dist) as build,
            patch("pyrepo.registry.uv.publish") as publish,
        ):
            outcome = registry.publish(project, "next")

        assert outcome is PublishOutcome.PUBLISHED
        build.assert_called_once_with(project.path)
        publish.assert_called_once_with(
            project.path, publish_url="https://next.test/upload", dist_dir=dist, token="secret"
        )

    def test_failure_is_publish_error(self, registry: UvRegistry, project: Project) -> None:
        with (
            patch.object(registry, "is_published", return_value=False),
            patch("pyrepo.registry.uv.build", side_effect=PyRepoError("uv build failed: boom")),
        ):
            with pytest.raises(PublishError) as exc_info:
                registry.publish(project, "latest")

        assert exc_info.value.project == "pkg-a"
        assert "uv build failed: boom" in exc_info.value.message


class TestUvCommands:
    """Tests for the uv subprocess wrappers."""

    def test_missing_uv(self, temp_dir: Path) -> None:
        with patch("pyrepo.registry.uv.shutil.which", return_value=None):
            with pytest.raises(PyRepoError, match="uv is not installed"):
                uv.run_uv(["build"], temp_dir)

    def test_failed_command(self, temp_dir: Path) -> None:
        failed = subprocess.CompletedProcess(["uv"], 2, stdout="", stderr="bad metadata")
        with (
            patch("pyrepo.registry.uv.shutil.which", return_value="/usr/bin/uv"),
            patch("pyrepo.registry.uv.subprocess.run", return_value=failed),
        ):
            with pytest.raises(PyRepoError, match="uv build failed: bad metadata"):
                uv.run_uv(["build"], temp_dir)

    def test_publish_passes_files_and_token(self, temp_dir: Path) -> None:
        dist = temp_dir / "dist"
        dist.mkdir()
        (dist / "pkg_a-1.0.1.tar.gz").write_text("")
        (dist / "pkg_a-1.0.1-py3-none-any.whl").write_text("")

        with patch("pyrepo.registry.uv.run_uv") as run_uv:
            uv.publish(temp_dir, publish_url="https://u", dist_dir=dist, token="t")

        args = run_uv.call_args.args[0]
        assert args[:5] == ["publish", "--publish-url", "https://u", "--token", "t"]
        assert args[5:] == sorted(str(f) for f in dist.iterdir())

    def test_publish_requires_distributions(self, temp_dir: Path) -> None:
        with pytest.raises(PyRepoError, match="No distributions"):
            uv.publish(temp_dir, publish_url="https://u", dist_dir=temp_dir)

    def test_build_replaces_dist(self, temp_dir: Path) -> None:
        stale = temp_dir / "dist"
        stale.mkdir()
        (stale / "old.whl").write_text("")

        with patch("pyrepo.registry.uv.run_uv", MagicMock()) as run_uv:
            assert uv.build(temp_dir) == stale

        assert not (stale / "old.whl").exists()
        assert run_uv.call_args.args[0] == ["build", "--out-dir", str(stale)]


class TestPublishIsolation:
    """Every failure of one project surfaces as a PublishError for that project."""

    def test_index_timeout(self, registry: UvRegistry, project: Project) -> None:
        with patch("urllib.request.urlopen", side_effect=TimeoutError("timed out")):
            with pytest.raises(PublishError) as exc_info:
                registry.publish(project, "latest")
        assert exc_info.value.project == "pkg-a"

    def test_build_os_error(self, registry: UvRegistry, project: Project) -> None:
        with (
            patch.object(registry, "is_published", return_value=False),
            patch("pyrepo.registry.uv.build", side_effect=PermissionError("dist is locked")),
        ):
            with pytest.raises(PublishError, match="PermissionError: dist is locked"):
                registry.publish(project, "latest")

    def test_unknown_tag(self, registry: UvRegistry, project: Project) -> None:
        with pytest.raises(PublishError, match="dist-tag 'beta'"):
            registry.publish(project, "beta")

    def test_checks_the_index_of_the_tag(self, project: Project) -> None:
        registry = UvRegistry(PublishConfig(tags={"next": "https://test.pypi.org/legacy/"}))
        with (
            patch("urllib.request.urlopen", return_value=FakeResponse(b"{}")) as urlopen,
            patch("pyrepo.registry.uv.build") as build,
        ):
            assert registry.publish(project, "next") is PublishOutcome.ALREADY_PUBLISHED

        assert urlopen.call_args.args[0] == "https://test.pypi.org/pypi/pkg-a/1.0.1/json"
        build.assert_not_called()
