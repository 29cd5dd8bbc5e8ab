"""Package registry adapter used by releases."""

from __future__ import annotations

import json
import os
import urllib.error
import urllib.request
from enum import Enum
from typing import TYPE_CHECKING, Protocol
from urllib.parse import urlsplit

import structlog

from pyrepo.config.schema import DistTagTarget, PublishConfig
from pyrepo.errors import PublishError, PyRepoError
from pyrepo.registry import uv

if TYPE_CHECKING:
    from pyrepo.workspace.project import Project

logger = structlog.get_logger()


class PublishOutcome(Enum):
    """How a publish call ended."""

    PUBLISHED = "published"
    ALREADY_PUBLISHED = "already_published"


class Registry(Protocol):
    """Publishing interface.

    `publish` is idempotent: a version that already exists for the
    dist-tag is reported as ALREADY_PUBLISHED instead of failing.
    """

    def publish(self, project: Project, dist_tag: str) -> PublishOutcome: ...


def index_for_upload(upload_url: str) -> str:
    """Index serving the uploads of `upload_url` (`upload.pypi.org` -> `pypi.org`)."""
    parts = urlsplit(upload_url)
    return f"{parts.scheme}://{parts.netloc.removeprefix('upload.')}"


class UvRegistry:
    """Registry backed by `uv build` / `uv publish` and the index JSON API.

    Python indexes have no dist-tags, so each dist-tag maps to an upload
    URL and the index that serves it: "latest" uses `registry` and
    `index_url`, other tags are looked up in `tags`.
    """

    def __init__(self, config: PublishConfig, *, timeout: float = 10.0) -> None:
        self.config = config
        self.timeout = timeout

    def target(self, dist_tag: str) -> DistTagTarget:
        """Upload and index URLs for `dist_tag`."""
        if dist_tag in self.config.tags:
            target = self.config.tags[dist_tag]
            if target.index is None:
                return DistTagTarget(upload=target.upload, index=index_for_upload(target.upload))
            return target
        if dist_tag == "latest":
            return DistTagTarget(upload=self.config.registry, index=self.config.index_url)
        raise PyRepoError(f"No registry configured for dist-tag '{dist_tag}'")

    def upload_url(self, dist_tag: str) -> str:
        return self.target(dist_tag).upload

    def is_published(self, name: str, version: str, index_url: str | None = None) -> bool:
        """Ask the index whether `name==version` exists."""
        index = index_url or self.config.index_url
        url = f"{index.rstrip('/')}/pypi/{name}/{version}/json"
        try:
            with urllib.request.urlopen(url, timeout=self.timeout) as response:
                json.load(response)
                return response.status == 200
        except urllib.error.HTTPError as e:
            if e.code == 404:
                return False
            raise PyRepoError(f"Index query failed for {name}=={version}: HTTP {e.code}") from e
        except urllib.error.URLError as e:
            raise PyRepoError(f"Index query failed for {name}=={version}: {e.reason}") from e
        except (OSError, ValueError) as e:
            raise PyRepoError(f"Index query failed for {name}=={version}: {e}") from e

    def publish(self, project: Project, dist_tag: str) -> PublishOutcome:
        try:
            target = self.target(dist_tag)
            if self.is_published(project.name, project.version, target.index):
                logger.info(
                    "Version already published", project=project.name, version=project.version
                )
                return PublishOutcome.ALREADY_PUBLISHED

            dist_dir = uv.build(project.path)
            uv.publish(
                project.path,
                publish_url=target.upload,
                dist_dir=dist_dir,
                token=os.environ.get(self.config.token_env),
            )
        except PyRepoError as e:
            raise PublishError(project.name, e.message) from e
        except (OSError, ValueError) as e:
            raise PublishError(project.name, f"{type(e).__name__}: {e}") from e

        logger.info("Published", project=project.name, version=project.version, tag=dist_tag)
        return PublishOutcome.PUBLISHED
