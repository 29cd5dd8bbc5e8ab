"""Configuration loading and schema."""

from pyrepo.config.loader import CONFIG_FILENAME, MANIFEST_FILENAME, find_root, load_config
from pyrepo.config.schema import (
    CleanConfig,
    CommandsConfig,
    DistTagTarget,
    PublishConfig,
    PyRepoConfig,
    ReleaseConfig,
    ScriptConfig,
)

__all__ = [
    "CONFIG_FILENAME",
    "MANIFEST_FILENAME",
    "CleanConfig",
    "CommandsConfig",
    "DistTagTarget",
    "PublishConfig",
    "PyRepoConfig",
    "ReleaseConfig",
    "ScriptConfig",
    "find_root",
    "load_config",
]
