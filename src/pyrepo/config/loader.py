"""Configuration file discovery and loading."""

from __future__ import annotations

from pathlib import Path

import structlog
import yaml
from pydantic import ValidationError

from pyrepo.config.schema import PyRepoConfig
from pyrepo.errors import ConfigurationError

logger = structlog.get_logger()

CONFIG_FILENAME = "pyrepo.yaml"
MANIFEST_FILENAME = "pyproject.toml"


def find_root(start: Path | None = None) -> Path:
    """Find the repository root.

    Walks up from `start` looking for pyrepo.yaml. When no config file
    exists anywhere above, the closest directory holding a pyproject.toml
    is used with default settings.

    Raises:
        ConfigurationError: If neither file is found.
    """
    start = (start or Path.cwd()).resolve()
    candidates = [start, *start.parents]

    for directory in candidates:
        if (directory / CONFIG_FILENAME).is_file():
            return directory

    for directory in candidates:
        if (directory / MANIFEST_FILENAME).is_file():
            logger.debug("No config file found, using manifest root", root=str(directory))
            return directory

    raise ConfigurationError(f"No {CONFIG_FILENAME} or {MANIFEST_FILENAME} found", path=start)


def load_config(root: Path) -> PyRepoConfig:
    """Load and validate pyrepo.yaml from the repository root.

    A missing file yields the default configuration.

    Raises:
        ConfigurationError: If the file is not valid YAML or fails validation.
    """
    path = root / CONFIG_FILENAME
    if not path.is_file():
        return PyRepoConfig(name=root.name)

    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML: {e}", path=path) from e

    if not isinstance(data, dict):
        raise ConfigurationError("Configuration must be a mapping", path=path)

    data.setdefault("name", root.name)

    try:
        config = PyRepoConfig.model_validate(data)
    except ValidationError as e:
        details = "; ".join(
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()
        )
        raise ConfigurationError(f"Invalid configuration: {details}", path=path) from e

    logger.debug("Config loaded", path=str(path), mono=config.mono)
    return config
