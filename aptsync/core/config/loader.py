"""
Package list loader — reads the declarative package file into a PackageList.

The file is a YAML mapping with a single recognised key::

    packages:
      - docker-ce
      - docker-compose

It reads YAML, validates against the Pydantic model, and returns a
typed PackageList. Every failure is a ConfigError.
"""

from __future__ import annotations

import logging
from pathlib import Path

import yaml
from pydantic import ValidationError

from aptsync.core.errors import ConfigError
from aptsync.core.models.package import PackageList

logger = logging.getLogger(__name__)

# Default package filename, resolved against the working directory by the CLI
DEFAULT_PACKAGES_FILE = "docker_packages.yaml"

PACKAGES_KEY = "packages"

__all__ = ["DEFAULT_PACKAGES_FILE", "ConfigError", "load_package_list"]


def load_package_list(path: Path) -> PackageList:
    """Load and validate a package file.

    Args:
        path: Path to the YAML package file.

    Returns:
        Validated PackageList, in file order.

    Raises:
        ConfigError: If the file is missing, unreadable or malformed.
    """
    if not path.is_file():
        raise ConfigError(f"YAML file not found at: {path}")

    logger.debug("Loading package list from %s", path)

    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Cannot read {path}: {e}") from e

    try:
        data = yaml.safe_load(raw)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e

    if not isinstance(data, dict):
        kind = "an empty document" if data is None else type(data).__name__
        raise ConfigError(f"Expected a YAML mapping in {path}, got {kind}")

    if PACKAGES_KEY not in data:
        raise ConfigError(f"Missing required key '{PACKAGES_KEY}' in {path}")

    extra = sorted(str(k) for k in data if k != PACKAGES_KEY)
    if extra:
        logger.warning("Ignoring unrecognised keys in %s: %s", path, ", ".join(extra))

    try:
        package_list = PackageList.model_validate(
            {"packages": data[PACKAGES_KEY], "source": str(path)}
        )
    except ValidationError as e:
        messages = "; ".join(err["msg"] for err in e.errors())
        raise ConfigError(f"Invalid package list in {path}: {messages}") from e

    logger.info("Loaded %d packages from %s", len(package_list), path)
    return package_list
