"""
Configuration loader — reads provision.yml into a ProvisionConfig.

The file is optional. Without one the installer runs with the built-in
Chatterbox TTS defaults; with one, any subset of fields can be
overridden and the result is validated by the Pydantic models.
"""

from __future__ import annotations

import logging
from pathlib import Path

import yaml
from pydantic import ValidationError

from mps_provision.core.models.config import ProvisionConfig

logger = logging.getLogger(__name__)

# Default config filename
CONFIG_FILE = "provision.yml"


class ConfigError(Exception):
    """Raised when the provisioning configuration is invalid or unreadable."""


def find_config_file(start_dir: Path | None = None) -> Path | None:
    """Search for provision.yml starting from the given directory, walking up.

    Args:
        start_dir: Directory to start searching from (default: cwd).

    Returns:
        Path to provision.yml, or None if not found.
    """
    current = (start_dir or Path.cwd()).resolve()

    for _ in range(20):  # safety limit
        candidate = current / CONFIG_FILE
        if candidate.is_file():
            return candidate
        parent = current.parent
        if parent == current:
            break  # filesystem root
        current = parent

    return None


def load_config(path: Path | None = None, start_dir: Path | None = None) -> ProvisionConfig:
    """Load and validate the provisioning configuration.

    Args:
        path: Explicit path to a config file. It must exist.
        start_dir: Where to start searching when *path* is None.

    Returns:
        Validated ProvisionConfig (all defaults if no file was found).

    Raises:
        ConfigError: If an explicit file is missing, or any file is invalid.
    """
    if path is None:
        path = find_config_file(start_dir)
        if path is None:
            logger.debug("No %s found, using built-in defaults", CONFIG_FILE)
            return ProvisionConfig()
    elif not path.is_file():
        raise ConfigError(f"Config file not found: {path}")

    logger.debug("Loading provisioning config from %s", path)

    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Cannot read {path}: {e}") from e

    try:
        data = yaml.safe_load(raw)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigError(f"Expected a YAML mapping in {path}, got {type(data).__name__}")

    # The YAML may wrap everything under a "provision" key or be flat
    if "provision" in data and isinstance(data["provision"], dict):
        data = data["provision"]

    try:
        config = ProvisionConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid provisioning configuration: {e}") from e

    logger.info(
        "Loaded config: venv=%s, %d auxiliary + %d pinned dependencies",
        config.venv_name,
        len(config.packages.auxiliary),
        len(config.packages.pinned),
    )
    return config
