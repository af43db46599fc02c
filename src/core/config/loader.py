"""
Configuration loader — reads buildpack.yml into domain models.

This is the primary entry point for loading buildpack configuration.
It reads YAML, validates against Pydantic schemas, and returns
typed domain objects.
"""

from __future__ import annotations

import logging
from pathlib import Path

import yaml

from src.core.models.buildpack import BuildpackConfig

logger = logging.getLogger(__name__)

# Default config filename
BUILDPACK_CONFIG_FILE = "buildpack.yml"


class ConfigError(Exception):
    """Raised when buildpack configuration is invalid or missing."""


def find_config_file(start_dir: Path | None = None) -> Path | None:
    """Search for buildpack.yml starting from the given directory, walking up.

    Args:
        start_dir: Directory to start searching from (default: cwd).

    Returns:
        Path to buildpack.yml, or None if not found.
    """
    current = (start_dir or Path.cwd()).resolve()

    for _ in range(20):  # safety limit
        candidate = current / BUILDPACK_CONFIG_FILE
        if candidate.is_file():
            return candidate
        parent = current.parent
        if parent == current:
            break  # filesystem root
        current = parent

    return None


def load_config(path: Path | None = None) -> BuildpackConfig:
    """Load and validate buildpack configuration.

    Args:
        path: Explicit path to buildpack.yml. If None, searches upward.

    Returns:
        Validated BuildpackConfig model.

    Raises:
        ConfigError: If the file is missing or invalid.
    """
    if path is None:
        path = find_config_file()

    if path is None:
        raise ConfigError(
            f"No {BUILDPACK_CONFIG_FILE} found. Specify one with --config."
        )

    if not path.is_file():
        raise ConfigError(f"Config file not found: {path}")

    logger.debug("Loading buildpack config from %s", path)

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

    # Relative file URIs in the catalog are relative to buildpack.yml
    base = path.parent.resolve()
    for dep in data.get("dependencies") or []:
        if isinstance(dep, dict):
            uri = str(dep.get("uri", ""))
            if uri and "://" not in uri and not Path(uri).is_absolute():
                dep["uri"] = str(base / uri)

    try:
        config = BuildpackConfig.model_validate(data)
    except Exception as e:
        raise ConfigError(f"Invalid buildpack configuration: {e}") from e

    logger.info(
        "Loaded buildpack '%s' with %d catalog entries",
        config.buildpack.id, len(config.dependencies),
    )
    return config
