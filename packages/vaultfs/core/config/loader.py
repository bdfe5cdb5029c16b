"""Configuration loading utilities with JSON and YAML support."""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any

import yaml

from vaultfs.core.config.models import GatewayConfig
from vaultfs.core.utils.logging import configure_logging

logger = logging.getLogger(__name__)

# Default gateway config path (can be overridden with VAULTFS_CONFIG)
_DEFAULT_CONFIG_PATH = Path("vaultfs.yaml")
CONFIG_ENV_VAR = "VAULTFS_CONFIG"


def detect_format(file_path: Path | str) -> str:
    """Detect config file format from extension.

    Args:
        file_path: Path to config file

    Returns:
        Format string: "json" or "yaml"

    Raises:
        ValueError: If format cannot be determined

    Example:
        >>> detect_format("vaultfs.json")
        'json'
        >>> detect_format("vaultfs.yml")
        'yaml'
    """
    suffix = Path(file_path).suffix.lower()

    if suffix == ".json":
        return "json"
    elif suffix in [".yaml", ".yml"]:
        return "yaml"
    else:
        raise ValueError(f"Unsupported config format: {suffix}")


def load_config(path: str | Path) -> dict[str, Any]:
    """Load and return raw configuration dictionary.

    Args:
        path: Path to config file (.json, .yaml, or .yml)

    Returns:
        Raw configuration dictionary

    Raises:
        FileNotFoundError: If config file does not exist
        ValueError: If format is not supported or file content is invalid
    """
    path = Path(path)

    if not path.exists():
        raise FileNotFoundError(f"Config file does not exist: {path}")

    fmt = detect_format(path)

    if fmt == "json":
        try:
            with path.open("r", encoding="utf-8") as f:
                content = json.load(f)
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid JSON in {path}: {e}") from e
    else:
        try:
            with path.open("r", encoding="utf-8") as f:
                # safe_load returns None for empty files
                content = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid YAML in {path}: {e}") from e

    if not isinstance(content, dict):
        raise ValueError(f"Config root must be a mapping in {path}")
    return content


def default_config_path() -> Path:
    """Config path used when none is given: $VAULTFS_CONFIG or ./vaultfs.yaml."""
    override = os.getenv(CONFIG_ENV_VAR)
    return Path(override) if override else _DEFAULT_CONFIG_PATH


def load_gateway_config(path: str | Path | None = None) -> GatewayConfig:
    """Load and validate gateway configuration.

    An explicit path must exist. Without one, the default path is used if
    present and built-in defaults otherwise.

    Args:
        path: Path to config file (.json, .yaml, or .yml)

    Returns:
        Validated GatewayConfig instance

    Raises:
        FileNotFoundError: If an explicit path does not exist
        ValidationError: If config is invalid
    """
    if path is None:
        path = default_config_path()
        if not path.exists():
            logger.debug("No config file at %s, using defaults", path)
            return GatewayConfig()

    raw_config = load_config(path)
    return GatewayConfig.model_validate(raw_config)


def configure_logging_from_config(config: GatewayConfig | None = None) -> None:
    """Configure Python logging from gateway config.

    Args:
        config: GatewayConfig instance (loads default if None)
    """
    if config is None:
        config = load_gateway_config()

    configure_logging(
        level=config.logging.level,
        format_string=config.logging.format,
        filename=config.logging.filename,
        structured=config.logging.structured,
    )
