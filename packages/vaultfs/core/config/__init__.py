"""Configuration management for vaultfs."""

from vaultfs.core.config.loader import (
    configure_logging_from_config,
    default_config_path,
    detect_format,
    load_config,
    load_gateway_config,
)
from vaultfs.core.config.models import (
    DEFAULT_PROBE_REFERENCE_TIME,
    GatewayConfig,
    LoggingConfig,
    ProbeConfig,
)

__all__ = [
    "DEFAULT_PROBE_REFERENCE_TIME",
    "GatewayConfig",
    "LoggingConfig",
    "ProbeConfig",
    "configure_logging_from_config",
    "default_config_path",
    "detect_format",
    "load_config",
    "load_gateway_config",
]
