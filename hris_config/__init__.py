"""
hris_config -- single public entrypoint for HRIS configuration.

Responsibility:
    Provides the ONLY way to obtain configuration at runtime through
    ``get_active_config()``.  No other component reads configuration files
    directly.

Audit relevance:
    Every successful ``get_active_config()`` call emits a
    ``hris_config_loaded`` log entry with the source path and checksum.
"""

from __future__ import annotations

from pathlib import Path

from hris_config.loader import load_config_file, parse_config
from hris_config.schema import HrisConfig, StorageConfig
from hris_kernel.logging_config import get_logger

_logger = get_logger("config")

_DEFAULT_CONFIG_PATH = Path(__file__).parent / "defaults.yaml"


def get_active_config(config_path: Path | str | None = None) -> HrisConfig:
    """The ONLY public configuration entrypoint.

    Args:
        config_path: YAML file to load.  Defaults to hris_config/defaults.yaml.

    Raises:
        ConfigurationError: If the file is missing or invalid.
    """
    path = Path(config_path) if config_path is not None else _DEFAULT_CONFIG_PATH
    config = load_config_file(path)
    _logger.info(
        "hris_config_loaded",
        extra={
            "source": str(path),
            "checksum": config.checksum,
            "enforce_pan_routing_order": config.enforce_pan_routing_order,
        },
    )
    return config


__all__ = [
    "HrisConfig",
    "StorageConfig",
    "get_active_config",
    "parse_config",
]
