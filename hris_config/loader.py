"""
Configuration Loader (``hris_config.loader``).

Responsibility
--------------
Loads the YAML configuration file and parses it into the frozen
``hris_config.schema`` dataclasses.  The single public entry point for
runtime config is ``hris_config.get_active_config()``.

Failure modes
-------------
* Missing YAML file  -> ``ConfigurationError``.
* Malformed YAML  -> ``ConfigurationError`` (wrapping ``yaml.YAMLError``).
* Missing required keys  -> ``ConfigurationError`` naming the key.
"""

from __future__ import annotations

import hashlib
import json
from pathlib import Path
from typing import Any

import yaml

from hris_config.schema import HrisConfig, StorageConfig
from hris_kernel.exceptions import ConfigurationError


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
    """
    with open(path) as f:
        return yaml.safe_load(f) or {}


def compute_checksum(data: dict[str, Any]) -> str:
    """SHA-256 checksum of the canonical JSON serialization of ``data``."""
    canonical = json.dumps(data, sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode()).hexdigest()


def _require(data: dict[str, Any], key: str, source: str) -> Any:
    if key not in data or data[key] in (None, ""):
        raise ConfigurationError(source, f"missing required key '{key}'")
    return data[key]


def _roles(data: dict[str, Any], key: str, source: str) -> tuple[str, ...]:
    value = _require(data, key, source)
    if not isinstance(value, list) or not value:
        raise ConfigurationError(source, f"'{key}' must be a non-empty list")
    return tuple(str(v) for v in value)


def parse_storage(data: dict[str, Any], source: str) -> StorageConfig:
    """Parse a StorageConfig from the ``storage`` mapping."""
    ttl = int(data.get("signed_url_ttl_seconds", 86400))
    if ttl <= 0:
        raise ConfigurationError(source, "signed_url_ttl_seconds must be positive")
    return StorageConfig(
        base_url=_require(data, "base_url", source),
        signing_secret=_require(data, "signing_secret", source),
        signed_url_ttl_seconds=ttl,
        announcements_bucket=data.get("announcements_bucket", "announcements_attachments"),
        documents_bucket=data.get("documents_bucket", "documents"),
    )


def parse_config(data: dict[str, Any], source: str = "<dict>") -> HrisConfig:
    """
    Parse an ``HrisConfig`` from a dict.

    Raises:
        ConfigurationError: if required keys are missing or invalid.
    """
    sla = data.get("ticket_sla_hours") or {}
    if not isinstance(sla, dict):
        raise ConfigurationError(source, "'ticket_sla_hours' must be a mapping")

    return HrisConfig(
        database_url=_require(data, "database_url", source),
        currency=str(data.get("currency", "PHP")),
        company_name=str(data.get("company_name", "")),
        hr_roles=_roles(data, "hr_roles", source),
        board_roles=_roles(data, "board_roles", source),
        fulfillment_roles=_roles(data, "fulfillment_roles", source),
        storage=parse_storage(_require(data, "storage", source), source),
        ticket_sla_hours={str(k): int(v) for k, v in sla.items()},
        enforce_pan_routing_order=bool(data.get("enforce_pan_routing_order", False)),
        checksum=compute_checksum(data),
    )


def load_config_file(path: Path) -> HrisConfig:
    """Load and parse one configuration file."""
    source = str(path)
    try:
        data = load_yaml_file(path)
    except FileNotFoundError:
        raise ConfigurationError(source, "file not found") from None
    except yaml.YAMLError as exc:
        raise ConfigurationError(source, f"invalid YAML: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigurationError(source, "top level must be a mapping")
    return parse_config(data, source)
