"""
Configuration Loader (``asset_config.loader``).

Responsibility
--------------
Loads a YAML configuration file and parses it into the typed
``asset_config.schema`` dataclasses.  Callers obtain configuration through
``asset_config.get_active_config()``; this module is the parsing layer
underneath it.

Invariants enforced
-------------------
* Required keys (``config_id``, ``version``, ``database.url``) raise
  ``KeyError`` when absent; there are no silent defaults for them.
* Every parsed object is a frozen dataclass from ``schema.py``.
* ``compute_checksum`` produces a deterministic SHA-256 hash for
  configuration identity and change detection.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Missing required keys  -> ``KeyError`` propagates.
* Wrongly typed values  -> ``ValueError``.
"""

from __future__ import annotations

import hashlib
import json
from pathlib import Path
from typing import Any

import yaml

from asset_config.schema import CatalogConfig, DatabaseConfig, LedgerConfig, LoggingConfig

_LOG_LEVELS = frozenset({"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"})


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
        ValueError: if the document is not a mapping.
    """
    with open(path) as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Configuration root must be a mapping: {path}")
    return data


def _string_tuple(data: dict[str, Any], key: str) -> tuple[str, ...]:
    values = data.get(key) or []
    if not isinstance(values, list):
        raise ValueError(f"'{key}' must be a list, got {type(values).__name__}")
    cleaned = []
    for value in values:
        text = str(value).strip()
        if not text:
            raise ValueError(f"'{key}' contains a blank entry")
        cleaned.append(text)
    return tuple(dict.fromkeys(cleaned))


def parse_database(data: dict[str, Any]) -> DatabaseConfig:
    """Parse a DatabaseConfig from a dict."""
    return DatabaseConfig(
        url=data["url"],
        echo=bool(data.get("echo", False)),
        pool_size=int(data.get("pool_size", 5)),
        max_overflow=int(data.get("max_overflow", 10)),
        pool_timeout=int(data.get("pool_timeout", 30)),
        pool_recycle=int(data.get("pool_recycle", 1800)),
    )


def parse_catalog(data: dict[str, Any]) -> CatalogConfig:
    """Parse a CatalogConfig from a dict."""
    return CatalogConfig(
        bases=_string_tuple(data, "bases"),
        asset_types=_string_tuple(data, "asset_types"),
        strict=bool(data.get("strict", True)),
        purchases_introduce_types=bool(data.get("purchases_introduce_types", True)),
    )


def parse_logging(data: dict[str, Any]) -> LoggingConfig:
    level = str(data.get("level", "INFO")).upper()
    if level not in _LOG_LEVELS:
        raise ValueError(f"Unknown log level: {level}")
    return LoggingConfig(level=level)


def parse_ledger_config(data: dict[str, Any]) -> LedgerConfig:
    """
    Parse the root document.

    Raises:
        KeyError: a required key is missing.
    """
    return LedgerConfig(
        config_id=data["config_id"],
        version=int(data["version"]),
        database=parse_database(data["database"]),
        catalog=parse_catalog(data.get("catalog") or {}),
        logging=parse_logging(data.get("logging") or {}),
        checksum=compute_checksum(data),
    )


def compute_checksum(data: dict[str, Any]) -> str:
    """
    Compute SHA-256 checksum of canonical JSON serialization.

    Identical ``data`` always produces identical checksums.
    """
    canonical = json.dumps(data, sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode()).hexdigest()
