"""
asset_config -- single public entrypoint for ledger configuration.

Responsibility:
    Provides the ONLY way to obtain configuration at runtime through
    ``get_active_config()``.  Returns a frozen ``LedgerConfig``.

Architecture position:
    Configuration -- sits beside ``asset_kernel`` and below
    ``asset_services``.  The kernel never imports from ``asset_config``;
    the gateway and scripts translate a LedgerConfig into kernel inputs
    (an engine URL, a FilterCatalog).

Invariants enforced:
    - Single entrypoint: runtime config flows through ``get_active_config()``.
    - Deterministic checksum: the same YAML always yields the same checksum.
    - ``ASSET_LEDGER_DATABASE_URL`` overrides ``database.url`` when set.

Audit relevance:
    Every successful ``get_active_config()`` call emits an
    ``ASSET_CONFIG_TRACE`` log entry containing the config_id, version,
    checksum and catalog seed counts.
"""

from __future__ import annotations

import logging
import os
from dataclasses import replace
from pathlib import Path

from asset_config.loader import load_yaml_file, parse_ledger_config
from asset_config.schema import CatalogConfig, DatabaseConfig, LedgerConfig, LoggingConfig

_logger = logging.getLogger("asset_kernel.config")

_DEFAULT_CONFIG_PATH = Path(__file__).parent / "sets" / "default.yaml"

DATABASE_URL_ENV = "ASSET_LEDGER_DATABASE_URL"
CONFIG_PATH_ENV = "ASSET_LEDGER_CONFIG"


def get_active_config(config_path: Path | str | None = None) -> LedgerConfig:
    """The ONLY public configuration entrypoint.

    Resolution order for the file: ``config_path``, then the
    ``ASSET_LEDGER_CONFIG`` environment variable, then the packaged
    ``sets/default.yaml``.

    Raises:
        FileNotFoundError: the configuration file does not exist.
        KeyError: a required key is missing.
        ValueError: a value is malformed.
        yaml.YAMLError: the file is not valid YAML.
    """
    path = Path(config_path or os.environ.get(CONFIG_PATH_ENV) or _DEFAULT_CONFIG_PATH)
    config = parse_ledger_config(load_yaml_file(path))

    url_override = os.environ.get(DATABASE_URL_ENV)
    if url_override:
        config = replace(config, database=replace(config.database, url=url_override))

    _logger.info(
        "ASSET_CONFIG_TRACE",
        extra={
            "trace_type": "ASSET_CONFIG_TRACE",
            "config_id": config.config_id,
            "config_version": config.version,
            "checksum": config.checksum,
            "config_path": str(path),
            "base_seed_count": len(config.catalog.bases),
            "asset_type_seed_count": len(config.catalog.asset_types),
            "strict_catalog": config.catalog.strict,
        },
    )
    return config


__all__ = [
    "CatalogConfig",
    "DatabaseConfig",
    "LedgerConfig",
    "LoggingConfig",
    "get_active_config",
]
