"""
LedgerConfig schema.

Typed, frozen view of a ledger configuration file.  YAML is parsed into
these types by the loader; nothing else in the system reads the file.
"""

from __future__ import annotations

from dataclasses import dataclass, field

# ---------------------------------------------------------------------------
# Database
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class DatabaseConfig:
    """Connection settings handed to ``asset_kernel.db.init_engine``."""

    url: str
    echo: bool = False
    pool_size: int = 5
    max_overflow: int = 10
    pool_timeout: int = 30
    pool_recycle: int = 1800


# ---------------------------------------------------------------------------
# Filter catalog seeds
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class CatalogConfig:
    """Seed values and strictness for the filter catalog."""

    bases: tuple[str, ...] = ()
    asset_types: tuple[str, ...] = ()
    strict: bool = True
    purchases_introduce_types: bool = True


# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class LoggingConfig:
    level: str = "INFO"


# ---------------------------------------------------------------------------
# Root
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class LedgerConfig:
    """The complete runtime configuration of one ledger deployment."""

    config_id: str
    version: int
    database: DatabaseConfig
    catalog: CatalogConfig = field(default_factory=CatalogConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    checksum: str = ""
