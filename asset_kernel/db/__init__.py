"""Database layer - engine, base classes, column types and immutability."""

from asset_kernel.db.base import Base
from asset_kernel.db.engine import (
    create_tables,
    drop_tables,
    get_engine,
    get_session,
    get_session_factory,
    init_engine,
    init_engine_from_url,
    reset_engine,
    session_scope,
)
from asset_kernel.db.types import UTCDateTime, UUIDString, ensure_utc

__all__ = [
    "Base",
    "UUIDString",
    "UTCDateTime",
    "create_tables",
    "drop_tables",
    "ensure_utc",
    "get_engine",
    "get_session",
    "get_session_factory",
    "init_engine",
    "init_engine_from_url",
    "reset_engine",
    "session_scope",
]
