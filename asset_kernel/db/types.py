"""
Module: asset_kernel.db.types
Responsibility: Column types shared by every model (UTC timestamps, UUIDs
    stored as text) and the normalisation helper for query bounds.
Architecture position: Kernel > DB.  MUST NOT import from models/, domain/,
    services/ or selectors/.

Invariants enforced:
    - Every timestamp is stored as UTC.  Naive datetimes are rejected at bind
      time rather than silently interpreted in local time.
    - On read, timestamps are always timezone-aware UTC, including on SQLite
      which stores DATETIME values without an offset.
"""

from datetime import datetime, timezone
from uuid import UUID

from sqlalchemy import DateTime, String
from sqlalchemy.types import TypeDecorator


class UTCDateTime(TypeDecorator):
    """
    Timezone-aware datetime normalised to UTC.

    Contract:
        Bind: aware datetime -> UTC.  Naive datetime -> ValueError.
        Result: stored value -> aware UTC datetime.
    """

    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        if value.tzinfo is None:
            raise ValueError(f"Naive datetime not allowed: {value.isoformat()}")
        return value.astimezone(timezone.utc)

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        return ensure_utc(value)


class UUIDString(TypeDecorator):
    """UUID kept as its 36-character text form, so SQLite and PostgreSQL share one schema."""

    impl = String(36)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        return None if value is None else str(value)

    def process_result_value(self, value, dialect):
        return None if value is None else UUID(value)


def ensure_utc(value: datetime) -> datetime:
    """
    Normalise a datetime to aware UTC.

    Naive values are taken to already be UTC; the transport layer hands the
    engine ISO strings that may omit the offset.
    """
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)
