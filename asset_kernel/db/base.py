"""
Module: asset_kernel.db.base
Responsibility: Declarative base for the asset kernel's ORM models.
Architecture position: Kernel > DB.  Lowest-level import target within the
    kernel.  MUST NOT import from models/, services/, selectors/, domain/.

Invariants enforced:
    - Every row has a uuid4 primary key, assigned by the domain constructor
      or by the column default.
    - Annotated ``datetime`` columns are UTCDateTime and ``UUID`` columns are
      UUIDString, so no model picks a backend-specific type by accident.
"""

from datetime import datetime
from typing import ClassVar
from uuid import UUID, uuid4

from sqlalchemy import BigInteger
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from asset_kernel.db.types import UTCDateTime, UUIDString


class Base(DeclarativeBase):
    """Declarative base; ``int`` annotations map to BigInteger for sequence columns."""

    type_annotation_map: ClassVar[dict] = {
        datetime: UTCDateTime(),
        UUID: UUIDString(),
        int: BigInteger,
    }

    id: Mapped[UUID] = mapped_column(UUIDString(), primary_key=True, default=uuid4)
