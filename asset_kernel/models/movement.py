"""
Module: asset_kernel.models.movement
Responsibility: ORM persistence for movement records -- the single source of
    truth for every inventory figure in the system.
Architecture position: Kernel > Models.  May import from db/ and the pure
    value vocabulary in domain/values.py.  MUST NOT import from services/
    or selectors/.

Invariants enforced:
    - 0 < quantity <= 2147483647 (CHECK constraints, also validated before
      insert).
    - seq is unique and monotonic (allocated by SequenceService).
    - Rows are append-only: ORM listeners in db/immutability.py reject any
      UPDATE or DELETE.
    - Transfer legs share transfer_id; counterpart_base is set only on legs.

Failure modes:
    - IntegrityError on duplicate id/seq or a violated CHECK constraint.
    - ImmutabilityViolationError on UPDATE/DELETE.
"""

from datetime import datetime
from uuid import UUID

from sqlalchemy import BigInteger, CheckConstraint, Enum, Index, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from asset_kernel.db.base import Base
from asset_kernel.db.types import UUIDString
from asset_kernel.domain.values import MovementKind, Role


class MovementRecordModel(Base):
    """
    One inventory-affecting event attributed to a single base.

    Contract:
        Purchase / Assignment / Expenditure rows are attributed to the owning
        base.  A transfer is two rows: TRANSFER_OUT at the source base and
        TRANSFER_IN at the destination, each naming the other side in
        counterpart_base and sharing transfer_id.

    Non-goals:
        - No stored balances.  Every figure is aggregated at query time.
    """

    __tablename__ = "movement_records"

    __table_args__ = (
        UniqueConstraint("seq", name="uq_movement_seq"),
        CheckConstraint("quantity > 0", name="ck_movement_quantity_positive"),
        CheckConstraint("quantity <= 2147483647", name="ck_movement_quantity_max"),
        Index("idx_movement_base_type", "base", "asset_type"),
        Index("idx_movement_kind", "kind"),
        Index("idx_movement_created_at", "created_at"),
        Index("idx_movement_transfer", "transfer_id"),
    )

    seq: Mapped[int] = mapped_column(BigInteger, nullable=False)

    kind: Mapped[MovementKind] = mapped_column(
        Enum(MovementKind, native_enum=False, length=20,
             values_callable=lambda e: [m.value for m in e]),
        nullable=False,
    )

    asset_type: Mapped[str] = mapped_column(String(100), nullable=False)

    asset_name: Mapped[str] = mapped_column(String(255), nullable=False)

    quantity: Mapped[int] = mapped_column(Integer, nullable=False)

    # Owning base; source for TRANSFER_OUT, destination for TRANSFER_IN
    base: Mapped[str] = mapped_column(String(100), nullable=False)

    counterpart_base: Mapped[str | None] = mapped_column(String(100), nullable=True)

    transfer_id: Mapped[UUID | None] = mapped_column(UUIDString(), nullable=True)

    actor_id: Mapped[str] = mapped_column(String(100), nullable=False)

    actor_role: Mapped[Role] = mapped_column(
        Enum(Role, native_enum=False, length=20,
             values_callable=lambda e: [m.value for m in e]),
        nullable=False,
    )

    assigned_to: Mapped[str | None] = mapped_column(String(255), nullable=True)

    expended_by: Mapped[str | None] = mapped_column(String(255), nullable=True)

    created_at: Mapped[datetime] = mapped_column(nullable=False)

    def __repr__(self) -> str:
        return (
            f"<MovementRecordModel {self.kind.value} seq={self.seq} "
            f"{self.quantity}x{self.asset_type} @ {self.base}>"
        )
