"""
Module: asset_kernel.selectors.movement_selector
Responsibility: Read-only queries over movement records: filtered history,
    id lookup, per-kind quantity sums for balance computation, and the
    distinct asset types / bases that feed the filter catalog.
Architecture position: Kernel > Selectors.  May import from models/,
    domain value types and selectors/base.py.

Invariants enforced:
    - History is ordered newest first (created_at DESC, seq DESC).  seq
      breaks ties between records sharing a timestamp (both transfer legs
      do), so repeating a query without intervening appends returns an
      identical sequence.
    - Every aggregate is a single SQL statement, so it reads one committed
      snapshot; a transfer pair is counted as both legs or neither.
    - Range queries return empty results, never NotFound.

Failure modes:
    - MovementNotFoundError from get() only.
"""

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from sqlalchemy import func, select, union
from sqlalchemy.orm import Session

from asset_kernel.db.types import ensure_utc
from asset_kernel.domain.movement import MovementRecord
from asset_kernel.domain.values import MovementKind
from asset_kernel.exceptions import InvalidQueryError, MovementNotFoundError
from asset_kernel.models.movement import MovementRecordModel
from asset_kernel.selectors.base import BaseSelector


@dataclass(frozen=True)
class MovementFilter:
    """
    Filter for movement history.  Every field is optional.

    ``date_from`` / ``date_to`` bound an inclusive window; ``created_before``
    is an exclusive upper bound used for opening-balance aggregation.
    """

    kinds: frozenset[MovementKind] | None = None
    asset_type: str | None = None
    base: str | None = None
    date_from: datetime | None = None
    date_to: datetime | None = None
    created_before: datetime | None = None
    limit: int | None = None
    offset: int | None = None

    def __post_init__(self) -> None:
        if self.limit is not None and self.limit < 0:
            raise InvalidQueryError("limit must be >= 0", field="limit")
        if self.offset is not None and self.offset < 0:
            raise InvalidQueryError("offset must be >= 0", field="offset")
        if (
            self.date_from is not None
            and self.date_to is not None
            and ensure_utc(self.date_from) > ensure_utc(self.date_to)
        ):
            raise InvalidQueryError("'from' is after 'to'", field="date_from")


def to_record(row: MovementRecordModel) -> MovementRecord:
    """Convert an ORM row to the immutable domain record."""
    return MovementRecord(
        id=row.id,
        seq=row.seq,
        kind=row.kind,
        asset_type=row.asset_type,
        asset_name=row.asset_name,
        quantity=row.quantity,
        base=row.base,
        counterpart_base=row.counterpart_base,
        transfer_id=row.transfer_id,
        actor_id=row.actor_id,
        actor_role=row.actor_role,
        assigned_to=row.assigned_to,
        expended_by=row.expended_by,
        created_at=row.created_at,
    )


class MovementSelector(BaseSelector[MovementRecordModel]):
    """
    Selector for movement history and aggregates.

    Non-goals:
        - No stored balances; sum_by_kind is computed at query time.
        - No pagination cursors; limit/offset only.
    """

    def __init__(self, session: Session):
        super().__init__(session)

    def _apply_filter(self, stmt, flt: MovementFilter):
        m = MovementRecordModel
        if flt.kinds is not None:
            stmt = stmt.where(m.kind.in_(sorted(flt.kinds, key=lambda k: k.value)))
        if flt.asset_type is not None:
            stmt = stmt.where(m.asset_type == flt.asset_type)
        if flt.base is not None:
            stmt = stmt.where(m.base == flt.base)
        if flt.date_from is not None:
            stmt = stmt.where(m.created_at >= ensure_utc(flt.date_from))
        if flt.date_to is not None:
            stmt = stmt.where(m.created_at <= ensure_utc(flt.date_to))
        if flt.created_before is not None:
            stmt = stmt.where(m.created_at < ensure_utc(flt.created_before))
        return stmt

    def query(self, flt: MovementFilter | None = None) -> list[MovementRecord]:
        """
        Movement history matching ``flt``, newest first.

        Returns:
            List of MovementRecord DTOs (empty when nothing matches).
        """
        flt = flt or MovementFilter()
        if flt.kinds is not None and not flt.kinds:
            return []

        stmt = self._apply_filter(select(MovementRecordModel), flt).order_by(
            MovementRecordModel.created_at.desc(),
            MovementRecordModel.seq.desc(),
        )
        if flt.limit is not None:
            stmt = stmt.limit(flt.limit)
        if flt.offset is not None:
            stmt = stmt.offset(flt.offset)

        rows = self.session.execute(stmt).scalars().all()
        return [to_record(r) for r in rows]

    def get(self, record_id: UUID) -> MovementRecord:
        """
        Look up one record by id.

        Raises:
            MovementNotFoundError: if no record has this id.
        """
        row = self.session.get(MovementRecordModel, record_id)
        if row is None:
            raise MovementNotFoundError(str(record_id))
        return to_record(row)

    def transfer_legs(self, transfer_id: UUID) -> list[MovementRecord]:
        """Both legs of a transfer, outbound first (empty if unknown)."""
        stmt = (
            select(MovementRecordModel)
            .where(MovementRecordModel.transfer_id == transfer_id)
            .order_by(MovementRecordModel.seq)
        )
        return [to_record(r) for r in self.session.execute(stmt).scalars().all()]

    def sum_by_kind(self, flt: MovementFilter) -> dict[MovementKind, int]:
        """
        Sum of quantity per kind over records matching ``flt``.

        Kinds with no matching records are absent from the result.
        """
        stmt = self._apply_filter(
            select(
                MovementRecordModel.kind,
                func.sum(MovementRecordModel.quantity),
            ),
            flt,
        ).group_by(MovementRecordModel.kind)

        return {kind: int(total or 0) for kind, total in self.session.execute(stmt).all()}

    def distinct_asset_types(self) -> set[str]:
        stmt = select(MovementRecordModel.asset_type).distinct()
        return set(self.session.execute(stmt).scalars().all())

    def distinct_bases(self) -> set[str]:
        """Every base named by a record, as owner or as transfer counterpart."""
        stmt = union(
            select(MovementRecordModel.base),
            select(MovementRecordModel.counterpart_base).where(
                MovementRecordModel.counterpart_base.is_not(None)
            ),
        )
        return set(self.session.execute(stmt).scalars().all())

    def count(self) -> int:
        stmt = select(func.count()).select_from(MovementRecordModel)
        return int(self.session.execute(stmt).scalar_one())
