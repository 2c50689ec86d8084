"""
LedgerStore -- Append-only persistence of movement records.

Responsibility:
    Appends single records and transfer pairs, and answers history queries.
    Records are never updated or deleted; the ORM immutability listeners
    reject any attempt.

Architecture position:
    Kernel > Services -- imperative shell.  Delegates sequence allocation to
    SequenceService and reads to MovementSelector.

Invariants enforced:
    - A transfer pair is written inside one savepoint: both legs or neither.
    - Every stored record gets a strictly increasing ``seq``.
    - A failed append leaves no partial rows behind.

Failure modes:
    - InvalidTransferPairError: legs do not mirror each other (nothing written).
    - TransferConflictError: the pair could not be persisted (nothing written).
    - ConflictError: a single record could not be persisted.
    - MovementNotFoundError: from get().

Non-goals:
    - Does NOT commit -- the caller owns the transaction.
"""

from __future__ import annotations

from uuid import UUID

from sqlalchemy import event
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from asset_kernel.domain.movement import MovementRecord, TransferPair, validate_transfer_pair
from asset_kernel.exceptions import ConflictError, TransferConflictError
from asset_kernel.logging_config import LogContext, get_logger
from asset_kernel.models.movement import MovementRecordModel
from asset_kernel.selectors.movement_selector import MovementFilter, MovementSelector
from asset_kernel.services.base import BaseService
from asset_kernel.services.filter_catalog import FilterCatalog
from asset_kernel.services.sequence_service import SequenceService

logger = get_logger("services.ledger_store")

# session.info key: catalogs already listening for this session's commit or rollback
_WATCHED_CATALOGS = "asset_kernel.watched_catalogs"


def _to_model(record: MovementRecord, seq: int) -> MovementRecordModel:
    return MovementRecordModel(
        id=record.id,
        seq=seq,
        kind=record.kind,
        asset_type=record.asset_type,
        asset_name=record.asset_name,
        quantity=record.quantity,
        base=record.base,
        counterpart_base=record.counterpart_base,
        transfer_id=record.transfer_id,
        actor_id=record.actor_id,
        actor_role=record.actor_role,
        assigned_to=record.assigned_to,
        expended_by=record.expended_by,
        created_at=record.created_at,
    )


class LedgerStore(BaseService[MovementRecordModel]):
    """
    Append-only store for movement records.

    Args:
        session: SQLAlchemy session; the caller commits.
        catalog: FilterCatalog to invalidate once an append commits.
    """

    def __init__(self, session: Session, catalog: FilterCatalog | None = None):
        super().__init__(session)
        self._catalog = catalog
        self._sequences = SequenceService(session)
        self._selector = MovementSelector(session)

    def _write(self, record: MovementRecord) -> MovementRecord:
        seq = self._sequences.next_value(SequenceService.MOVEMENT_RECORD)
        self.session.add(_to_model(record, seq))
        return record.with_seq(seq)

    def _invalidate_catalog(self) -> None:
        """Refresh now for this session, and again once the outcome is final."""
        if self._catalog is None:
            return
        catalog = self._catalog
        catalog.invalidate()

        # One pair of outcome listeners per (session, catalog), however many appends
        watched = self.session.info.setdefault(_WATCHED_CATALOGS, [])
        if any(known is catalog for known in watched):
            return
        watched.append(catalog)

        def _on_outcome(_session: Session) -> None:
            catalog.invalidate()

        for event_name in ("after_commit", "after_rollback"):
            event.listen(self.session, event_name, _on_outcome)

    def append(self, record: MovementRecord) -> MovementRecord:
        """
        Persist one record.

        Returns:
            The stored record, carrying its allocated ``seq``.

        Raises:
            ConflictError: the write failed; the savepoint was rolled back.
        """
        with LogContext.bind(record_id=str(record.id)):
            try:
                with self.session.begin_nested():
                    stored = self._write(record)
                    self.session.flush()
            except SQLAlchemyError as exc:
                logger.warning(
                    "movement_append_failed",
                    extra={"kind": record.kind.value, "error": str(exc)},
                )
                raise ConflictError(
                    f"Could not persist movement {record.id}: {exc.__class__.__name__}",
                    record_id=str(record.id),
                ) from exc

            self._invalidate_catalog()
            logger.info(
                "movement_recorded",
                extra={
                    "kind": stored.kind.value,
                    "seq": stored.seq,
                    "base": stored.base,
                    "asset_type": stored.asset_type,
                    "quantity": stored.quantity,
                },
            )
            return stored

    def append_pair(
        self,
        outbound: MovementRecord,
        inbound: MovementRecord,
    ) -> TransferPair:
        """
        Persist both legs of a transfer atomically.

        Raises:
            InvalidTransferPairError: the legs do not mirror each other.
            TransferConflictError: either write failed; neither leg is stored.
        """
        validate_transfer_pair(outbound, inbound)
        transfer_id = outbound.transfer_id

        with LogContext.bind(transfer_id=str(transfer_id)):
            try:
                with self.session.begin_nested():
                    stored_out = self._write(outbound)
                    stored_in = self._write(inbound)
                    self.session.flush()
            except SQLAlchemyError as exc:
                logger.warning(
                    "transfer_append_failed",
                    extra={"error": str(exc)},
                )
                raise TransferConflictError(
                    str(transfer_id), exc.__class__.__name__
                ) from exc

            self._invalidate_catalog()
            logger.info(
                "transfer_recorded",
                extra={
                    "from_base": stored_out.base,
                    "to_base": stored_in.base,
                    "asset_type": stored_out.asset_type,
                    "quantity": stored_out.quantity,
                    "seq_out": stored_out.seq,
                    "seq_in": stored_in.seq,
                },
            )
            return TransferPair(transfer_id=transfer_id, outbound=stored_out, inbound=stored_in)

    def query(self, flt: MovementFilter | None = None) -> list[MovementRecord]:
        """History matching ``flt``, newest first."""
        return self._selector.query(flt)

    def get(self, record_id: UUID) -> MovementRecord:
        return self._selector.get(record_id)
