"""
ORM-level immutability enforcement for the movement ledger.

Movement records are an audit trail: once written they are never edited or
deleted.  Corrections are new offsetting movements, which leave a visible
paper trail.  This module intercepts UPDATE and DELETE of movement rows before
the SQL reaches the database:

    session.flush()
         |
         v
    [before_update] --> _check_movement_immutability() --> ImmutabilityViolationError
         |
    [before_delete] --> _check_movement_delete() ---------> ImmutabilityViolationError
         |
         v
    SQL sent to database (INSERTs only)

Sequence counters are not covered; SequenceService increments them in
place.

Usage:

    from asset_kernel.db.immutability import register_immutability_listeners
    register_immutability_listeners()  # once at startup

To temporarily disable (TESTS ONLY):

    unregister_immutability_listeners()
    ...
    register_immutability_listeners()
"""

from sqlalchemy import event
from sqlalchemy.exc import InvalidRequestError
from sqlalchemy.orm import Session

from asset_kernel.exceptions import ImmutabilityViolationError
from asset_kernel.logging_config import get_logger

logger = get_logger("db.immutability")


def _block(target, operation: str) -> None:
    logger.error(
        "immutability_violation_blocked",
        extra={
            "entity_type": "MovementRecord",
            "entity_id": str(target.id),
            "operation": operation,
        },
    )
    raise ImmutabilityViolationError(
        entity_type="MovementRecord",
        entity_id=str(target.id),
        reason="Movement records are append-only; record an offsetting movement instead",
    )


def _check_movement_immutability(mapper, connection, target):
    """Prevent any UPDATE of a movement row."""
    _block(target, "UPDATE")


def _check_movement_delete(mapper, connection, target):
    """Prevent any DELETE of a movement row."""
    _block(target, "DELETE")


def _check_bulk_operations(orm_execute_state):
    """
    Block ORM-enabled bulk UPDATE/DELETE statements against movement rows.

    ``session.execute(update(MovementRecordModel)...)`` bypasses the per-row
    mapper events, so it is checked here.
    """
    from asset_kernel.models.movement import MovementRecordModel

    if not (orm_execute_state.is_update or orm_execute_state.is_delete):
        return
    mapper = orm_execute_state.bind_mapper
    if mapper is not None and mapper.class_ is MovementRecordModel:
        operation = "UPDATE" if orm_execute_state.is_update else "DELETE"
        logger.error(
            "immutability_violation_blocked",
            extra={"entity_type": "MovementRecord", "operation": f"BULK {operation}"},
        )
        raise ImmutabilityViolationError(
            entity_type="MovementRecord",
            entity_id="*",
            reason=f"Bulk {operation} of movement records is not permitted",
        )


_registered = False


def register_immutability_listeners() -> None:
    """
    Register all immutability enforcement event listeners (idempotent).
    """
    global _registered
    from asset_kernel.models.movement import MovementRecordModel

    if _registered:
        return
    event.listen(MovementRecordModel, "before_update", _check_movement_immutability)
    event.listen(MovementRecordModel, "before_delete", _check_movement_delete)
    event.listen(Session, "do_orm_execute", _check_bulk_operations)
    _registered = True
    logger.debug("immutability_listeners_registered")


def _safe_remove_listener(target, event_name, listener_fn):
    """Remove an event listener, ignoring it if not registered."""
    try:
        event.remove(target, event_name, listener_fn)
    except InvalidRequestError:
        pass


def unregister_immutability_listeners() -> None:
    """
    Remove immutability enforcement event listeners.

    WARNING: Only for tests that simulate tampering.
    """
    global _registered
    from asset_kernel.models.movement import MovementRecordModel

    _safe_remove_listener(MovementRecordModel, "before_update", _check_movement_immutability)
    _safe_remove_listener(MovementRecordModel, "before_delete", _check_movement_delete)
    _safe_remove_listener(Session, "do_orm_execute", _check_bulk_operations)
    _registered = False

