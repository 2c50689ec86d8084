"""
MovementOrchestrator -- Coordinates recording and reading movements.

The orchestrator ties together:
- Authorization Policy: role and base rules (pure)
- Movement Record Model: record construction and validation (pure)
- Ledger Store: persistence
- Filter Catalog: known asset types and bases
- Balance Engine: derived figures

Every request is checked by the policy before anything is built or written;
a denied request persists nothing.  Reads are scoped the same way: a
commander sees only the home base and logistics never sees assignment or
expenditure history.

Does NOT commit.  The gateway (or the test) owns the transaction.
"""

from __future__ import annotations

import time
from datetime import datetime
from typing import Iterable
from uuid import UUID, uuid4

from sqlalchemy.orm import Session

from asset_kernel.domain.authorization import (
    DenyReason,
    authorize,
    check_view,
    scope_read,
    visible_kinds,
)
from asset_kernel.domain.balance import BalanceQuery, BalanceResult
from asset_kernel.domain.clock import Clock, SystemClock
from asset_kernel.domain.movement import (
    MovementRecord,
    MovementRequest,
    TransferPair,
    create_movement,
)
from asset_kernel.domain.values import Actor, MovementKind, Role
from asset_kernel.exceptions import AuthorizationError
from asset_kernel.logging_config import LogContext, get_logger
from asset_kernel.selectors.movement_selector import MovementFilter
from asset_kernel.services.balance_engine import BalanceEngine
from asset_kernel.services.filter_catalog import FilterCatalog
from asset_kernel.services.ledger_store import LedgerStore

logger = get_logger("services.movement_orchestrator")


class MovementOrchestrator:
    """
    Entry point of the engine for one session.

    Args:
        session: SQLAlchemy session; the caller commits or rolls back.
        catalog: Shared FilterCatalog.
        clock: Clock for ``created_at``.  Defaults to SystemClock.
    """

    def __init__(
        self,
        session: Session,
        catalog: FilterCatalog,
        clock: Clock | None = None,
    ):
        self._session = session
        self._catalog = catalog
        self._clock = clock or SystemClock()
        self._store = LedgerStore(session, catalog)
        self._balances = BalanceEngine(session)

    @property
    def catalog(self) -> FilterCatalog:
        return self._catalog

    def record_movement(
        self,
        actor: Actor,
        request: MovementRequest,
    ) -> MovementRecord | TransferPair:
        """
        Authorize, build and persist one movement.

        Returns:
            The stored MovementRecord, or a TransferPair for a transfer.

        Raises:
            AuthorizationError: the policy denied the request.
            ValidationError: the request is malformed.
            ConflictError: persistence failed; nothing was written.
        """
        with LogContext.bind(
            correlation_id=str(uuid4()),
            actor_id=actor.user_id,
            role=actor.role.value,
        ):
            logger.info(
                "movement_requested",
                extra={
                    "action": request.action.value,
                    "asset_type": request.asset_type,
                    "quantity": request.quantity,
                },
            )
            t0 = time.monotonic()

            snapshot = self._catalog.snapshot(self._session)
            decision = authorize(actor, request.action, request, known_bases=snapshot.bases)
            if not decision.allowed:
                logger.warning(
                    "authorization_denied",
                    extra={
                        "action": request.action.value,
                        "reason": decision.reason.value if decision.reason else None,
                    },
                )
                decision.raise_if_denied(actor, request.action)

            resolved = decision.apply_to(request)
            built = create_movement(resolved, actor, snapshot, self._clock)

            if isinstance(built, TransferPair):
                result: MovementRecord | TransferPair = self._store.append_pair(
                    built.outbound, built.inbound
                )
            else:
                result = self._store.append(built)

            logger.info(
                "movement_completed",
                extra={
                    "action": request.action.value,
                    "duration_ms": round((time.monotonic() - t0) * 1000, 2),
                },
            )
            return result

    def list_movements(
        self,
        actor: Actor,
        kinds: Iterable[MovementKind] = (),
        asset_type: str | None = None,
        base: str | None = None,
        date_from: datetime | None = None,
        date_to: datetime | None = None,
        limit: int | None = None,
        offset: int | None = None,
    ) -> list[MovementRecord]:
        """
        History visible to ``actor``, newest first.

        Raises:
            AuthorizationError(ViewNotPermitted): ``kinds`` names a kind the
                actor may not view.
            InvalidQueryError: malformed window or paging.
        """
        flt = MovementFilter(
            kinds=check_view(actor, kinds),
            asset_type=asset_type,
            base=scope_read(actor, base),
            date_from=date_from,
            date_to=date_to,
            limit=limit,
            offset=offset,
        )
        records = self._store.query(flt)
        logger.debug(
            "movements_listed",
            extra={"count": len(records), "base": flt.base},
        )
        return records

    def get_movement(self, actor: Actor, record_id: UUID) -> MovementRecord:
        """
        One record by id, if ``actor`` may view it.

        Raises:
            MovementNotFoundError: no such record.
            AuthorizationError(ViewNotPermitted): the record is outside the
                actor's view.
        """
        record = self._store.get(record_id)
        outside_base = actor.role is Role.COMMANDER and record.base != actor.home_base
        if outside_base or record.kind not in visible_kinds(actor):
            raise AuthorizationError(
                DenyReason.VIEW_NOT_PERMITTED.value,
                role=actor.role.value,
                action=f"view:{record.kind.value}",
            )
        return record

    def balance(self, actor: Actor, query: BalanceQuery) -> BalanceResult:
        """Balance figures for ``query``, scoped to the actor's base when a commander."""
        scoped_base = scope_read(actor, query.base)
        if scoped_base != query.base:
            query = BalanceQuery(
                asset_type=query.asset_type,
                base=scoped_base,
                date_from=query.date_from,
                date_to=query.date_to,
            )
        return self._balances.compute_balance(query)

    def known_asset_types(self) -> list[str]:
        return self._catalog.list_known_types(self._session)

    def known_bases(self) -> list[str]:
        return self._catalog.list_known_bases(self._session)
