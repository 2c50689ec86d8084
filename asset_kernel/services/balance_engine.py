"""
BalanceEngine -- Derives balance figures from the movement history.

Responsibility:
    Computes opening balance, closing balance, assigned, expended and net
    movement for a BalanceQuery.  Nothing is stored; every figure is summed
    from the ledger at query time.

Architecture position:
    Kernel > Services.  Read-only: fetches per-kind sums through
    MovementSelector and hands them to the pure arithmetic in
    ``asset_kernel.domain.balance``.

Invariants enforced:
    - closing == opening + purchases + transfer_in - transfer_out
                 - assigned - expended
    - Opening balance covers every record strictly before ``date_from``;
      it is 0 when the query has no window start.
    - Each sum is one SQL statement, so a concurrently committed transfer
      is seen as both legs or neither.
"""

from __future__ import annotations

import time

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from asset_kernel.domain.balance import BalanceQuery, BalanceResult, KindTotals
from asset_kernel.exceptions import LedgerReadError
from asset_kernel.logging_config import get_logger
from asset_kernel.selectors.movement_selector import MovementFilter, MovementSelector

logger = get_logger("services.balance_engine")


class BalanceEngine:
    """Computes balances for a base/asset type/window selection."""

    def __init__(self, session: Session):
        self._selector = MovementSelector(session)

    def _totals(self, flt: MovementFilter) -> KindTotals:
        try:
            return KindTotals.from_mapping(self._selector.sum_by_kind(flt))
        except SQLAlchemyError as exc:
            logger.error(
                "balance_read_failed",
                extra={"base": flt.base, "asset_type": flt.asset_type, "error": str(exc)},
            )
            raise LedgerReadError("balance", exc.__class__.__name__) from exc

    def compute_balance(self, query: BalanceQuery) -> BalanceResult:
        """
        Derive balance figures for ``query``.

        Returns:
            BalanceResult.  A selection matching no records yields all zeros.

        Raises:
            LedgerReadError: a sum failed in the store.
        """
        t0 = time.monotonic()

        window = self._totals(
            MovementFilter(
                asset_type=query.asset_type,
                base=query.base,
                date_from=query.date_from,
                date_to=query.date_to,
            )
        )

        opening = None
        if query.has_window_start:
            opening = self._totals(
                MovementFilter(
                    asset_type=query.asset_type,
                    base=query.base,
                    created_before=query.date_from,
                )
            )

        result = BalanceResult.from_totals(opening, window)
        logger.info(
            "balance_computed",
            extra={
                "base": query.base,
                "asset_type": query.asset_type,
                "date_from": query.date_from,
                "date_to": query.date_to,
                "opening_balance": result.opening_balance,
                "closing_balance": result.closing_balance,
                "duration_ms": round((time.monotonic() - t0) * 1000, 2),
            },
        )
        return result
