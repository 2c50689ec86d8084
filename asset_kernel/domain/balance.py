"""
Balance -- Value types and arithmetic for derived balance figures.

Responsibility:
    Defines ``BalanceQuery`` (the dashboard selection), ``KindTotals`` (sum of
    quantity per movement kind over some set of records) and
    ``BalanceResult``, and the pure arithmetic that combines an opening
    window and a reporting window into a result.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.  The BalanceEngine
    service fetches the totals; everything here is arithmetic.

Invariants enforced:
    - closing == opening + purchases + transfer_in - transfer_out
                 - assigned - expended
    - Net movement and closing balance are signed and never clamped; a
      negative value is an upstream anomaly for the UI to flag.
    - An empty term is 0, never an error.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Mapping

from asset_kernel.domain.values import MovementKind
from asset_kernel.exceptions import InvalidQueryError


@dataclass(frozen=True, slots=True)
class BalanceQuery:
    """
    Selection for a balance computation.  Every field is optional; absence
    means unconstrained.  The window is inclusive at both ends.
    """

    asset_type: str | None = None
    base: str | None = None
    date_from: datetime | None = None
    date_to: datetime | None = None

    def __post_init__(self) -> None:
        for name in ("date_from", "date_to"):
            value = getattr(self, name)
            if value is not None and value.tzinfo is None:
                raise InvalidQueryError("window bounds must be timezone-aware", field=name)
        if (
            self.date_from is not None
            and self.date_to is not None
            and self.date_from > self.date_to
        ):
            raise InvalidQueryError("'from' is after 'to'", field="date_from")

    @property
    def has_window_start(self) -> bool:
        return self.date_from is not None


@dataclass(frozen=True, slots=True)
class KindTotals:
    """Sum of ``quantity`` per movement kind."""

    purchases: int = 0
    transfer_in: int = 0
    transfer_out: int = 0
    assigned: int = 0
    expended: int = 0

    @classmethod
    def from_mapping(cls, sums: Mapping[MovementKind, int | None]) -> KindTotals:
        def get(kind: MovementKind) -> int:
            return int(sums.get(kind) or 0)

        return cls(
            purchases=get(MovementKind.PURCHASE),
            transfer_in=get(MovementKind.TRANSFER_IN),
            transfer_out=get(MovementKind.TRANSFER_OUT),
            assigned=get(MovementKind.ASSIGNMENT),
            expended=get(MovementKind.EXPENDITURE),
        )

    @property
    def net_movement(self) -> int:
        return self.purchases + self.transfer_in - self.transfer_out

    @property
    def running_total(self) -> int:
        return self.net_movement - self.assigned - self.expended


@dataclass(frozen=True, slots=True)
class NetMovement:
    """Breakdown shown behind the dashboard's net movement figure."""

    purchases: int
    transfer_in: int
    transfer_out: int

    @property
    def net(self) -> int:
        return self.purchases + self.transfer_in - self.transfer_out


@dataclass(frozen=True, slots=True)
class BalanceResult:
    """Derived balance figures for one BalanceQuery."""

    opening_balance: int
    closing_balance: int
    assigned: int
    expended: int
    net_movement: NetMovement

    @classmethod
    def from_totals(cls, opening: KindTotals | None, window: KindTotals) -> BalanceResult:
        """
        Combine the pre-window totals and the window totals.

        ``opening`` is None when the query has no window start; the full
        history is then the window and the opening balance is 0.
        """
        opening_balance = opening.running_total if opening is not None else 0
        net = NetMovement(
            purchases=window.purchases,
            transfer_in=window.transfer_in,
            transfer_out=window.transfer_out,
        )
        return cls(
            opening_balance=opening_balance,
            closing_balance=opening_balance + net.net - window.assigned - window.expended,
            assigned=window.assigned,
            expended=window.expended,
            net_movement=net,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "openingBalance": self.opening_balance,
            "closingBalance": self.closing_balance,
            "assigned": self.assigned,
            "expended": self.expended,
            "netMovement": {
                "purchases": self.net_movement.purchases,
                "transferIn": self.net_movement.transfer_in,
                "transferOut": self.net_movement.transfer_out,
                "net": self.net_movement.net,
            },
        }
