"""
Pure domain core of the asset kernel: value types, movement records,
authorization rules and balance arithmetic.  Nothing here performs I/O.
"""

from asset_kernel.domain.authorization import (
    AuthorizationDecision,
    DenyReason,
    authorize,
    check_view,
    scope_read,
    visible_kinds,
)
from asset_kernel.domain.balance import BalanceQuery, BalanceResult, KindTotals, NetMovement
from asset_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from asset_kernel.domain.movement import (
    MAX_QUANTITY,
    CatalogSnapshot,
    MovementRecord,
    MovementRequest,
    TransferPair,
    create_movement,
    create_transfer,
    validate_quantity,
    validate_transfer_pair,
)
from asset_kernel.domain.values import Actor, MovementAction, MovementKind, Role

__all__ = [
    "MAX_QUANTITY",
    "Actor",
    "AuthorizationDecision",
    "BalanceQuery",
    "BalanceResult",
    "CatalogSnapshot",
    "Clock",
    "DenyReason",
    "DeterministicClock",
    "KindTotals",
    "MovementAction",
    "MovementKind",
    "MovementRecord",
    "MovementRequest",
    "NetMovement",
    "Role",
    "SystemClock",
    "TransferPair",
    "authorize",
    "check_view",
    "create_movement",
    "create_transfer",
    "scope_read",
    "validate_quantity",
    "validate_transfer_pair",
    "visible_kinds",
]
