"""Kernel services: the imperative shell around the pure domain core."""

from asset_kernel.services.balance_engine import BalanceEngine
from asset_kernel.services.filter_catalog import FilterCatalog
from asset_kernel.services.ledger_store import LedgerStore
from asset_kernel.services.movement_orchestrator import MovementOrchestrator
from asset_kernel.services.sequence_service import SequenceService

__all__ = [
    "BalanceEngine",
    "FilterCatalog",
    "LedgerStore",
    "MovementOrchestrator",
    "SequenceService",
]
