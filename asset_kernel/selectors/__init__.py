"""Selectors for the asset kernel (read side)."""

from asset_kernel.selectors.base import BaseSelector
from asset_kernel.selectors.movement_selector import MovementFilter, MovementSelector

__all__ = [
    "BaseSelector",
    "MovementFilter",
    "MovementSelector",
]
