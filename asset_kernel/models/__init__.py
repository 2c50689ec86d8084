"""ORM models for the asset kernel."""

from asset_kernel.models.movement import MovementRecordModel
from asset_kernel.models.sequence_counter import SequenceCounter

__all__ = [
    "MovementRecordModel",
    "SequenceCounter",
]
