"""
Values -- Immutable domain value types for the movement ledger.

Responsibility:
    Defines the closed vocabularies (movement kinds, requested actions,
    roles) and the ``Actor`` identity triple handed to the engine by the
    excluded authentication layer.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.

Invariants enforced:
    - A record has exactly one ``MovementKind``; a logical transfer is the
      ``TRANSFER`` action, persisted as ``TRANSFER_OUT`` + ``TRANSFER_IN``.
    - A ``commander`` actor always carries a home base.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class MovementKind(str, Enum):
    """Kind of a persisted movement record.

    Contract: Exactly one kind per record; fixed at creation.
    """

    PURCHASE = "purchase"
    TRANSFER_IN = "transfer_in"
    TRANSFER_OUT = "transfer_out"
    ASSIGNMENT = "assignment"
    EXPENDITURE = "expenditure"

    @property
    def is_transfer_leg(self) -> bool:
        return self in (MovementKind.TRANSFER_IN, MovementKind.TRANSFER_OUT)


class MovementAction(str, Enum):
    """Action an actor asks to perform.

    ``TRANSFER`` is one logical action that produces two records.
    """

    PURCHASE = "purchase"
    TRANSFER = "transfer"
    ASSIGNMENT = "assignment"
    EXPENDITURE = "expenditure"

    @classmethod
    def parse(cls, value: str | MovementAction) -> MovementAction:
        """Parse a case-insensitive action name (``"Transfer"`` -> TRANSFER)."""
        if isinstance(value, MovementAction):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise ValueError(f"Unknown movement action: {value!r}") from None

    @property
    def kinds(self) -> tuple[MovementKind, ...]:
        """Record kinds this action produces."""
        if self is MovementAction.TRANSFER:
            return (MovementKind.TRANSFER_OUT, MovementKind.TRANSFER_IN)
        return (MovementKind(self.value),)


class Role(str, Enum):
    """Operator role, supplied by the authenticated session."""

    ADMIN = "admin"
    COMMANDER = "commander"
    LOGISTICS = "logistics"


@dataclass(frozen=True, slots=True)
class Actor:
    """
    Opaque ``(user_id, role, home_base)`` triple for the acting user.

    The engine never authenticates; it trusts the transport layer to have
    done so and only applies role/base rules.
    """

    user_id: str
    role: Role
    home_base: str | None = None

    def __post_init__(self) -> None:
        if not isinstance(self.role, Role):
            object.__setattr__(self, "role", Role(self.role))
        if not self.user_id or not str(self.user_id).strip():
            raise ValueError("Actor user_id must be non-empty")
        if self.role is Role.COMMANDER and not self.home_base:
            raise ValueError("A commander actor must have a home base")
