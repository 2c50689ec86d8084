"""
Movement -- Canonical movement record model and its constructors.

Responsibility:
    Turns an already-authorized ``MovementRequest`` into immutable
    ``MovementRecord`` values: validates the fields each kind requires,
    checks asset type and bases against the filter catalog, and assigns
    ``id`` and ``created_at``.  A transfer request yields a ``TransferPair``
    (TRANSFER_OUT at the source, TRANSFER_IN at the destination).

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.  Time comes from an
    injected Clock; catalog membership from a ``CatalogSnapshot`` value.

Invariants enforced:
    - quantity is an ``int`` (never ``bool``) in 1..MAX_QUANTITY; never clamped.
    - kind is fixed at construction (frozen dataclass).
    - Transfer legs share transfer_id, created_at, quantity, asset_type and
      asset_name, and name each other's base (``validate_transfer_pair``).
    - Unknown bases are rejected.  Unknown asset types are rejected unless
      the catalog lets purchases introduce new types.

Failure modes:
    - InvalidQuantityError, MissingFieldError, UnknownBaseError,
      UnknownAssetTypeError, InvalidTransferPairError (all ValidationError).
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Any
from uuid import UUID, uuid4

from asset_kernel.domain.clock import Clock
from asset_kernel.domain.values import Actor, MovementAction, MovementKind, Role
from asset_kernel.exceptions import (
    InvalidQuantityError,
    InvalidTransferPairError,
    MissingFieldError,
    UnknownAssetTypeError,
    UnknownBaseError,
)


@dataclass(frozen=True, slots=True)
class MovementRecord:
    """
    One inventory-affecting event.  Immutable once created.

    ``seq`` is None until the Ledger Store has persisted the record.
    """

    id: UUID
    kind: MovementKind
    asset_type: str
    asset_name: str
    quantity: int
    base: str
    actor_id: str
    actor_role: Role
    created_at: datetime
    counterpart_base: str | None = None
    transfer_id: UUID | None = None
    assigned_to: str | None = None
    expended_by: str | None = None
    seq: int | None = None

    def with_seq(self, seq: int) -> MovementRecord:
        return replace(self, seq=seq)

    def to_dict(self) -> dict[str, Any]:
        """Logical wire form (camelCase), omitting kind-inapplicable fields."""
        data: dict[str, Any] = {
            "id": str(self.id),
            "seq": self.seq,
            "kind": self.kind.value,
            "assetType": self.asset_type,
            "assetName": self.asset_name,
            "quantity": self.quantity,
            "base": self.base,
            "actor": {"userId": self.actor_id, "role": self.actor_role.value},
            "createdAt": self.created_at.isoformat(),
        }
        if self.kind.is_transfer_leg:
            data["counterpartBase"] = self.counterpart_base
            data["transferId"] = str(self.transfer_id)
        if self.kind is MovementKind.ASSIGNMENT:
            data["assignedTo"] = self.assigned_to
        if self.kind is MovementKind.EXPENDITURE:
            data["expendedBy"] = self.expended_by
        return data


@dataclass(frozen=True, slots=True)
class TransferPair:
    """Both legs of one logical transfer."""

    transfer_id: UUID
    outbound: MovementRecord
    inbound: MovementRecord

    def __iter__(self):
        yield self.outbound
        yield self.inbound


@dataclass(frozen=True, slots=True)
class MovementRequest:
    """
    A movement as requested by an actor, after base resolution.

    For PURCHASE / ASSIGNMENT / EXPENDITURE ``base`` names the owning base;
    for TRANSFER ``from_base`` and ``to_base`` are used instead.
    """

    action: MovementAction
    asset_type: str
    asset_name: str
    quantity: Any
    base: str | None = None
    from_base: str | None = None
    to_base: str | None = None
    assigned_to: str | None = None
    expended_by: str | None = None

    def with_bases(
        self,
        base: str | None = None,
        from_base: str | None = None,
    ) -> MovementRequest:
        """Return a copy with policy-resolved bases applied."""
        return replace(
            self,
            base=base if base is not None else self.base,
            from_base=from_base if from_base is not None else self.from_base,
        )


@dataclass(frozen=True)
class CatalogSnapshot:
    """
    Point-in-time view of the known asset types and bases.

    Produced by the FilterCatalog service; consumed here as a plain value.
    """

    asset_types: frozenset[str] = field(default_factory=frozenset)
    bases: frozenset[str] = field(default_factory=frozenset)
    strict: bool = True
    purchases_introduce_types: bool = True

    def check_base(self, base: str, field_name: str = "base") -> None:
        if self.strict and base not in self.bases:
            raise UnknownBaseError(base, field=field_name)

    def check_asset_type(self, asset_type: str, action: MovementAction) -> None:
        if not self.strict or asset_type in self.asset_types:
            return
        if action is MovementAction.PURCHASE and self.purchases_introduce_types:
            return
        raise UnknownAssetTypeError(asset_type)


# Upper bound of the 32-bit quantity column
MAX_QUANTITY = 2**31 - 1


def validate_quantity(quantity: Any) -> int:
    """Return ``quantity`` if it is an int in 1..MAX_QUANTITY; never coerce."""
    if (
        isinstance(quantity, bool)
        or not isinstance(quantity, int)
        or not 0 < quantity <= MAX_QUANTITY
    ):
        raise InvalidQuantityError(quantity)
    return quantity


def _require(value: str | None, field_name: str, action: MovementAction) -> str:
    if value is None or not str(value).strip():
        raise MissingFieldError(field_name, action.value)
    return str(value).strip()


def _common_fields(request: MovementRequest, catalog: CatalogSnapshot) -> tuple[int, str, str]:
    action = request.action
    quantity = validate_quantity(request.quantity)
    asset_type = _require(request.asset_type, "asset_type", action)
    asset_name = _require(request.asset_name, "asset_name", action)
    catalog.check_asset_type(asset_type, action)
    return quantity, asset_type, asset_name


def create_movement(
    request: MovementRequest,
    actor: Actor,
    catalog: CatalogSnapshot,
    clock: Clock,
) -> MovementRecord | TransferPair:
    """
    Build the record(s) for an authorized movement request.

    Preconditions:
        ``request`` has passed the Authorization Policy and carries the
        resolved bases (commander overrides already applied).

    Postconditions:
        Returns a MovementRecord, or a TransferPair for TRANSFER.  Nothing
        is persisted here.

    Raises:
        ValidationError subclasses (see module docstring).
    """
    action = request.action
    if action is MovementAction.TRANSFER:
        return create_transfer(request, actor, catalog, clock)

    quantity, asset_type, asset_name = _common_fields(request, catalog)

    base = _require(request.base, "base", action)
    catalog.check_base(base)

    assigned_to = None
    expended_by = None
    if action is MovementAction.ASSIGNMENT:
        assigned_to = _require(request.assigned_to, "assigned_to", action)
    elif action is MovementAction.EXPENDITURE:
        expended_by = (request.expended_by or "").strip() or actor.user_id

    return MovementRecord(
        id=uuid4(),
        kind=MovementKind(action.value),
        asset_type=asset_type,
        asset_name=asset_name,
        quantity=quantity,
        base=base,
        actor_id=actor.user_id,
        actor_role=actor.role,
        created_at=clock.now_utc(),
        assigned_to=assigned_to,
        expended_by=expended_by,
    )


def create_transfer(
    request: MovementRequest,
    actor: Actor,
    catalog: CatalogSnapshot,
    clock: Clock,
) -> TransferPair:
    """Build the TRANSFER_OUT / TRANSFER_IN legs for a transfer request."""
    action = request.action
    quantity, asset_type, asset_name = _common_fields(request, catalog)
    from_base = _require(request.from_base, "from_base", action)
    to_base = _require(request.to_base, "to_base", action)
    catalog.check_base(from_base, "from_base")
    catalog.check_base(to_base, "to_base")

    transfer_id = uuid4()
    if from_base == to_base:
        raise InvalidTransferPairError(str(transfer_id), "source and destination are the same base")

    created_at = clock.now_utc()
    common = dict(
        asset_type=asset_type,
        asset_name=asset_name,
        quantity=quantity,
        actor_id=actor.user_id,
        actor_role=actor.role,
        created_at=created_at,
        transfer_id=transfer_id,
    )
    outbound = MovementRecord(
        id=uuid4(),
        kind=MovementKind.TRANSFER_OUT,
        base=from_base,
        counterpart_base=to_base,
        **common,
    )
    inbound = MovementRecord(
        id=uuid4(),
        kind=MovementKind.TRANSFER_IN,
        base=to_base,
        counterpart_base=from_base,
        **common,
    )
    return TransferPair(transfer_id=transfer_id, outbound=outbound, inbound=inbound)


def validate_transfer_pair(outbound: MovementRecord, inbound: MovementRecord) -> None:
    """
    Check that two records are the mirrored legs of one transfer.

    Raises:
        InvalidTransferPairError: naming the first mismatch found.
    """
    tid = str(outbound.transfer_id)
    if outbound.kind is not MovementKind.TRANSFER_OUT:
        raise InvalidTransferPairError(tid, f"outbound leg has kind {outbound.kind.value}")
    if inbound.kind is not MovementKind.TRANSFER_IN:
        raise InvalidTransferPairError(tid, f"inbound leg has kind {inbound.kind.value}")
    if outbound.transfer_id is None or outbound.transfer_id != inbound.transfer_id:
        raise InvalidTransferPairError(tid, "legs do not share a transfer_id")
    for attr in ("quantity", "asset_type", "asset_name"):
        if getattr(outbound, attr) != getattr(inbound, attr):
            raise InvalidTransferPairError(tid, f"legs differ in {attr}")
    if outbound.counterpart_base != inbound.base or inbound.counterpart_base != outbound.base:
        raise InvalidTransferPairError(tid, "legs do not name each other's base")
    if outbound.base == inbound.base:
        raise InvalidTransferPairError(tid, "source and destination are the same base")
