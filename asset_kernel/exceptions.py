"""
Typed exception hierarchy for the asset kernel.

Every error leaving the engine is one of these classes. Each carries a static
``code`` class attribute (machine-readable, API-safe) and keeps its context as
attributes rather than inside the message, so the transport layer can build
``{errorKind, message}`` responses and the structured logger can emit the
fields without parsing strings.

    AssetLedgerError (base)
    |
    +-- ValidationError              -- malformed / missing / non-positive input
    |   +-- InvalidQuantityError
    |   +-- MissingFieldError
    |   +-- UnknownBaseError
    |   +-- UnknownAssetTypeError
    |   +-- InvalidTransferPairError
    |   +-- InvalidQueryError
    |
    +-- AuthorizationError           -- role / base rule violation
    |
    +-- ConflictError                -- write could not be applied; nothing persisted
    |   +-- TransferConflictError
    |
    +-- LedgerReadError              -- an aggregate or history read failed in the store
    |
    +-- NotFoundError                -- lookup by id only
    |   +-- MovementNotFoundError
    |
    +-- ImmutabilityViolationError   -- attempt to edit or delete a movement

Category semantics for callers:
    ValidationError    -> fix the input and resubmit
    AuthorizationError -> surface verbatim; never retry automatically
    ConflictError      -> the whole operation was rolled back; safe to retry
    NotFoundError      -> identifier does not exist
    LedgerReadError    -> store-side failure; reported as 503
"""

from typing import Any


class AssetLedgerError(Exception):
    """Base exception for all asset kernel errors."""

    code: str = "ASSET_LEDGER_ERROR"


# Validation


class ValidationError(AssetLedgerError):
    """Input rejected before anything was written."""

    code: str = "VALIDATION_ERROR"

    def __init__(self, message: str, field: str | None = None):
        self.field = field
        super().__init__(message)


class InvalidQuantityError(ValidationError):
    """Quantity is not an integer between 1 and the column maximum."""

    code: str = "INVALID_QUANTITY"

    def __init__(self, quantity: Any):
        self.quantity = quantity
        super().__init__(
            f"Quantity must be a positive integer no larger than 2147483647, got {quantity!r}",
            field="quantity",
        )


class MissingFieldError(ValidationError):
    """A field required for this movement kind is absent or blank."""

    code: str = "MISSING_FIELD"

    def __init__(self, field: str, kind: str):
        self.kind = kind
        super().__init__(f"Field '{field}' is required for {kind}", field=field)


class UnknownBaseError(ValidationError):
    """Base is not present in the filter catalog."""

    code: str = "UNKNOWN_BASE"

    def __init__(self, base: str, field: str = "base"):
        self.base = base
        super().__init__(f"Unknown base: {base}", field=field)


class UnknownAssetTypeError(ValidationError):
    """Asset type is not present in the filter catalog."""

    code: str = "UNKNOWN_ASSET_TYPE"

    def __init__(self, asset_type: str):
        self.asset_type = asset_type
        super().__init__(f"Unknown asset type: {asset_type}", field="asset_type")


class InvalidTransferPairError(ValidationError):
    """TransferOut/TransferIn legs do not mirror each other."""

    code: str = "INVALID_TRANSFER_PAIR"

    def __init__(self, transfer_id: str, reason: str):
        self.transfer_id = transfer_id
        self.reason = reason
        super().__init__(f"Invalid transfer pair {transfer_id}: {reason}")


class InvalidQueryError(ValidationError):
    """Query or filter parameters are malformed."""

    code: str = "INVALID_QUERY"

    def __init__(self, reason: str, field: str | None = None):
        self.reason = reason
        super().__init__(f"Invalid query: {reason}", field=field)


# Authorization


class AuthorizationError(AssetLedgerError):
    """The actor's role or base does not permit the requested action."""

    code: str = "AUTHORIZATION_DENIED"

    def __init__(self, reason: str, role: str | None = None, action: str | None = None):
        self.reason = reason
        self.role = role
        self.action = action
        detail = f" ({role} -> {action})" if role and action else ""
        super().__init__(f"Not authorized: {reason}{detail}")


# Conflicts


class ConflictError(AssetLedgerError):
    """A write failed and was rolled back in full."""

    code: str = "CONFLICT"

    def __init__(self, message: str, record_id: str | None = None):
        self.record_id = record_id
        super().__init__(message)


class TransferConflictError(ConflictError):
    """Persisting a transfer pair failed; neither leg was stored."""

    code: str = "TRANSFER_CONFLICT"

    def __init__(self, transfer_id: str, reason: str):
        self.transfer_id = transfer_id
        self.reason = reason
        super().__init__(f"Transfer {transfer_id} rolled back: {reason}")


# Reads


class LedgerReadError(AssetLedgerError):
    """The store could not answer a read; nothing was changed."""

    code: str = "LEDGER_READ_FAILED"

    def __init__(self, operation: str, reason: str):
        self.operation = operation
        self.reason = reason
        super().__init__(f"{operation} failed: {reason}")


# Lookups


class NotFoundError(AssetLedgerError):
    """Lookup by identifier found nothing."""

    code: str = "NOT_FOUND"


class MovementNotFoundError(NotFoundError):
    """Movement record with given ID was not found."""

    code: str = "MOVEMENT_NOT_FOUND"

    def __init__(self, record_id: str):
        self.record_id = record_id
        super().__init__(f"Movement not found: {record_id}")


# Immutability


class ImmutabilityViolationError(AssetLedgerError):
    """Attempted to modify or delete an append-only record."""

    code: str = "IMMUTABILITY_VIOLATION"

    def __init__(self, entity_type: str, entity_id: str, reason: str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        self.reason = reason
        super().__init__(
            f"Cannot modify {entity_type} {entity_id}: {reason}"
        )
