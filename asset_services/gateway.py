"""
Gateway entrypoint for the excluded UI/transport layer.

Provides the logical request shapes of the movement ledger so that a
transport (JSON over HTTP, a CLI, a batch job) can record movements and
read history, balances and filters without depending on kernel internals:

    POST movement   {kind, assetName, assetType, quantity, base, fromBase?,
                     toBase?, assignedTo?, expendedBy?}
    GET  movements  {kind?, assetType?, base?, from?, to?, limit?, offset?}
    GET  movement   {id}
    GET  balance    {assetType?, base?, from?, to?}
    GET  filters

Usage:

    from asset_services.gateway import LedgerGateway

    gateway = LedgerGateway.from_config(get_active_config())
    response = gateway.post_movement(actor, {"kind": "Purchase", ...})
    if not response.is_success:
        render_error(response.status_code, response.body)

Each call runs in its own transaction (``session_scope``): committed on
success, rolled back on any error.  Typed kernel errors become
``HandlerResponse`` objects; anything else propagates.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time, timezone
from typing import Any, Callable, Mapping
from uuid import UUID

from sqlalchemy.orm import Session, sessionmaker

from asset_kernel.db.engine import get_session_factory, session_scope
from asset_kernel.domain.balance import BalanceQuery
from asset_kernel.domain.clock import Clock
from asset_kernel.domain.movement import MovementRecord, MovementRequest, TransferPair
from asset_kernel.domain.values import Actor, MovementAction, MovementKind
from asset_kernel.exceptions import (
    AssetLedgerError,
    AuthorizationError,
    ConflictError,
    ImmutabilityViolationError,
    InvalidQueryError,
    LedgerReadError,
    MissingFieldError,
    NotFoundError,
    ValidationError,
)
from asset_kernel.logging_config import get_logger
from asset_kernel.services.filter_catalog import FilterCatalog
from asset_kernel.services.movement_orchestrator import MovementOrchestrator

logger = get_logger("services.gateway")

# Alternative query keys sent by the dashboard client
_QUERY_ALIASES = {
    "type": "assetType",
    "startDate": "from",
    "endDate": "to",
}

# Field names the client's purchase, assignment and expenditure forms post
_PAYLOAD_ALIASES = {
    "name": "assetName",
    "type": "assetType",
}

_STATUS_BY_ERROR: tuple[tuple[type[AssetLedgerError], int, str], ...] = (
    (ValidationError, 400, "ValidationError"),
    (AuthorizationError, 403, "AuthorizationError"),
    (NotFoundError, 404, "NotFoundError"),
    (ConflictError, 409, "ConflictError"),
    (ImmutabilityViolationError, 409, "ConflictError"),
    (LedgerReadError, 503, "LedgerReadError"),
)


@dataclass(frozen=True)
class HandlerResponse:
    """Status code plus JSON-ready body."""

    status_code: int
    body: Any

    @classmethod
    def ok(cls, body: Any) -> HandlerResponse:
        return cls(200, body)

    @classmethod
    def created(cls, body: Any) -> HandlerResponse:
        return cls(201, body)

    @classmethod
    def from_error(cls, exc: AssetLedgerError) -> HandlerResponse:
        """Map a typed kernel error to a 4xx (or 503 for a failed read) response."""
        status, kind = 500, "AssetLedgerError"
        for error_type, error_status, error_kind in _STATUS_BY_ERROR:
            if isinstance(exc, error_type):
                status, kind = error_status, error_kind
                break
        body: dict[str, Any] = {"errorKind": kind, "code": exc.code, "message": str(exc)}
        if isinstance(exc, AuthorizationError):
            body["reason"] = exc.reason
        field_name = getattr(exc, "field", None)
        if field_name:
            body["field"] = field_name
        return cls(status, body)

    @property
    def is_success(self) -> bool:
        return 200 <= self.status_code < 300


# ---------------------------------------------------------------------------
# Payload parsing
# ---------------------------------------------------------------------------


def _text(params: Mapping[str, Any], key: str) -> str | None:
    """A string parameter; blank means absent."""
    value = params.get(key)
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _parse_quantity(value: Any) -> Any:
    """
    Accept integer-valued strings ("5") as sent by form clients.

    Anything else is passed through untouched, so the record model rejects
    it rather than having it coerced here.
    """
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            return value
    return value


def _parse_int(params: Mapping[str, Any], key: str) -> int | None:
    value = params.get(key)
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        raise InvalidQueryError(f"{key} must be an integer", field=key)
    try:
        return int(value)
    except (TypeError, ValueError):
        raise InvalidQueryError(f"{key} must be an integer", field=key) from None


def _parse_bound(value: Any, key: str, end_of_day: bool) -> datetime | None:
    """
    Parse a window bound.

    A bare date covers the whole day: ``from`` starts at 00:00 and ``to``
    ends at 23:59:59.999999 UTC.  Naive datetimes are taken as UTC.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime.combine(value, time.max if end_of_day else time.min)
    else:
        text = str(value).strip()
        try:
            if len(text) == 10:
                parsed = datetime.combine(
                    date.fromisoformat(text), time.max if end_of_day else time.min
                )
            else:
                parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
        except ValueError:
            raise InvalidQueryError(f"{key} is not an ISO-8601 date: {text!r}", field=key) from None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _normalise_query(
    params: Mapping[str, Any] | None,
    aliases: Mapping[str, str] = _QUERY_ALIASES,
) -> dict[str, Any]:
    """Rename alias keys; a non-blank canonical key wins over its alias."""
    normalised: dict[str, Any] = {}
    for key, value in (params or {}).items():
        canonical = aliases.get(key, key)
        current = normalised.get(canonical)
        if current not in (None, "") and (key != canonical or value in (None, "")):
            continue
        normalised[canonical] = value
    return normalised


def _parse_kinds(value: Any) -> frozenset[MovementKind]:
    """
    Parse a kind filter: a movement action (``transfer`` means both legs),
    a record kind, or a list/comma-separated string of either.
    """
    if value is None or value == "":
        return frozenset()
    items = value if isinstance(value, (list, tuple, set, frozenset)) else str(value).split(",")
    kinds: set[MovementKind] = set()
    for item in items:
        text = str(item).strip()
        if not text:
            continue
        try:
            kinds.update(MovementAction.parse(text).kinds)
            continue
        except ValueError:
            pass
        try:
            kinds.add(MovementKind(text.lower()))
        except ValueError:
            raise InvalidQueryError(f"unknown kind {text!r}", field="kind") from None
    return frozenset(kinds)


def parse_movement_request(payload: Mapping[str, Any]) -> MovementRequest:
    """
    Build a MovementRequest from a POST movement payload.

    Raises:
        MissingFieldError: no ``kind``.
        ValidationError: ``kind`` is not a movement action.
    """
    payload = _normalise_query(payload, _PAYLOAD_ALIASES)
    kind = _text(payload, "kind")
    if kind is None:
        raise MissingFieldError("kind", "movement")
    try:
        action = MovementAction.parse(kind)
    except ValueError as exc:
        raise ValidationError(str(exc), field="kind") from None

    return MovementRequest(
        action=action,
        asset_type=_text(payload, "assetType"),
        asset_name=_text(payload, "assetName"),
        quantity=_parse_quantity(payload.get("quantity")),
        base=_text(payload, "base"),
        from_base=_text(payload, "fromBase"),
        to_base=_text(payload, "toBase"),
        assigned_to=_text(payload, "assignedTo"),
        expended_by=_text(payload, "expendedBy"),
    )


def parse_balance_query(params: Mapping[str, Any] | None) -> BalanceQuery:
    query = _normalise_query(params)
    return BalanceQuery(
        asset_type=_text(query, "assetType"),
        base=_text(query, "base"),
        date_from=_parse_bound(query.get("from"), "from", end_of_day=False),
        date_to=_parse_bound(query.get("to"), "to", end_of_day=True),
    )


def _movement_body(result: MovementRecord | TransferPair) -> dict[str, Any]:
    if isinstance(result, TransferPair):
        return {
            "record": result.outbound.to_dict(),
            "counterpart": result.inbound.to_dict(),
        }
    return {"record": result.to_dict()}


# ---------------------------------------------------------------------------
# Gateway
# ---------------------------------------------------------------------------


class LedgerGateway:
    """
    Request handlers for the movement ledger.

    Args:
        catalog: Shared FilterCatalog (one per process).
        session_factory: Session factory.  Defaults to the engine's factory.
        clock: Clock for ``created_at``.  Defaults to SystemClock.
    """

    def __init__(
        self,
        catalog: FilterCatalog,
        session_factory: sessionmaker[Session] | None = None,
        clock: Clock | None = None,
    ):
        self._catalog = catalog
        self._session_factory = session_factory
        self._clock = clock

    @classmethod
    def from_config(cls, config, clock: Clock | None = None) -> LedgerGateway:
        """Build from a LedgerConfig.  The engine must already be initialized."""
        return cls(
            catalog=FilterCatalog.from_config(config.catalog),
            session_factory=get_session_factory(),
            clock=clock,
        )

    def _run(
        self,
        request_name: str,
        actor: Actor,
        handler: Callable[[MovementOrchestrator], HandlerResponse],
    ) -> HandlerResponse:
        try:
            with session_scope(self._session_factory) as session:
                orchestrator = MovementOrchestrator(session, self._catalog, self._clock)
                return handler(orchestrator)
        except AssetLedgerError as exc:
            response = HandlerResponse.from_error(exc)
            logger.info(
                "request_rejected",
                extra={
                    "request": request_name,
                    "status_code": response.status_code,
                    "error_code": exc.code,
                    "actor_id": actor.user_id,
                },
            )
            return response

    def post_movement(self, actor: Actor, payload: Mapping[str, Any]) -> HandlerResponse:
        """POST movement -> 201 {record} or {record, counterpart} for transfers."""

        def handle(orchestrator: MovementOrchestrator) -> HandlerResponse:
            request = parse_movement_request(payload)
            return HandlerResponse.created(
                _movement_body(orchestrator.record_movement(actor, request))
            )

        return self._run("post_movement", actor, handle)

    def get_movements(
        self,
        actor: Actor,
        params: Mapping[str, Any] | None = None,
    ) -> HandlerResponse:
        """GET movements -> 200 [record, ...]; empty list when nothing matches."""

        def handle(orchestrator: MovementOrchestrator) -> HandlerResponse:
            query = _normalise_query(params)
            records = orchestrator.list_movements(
                actor,
                kinds=_parse_kinds(query.get("kind")),
                asset_type=_text(query, "assetType"),
                base=_text(query, "base"),
                date_from=_parse_bound(query.get("from"), "from", end_of_day=False),
                date_to=_parse_bound(query.get("to"), "to", end_of_day=True),
                limit=_parse_int(query, "limit"),
                offset=_parse_int(query, "offset"),
            )
            return HandlerResponse.ok([r.to_dict() for r in records])

        return self._run("get_movements", actor, handle)

    def get_movement(self, actor: Actor, record_id: str | UUID) -> HandlerResponse:
        """GET movement {id} -> 200 {record} or 404."""

        def handle(orchestrator: MovementOrchestrator) -> HandlerResponse:
            try:
                parsed = record_id if isinstance(record_id, UUID) else UUID(str(record_id))
            except ValueError:
                raise InvalidQueryError(f"not a record id: {record_id!r}", field="id") from None
            return HandlerResponse.ok({"record": orchestrator.get_movement(actor, parsed).to_dict()})

        return self._run("get_movement", actor, handle)

    def get_balance(
        self,
        actor: Actor,
        params: Mapping[str, Any] | None = None,
    ) -> HandlerResponse:
        """GET balance -> 200 BalanceResult."""

        def handle(orchestrator: MovementOrchestrator) -> HandlerResponse:
            result = orchestrator.balance(actor, parse_balance_query(params))
            return HandlerResponse.ok(result.to_dict())

        return self._run("get_balance", actor, handle)

    def get_filters(self, actor: Actor) -> HandlerResponse:
        """GET filters -> 200 {types, bases}."""

        def handle(orchestrator: MovementOrchestrator) -> HandlerResponse:
            return HandlerResponse.ok(
                {
                    "types": orchestrator.known_asset_types(),
                    "bases": orchestrator.known_bases(),
                }
            )

        return self._run("get_filters", actor, handle)
