"""
Authorization -- Role and base rules for movements and reads.

Responsibility:
    Decides, for an actor and a requested movement, whether it is permitted
    and which bases apply.  Also scopes read queries (history, balances) to
    what the actor's role may see.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O, no locking.  The
    caller applies the resolved bases to the request before persistence.

Rules (evaluated in order):
    1. logistics: PURCHASE / ASSIGNMENT / EXPENDITURE are denied.  TRANSFER
       is allowed only with an explicit ``from_base``.
    2. commander: ``base`` (and a transfer's ``from_base``) is forced to the
       actor's home base, whatever the caller supplied.
    3. admin: no base restriction, but ``base`` / ``from_base`` must be
       supplied explicitly and must be a known base.
    4. all roles: a transfer's ``to_base`` must differ from ``from_base``.

Read scoping:
    - commander reads are confined to the home base.
    - logistics never sees assignment or expenditure history.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Iterable

from asset_kernel.domain.movement import MovementRequest
from asset_kernel.domain.values import Actor, MovementAction, MovementKind, Role
from asset_kernel.exceptions import AuthorizationError


class DenyReason(str, Enum):
    """Machine-readable reason attached to a Deny decision."""

    ROLE_NOT_PERMITTED = "RoleNotPermitted"
    MISSING_BASE = "MissingBase"
    MISSING_FROM_BASE = "MissingFromBase"
    UNKNOWN_BASE = "UnknownBase"
    SAME_BASE_TRANSFER = "SameBaseTransfer"
    VIEW_NOT_PERMITTED = "ViewNotPermitted"


_LOGISTICS_DENIED = frozenset(
    {MovementAction.PURCHASE, MovementAction.ASSIGNMENT, MovementAction.EXPENDITURE}
)

_LOGISTICS_HIDDEN_KINDS = frozenset({MovementKind.ASSIGNMENT, MovementKind.EXPENDITURE})


@dataclass(frozen=True, slots=True)
class AuthorizationDecision:
    """
    Allow (with resolved bases) or Deny (with reason).

    On Allow, ``base`` / ``from_base`` are the values that MUST be written to
    the record -- for a commander these are the home base regardless of the
    request.
    """

    allowed: bool
    reason: DenyReason | None = None
    base: str | None = None
    from_base: str | None = None
    to_base: str | None = None

    @classmethod
    def allow(
        cls,
        base: str | None = None,
        from_base: str | None = None,
        to_base: str | None = None,
    ) -> AuthorizationDecision:
        return cls(True, None, base, from_base, to_base)

    @classmethod
    def deny(cls, reason: DenyReason) -> AuthorizationDecision:
        return cls(False, reason)

    def apply_to(self, request: MovementRequest) -> MovementRequest:
        """Return ``request`` with the resolved bases written in."""
        return request.with_bases(base=self.base, from_base=self.from_base)

    def raise_if_denied(self, actor: Actor, action: MovementAction) -> None:
        if not self.allowed:
            raise AuthorizationError(
                self.reason.value if self.reason else "Denied",
                role=actor.role.value,
                action=action.value,
            )


def _blank(value: str | None) -> bool:
    return value is None or not str(value).strip()


def _clean(value: str | None) -> str | None:
    return None if value is None else str(value).strip()


def authorize(
    actor: Actor,
    action: MovementAction,
    params: MovementRequest,
    known_bases: Iterable[str] | None = None,
) -> AuthorizationDecision:
    """
    Decide whether ``actor`` may perform ``action`` with ``params``.

    Args:
        actor: The acting user.
        action: Requested movement action.
        params: The request; only its base fields are read.
        known_bases: Current catalog bases.  Required to enforce rule 3;
            when None the admin base-existence check is skipped.

    Returns:
        AuthorizationDecision.  Never raises for a denied request.
    """
    is_transfer = action is MovementAction.TRANSFER
    base = params.base
    from_base = params.from_base
    to_base = params.to_base

    # Rule 1
    if actor.role is Role.LOGISTICS:
        if action in _LOGISTICS_DENIED:
            return AuthorizationDecision.deny(DenyReason.ROLE_NOT_PERMITTED)
        if _blank(from_base):
            return AuthorizationDecision.deny(DenyReason.MISSING_FROM_BASE)

    # Rule 2
    elif actor.role is Role.COMMANDER:
        if is_transfer:
            from_base = actor.home_base
        else:
            base = actor.home_base

    # Rule 3
    elif actor.role is Role.ADMIN:
        required = from_base if is_transfer else base
        if _blank(required):
            return AuthorizationDecision.deny(
                DenyReason.MISSING_FROM_BASE if is_transfer else DenyReason.MISSING_BASE
            )
        if known_bases is not None and _clean(required) not in set(known_bases):
            return AuthorizationDecision.deny(DenyReason.UNKNOWN_BASE)

    # Rule 4
    if is_transfer and not _blank(to_base) and _clean(to_base) == _clean(from_base):
        return AuthorizationDecision.deny(DenyReason.SAME_BASE_TRANSFER)

    if is_transfer:
        return AuthorizationDecision.allow(from_base=from_base, to_base=to_base)
    return AuthorizationDecision.allow(base=base)


def scope_read(actor: Actor, base: str | None) -> str | None:
    """Base a read query is confined to (commander: always the home base)."""
    if actor.role is Role.COMMANDER:
        return actor.home_base
    return base


def visible_kinds(actor: Actor) -> frozenset[MovementKind]:
    """Record kinds whose history ``actor`` may view."""
    if actor.role is Role.LOGISTICS:
        return frozenset(MovementKind) - _LOGISTICS_HIDDEN_KINDS
    return frozenset(MovementKind)


def check_view(actor: Actor, kinds: Iterable[MovementKind]) -> frozenset[MovementKind]:
    """
    Validate an explicit kind filter against what ``actor`` may view.

    Returns the requested kinds, or every visible kind when none were
    requested.

    Raises:
        AuthorizationError(ViewNotPermitted): a requested kind is hidden.
    """
    allowed = visible_kinds(actor)
    requested = frozenset(kinds)
    if not requested:
        return allowed
    hidden = requested - allowed
    if hidden:
        raise AuthorizationError(
            DenyReason.VIEW_NOT_PERMITTED.value,
            role=actor.role.value,
            action="view:" + ",".join(sorted(k.value for k in hidden)),
        )
    return requested
