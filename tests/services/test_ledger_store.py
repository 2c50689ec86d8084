"""
Ledger Store tests.

Verifies:
- append assigns strictly increasing seq and persists every field
- append_pair writes both legs or neither
- Malformed pairs are rejected before anything is written
- get raises MovementNotFoundError for an unknown id
- Appends on one session register a single commit/rollback catalog refresh
"""

import dataclasses
from uuid import uuid4

import pytest

from asset_kernel.domain.movement import CatalogSnapshot, create_movement
from asset_kernel.domain.values import Actor, MovementKind, Role
from asset_kernel.exceptions import (
    ConflictError,
    InvalidTransferPairError,
    MovementNotFoundError,
    TransferConflictError,
)
from asset_kernel.selectors.movement_selector import MovementFilter, MovementSelector
from asset_kernel.services.ledger_store import LedgerStore

SNAPSHOT = CatalogSnapshot(
    asset_types=frozenset({"Weapon"}),
    bases=frozenset({"Alpha", "Bravo"}),
)
ADMIN = Actor(user_id="adm-1", role=Role.ADMIN)


@pytest.fixture
def store(session, catalog):
    return LedgerStore(session, catalog)


@pytest.fixture
def build(deterministic_clock):
    def _build(request):
        return create_movement(request, ADMIN, SNAPSHOT, deterministic_clock)

    return _build


class TestAppend:

    def test_append_returns_record_with_seq(self, store, build, req):
        stored = store.append(build(req.purchase(quantity=10)))

        assert stored.seq is not None and stored.seq > 0
        fetched = store.get(stored.id)
        assert fetched == stored

    def test_seq_strictly_increasing(self, store, build, req, deterministic_clock):
        seqs = []
        for _ in range(5):
            seqs.append(store.append(build(req.purchase())).seq)
            deterministic_clock.tick()
        assert seqs == sorted(seqs)
        assert len(set(seqs)) == 5

    def test_round_trip_preserves_fields(self, store, build, req):
        record = build(req.assignment(quantity=3, assigned_to="1st Platoon"))
        stored = store.append(record)
        fetched = store.get(record.id)

        assert fetched.kind is MovementKind.ASSIGNMENT
        assert fetched.assigned_to == "1st Platoon"
        assert fetched.created_at == record.created_at
        assert fetched.created_at.tzinfo is not None
        assert fetched.actor_role is Role.ADMIN
        assert fetched.seq == stored.seq

    def test_duplicate_id_is_conflict(self, store, build, req, session):
        record = store.append(build(req.purchase()))
        clone = dataclasses.replace(record, seq=None, quantity=99)
        session.expunge_all()

        with pytest.raises(ConflictError):
            store.append(clone)

        assert MovementSelector(session).count() == 1

    def test_get_unknown_id_raises(self, store):
        missing = uuid4()
        with pytest.raises(MovementNotFoundError) as exc_info:
            store.get(missing)
        assert exc_info.value.record_id == str(missing)


class TestAppendPair:

    def test_pair_persisted_together(self, store, build, req, session):
        pair = build(req.transfer(quantity=4))
        stored = store.append_pair(pair.outbound, pair.inbound)

        legs = MovementSelector(session).transfer_legs(pair.transfer_id)
        assert [leg.kind for leg in legs] == [MovementKind.TRANSFER_OUT, MovementKind.TRANSFER_IN]
        assert stored.outbound.seq < stored.inbound.seq

    def test_mismatched_pair_writes_nothing(self, store, build, req, session):
        pair = build(req.transfer(quantity=4))
        tampered = dataclasses.replace(pair.inbound, quantity=5)

        with pytest.raises(InvalidTransferPairError):
            store.append_pair(pair.outbound, tampered)

        assert MovementSelector(session).count() == 0

    def test_failed_second_leg_rolls_back_first(self, store, build, req, session):
        existing = store.append(build(req.purchase()))
        session.expunge_all()

        pair = build(req.transfer(quantity=4))
        # Inbound leg collides with an existing primary key
        colliding_in = dataclasses.replace(pair.inbound, id=existing.id)

        with pytest.raises(TransferConflictError) as exc_info:
            store.append_pair(pair.outbound, colliding_in)

        assert exc_info.value.transfer_id == str(pair.transfer_id)
        selector = MovementSelector(session)
        assert selector.transfer_legs(pair.transfer_id) == []
        assert selector.count() == 1

    def test_store_usable_after_conflict(self, store, build, req, session):
        existing = store.append(build(req.purchase()))
        session.expunge_all()
        pair = build(req.transfer())
        with pytest.raises(TransferConflictError):
            store.append_pair(pair.outbound, dataclasses.replace(pair.inbound, id=existing.id))

        retry = build(req.transfer())
        store.append_pair(retry.outbound, retry.inbound)
        assert len(store.query(MovementFilter(kinds=frozenset({MovementKind.TRANSFER_IN})))) == 1


class TestCatalogInvalidation:

    def test_new_asset_type_listed_after_append(self, store, catalog, session, deterministic_clock, req):
        assert "Radio" not in catalog.list_known_types(session)

        record = create_movement(
            req.purchase(asset_type="Radio", asset_name="PRC-152"),
            ADMIN,
            catalog.snapshot(session),
            deterministic_clock,
        )
        store.append(record)

        assert "Radio" in catalog.list_known_types(session)

    def test_outcome_listeners_registered_once_per_session(self, session, catalog, build, req):
        store = LedgerStore(session, catalog)
        store.append(build(req.purchase()))
        registered = (len(session.dispatch.after_commit), len(session.dispatch.after_rollback))

        for _ in range(3):
            store.append(build(req.purchase()))
        LedgerStore(session, catalog).append(build(req.purchase()))

        assert (len(session.dispatch.after_commit), len(session.dispatch.after_rollback)) == registered

    def test_rollback_refreshes_catalog_once(self, store, catalog, session, build, req, monkeypatch):
        for _ in range(3):
            store.append(build(req.purchase()))
        calls = []
        monkeypatch.setattr(catalog, "invalidate", lambda: calls.append("invalidate"))

        session.rollback()

        assert calls == ["invalidate"]
