"""
Movement Record Model tests.

Verifies:
- Records are built with the fields their kind requires
- quantity must be a positive int; never coerced or clamped
- A transfer yields two mirrored legs sharing transfer_id and created_at
- Unknown bases / asset types are rejected per catalog policy
- Records are immutable values
"""

import dataclasses
from datetime import datetime, timezone

import pytest

from asset_kernel.domain.clock import DeterministicClock
from asset_kernel.domain.movement import (
    MAX_QUANTITY,
    CatalogSnapshot,
    MovementRequest,
    TransferPair,
    create_movement,
    create_transfer,
    validate_quantity,
    validate_transfer_pair,
)
from asset_kernel.domain.values import Actor, MovementAction, MovementKind, Role
from asset_kernel.exceptions import (
    InvalidQuantityError,
    InvalidTransferPairError,
    MissingFieldError,
    UnknownAssetTypeError,
    UnknownBaseError,
    ValidationError,
)

NOW = datetime(2024, 3, 1, 9, 30, tzinfo=timezone.utc)

CATALOG = CatalogSnapshot(
    asset_types=frozenset({"Weapon", "Vehicle"}),
    bases=frozenset({"Alpha", "Bravo"}),
)

ADMIN = Actor(user_id="adm-1", role=Role.ADMIN)


def _request(action, **overrides):
    fields = dict(
        action=action,
        asset_type="Weapon",
        asset_name="M4 Carbine",
        quantity=5,
        base="Alpha",
    )
    fields.update(overrides)
    return MovementRequest(**fields)


@pytest.fixture
def clock():
    return DeterministicClock(NOW)


class TestCreateMovement:

    def test_purchase_record_fields(self, clock):
        record = create_movement(_request(MovementAction.PURCHASE), ADMIN, CATALOG, clock)

        assert record.kind is MovementKind.PURCHASE
        assert record.asset_type == "Weapon"
        assert record.asset_name == "M4 Carbine"
        assert record.quantity == 5
        assert record.base == "Alpha"
        assert record.created_at == NOW
        assert record.actor_id == "adm-1"
        assert record.actor_role is Role.ADMIN
        assert record.transfer_id is None
        assert record.counterpart_base is None
        assert record.seq is None

    def test_assignment_requires_assigned_to(self, clock):
        with pytest.raises(MissingFieldError) as exc_info:
            create_movement(_request(MovementAction.ASSIGNMENT), ADMIN, CATALOG, clock)
        assert exc_info.value.field == "assigned_to"

    def test_assignment_records_assignee(self, clock):
        record = create_movement(
            _request(MovementAction.ASSIGNMENT, assigned_to="  Sgt. Ruiz "), ADMIN, CATALOG, clock
        )
        assert record.kind is MovementKind.ASSIGNMENT
        assert record.assigned_to == "Sgt. Ruiz"

    def test_expenditure_defaults_expended_by_to_actor(self, clock):
        record = create_movement(_request(MovementAction.EXPENDITURE), ADMIN, CATALOG, clock)
        assert record.expended_by == "adm-1"

    def test_expenditure_keeps_explicit_expended_by(self, clock):
        record = create_movement(
            _request(MovementAction.EXPENDITURE, expended_by="range-officer"), ADMIN, CATALOG, clock
        )
        assert record.expended_by == "range-officer"

    @pytest.mark.parametrize("field_name", ["asset_type", "asset_name", "base"])
    def test_blank_required_field_rejected(self, clock, field_name):
        with pytest.raises(MissingFieldError) as exc_info:
            create_movement(
                _request(MovementAction.PURCHASE, **{field_name: "   "}), ADMIN, CATALOG, clock
            )
        assert exc_info.value.field == field_name

    def test_missing_base_rejected(self, clock):
        with pytest.raises(MissingFieldError):
            create_movement(_request(MovementAction.PURCHASE, base=None), ADMIN, CATALOG, clock)


class TestQuantity:

    @pytest.mark.parametrize("quantity", [0, -1, -100])
    def test_non_positive_rejected_not_clamped(self, clock, quantity):
        with pytest.raises(InvalidQuantityError) as exc_info:
            create_movement(
                _request(MovementAction.PURCHASE, quantity=quantity), ADMIN, CATALOG, clock
            )
        assert exc_info.value.quantity == quantity

    @pytest.mark.parametrize("quantity", [True, 2.0, 2.5, "3", None])
    def test_non_int_rejected(self, quantity):
        with pytest.raises(InvalidQuantityError):
            validate_quantity(quantity)

    def test_invalid_quantity_is_validation_error(self):
        with pytest.raises(ValidationError):
            validate_quantity(-5)

    def test_large_quantity_accepted(self):
        assert validate_quantity(10**9) == 10**9

    def test_column_maximum_accepted(self):
        assert validate_quantity(MAX_QUANTITY) == 2**31 - 1

    @pytest.mark.parametrize("quantity", [MAX_QUANTITY + 1, 2**62, 2**63, 10**30])
    def test_above_column_maximum_rejected(self, clock, quantity):
        with pytest.raises(InvalidQuantityError) as exc_info:
            create_movement(
                _request(MovementAction.PURCHASE, quantity=quantity), ADMIN, CATALOG, clock
            )
        assert exc_info.value.quantity == quantity


class TestCatalogChecks:

    def test_unknown_base_rejected(self, clock):
        with pytest.raises(UnknownBaseError) as exc_info:
            create_movement(
                _request(MovementAction.PURCHASE, base="Zulu"), ADMIN, CATALOG, clock
            )
        assert exc_info.value.base == "Zulu"

    def test_purchase_may_introduce_asset_type(self, clock):
        record = create_movement(
            _request(MovementAction.PURCHASE, asset_type="Radio"), ADMIN, CATALOG, clock
        )
        assert record.asset_type == "Radio"

    def test_assignment_of_unknown_type_rejected(self, clock):
        with pytest.raises(UnknownAssetTypeError):
            create_movement(
                _request(MovementAction.ASSIGNMENT, asset_type="Radio", assigned_to="x"),
                ADMIN,
                CATALOG,
                clock,
            )

    def test_purchase_of_unknown_type_rejected_when_disabled(self, clock):
        catalog = dataclasses.replace(CATALOG, purchases_introduce_types=False)
        with pytest.raises(UnknownAssetTypeError):
            create_movement(
                _request(MovementAction.PURCHASE, asset_type="Radio"), ADMIN, catalog, clock
            )

    def test_non_strict_catalog_accepts_anything(self, clock):
        catalog = dataclasses.replace(CATALOG, strict=False)
        record = create_movement(
            _request(MovementAction.EXPENDITURE, asset_type="Radio", base="Zulu"),
            ADMIN,
            catalog,
            clock,
        )
        assert record.base == "Zulu"


class TestTransfer:

    def _transfer(self, **overrides):
        fields = dict(base=None, from_base="Alpha", to_base="Bravo", quantity=4)
        fields.update(overrides)
        return _request(MovementAction.TRANSFER, **fields)

    def test_transfer_yields_mirrored_pair(self, clock):
        pair = create_movement(self._transfer(), ADMIN, CATALOG, clock)

        assert isinstance(pair, TransferPair)
        out_leg, in_leg = pair
        assert out_leg.kind is MovementKind.TRANSFER_OUT
        assert in_leg.kind is MovementKind.TRANSFER_IN
        assert out_leg.base == "Alpha" and out_leg.counterpart_base == "Bravo"
        assert in_leg.base == "Bravo" and in_leg.counterpart_base == "Alpha"
        assert out_leg.transfer_id == in_leg.transfer_id == pair.transfer_id
        assert out_leg.created_at == in_leg.created_at == NOW
        assert out_leg.quantity == in_leg.quantity == 4
        assert out_leg.id != in_leg.id
        validate_transfer_pair(out_leg, in_leg)

    def test_same_base_transfer_rejected(self, clock):
        with pytest.raises(InvalidTransferPairError):
            create_transfer(self._transfer(to_base="Alpha"), ADMIN, CATALOG, clock)

    def test_unknown_destination_rejected(self, clock):
        with pytest.raises(UnknownBaseError) as exc_info:
            create_transfer(self._transfer(to_base="Zulu"), ADMIN, CATALOG, clock)
        assert exc_info.value.field == "to_base"

    def test_missing_destination_rejected(self, clock):
        with pytest.raises(MissingFieldError) as exc_info:
            create_transfer(self._transfer(to_base=None), ADMIN, CATALOG, clock)
        assert exc_info.value.field == "to_base"

    def test_validate_pair_detects_quantity_mismatch(self, clock):
        out_leg, in_leg = create_transfer(self._transfer(), ADMIN, CATALOG, clock)
        tampered = dataclasses.replace(in_leg, quantity=in_leg.quantity + 1)
        with pytest.raises(InvalidTransferPairError, match="quantity"):
            validate_transfer_pair(out_leg, tampered)

    def test_validate_pair_detects_foreign_leg(self, clock):
        out_leg, _ = create_transfer(self._transfer(), ADMIN, CATALOG, clock)
        _, other_in = create_transfer(self._transfer(), ADMIN, CATALOG, clock)
        with pytest.raises(InvalidTransferPairError, match="transfer_id"):
            validate_transfer_pair(out_leg, other_in)

    def test_validate_pair_detects_swapped_legs(self, clock):
        out_leg, in_leg = create_transfer(self._transfer(), ADMIN, CATALOG, clock)
        with pytest.raises(InvalidTransferPairError):
            validate_transfer_pair(in_leg, out_leg)


class TestRecordValue:

    def test_record_is_frozen(self, clock):
        record = create_movement(_request(MovementAction.PURCHASE), ADMIN, CATALOG, clock)
        with pytest.raises(dataclasses.FrozenInstanceError):
            record.kind = MovementKind.EXPENDITURE

    def test_to_dict_omits_inapplicable_fields(self, clock):
        record = create_movement(_request(MovementAction.PURCHASE), ADMIN, CATALOG, clock)
        data = record.to_dict()

        assert data["kind"] == "purchase"
        assert data["assetType"] == "Weapon"
        assert data["actor"] == {"userId": "adm-1", "role": "admin"}
        assert data["createdAt"] == NOW.isoformat()
        assert "transferId" not in data
        assert "assignedTo" not in data
        assert "expendedBy" not in data

    def test_transfer_leg_to_dict_names_counterpart(self, clock):
        out_leg, _ = create_movement(
            _request(MovementAction.TRANSFER, base=None, from_base="Alpha", to_base="Bravo"),
            ADMIN,
            CATALOG,
            clock,
        )
        data = out_leg.to_dict()
        assert data["counterpartBase"] == "Bravo"
        assert data["transferId"] == str(out_leg.transfer_id)


class TestValues:

    @pytest.mark.parametrize("text", ["Transfer", "TRANSFER", " transfer "])
    def test_action_parse_is_case_insensitive(self, text):
        assert MovementAction.parse(text) is MovementAction.TRANSFER

    def test_action_parse_rejects_unknown(self):
        with pytest.raises(ValueError):
            MovementAction.parse("Theft")

    def test_transfer_action_maps_to_both_legs(self):
        assert set(MovementAction.TRANSFER.kinds) == {
            MovementKind.TRANSFER_OUT,
            MovementKind.TRANSFER_IN,
        }

    def test_commander_requires_home_base(self):
        with pytest.raises(ValueError):
            Actor(user_id="c", role=Role.COMMANDER)

    def test_actor_role_coerced_from_string(self):
        assert Actor(user_id="l", role="logistics").role is Role.LOGISTICS
