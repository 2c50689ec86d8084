"""
Balance arithmetic tests (pure, no database).

Verifies:
- closing == opening + purchases + transfer_in - transfer_out - assigned - expended
- Figures are signed; nothing is clamped at zero
- BalanceQuery validates its window
"""

from datetime import datetime, timedelta, timezone

import pytest
from hypothesis import given
from hypothesis import strategies as st

from asset_kernel.domain.balance import BalanceQuery, BalanceResult, KindTotals
from asset_kernel.domain.values import MovementKind
from asset_kernel.exceptions import InvalidQueryError

quantities = st.integers(min_value=0, max_value=10**9)

kind_totals = st.builds(
    KindTotals,
    purchases=quantities,
    transfer_in=quantities,
    transfer_out=quantities,
    assigned=quantities,
    expended=quantities,
)


class TestClosingIdentity:

    @given(opening=st.one_of(st.none(), kind_totals), window=kind_totals)
    def test_closing_balance_identity(self, opening, window):
        result = BalanceResult.from_totals(opening, window)

        assert result.closing_balance == (
            result.opening_balance
            + result.net_movement.purchases
            + result.net_movement.transfer_in
            - result.net_movement.transfer_out
            - result.assigned
            - result.expended
        )

    @given(window=kind_totals)
    def test_no_window_start_means_zero_opening(self, window):
        assert BalanceResult.from_totals(None, window).opening_balance == 0

    def test_negative_closing_not_clamped(self):
        window = KindTotals(purchases=1, assigned=5)
        result = BalanceResult.from_totals(None, window)
        assert result.closing_balance == -4

    def test_opening_is_running_total_of_prior_records(self):
        prior = KindTotals(purchases=20, transfer_out=5, expended=2)
        result = BalanceResult.from_totals(prior, KindTotals())
        assert result.opening_balance == 13
        assert result.closing_balance == 13


class TestKindTotals:

    def test_from_mapping_missing_kinds_are_zero(self):
        totals = KindTotals.from_mapping({MovementKind.PURCHASE: 7})
        assert totals == KindTotals(purchases=7)

    def test_from_mapping_treats_none_as_zero(self):
        totals = KindTotals.from_mapping({MovementKind.EXPENDITURE: None})
        assert totals.expended == 0

    def test_net_movement(self):
        totals = KindTotals(purchases=10, transfer_in=2, transfer_out=4, assigned=3, expended=1)
        assert totals.net_movement == 8
        assert totals.running_total == 4


class TestResultShape:

    def test_to_dict(self):
        result = BalanceResult.from_totals(
            KindTotals(purchases=5),
            KindTotals(purchases=10, transfer_in=0, transfer_out=4, assigned=3, expended=1),
        )
        assert result.to_dict() == {
            "openingBalance": 5,
            "closingBalance": 7,
            "assigned": 3,
            "expended": 1,
            "netMovement": {
                "purchases": 10,
                "transferIn": 0,
                "transferOut": 4,
                "net": 6,
            },
        }


class TestBalanceQuery:

    def test_from_after_to_rejected(self):
        start = datetime(2024, 2, 1, tzinfo=timezone.utc)
        with pytest.raises(InvalidQueryError):
            BalanceQuery(date_from=start, date_to=start - timedelta(days=1))

    def test_naive_bounds_rejected(self):
        with pytest.raises(InvalidQueryError):
            BalanceQuery(date_from=datetime(2024, 2, 1))

    def test_equal_bounds_allowed(self):
        start = datetime(2024, 2, 1, tzinfo=timezone.utc)
        query = BalanceQuery(date_from=start, date_to=start)
        assert query.has_window_start
