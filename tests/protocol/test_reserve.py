"""Tests for index accrual and rate recomputation."""

from dataclasses import replace
from decimal import Decimal

import pytest

from conftest import GENESIS, YEAR
from reserve_model.protocol.errors import ClockRegressionError
from reserve_model.protocol.interest_rate import DynamicRateModel, DynamicRateState
from reserve_model.protocol.reserve import (
    IndicesAndRates,
    Reserve,
    accrue_indices,
    new_reserve,
    update_rates,
    utilization,
)


class TestNewReserve:
    def test_initial_state(self, uusd_reserve: Reserve) -> None:
        assert uusd_reserve.liquidity_index == 1
        assert uusd_reserve.borrow_index == 1
        assert uusd_reserve.liquidity_rate == 0
        assert uusd_reserve.borrow_rate == 0
        assert uusd_reserve.debt_total_scaled == 0
        assert uusd_reserve.interests_last_updated == GENESIS
        assert uusd_reserve.rate_state is None

    def test_dynamic_model_gets_state(self) -> None:
        model = DynamicRateModel(
            min_borrow_rate=Decimal(0),
            max_borrow_rate=Decimal(1),
            optimal_utilization=Decimal("0.5"),
            kp_1=Decimal("0.04"),
            kp_2=Decimal(3),
            kp_augmentation_threshold=Decimal("0.2"),
            update_threshold_txs=2,
            update_threshold_seconds=1000,
        )
        reserve = new_reserve("uusd", 0, "0.8", GENESIS, rate_model=model)
        assert reserve.rate_state == DynamicRateState(0, GENESIS)


class TestAccrual:
    def test_zero_rates_leave_indices(self, uusd_reserve: Reserve) -> None:
        accrued = accrue_indices(uusd_reserve, GENESIS + 1_000)
        assert accrued.liquidity_index == 1
        assert accrued.borrow_index == 1
        assert accrued.interests_last_updated == GENESIS + 1_000

    def test_full_year(self, uusd_reserve: Reserve) -> None:
        reserve = replace(uusd_reserve, liquidity_rate=Decimal("0.2"), borrow_rate=Decimal(1))
        accrued = accrue_indices(reserve, GENESIS + YEAR)
        assert accrued.liquidity_index == Decimal("1.2")
        assert accrued.borrow_index == Decimal(2)

    def test_half_year_compounds_on_previous_index(self, uusd_reserve: Reserve) -> None:
        reserve = replace(
            uusd_reserve,
            liquidity_rate=Decimal("0.2"),
            borrow_rate=Decimal(1),
            liquidity_index=Decimal("1.2"),
            borrow_index=Decimal(2),
        )
        accrued = accrue_indices(reserve, GENESIS + YEAR // 2)
        assert accrued.liquidity_index == Decimal("1.32")
        assert accrued.borrow_index == Decimal(3)

    def test_short_window_truncates_factor(self, uusd_reserve: Reserve) -> None:
        reserve = replace(uusd_reserve, liquidity_rate=Decimal("0.2"), borrow_rate=Decimal(1))
        accrued = accrue_indices(reserve, GENESIS + 10)
        assert accrued.liquidity_index == Decimal("1.000000063419583967")
        assert accrued.borrow_index == Decimal("1.000000317097919837")

    def test_zero_elapsed_is_identity(self, uusd_reserve: Reserve) -> None:
        reserve = replace(uusd_reserve, liquidity_rate=Decimal("0.2"), borrow_rate=Decimal(1))
        assert accrue_indices(reserve, GENESIS) == reserve

    def test_clock_regression(self, uusd_reserve: Reserve) -> None:
        with pytest.raises(ClockRegressionError) as exc_info:
            accrue_indices(uusd_reserve, GENESIS - 1)
        assert exc_info.value.last_updated == GENESIS
        assert exc_info.value.timestamp == GENESIS - 1

    def test_accrual_does_not_mutate(self, uusd_reserve: Reserve) -> None:
        reserve = replace(uusd_reserve, borrow_rate=Decimal(1))
        accrue_indices(reserve, GENESIS + YEAR)
        assert reserve.borrow_index == 1
        assert reserve.interests_last_updated == GENESIS


class TestUtilization:
    def test_empty_pool_is_zero(self, uusd_reserve: Reserve) -> None:
        assert utilization(uusd_reserve, Decimal(0)) == 0

    def test_no_debt_is_zero(self, uusd_reserve: Reserve) -> None:
        assert utilization(uusd_reserve, Decimal(10_000_000)) == 0

    def test_debt_over_locked_total(self, uusd_reserve: Reserve) -> None:
        reserve = replace(uusd_reserve, debt_total_scaled=Decimal(2_000_000))
        assert utilization(reserve, Decimal(8_000_000)) == Decimal("0.2")

    def test_uses_borrow_index(self, uusd_reserve: Reserve) -> None:
        reserve = replace(
            uusd_reserve, debt_total_scaled=Decimal(1_000_000), borrow_index=Decimal(2)
        )
        # 2M debt against 2M liquidity
        assert utilization(reserve, Decimal(2_000_000)) == Decimal("0.5")

    def test_fully_borrowed(self, uusd_reserve: Reserve) -> None:
        reserve = replace(uusd_reserve, debt_total_scaled=Decimal(5))
        assert utilization(reserve, Decimal(0)) == 1


class TestUpdateRates:
    def test_linear_curve(self, uusd_reserve: Reserve) -> None:
        reserve = replace(uusd_reserve, debt_total_scaled=Decimal(2_000_000))
        updated = update_rates(reserve, Decimal(8_000_000), GENESIS)
        assert updated.borrow_rate == Decimal(1)
        assert updated.liquidity_rate == Decimal("0.2")

    def test_rates_reset_when_debt_cleared(self, uusd_reserve: Reserve) -> None:
        reserve = replace(uusd_reserve, borrow_rate=Decimal(1), liquidity_rate=Decimal("0.2"))
        updated = update_rates(reserve, Decimal(8_000_000), GENESIS)
        assert updated.borrow_rate == 0
        assert updated.liquidity_rate == 0

    def test_indices_untouched(self, uusd_reserve: Reserve) -> None:
        reserve = replace(
            uusd_reserve, debt_total_scaled=Decimal(1), liquidity_index=Decimal("1.5")
        )
        updated = update_rates(reserve, Decimal(1), GENESIS)
        assert updated.liquidity_index == Decimal("1.5")


class TestIndicesAndRates:
    def test_from_attributes(self) -> None:
        observed = IndicesAndRates.from_attributes(
            {
                "liquidity_rate": "0.2",
                "borrow_rate": "1",
                "liquidity_index": "1.000000000000000000",
                "borrow_index": "1",
                "other": "ignored",
            }
        )
        assert observed == IndicesAndRates(
            Decimal("0.2"), Decimal(1), Decimal(1), Decimal(1)
        )

    def test_diff_names_mismatches(self) -> None:
        a = IndicesAndRates(Decimal("0.2"), Decimal(1), Decimal(1), Decimal(1))
        b = IndicesAndRates(Decimal("0.2"), Decimal("1.1"), Decimal(1), Decimal("1.01"))
        assert a.diff(b) == ("borrow_rate", "borrow_index")
        assert a.diff(a) == ()
