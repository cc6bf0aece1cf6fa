"""Utilization-based interest rate strategies.

The test replica only needs the linear curve. The kinked and dynamic
curves from deployment configuration plug into the same interface.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from decimal import Decimal
from typing import TYPE_CHECKING, Any

import numpy as np
import pandas as pd

from reserve_model.protocol.errors import InvalidRateModelError
from reserve_model.protocol.numeric import ONE, ZERO, add, div, mul, sub, to_decimal

if TYPE_CHECKING:
    from reserve_model.protocol.reserve import Reserve


@dataclass(frozen=True)
class RateUpdate:
    """New rates for a reserve, plus any strategy state to carry forward."""

    borrow_rate: Decimal
    liquidity_rate: Decimal
    state: Any = None


class RateModel(ABC):
    """Strategy turning utilization into borrow and liquidity rates."""

    def initial_state(self, timestamp: int) -> Any:
        """State stored on a freshly created reserve (none by default)."""
        return None

    @abstractmethod
    def next_rates(
        self, reserve: Reserve, utilization: Decimal, timestamp: int
    ) -> RateUpdate:
        """Rates that apply from ``timestamp`` until the next accrual."""


class StatelessRateModel(RateModel):
    """A rate model that depends on utilization alone."""

    @abstractmethod
    def borrow_rate(self, utilization: Decimal) -> Decimal:
        ...

    @abstractmethod
    def liquidity_rate(self, borrow_rate: Decimal, utilization: Decimal) -> Decimal:
        ...

    def next_rates(
        self, reserve: Reserve, utilization: Decimal, timestamp: int
    ) -> RateUpdate:
        borrow = self.borrow_rate(utilization)
        return RateUpdate(borrow, self.liquidity_rate(borrow, utilization))

    def rate_curve(self, n_points: int = 200) -> pd.DataFrame:
        """Generate the full rate curve for plotting.

        Returns:
            DataFrame with columns: utilization, borrow_rate, liquidity_rate
        """
        utilizations = np.linspace(0, 1, n_points)
        borrow_rates = []
        liquidity_rates = []
        for u in utilizations:
            u_dec = to_decimal(f"{u:.18f}")
            borrow = self.borrow_rate(u_dec)
            borrow_rates.append(float(borrow))
            liquidity_rates.append(float(self.liquidity_rate(borrow, u_dec)))

        return pd.DataFrame(
            {
                "utilization": utilizations,
                "borrow_rate": borrow_rates,
                "liquidity_rate": liquidity_rates,
            }
        )


@dataclass(frozen=True)
class LinearRateModel(StatelessRateModel):
    """borrow = U * slope, liquidity = borrow * U."""

    borrow_slope: Decimal

    def borrow_rate(self, utilization: Decimal) -> Decimal:
        return mul(utilization, self.borrow_slope)

    def liquidity_rate(self, borrow_rate: Decimal, utilization: Decimal) -> Decimal:
        return mul(borrow_rate, utilization)


@dataclass(frozen=True)
class KinkedRateModel(StatelessRateModel):
    """Two-slope curve with a kink at the optimal utilization."""

    optimal_utilization: Decimal
    base_rate: Decimal
    slope1: Decimal
    slope2: Decimal
    reserve_factor: Decimal = ZERO

    def __post_init__(self) -> None:
        if self.optimal_utilization > ONE:
            raise InvalidRateModelError(
                f"optimal_utilization must be <= 1, got {self.optimal_utilization}"
            )
        if not ZERO <= self.reserve_factor <= ONE:
            raise InvalidRateModelError(
                f"reserve_factor must be in [0, 1], got {self.reserve_factor}"
            )
        if self.slope1 >= self.slope2:
            raise InvalidRateModelError(
                f"slope1 ({self.slope1}) must be < slope2 ({self.slope2})"
            )

    def borrow_rate(self, utilization: Decimal) -> Decimal:
        """Variable borrow rate for a given utilization.

        Args:
            utilization: Pool utilization ratio in [0, 1].

        Returns:
            Annual borrow rate as a decimal (e.g. 0.05 = 5%).
        """
        if utilization <= self.optimal_utilization:
            if utilization == ZERO:
                return self.base_rate
            return add(
                self.base_rate, mul(self.slope1, div(utilization, self.optimal_utilization))
            )
        excess = div(
            mul(self.slope2, sub(utilization, self.optimal_utilization)),
            sub(ONE, self.optimal_utilization),
        )
        return add(add(self.base_rate, self.slope1), excess)

    def liquidity_rate(self, borrow_rate: Decimal, utilization: Decimal) -> Decimal:
        return mul(mul(borrow_rate, utilization), sub(ONE, self.reserve_factor))


@dataclass(frozen=True)
class DynamicRateState:
    txs_since_last_update: int
    borrow_rate_last_updated: int


@dataclass(frozen=True)
class DynamicRateModel(RateModel):
    """Proportional controller steering utilization toward the optimum.

    The borrow rate only moves once ``update_threshold_txs`` operations
    or ``update_threshold_seconds`` have passed since the last move.
    """

    min_borrow_rate: Decimal
    max_borrow_rate: Decimal
    optimal_utilization: Decimal
    kp_1: Decimal
    kp_2: Decimal
    kp_augmentation_threshold: Decimal
    update_threshold_txs: int
    update_threshold_seconds: int
    reserve_factor: Decimal = ZERO

    def __post_init__(self) -> None:
        if self.min_borrow_rate > self.max_borrow_rate:
            raise InvalidRateModelError(
                f"max_borrow_rate ({self.max_borrow_rate}) must be >= "
                f"min_borrow_rate ({self.min_borrow_rate})"
            )
        if self.optimal_utilization > ONE:
            raise InvalidRateModelError(
                f"optimal_utilization must be <= 1, got {self.optimal_utilization}"
            )

    def initial_state(self, timestamp: int) -> DynamicRateState:
        return DynamicRateState(txs_since_last_update=0, borrow_rate_last_updated=timestamp)

    def controlled_borrow_rate(
        self, utilization: Decimal, current_borrow_rate: Decimal
    ) -> Decimal:
        under_utilized = self.optimal_utilization > utilization
        error = sub(self.optimal_utilization, utilization).copy_abs()
        kp = self.kp_2 if error >= self.kp_augmentation_threshold else self.kp_1
        p = mul(kp, error)

        if under_utilized:
            rate = sub(current_borrow_rate, p) if current_borrow_rate > p else ZERO
        else:
            rate = add(current_borrow_rate, p)

        return min(max(rate, self.min_borrow_rate), self.max_borrow_rate)

    def next_rates(
        self, reserve: Reserve, utilization: Decimal, timestamp: int
    ) -> RateUpdate:
        state = reserve.rate_state
        if not isinstance(state, DynamicRateState):
            state = self.initial_state(reserve.interests_last_updated)

        txs = state.txs_since_last_update + 1
        elapsed = timestamp - state.borrow_rate_last_updated
        threshold_met = (
            txs >= self.update_threshold_txs or elapsed >= self.update_threshold_seconds
        )

        borrow = reserve.borrow_rate
        if threshold_met and elapsed != 0:
            borrow = self.controlled_borrow_rate(utilization, reserve.borrow_rate)
            state = DynamicRateState(txs_since_last_update=0, borrow_rate_last_updated=timestamp)
        else:
            state = DynamicRateState(
                txs_since_last_update=txs,
                borrow_rate_last_updated=state.borrow_rate_last_updated,
            )

        liquidity = mul(mul(borrow, utilization), sub(ONE, self.reserve_factor))
        return RateUpdate(borrow, liquidity, state)
