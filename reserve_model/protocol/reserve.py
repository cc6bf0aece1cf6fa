"""Reserve state, index accrual and rate recomputation."""

from __future__ import annotations

import logging
from dataclasses import dataclass, fields, replace
from decimal import Decimal
from typing import Any, Mapping

from reserve_model.data.constants import SECONDS_PER_YEAR
from reserve_model.protocol.errors import ClockRegressionError
from reserve_model.protocol.interest_rate import LinearRateModel, RateModel
from reserve_model.protocol.numeric import ONE, ZERO, add, div, mul, to_decimal

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Reserve:
    """Per-asset accounting record.

    Debt is stored scaled: the amount owed is
    ``debt_total_scaled * borrow_index``.
    """

    denom: str
    borrow_slope: Decimal
    loan_to_value: Decimal
    interests_last_updated: int
    liquidity_index: Decimal = ONE
    borrow_index: Decimal = ONE
    liquidity_rate: Decimal = ZERO
    borrow_rate: Decimal = ZERO
    debt_total_scaled: Decimal = ZERO
    rate_model: RateModel | None = None
    rate_state: Any = None

    @property
    def strategy(self) -> RateModel:
        if self.rate_model is not None:
            return self.rate_model
        return LinearRateModel(self.borrow_slope)

    @property
    def debt_total(self) -> Decimal:
        return mul(self.debt_total_scaled, self.borrow_index)


@dataclass(frozen=True)
class AccountPosition:
    """One user's holdings in one asset: scaled receipt tokens and wallet coins."""

    scaled_balance: Decimal = ZERO
    native_balance: Decimal = ZERO

    def underlying_balance(self, liquidity_index: Decimal) -> Decimal:
        return mul(self.scaled_balance, liquidity_index)


@dataclass(frozen=True)
class IndicesAndRates:
    """The four values the contract emits after every reserve update."""

    liquidity_rate: Decimal
    borrow_rate: Decimal
    liquidity_index: Decimal
    borrow_index: Decimal

    @classmethod
    def of(cls, reserve: Reserve) -> IndicesAndRates:
        return cls(
            liquidity_rate=reserve.liquidity_rate,
            borrow_rate=reserve.borrow_rate,
            liquidity_index=reserve.liquidity_index,
            borrow_index=reserve.borrow_index,
        )

    @classmethod
    def from_attributes(cls, attributes: Mapping[str, Any]) -> IndicesAndRates:
        """Build from event attributes given as decimal strings."""
        return cls(**{f.name: to_decimal(attributes[f.name]) for f in fields(cls)})

    def diff(self, other: IndicesAndRates) -> tuple[str, ...]:
        """Names of the fields on which the two sides disagree."""
        return tuple(
            f.name for f in fields(self) if getattr(self, f.name) != getattr(other, f.name)
        )


def new_reserve(
    denom: str,
    borrow_slope: Decimal | int | str,
    loan_to_value: Decimal | int | str,
    created_at: int,
    rate_model: RateModel | None = None,
    initial_borrow_rate: Decimal | int | str = 0,
) -> Reserve:
    """Reserve as it exists right after the contract initializes it."""
    reserve = Reserve(
        denom=denom,
        borrow_slope=to_decimal(borrow_slope),
        loan_to_value=to_decimal(loan_to_value),
        interests_last_updated=created_at,
        borrow_rate=to_decimal(initial_borrow_rate),
        rate_model=rate_model,
    )
    return replace(reserve, rate_state=reserve.strategy.initial_state(created_at))


def accrue_indices(reserve: Reserve, timestamp: int) -> Reserve:
    """Bring both indices up to ``timestamp`` using the current rates.

    Linear interest over the elapsed window on a 365-day year. Must be
    called with the operation's block time, before rates change.
    """
    elapsed = timestamp - reserve.interests_last_updated
    if elapsed < 0:
        raise ClockRegressionError(reserve.denom, reserve.interests_last_updated, timestamp)

    elapsed_dec = Decimal(elapsed)
    liquidity_factor = add(ONE, div(mul(reserve.liquidity_rate, elapsed_dec), SECONDS_PER_YEAR))
    borrow_factor = add(ONE, div(mul(reserve.borrow_rate, elapsed_dec), SECONDS_PER_YEAR))

    logger.debug(
        "accrue %s over %ds: liquidity x%s, borrow x%s",
        reserve.denom, elapsed, liquidity_factor, borrow_factor,
    )
    return replace(
        reserve,
        liquidity_index=mul(reserve.liquidity_index, liquidity_factor),
        borrow_index=mul(reserve.borrow_index, borrow_factor),
        interests_last_updated=timestamp,
    )


def utilization(reserve: Reserve, pool_liquidity: Decimal) -> Decimal:
    """Borrowed share of everything the reserve has locked.

    Zero when nothing is locked at all.
    """
    debt_total = reserve.debt_total
    locked_total = add(pool_liquidity, debt_total)
    if locked_total == ZERO:
        return ZERO
    return div(debt_total, locked_total)


def update_rates(reserve: Reserve, pool_liquidity: Decimal, timestamp: int) -> Reserve:
    """Recompute rates after a change to pool liquidity or total debt.

    The new rates only apply to the next accrual window.
    """
    u = utilization(reserve, pool_liquidity)
    update = reserve.strategy.next_rates(reserve, u, timestamp)
    return replace(
        reserve,
        borrow_rate=update.borrow_rate,
        liquidity_rate=update.liquidity_rate,
        rate_state=update.state,
    )
