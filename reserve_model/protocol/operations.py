"""Pure state transitions for deposit, redeem, borrow and repay.

Each mutator accrues the reserve to the operation's block time, applies
the balance change, recomputes rates and returns the new state together
with the index/rate pair the contract is expected to emit. Inputs are
never modified; a failed precondition produces no new state.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from decimal import Decimal

from reserve_model.protocol.errors import (
    InsufficientBalanceError,
    InsufficientLiquidityError,
    InvalidAmountError,
    OverRepaymentError,
)
from reserve_model.protocol.numeric import ZERO, add, div, sub, to_decimal
from reserve_model.protocol.reserve import (
    AccountPosition,
    IndicesAndRates,
    Reserve,
    accrue_indices,
    update_rates,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OperationResult:
    reserve: Reserve
    pool_liquidity: Decimal
    position: AccountPosition
    predicted: IndicesAndRates


def _positive(denom: str, amount: Decimal | int | str) -> Decimal:
    value = to_decimal(amount)
    if value <= ZERO:
        raise InvalidAmountError(f"{denom}: amount must be positive, got {value}")
    return value


def _result(
    reserve: Reserve, pool_liquidity: Decimal, position: AccountPosition
) -> OperationResult:
    return OperationResult(reserve, pool_liquidity, position, IndicesAndRates.of(reserve))


def deposit(
    reserve: Reserve,
    pool_liquidity: Decimal,
    position: AccountPosition,
    amount: Decimal | int | str,
    timestamp: int,
) -> OperationResult:
    value = _positive(reserve.denom, amount)
    reserve = accrue_indices(reserve, timestamp)
    pool_liquidity = add(pool_liquidity, value)
    reserve = update_rates(reserve, pool_liquidity, timestamp)
    position = replace(
        position,
        scaled_balance=add(position.scaled_balance, div(value, reserve.liquidity_index)),
    )
    logger.debug("deposit %s %s at %d", value, reserve.denom, timestamp)
    return _result(reserve, pool_liquidity, position)


def redeem(
    reserve: Reserve,
    pool_liquidity: Decimal,
    position: AccountPosition,
    amount: Decimal | int | str,
    timestamp: int,
) -> OperationResult:
    """Withdraw ``amount`` underlying by burning receipt tokens."""
    value = _positive(reserve.denom, amount)
    reserve = accrue_indices(reserve, timestamp)
    burned = div(value, reserve.liquidity_index)
    if burned > position.scaled_balance:
        raise InsufficientBalanceError(reserve.denom, burned, position.scaled_balance)
    if value > pool_liquidity:
        raise InsufficientLiquidityError(reserve.denom, value, pool_liquidity)

    pool_liquidity = sub(pool_liquidity, value)
    reserve = update_rates(reserve, pool_liquidity, timestamp)
    position = replace(position, scaled_balance=sub(position.scaled_balance, burned))
    logger.debug("redeem %s %s at %d", value, reserve.denom, timestamp)
    return _result(reserve, pool_liquidity, position)


def borrow(
    reserve: Reserve,
    pool_liquidity: Decimal,
    position: AccountPosition,
    amount: Decimal | int | str,
    timestamp: int,
) -> OperationResult:
    value = _positive(reserve.denom, amount)
    if value > pool_liquidity:
        raise InsufficientLiquidityError(reserve.denom, value, pool_liquidity)
    reserve = accrue_indices(reserve, timestamp)
    pool_liquidity = sub(pool_liquidity, value)
    reserve = replace(
        reserve,
        debt_total_scaled=add(reserve.debt_total_scaled, div(value, reserve.borrow_index)),
    )
    reserve = update_rates(reserve, pool_liquidity, timestamp)
    logger.debug("borrow %s %s at %d", value, reserve.denom, timestamp)
    return _result(reserve, pool_liquidity, position)


def repay(
    reserve: Reserve,
    pool_liquidity: Decimal,
    position: AccountPosition,
    amount: Decimal | int | str,
    timestamp: int,
) -> OperationResult:
    """Pay back ``amount`` of debt.

    Paying more than the outstanding scaled debt is rejected rather than
    clamped: it means operations were replayed out of order.
    """
    value = _positive(reserve.denom, amount)
    reserve = accrue_indices(reserve, timestamp)
    repaid = div(value, reserve.borrow_index)
    if repaid > reserve.debt_total_scaled:
        raise OverRepaymentError(reserve.denom, repaid, reserve.debt_total_scaled)

    pool_liquidity = add(pool_liquidity, value)
    reserve = replace(reserve, debt_total_scaled=sub(reserve.debt_total_scaled, repaid))
    reserve = update_rates(reserve, pool_liquidity, timestamp)
    logger.debug("repay %s %s at %d", value, reserve.denom, timestamp)
    return _result(reserve, pool_liquidity, position)
