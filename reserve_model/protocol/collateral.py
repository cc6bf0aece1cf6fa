"""Collateral solvency check: borrow limit, health factor, boundary probes."""

from __future__ import annotations

from decimal import ROUND_DOWN, Decimal
from typing import Mapping

from reserve_model.protocol.errors import MissingExchangeRateError, UnknownReserveError
from reserve_model.protocol.numeric import ONE, ZERO, add, div, mul, sub, to_decimal


def _decimals(values: Mapping[str, Decimal | int | str]) -> dict[str, Decimal]:
    return {denom: to_decimal(v) for denom, v in values.items()}


class CollateralModel:
    """Borrow limits in a unit-of-account asset.

    Exchange rates are quoted as units of ``denom`` per one unit of
    ``base_denom``; the base denom itself is always 1. The model prices
    nothing and enforces nothing: the contract rejects insolvent
    borrows, this only predicts where the boundary is.
    """

    def __init__(
        self,
        loan_to_values: Mapping[str, Decimal | int | str],
        exchange_rates: Mapping[str, Decimal | int | str],
        base_denom: str,
        liquidation_thresholds: Mapping[str, Decimal | int | str] | None = None,
    ) -> None:
        self.loan_to_values = _decimals(loan_to_values)
        self.exchange_rates = _decimals(exchange_rates)
        self.base_denom = base_denom
        self.liquidation_thresholds = _decimals(liquidation_thresholds or {})

    def exchange_rate(self, denom: str) -> Decimal:
        if denom == self.base_denom:
            return ONE
        try:
            rate = self.exchange_rates[denom]
        except KeyError:
            raise MissingExchangeRateError(denom) from None
        if rate <= ZERO:
            raise MissingExchangeRateError(denom)
        return rate

    def loan_to_value(self, denom: str) -> Decimal:
        try:
            return self.loan_to_values[denom]
        except KeyError:
            raise UnknownReserveError(f"no loan-to-value configured for {denom}") from None

    def to_base(self, denom: str, amount: Decimal) -> Decimal:
        return div(amount, self.exchange_rate(denom))

    def from_base(self, denom: str, value: Decimal) -> Decimal:
        return mul(value, self.exchange_rate(denom))

    def max_borrow_value(self, deposits: Mapping[str, Decimal | int | str]) -> Decimal:
        """Sum of deposit * LTV / exchange rate, in base units."""
        total = ZERO
        for denom, amount in _decimals(deposits).items():
            total = add(
                total, div(mul(amount, self.loan_to_value(denom)), self.exchange_rate(denom))
            )
        return total

    def max_borrow_amount(
        self, deposits: Mapping[str, Decimal | int | str], denom: str
    ) -> Decimal:
        """Largest whole amount of ``denom`` the deposits allow borrowing."""
        value = self.from_base(denom, self.max_borrow_value(deposits))
        return value.to_integral_value(rounding=ROUND_DOWN)

    def debt_value(self, debts: Mapping[str, Decimal | int | str]) -> Decimal:
        total = ZERO
        for denom, amount in _decimals(debts).items():
            total = add(total, self.to_base(denom, amount))
        return total

    def is_solvent(
        self,
        deposits: Mapping[str, Decimal | int | str],
        borrow_amount: Decimal | int | str,
        borrow_denom: str,
        debts: Mapping[str, Decimal | int | str] | None = None,
    ) -> bool:
        """Whether a new borrow stays within the collateral limit."""
        requested = self.to_base(borrow_denom, to_decimal(borrow_amount))
        outstanding = self.debt_value(debts or {})
        return add(outstanding, requested) <= self.max_borrow_value(deposits)

    def boundary_probes(
        self,
        deposits: Mapping[str, Decimal | int | str],
        denom: str,
        margin: Decimal | int | str = 100,
    ) -> tuple[Decimal, Decimal]:
        """Borrow amounts just over and just under the limit.

        Returns:
            ``(over, under)``: the first must be rejected, the second accepted.
        """
        limit = self.max_borrow_amount(deposits, denom)
        step = to_decimal(margin)
        return add(limit, step), sub(limit, step)

    def health_factor(
        self,
        deposits: Mapping[str, Decimal | int | str],
        debts: Mapping[str, Decimal | int | str],
    ) -> Decimal:
        """Threshold-weighted collateral value over debt value.

        Falls back to LTV for assets without a liquidation threshold.
        Infinite when there is no debt.
        """
        debt = self.debt_value(debts)
        if debt <= ZERO:
            return Decimal("Infinity")
        weighted = ZERO
        for denom, amount in _decimals(deposits).items():
            threshold = self.liquidation_thresholds.get(denom)
            if threshold is None:
                threshold = self.loan_to_value(denom)
            weighted = add(
                weighted, div(mul(amount, threshold), self.exchange_rate(denom))
            )
        return div(weighted, debt)
