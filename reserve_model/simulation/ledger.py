"""Expected on-chain state, advanced one operation at a time."""

from __future__ import annotations

import logging
from dataclasses import replace
from decimal import Decimal
from typing import Callable, Mapping

import pandas as pd

from reserve_model.data.interfaces import Operation, OperationKind
from reserve_model.data.settings import ModelSettings
from reserve_model.protocol import operations
from reserve_model.protocol.errors import StateMismatchError, UnknownReserveError
from reserve_model.protocol.numeric import ZERO, add, sub, to_decimal
from reserve_model.protocol.reserve import (
    AccountPosition,
    IndicesAndRates,
    Reserve,
    utilization,
)
from reserve_model.simulation.results import StepResult

logger = logging.getLogger(__name__)

Mutator = Callable[
    [Reserve, Decimal, AccountPosition, Decimal, int], operations.OperationResult
]

_MUTATORS: dict[OperationKind, Mutator] = {
    OperationKind.DEPOSIT: operations.deposit,
    OperationKind.REDEEM: operations.redeem,
    OperationKind.BORROW: operations.borrow,
    OperationKind.REPAY: operations.repay,
}

# Operations that pay the operated amount out to the user's wallet
_CREDITS_WALLET = frozenset({OperationKind.REDEEM, OperationKind.BORROW})

FeeInput = Mapping[str, Decimal | int | str] | Decimal | int | str | None


class ReserveLedger:
    """The model's view of every reserve, pool balance and account.

    There is exactly one writer: operations are applied in the order the
    chain executed them, each strictly after its receipt was observed.
    State is held in immutable values; applying an operation swaps them.
    """

    def __init__(self, settings: ModelSettings | None = None) -> None:
        self.settings = settings or ModelSettings()
        self.reserves: dict[str, Reserve] = {}
        self.pool_liquidity: dict[str, Decimal] = {}
        self.positions: dict[tuple[str, str], AccountPosition] = {}
        self.history: list[StepResult] = []

    # ------------------------------------------------------------------
    # Setup
    # ------------------------------------------------------------------

    def add_reserve(
        self, reserve: Reserve, pool_liquidity: Decimal | int | str = ZERO
    ) -> None:
        if reserve.denom in self.reserves:
            raise ValueError(f"Reserve {reserve.denom} already registered")
        self.reserves[reserve.denom] = reserve
        self.pool_liquidity[reserve.denom] = to_decimal(pool_liquidity)

    def open_account(
        self, user: str, native_balances: Mapping[str, Decimal | int | str] | None = None
    ) -> None:
        for denom, amount in (native_balances or {}).items():
            self.positions[(user, denom)] = replace(
                self.position(user, denom), native_balance=to_decimal(amount)
            )

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    def reserve(self, denom: str) -> Reserve:
        try:
            return self.reserves[denom]
        except KeyError:
            raise UnknownReserveError(f"no reserve registered for {denom}") from None

    def position(self, user: str, denom: str) -> AccountPosition:
        return self.positions.get((user, denom), AccountPosition())

    def utilization(self, denom: str) -> Decimal:
        return utilization(self.reserve(denom), self.pool_liquidity[denom])

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def _normalize_fees(self, fee: FeeInput) -> dict[str, Decimal]:
        if fee is None:
            return {}
        if isinstance(fee, Mapping):
            return {denom: to_decimal(amount) for denom, amount in fee.items()}
        return {self.settings.fee_denom: to_decimal(fee)}

    def charge_fees(self, user: str, fee: FeeInput) -> None:
        """Debit transaction fees from the wallet of the fee currency.

        A bare amount is taken to be in the configured fee currency.
        """
        for denom, amount in self._normalize_fees(fee).items():
            position = self.position(user, denom)
            self.positions[(user, denom)] = replace(
                position, native_balance=sub(position.native_balance, amount)
            )

    def apply(self, operation: Operation, timestamp: int, fee: FeeInput = None) -> StepResult:
        """Apply one operation at its block time and record the outcome."""
        reserve = self.reserve(operation.denom)
        amount = to_decimal(operation.amount)
        mutator = _MUTATORS[operation.kind]

        result = mutator(
            reserve,
            self.pool_liquidity[operation.denom],
            self.position(operation.user, operation.denom),
            amount,
            timestamp,
        )

        move = add if operation.kind in _CREDITS_WALLET else sub
        position = replace(
            result.position,
            native_balance=move(result.position.native_balance, amount),
        )
        self.reserves[operation.denom] = result.reserve
        self.pool_liquidity[operation.denom] = result.pool_liquidity
        self.positions[(operation.user, operation.denom)] = position
        self.charge_fees(operation.user, fee)

        step = StepResult(
            step=len(self.history),
            operation=operation,
            timestamp=timestamp,
            predicted=result.predicted,
            utilization=utilization(result.reserve, result.pool_liquidity),
            pool_liquidity=result.pool_liquidity,
            debt_total=result.reserve.debt_total,
        )
        self.history.append(step)
        logger.debug(
            "step %d: %s %s %s by %s -> %s",
            step.step, operation.kind.value, amount, operation.denom,
            operation.user, result.predicted,
        )
        return step

    # ------------------------------------------------------------------
    # Comparison against chain observations
    # ------------------------------------------------------------------

    def check_indices_and_rates(self, denom: str, observed: IndicesAndRates) -> None:
        expected = IndicesAndRates.of(self.reserve(denom))
        mismatched = expected.diff(observed)
        if mismatched:
            raise StateMismatchError(
                f"{denom} indices and rates", expected, observed, mismatched
            )

    def _check_amount(self, subject: str, expected: Decimal, observed: Decimal | int | str) -> None:
        actual = to_decimal(observed)
        if expected != actual:
            raise StateMismatchError(subject, expected, actual)

    def check_pool_liquidity(self, denom: str, observed: Decimal | int | str) -> None:
        self._check_amount(f"{denom} pool liquidity", self.pool_liquidity[denom], observed)

    def check_scaled_balance(self, user: str, denom: str, observed: Decimal | int | str) -> None:
        self._check_amount(
            f"{user} {denom} scaled balance",
            self.position(user, denom).scaled_balance,
            observed,
        )

    def check_native_balance(self, user: str, denom: str, observed: Decimal | int | str) -> None:
        self._check_amount(
            f"{user} {denom} native balance",
            self.position(user, denom).native_balance,
            observed,
        )

    # ------------------------------------------------------------------
    # Reporting
    # ------------------------------------------------------------------

    def history_frame(self) -> pd.DataFrame:
        """Replay history as floats, for display.

        Returns:
            DataFrame with one row per step.
        """
        rows = [
            {
                "step": s.step,
                "timestamp": s.timestamp,
                "kind": s.operation.kind.value,
                "user": s.operation.user,
                "denom": s.operation.denom,
                "amount": float(s.operation.amount),
                "liquidity_index": float(s.predicted.liquidity_index),
                "borrow_index": float(s.predicted.borrow_index),
                "liquidity_rate": float(s.predicted.liquidity_rate),
                "borrow_rate": float(s.predicted.borrow_rate),
                "utilization": float(s.utilization),
                "pool_liquidity": float(s.pool_liquidity),
                "debt_total": float(s.debt_total),
            }
            for s in self.history
        ]
        columns = [
            "step", "timestamp", "kind", "user", "denom", "amount",
            "liquidity_index", "borrow_index", "liquidity_rate", "borrow_rate",
            "utilization", "pool_liquidity", "debt_total",
        ]
        return pd.DataFrame(rows, columns=columns)
