"""Exceptions raised by the reserve model and its harness."""

from decimal import Decimal
from typing import Any


class ReserveModelError(Exception):
    """Base class for every model failure."""


class ClockRegressionError(ReserveModelError):
    """An operation timestamp is older than the reserve's last accrual."""

    def __init__(self, denom: str, last_updated: int, timestamp: int) -> None:
        self.denom = denom
        self.last_updated = last_updated
        self.timestamp = timestamp
        super().__init__(
            f"{denom}: timestamp {timestamp} is before last accrual at {last_updated}"
        )


class InsufficientBalanceError(ReserveModelError):
    """A redeem would drive a scaled receipt balance negative."""

    def __init__(self, denom: str, requested: Decimal, available: Decimal) -> None:
        self.denom = denom
        self.requested = requested
        self.available = available
        super().__init__(
            f"{denom}: redeem of {requested} scaled exceeds balance of {available} scaled"
        )


class InsufficientLiquidityError(ReserveModelError):
    """A borrow or redeem asks for more than the pool holds."""

    def __init__(self, denom: str, requested: Decimal, available: Decimal) -> None:
        self.denom = denom
        self.requested = requested
        self.available = available
        super().__init__(
            f"{denom}: requested {requested} but pool liquidity is {available}"
        )


class OverRepaymentError(ReserveModelError):
    """A repay exceeds the outstanding scaled debt."""

    def __init__(self, denom: str, repay_scaled: Decimal, debt_scaled: Decimal) -> None:
        self.denom = denom
        self.repay_scaled = repay_scaled
        self.debt_scaled = debt_scaled
        super().__init__(
            f"{denom}: repay of {repay_scaled} scaled exceeds debt of {debt_scaled} scaled"
        )


class InvalidAmountError(ReserveModelError, ValueError):
    """Operation amounts must be strictly positive."""


class InvalidRateModelError(ReserveModelError, ValueError):
    """Rate strategy parameters are inconsistent."""


class UnknownReserveError(ReserveModelError, KeyError):
    """No reserve (or account) is registered under the given key."""

    def __str__(self) -> str:
        return str(self.args[0]) if self.args else "unknown reserve"


class MissingExchangeRateError(ReserveModelError, KeyError):
    """The collateral check needs a price the caller did not supply."""

    def __str__(self) -> str:
        return f"no exchange rate for {self.args[0]}" if self.args else "missing exchange rate"


class TransactionRejectedError(ReserveModelError):
    """The chain refused an operation. Raised by chain clients, never by the model."""

    def __init__(
        self,
        message: str,
        raw_log: str = "",
        fees: dict[str, Decimal] | None = None,
    ) -> None:
        self.raw_log = raw_log
        self.fees = fees or {}
        super().__init__(message)


class StateMismatchError(AssertionError):
    """Model prediction and chain observation disagree.

    Subclasses ``AssertionError`` so that a replay failure reads as a
    test failure, with both sides printed in full precision.
    """

    def __init__(
        self,
        subject: str,
        expected: Any,
        actual: Any,
        fields: tuple[str, ...] = (),
    ) -> None:
        self.subject = subject
        self.expected = expected
        self.actual = actual
        self.fields = fields
        detail = f" (fields: {', '.join(fields)})" if fields else ""
        super().__init__(
            f"{subject} mismatch{detail}\n\t-expected: {expected}\n\t-actual:   {actual}"
        )
