"""Abstract chain-client interface and the types that cross it."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from reserve_model.data.receipts import Receipt


class OperationKind(str, Enum):
    DEPOSIT = "deposit"
    REDEEM = "redeem"
    BORROW = "borrow"
    REPAY = "repay"


@dataclass(frozen=True)
class Operation:
    """One economic action sent to the contract by ``user``."""

    kind: OperationKind
    user: str
    denom: str
    amount: Decimal


@dataclass(frozen=True)
class ScheduledOperation:
    """An operation with the block time it is assumed to execute at."""

    operation: Operation
    timestamp: int


@dataclass(frozen=True)
class ReserveParams:
    """Configured parameters for a reserve asset."""

    denom: str
    borrow_slope: Decimal
    loan_to_value: Decimal
    liquidation_threshold: Decimal | None = None


@dataclass(frozen=True)
class ReserveSnapshot:
    """Reserve state as first queried from the contract."""

    denom: str
    borrow_slope: Decimal
    interests_last_updated: int
    ma_token_address: str = ""


class ChainClient(ABC):
    """Everything the harness needs from the chain.

    Implementations broadcast operations and answer point-in-time
    queries. Signing, fees and inclusion are their concern.
    """

    @abstractmethod
    def execute(self, operation: Operation) -> Receipt:
        """Broadcast ``operation`` and wait for its receipt.

        Raises ``TransactionRejectedError`` when the contract refuses it.
        """

    @abstractmethod
    def query_reserve(self, denom: str) -> ReserveSnapshot:
        """Initial reserve configuration for ``denom``."""

    @abstractmethod
    def query_pool_balance(self, denom: str) -> Decimal:
        """Native balance of the lending contract."""

    @abstractmethod
    def query_native_balance(self, user: str, denom: str) -> Decimal:
        """Wallet balance of ``user``."""

    @abstractmethod
    def query_scaled_balance(self, user: str, denom: str) -> Decimal:
        """Receipt-token balance of ``user`` for the ``denom`` reserve."""

    @abstractmethod
    def query_exchange_rates(self) -> dict[str, Decimal]:
        """Oracle rates, in units of denom per unit of the base denom."""
