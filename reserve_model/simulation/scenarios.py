"""Scripted operation sequences and model-only replays."""

from __future__ import annotations

from decimal import Decimal
from typing import Iterable, Mapping

from reserve_model.data.constants import ULUNA, UUSD
from reserve_model.data.interfaces import (
    Operation,
    OperationKind,
    ReserveParams,
    ScheduledOperation,
)
from reserve_model.data.settings import ModelSettings
from reserve_model.data.static_params import INITIAL_ASSETS
from reserve_model.protocol.interest_rate import RateModel
from reserve_model.protocol.reserve import new_reserve
from reserve_model.simulation.ledger import ReserveLedger
from reserve_model.simulation.results import StepResult

CANONICAL_USERS = ("test1", "test2")

# Seconds between consecutive blocks in the scripted scenarios
DEFAULT_BLOCK_INTERVAL = 5


def canonical_operations() -> list[Operation]:
    """Two deposits, a borrow against them, a partial redeem and repay."""
    return [
        Operation(OperationKind.DEPOSIT, "test2", UUSD, Decimal(10_000_000)),
        Operation(OperationKind.DEPOSIT, "test1", ULUNA, Decimal(10_000_000)),
        Operation(OperationKind.BORROW, "test1", UUSD, Decimal(2_000_000)),
        Operation(OperationKind.REDEEM, "test1", ULUNA, Decimal(3_000_000)),
        Operation(OperationKind.REPAY, "test1", UUSD, Decimal(1_000_000)),
    ]


def schedule(
    operations: Iterable[Operation],
    start: int,
    interval: int = DEFAULT_BLOCK_INTERVAL,
) -> list[ScheduledOperation]:
    """Assign one block per operation, ``interval`` seconds apart."""
    return [
        ScheduledOperation(operation, start + (i + 1) * interval)
        for i, operation in enumerate(operations)
    ]


def build_ledger(
    created_at: int,
    assets: Mapping[str, ReserveParams] = INITIAL_ASSETS,
    native_balances: Mapping[str, Mapping[str, Decimal | int | str]] | None = None,
    rate_models: Mapping[str, RateModel] | None = None,
    settings: ModelSettings | None = None,
) -> ReserveLedger:
    """Empty reserves for ``assets``, as seeded on a fresh test chain."""
    ledger = ReserveLedger(settings)
    rate_models = rate_models or {}
    for denom, params in assets.items():
        ledger.add_reserve(
            new_reserve(
                denom,
                params.borrow_slope,
                params.loan_to_value,
                created_at,
                rate_model=rate_models.get(denom),
            )
        )
    for user, balances in (native_balances or {}).items():
        ledger.open_account(user, balances)
    return ledger


def run_offline(
    ledger: ReserveLedger, scheduled: Iterable[ScheduledOperation]
) -> list[StepResult]:
    """Replay a schedule on the model alone, without fees."""
    return [ledger.apply(item.operation, item.timestamp) for item in scheduled]
