"""Shared fixtures: reserves seeded like the local test chain."""

from decimal import Decimal

import pytest

from reserve_model.data.constants import ULUNA, UUSD
from reserve_model.protocol.reserve import AccountPosition, Reserve, new_reserve
from reserve_model.simulation.scenarios import build_ledger

# 2021-05-03T00:00:00Z
GENESIS = 1_620_000_000
YEAR = 31_536_000


@pytest.fixture
def uusd_reserve() -> Reserve:
    return new_reserve(UUSD, "5", "0.8", GENESIS)


@pytest.fixture
def uluna_reserve() -> Reserve:
    return new_reserve(ULUNA, "4", "0.5", GENESIS)


@pytest.fixture
def empty_position() -> AccountPosition:
    return AccountPosition()


@pytest.fixture
def ledger():
    return build_ledger(
        GENESIS,
        native_balances={
            "test1": {ULUNA: 1_000_000_000, UUSD: 1_000_000_000},
            "test2": {ULUNA: 1_000_000_000, UUSD: 1_000_000_000},
        },
    )


def d(value: str | int) -> Decimal:
    return Decimal(value)


def make_tx(
    txhash: str,
    timestamp: str,
    denom: str = "",
    indices: dict | None = None,
    fee: dict | None = None,
    code: int = 0,
    raw_log: str = "",
) -> dict:
    """Minimal LCD ``txInfo`` document with one contract event."""
    attributes = [{"key": "action", "value": "update_reserve"}]
    if denom:
        attributes.append({"key": "asset", "value": denom})
    for key, value in (indices or {}).items():
        attributes.append({"key": key, "value": str(value)})
    return {
        "txhash": txhash,
        "timestamp": timestamp,
        "code": code,
        "raw_log": raw_log,
        "logs": [] if code else [
            {"events": [{"type": "from_contract", "attributes": attributes}]}
        ],
        "tx": {
            "fee": {
                "amount": [
                    {"denom": d, "amount": str(a)} for d, a in (fee or {}).items()
                ],
            },
        },
    }
