"""Tests for driving a chain client and the ledger in lockstep."""

import logging
from datetime import datetime, timezone
from decimal import Decimal

import pytest

from conftest import GENESIS, make_tx
from reserve_model.data.constants import INSUFFICIENT_COLLATERAL_LOG, ULUNA, UUSD
from reserve_model.data.interfaces import Operation, OperationKind, ReserveSnapshot
from reserve_model.data.recorded_client import RecordedChainClient
from reserve_model.data.settings import ModelSettings
from reserve_model.data.static_params import EXCHANGE_RATES, INITIAL_ASSETS, loan_to_values
from reserve_model.protocol.collateral import CollateralModel
from reserve_model.protocol.errors import StateMismatchError
from reserve_model.simulation.ledger import ReserveLedger
from reserve_model.simulation.replay import ScenarioRunner
from reserve_model.simulation.scenarios import (
    CANONICAL_USERS,
    build_ledger,
    canonical_operations,
    schedule,
)

FEE = {ULUNA: Decimal(30000)}
START_BALANCE = Decimal(1_000_000_000)


def block_time(timestamp: int) -> str:
    return datetime.fromtimestamp(timestamp, tz=timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def initial_balances() -> dict:
    return {
        "pool": {ULUNA: 0, UUSD: 0},
        "native": {user: {ULUNA: START_BALANCE, UUSD: START_BALANCE} for user in CANONICAL_USERS},
        "scaled": {user: {ULUNA: 0, UUSD: 0} for user in CANONICAL_USERS},
    }


def snapshot_balances(ledger: ReserveLedger) -> dict:
    return {
        "pool": dict(ledger.pool_liquidity),
        "native": {
            user: {d: ledger.position(user, d).native_balance for d in ledger.reserves}
            for user in CANONICAL_USERS
        },
        "scaled": {
            user: {d: ledger.position(user, d).scaled_balance for d in ledger.reserves}
            for user in CANONICAL_USERS
        },
    }


def make_client() -> RecordedChainClient:
    return RecordedChainClient(
        reserves={
            denom: ReserveSnapshot(denom, params.borrow_slope, GENESIS)
            for denom, params in INITIAL_ASSETS.items()
        },
        exchange_rates=EXCHANGE_RATES,
        balances=initial_balances(),
    )


def record_canonical(
    client: RecordedChainClient, overrides: dict[int, dict] | None = None
) -> None:
    """Queue what a well-behaved chain reports for the canonical scenario.

    ``overrides`` replaces emitted attributes by step index.
    """
    chain = build_ledger(
        GENESIS,
        native_balances={user: {ULUNA: START_BALANCE, UUSD: START_BALANCE} for user in CANONICAL_USERS},
    )
    for i, item in enumerate(schedule(canonical_operations(), GENESIS)):
        step = chain.apply(item.operation, item.timestamp, fee=FEE)
        indices = {
            "liquidity_rate": step.predicted.liquidity_rate,
            "borrow_rate": step.predicted.borrow_rate,
            "liquidity_index": step.predicted.liquidity_index,
            "borrow_index": step.predicted.borrow_index,
        }
        indices.update((overrides or {}).get(i, {}))
        client.push_transaction(
            make_tx(f"TX{i}", block_time(item.timestamp), item.operation.denom, indices, fee=FEE),
            balances=snapshot_balances(chain),
        )


@pytest.fixture
def client() -> RecordedChainClient:
    client = make_client()
    record_canonical(client)
    return client


@pytest.fixture
def runner(client: RecordedChainClient) -> ScenarioRunner:
    return ScenarioRunner.from_client(client, INITIAL_ASSETS, CANONICAL_USERS)


class TestFromClient:
    def test_seeds_ledger_from_queries(self, runner: ScenarioRunner) -> None:
        ledger = runner.ledger
        assert ledger.reserve(UUSD).interests_last_updated == GENESIS
        assert ledger.reserve(UUSD).loan_to_value == Decimal("0.8")
        assert ledger.pool_liquidity == {ULUNA: 0, UUSD: 0}
        assert ledger.position("test2", UUSD).native_balance == START_BALANCE


class TestRun:
    def test_canonical_scenario_agrees(self, runner: ScenarioRunner) -> None:
        result = runner.run(canonical_operations())

        assert len(result.steps) == 5
        assert [s.txhash for s in result.steps] == [f"TX{i}" for i in range(5)]
        last = result.steps[-1]
        assert last.timestamp == GENESIS + 25
        assert last.observed == last.predicted
        assert last.observed.borrow_index == Decimal("1.000000317097919837")

    def test_fees_charged_in_fee_currency(self, runner: ScenarioRunner) -> None:
        runner.run(canonical_operations())
        # four transactions of 30000 uluna, 10M deposited, 3M redeemed
        expected = START_BALANCE - 10_000_000 + 3_000_000 - 4 * 30000
        assert runner.ledger.position("test1", ULUNA).native_balance == expected

    def test_logs_each_operation(
        self, runner: ScenarioRunner, caplog: pytest.LogCaptureFixture
    ) -> None:
        with caplog.at_level(logging.INFO, logger="reserve_model.simulation.replay"):
            runner.run(canonical_operations()[:1])
        assert "Testing deposit | test2 -> 10000000 uusd" in caplog.text

    def test_index_mismatch_aborts(self) -> None:
        client = make_client()
        record_canonical(client, overrides={4: {"borrow_index": "1.000000317097919838"}})
        runner = ScenarioRunner.from_client(client, INITIAL_ASSETS, CANONICAL_USERS)

        with pytest.raises(StateMismatchError) as exc_info:
            runner.run(canonical_operations())
        assert exc_info.value.fields == ("borrow_index",)
        assert len(runner.result.steps) == 4

    def test_balance_mismatch_aborts(self) -> None:
        client = make_client()
        client.push_transaction(
            make_tx("TX0", block_time(GENESIS + 5), UUSD),
            balances={**initial_balances(), "pool": {UUSD: 9_999_999}},
        )
        runner = ScenarioRunner.from_client(client, INITIAL_ASSETS, CANONICAL_USERS)
        with pytest.raises(StateMismatchError, match="uusd pool liquidity"):
            runner.run_operation(canonical_operations()[0])

    def test_balance_checks_can_be_disabled(self) -> None:
        client = make_client()
        client.push_transaction(make_tx("TX0", block_time(GENESIS + 5), UUSD))
        runner = ScenarioRunner.from_client(
            client, INITIAL_ASSETS, CANONICAL_USERS,
            settings=ModelSettings(check_balances=False),
        )
        step = runner.run_operation(canonical_operations()[0])
        assert step.observed is None
        assert runner.ledger.pool_liquidity[UUSD] == Decimal(10_000_000)


# ======================================================================
# Collateral probes
# ======================================================================

COLLATERAL = {ULUNA: 10_000_000, UUSD: 5_000_000}


@pytest.fixture
def model() -> CollateralModel:
    return CollateralModel(loan_to_values(), EXCHANGE_RATES, ULUNA)


def collateral_runner(rejection: dict) -> ScenarioRunner:
    client = make_client()
    times = iter(block_time(GENESIS + 5 * i) for i in range(1, 10))
    # liquidity for the borrow, then the two collateral deposits
    for tag in ("LQ", "D1", "D2"):
        client.push_transaction(make_tx(tag, next(times), fee=FEE))
    client.push_transaction(rejection)
    client.push_transaction(make_tx("BR", next(times), fee=FEE))
    runner = ScenarioRunner.from_client(
        client, INITIAL_ASSETS, CANONICAL_USERS,
        settings=ModelSettings(check_balances=False),
    )
    runner.run_operation(Operation(OperationKind.DEPOSIT, "test2", UUSD, Decimal(100_000_000)))
    return runner


class TestCheckCollateral:
    def test_over_rejected_under_accepted(self, model: CollateralModel) -> None:
        rejection = make_tx(
            "XX", block_time(GENESIS + 20), fee=FEE, code=5,
            raw_log=f"execute wasm contract failed: {INSUFFICIENT_COLLATERAL_LOG}",
        )
        runner = collateral_runner(rejection)

        probe = runner.check_collateral("test1", COLLATERAL, UUSD, model)

        assert probe.max_borrow_amount == Decimal(78_999_999)
        assert probe.rejected_amount == Decimal(79_000_099)
        assert probe.accepted_amount == Decimal(78_999_899)
        assert runner.result.probes == [probe]
        assert runner.ledger.reserve(UUSD).debt_total_scaled == Decimal(78_999_899)
        # two deposits, the rejected and the accepted borrow
        assert runner.ledger.position("test1", ULUNA).native_balance == (
            START_BALANCE - 10_000_000 - 4 * 30000
        )

    def test_wrong_rejection_reason(self, model: CollateralModel) -> None:
        rejection = make_tx(
            "XX", block_time(GENESIS + 20), fee=FEE, code=11, raw_log="out of gas"
        )
        runner = collateral_runner(rejection)
        with pytest.raises(StateMismatchError, match="rejection reason"):
            runner.check_collateral("test1", COLLATERAL, UUSD, model)

    def test_default_model_from_ledger_and_oracle(self) -> None:
        rejection = make_tx(
            "XX", block_time(GENESIS + 20), fee=FEE, code=5,
            raw_log=f"execute wasm contract failed: {INSUFFICIENT_COLLATERAL_LOG}",
        )
        runner = collateral_runner(rejection)

        model = runner.collateral_model()
        assert model.loan_to_values == {ULUNA: Decimal("0.5"), UUSD: Decimal("0.8")}
        assert model.exchange_rates == {UUSD: Decimal(15)}
        assert model.base_denom == ULUNA

        probe = runner.check_collateral("test1", COLLATERAL, UUSD)
        assert probe.max_borrow_amount == Decimal(78_999_999)
        assert probe.accepted_amount == Decimal(78_999_899)

    def test_base_denom_from_settings(self) -> None:
        runner = ScenarioRunner.from_client(
            make_client(), INITIAL_ASSETS, CANONICAL_USERS,
            settings=ModelSettings(base_denom=UUSD),
        )
        model = runner.collateral_model()
        assert model.base_denom == UUSD
        assert model.exchange_rate(UUSD) == Decimal(1)

    def test_over_limit_accepted(self, model: CollateralModel) -> None:
        runner = collateral_runner(make_tx("XX", block_time(GENESIS + 20), fee=FEE))
        with pytest.raises(StateMismatchError, match="above limit"):
            runner.check_collateral("test1", COLLATERAL, UUSD, model)
