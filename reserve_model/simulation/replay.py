"""Drive a chain client and the ledger in lockstep, asserting agreement."""

from __future__ import annotations

import logging
from dataclasses import replace
from decimal import Decimal
from typing import Iterable, Mapping

from reserve_model.data.constants import INSUFFICIENT_COLLATERAL_LOG
from reserve_model.data.interfaces import (
    ChainClient,
    Operation,
    OperationKind,
    ReserveParams,
)
from reserve_model.data.settings import ModelSettings
from reserve_model.protocol.collateral import CollateralModel
from reserve_model.protocol.errors import StateMismatchError, TransactionRejectedError
from reserve_model.protocol.interest_rate import RateModel
from reserve_model.protocol.numeric import to_decimal
from reserve_model.protocol.reserve import new_reserve
from reserve_model.simulation.ledger import ReserveLedger
from reserve_model.simulation.results import (
    ScenarioResult,
    SolvencyProbeResult,
    StepResult,
)

logger = logging.getLogger(__name__)


class ScenarioRunner:
    """Sends each operation to the chain, then replays it on the ledger.

    The ledger is only advanced after the receipt is in hand and always
    with the receipt's block time. The first disagreement aborts the run
    with ``StateMismatchError``.
    """

    def __init__(
        self,
        ledger: ReserveLedger,
        client: ChainClient,
        settings: ModelSettings | None = None,
    ) -> None:
        self.ledger = ledger
        self.client = client
        self.settings = settings or ledger.settings
        self.result = ScenarioResult()

    @classmethod
    def from_client(
        cls,
        client: ChainClient,
        assets: Mapping[str, ReserveParams],
        users: Iterable[str],
        settings: ModelSettings | None = None,
        rate_models: Mapping[str, RateModel] | None = None,
    ) -> ScenarioRunner:
        """Seed a ledger from the chain's initial reserve and balance queries."""
        ledger = ReserveLedger(settings)
        rate_models = rate_models or {}
        for denom, params in assets.items():
            snapshot = client.query_reserve(denom)
            reserve = new_reserve(
                denom,
                snapshot.borrow_slope,
                params.loan_to_value,
                snapshot.interests_last_updated,
                rate_model=rate_models.get(denom),
            )
            ledger.add_reserve(reserve, client.query_pool_balance(denom))

        for user in users:
            ledger.open_account(
                user, {denom: client.query_native_balance(user, denom) for denom in assets}
            )
        return cls(ledger, client, settings)

    def run_operation(self, operation: Operation) -> StepResult:
        logger.info(
            "Testing %s | %s -> %s %s",
            operation.kind.value, operation.user, operation.amount, operation.denom,
        )
        receipt = self.client.execute(operation)
        step = self.ledger.apply(operation, receipt.timestamp, fee=receipt.fees)

        if receipt.indices_and_rates is not None:
            self.ledger.check_indices_and_rates(operation.denom, receipt.indices_and_rates)
        else:
            logger.warning("Receipt %s carries no indices and rates", receipt.txhash)

        if self.settings.check_balances:
            self._check_balances(operation, receipt.fees)

        step = replace(step, observed=receipt.indices_and_rates, txhash=receipt.txhash)
        self.result.steps.append(step)
        return step

    def _check_balances(self, operation: Operation, fees: Mapping[str, Decimal]) -> None:
        denom, user = operation.denom, operation.user
        self.ledger.check_pool_liquidity(denom, self.client.query_pool_balance(denom))
        self.ledger.check_scaled_balance(
            user, denom, self.client.query_scaled_balance(user, denom)
        )
        for wallet_denom in {denom, *fees}:
            self.ledger.check_native_balance(
                user, wallet_denom, self.client.query_native_balance(user, wallet_denom)
            )

    def run(self, operations: Iterable[Operation]) -> ScenarioResult:
        for operation in operations:
            self.run_operation(operation)
        logger.info("Scenario finished after %d steps", len(self.result.steps))
        return self.result

    def collateral_model(self) -> CollateralModel:
        """Borrow limits from the ledger's LTVs and the chain's oracle rates."""
        return CollateralModel(
            {denom: reserve.loan_to_value for denom, reserve in self.ledger.reserves.items()},
            self.client.query_exchange_rates(),
            self.settings.base_denom,
        )

    def check_collateral(
        self,
        user: str,
        deposits: Mapping[str, Decimal | int | str],
        borrow_denom: str,
        model: CollateralModel | None = None,
        collateral: Mapping[str, Decimal | int | str] | None = None,
    ) -> SolvencyProbeResult:
        """Deposit, then probe the borrow limit from both sides.

        ``model`` defaults to :meth:`collateral_model`. ``collateral`` is
        the full deposit set the limit is computed from and defaults to
        ``deposits``. A borrow ``margin`` above the limit must be rejected
        for insufficient collateral; one ``margin`` below must go through.
        """
        for denom, amount in deposits.items():
            self.run_operation(Operation(OperationKind.DEPOSIT, user, denom, to_decimal(amount)))

        if model is None:
            model = self.collateral_model()
        collateral = collateral if collateral is not None else deposits
        limit = model.max_borrow_amount(collateral, borrow_denom)
        over, under = model.boundary_probes(
            collateral, borrow_denom, self.settings.solvency_margin
        )

        over_op = Operation(OperationKind.BORROW, user, borrow_denom, over)
        try:
            self.client.execute(over_op)
        except TransactionRejectedError as exc:
            # Rejected transactions still pay for gas
            self.ledger.charge_fees(user, exc.fees)
            if INSUFFICIENT_COLLATERAL_LOG not in exc.raw_log:
                raise StateMismatchError(
                    f"{borrow_denom} over-limit borrow rejection reason",
                    INSUFFICIENT_COLLATERAL_LOG,
                    exc.raw_log,
                ) from exc
            raw_log = exc.raw_log
            logger.info("Over-limit borrow of %s %s rejected as expected", over, borrow_denom)
        else:
            raise StateMismatchError(
                f"{borrow_denom} borrow of {over} above limit {limit}",
                "rejected",
                "accepted",
            )

        self.run_operation(Operation(OperationKind.BORROW, user, borrow_denom, under))
        probe = SolvencyProbeResult(
            user=user,
            denom=borrow_denom,
            max_borrow_amount=limit,
            rejected_amount=over,
            accepted_amount=under,
            raw_log=raw_log,
        )
        self.result.probes.append(probe)
        return probe
