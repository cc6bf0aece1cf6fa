"""Chain client that replays recorded LCD responses."""

from __future__ import annotations

import logging
from collections import deque
from decimal import Decimal
from typing import Any, Iterable, Mapping

from reserve_model.data.interfaces import ChainClient, Operation, ReserveSnapshot
from reserve_model.data.receipts import Receipt, parse_fees, receipt_from_tx
from reserve_model.protocol.errors import TransactionRejectedError, UnknownReserveError
from reserve_model.protocol.numeric import to_decimal

logger = logging.getLogger(__name__)


class RecordedChainClient(ChainClient):
    """Serves recorded transactions in order, plus canned query answers.

    Args:
        transactions: LCD ``txInfo`` documents, one per operation, in
            execution order. A document with a non-zero ``code`` is a
            rejected transaction.
        reserves: Answers for ``query_reserve``.
        exchange_rates: Answer for ``query_exchange_rates``.
        balances: Balances observed before the first transaction.

    Balance answers travel with a transaction (see :meth:`push_transaction`)
    and answer queries made after it executes.
    """

    def __init__(
        self,
        transactions: Iterable[Mapping[str, Any]] = (),
        reserves: Mapping[str, ReserveSnapshot] | None = None,
        exchange_rates: Mapping[str, Decimal | str] | None = None,
        balances: Mapping[str, Any] | None = None,
    ) -> None:
        self._transactions: deque[tuple[Mapping[str, Any], Mapping[str, Any]]] = deque(
            (tx, {}) for tx in transactions
        )
        self._reserves = dict(reserves or {})
        self._exchange_rates = {k: to_decimal(v) for k, v in (exchange_rates or {}).items()}
        self._balances: Mapping[str, Any] = balances or {}
        self.executed: list[Operation] = []

    def push_transaction(
        self, tx: Mapping[str, Any], balances: Mapping[str, Any] | None = None
    ) -> None:
        """Queue a transaction and the balances observed after it.

        ``balances`` may hold ``pool`` (denom -> amount), ``native``
        (user -> denom -> amount) and ``scaled`` (user -> denom -> amount).
        """
        self._transactions.append((tx, balances or {}))

    def execute(self, operation: Operation) -> Receipt:
        if not self._transactions:
            raise RuntimeError(f"No recorded transaction left for {operation}")
        tx, balances = self._transactions.popleft()

        if tx.get("code", 0):
            raw_log = tx.get("raw_log", "")
            logger.warning("Recorded rejection for %s: %s", operation, raw_log)
            raise TransactionRejectedError(
                f"{operation.kind.value} of {operation.amount} {operation.denom} rejected",
                raw_log=raw_log,
                fees=parse_fees(tx),
            )

        self.executed.append(operation)
        if balances:
            self._balances = balances
        return receipt_from_tx(tx)

    def query_reserve(self, denom: str) -> ReserveSnapshot:
        try:
            return self._reserves[denom]
        except KeyError:
            raise UnknownReserveError(f"no recorded reserve for {denom}") from None

    def _lookup(self, *path: str) -> Decimal:
        node: Any = self._balances
        for key in path:
            if not isinstance(node, Mapping) or key not in node:
                raise KeyError(f"no recorded balance for {'/'.join(path)}")
            node = node[key]
        return to_decimal(node)

    def query_pool_balance(self, denom: str) -> Decimal:
        return self._lookup("pool", denom)

    def query_native_balance(self, user: str, denom: str) -> Decimal:
        return self._lookup("native", user, denom)

    def query_scaled_balance(self, user: str, denom: str) -> Decimal:
        return self._lookup("scaled", user, denom)

    def query_exchange_rates(self) -> dict[str, Decimal]:
        return dict(self._exchange_rates)
