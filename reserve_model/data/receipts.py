"""Parsing of transaction receipts returned by the chain's LCD API."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Mapping

from reserve_model.data.constants import (
    CONTRACT_EVENT_TYPES,
    INDICES_AND_RATES_ATTRIBUTES,
)
from reserve_model.protocol.numeric import ZERO, add, to_decimal
from reserve_model.protocol.reserve import IndicesAndRates


@dataclass(frozen=True)
class Receipt:
    """What the harness keeps from an included transaction."""

    txhash: str
    timestamp: int
    indices_and_rates: IndicesAndRates | None = None
    fees: Mapping[str, Decimal] = field(default_factory=dict)
    raw_log: str = ""


def parse_block_time(value: str | int | datetime) -> int:
    """Block time in whole seconds since the epoch (UTC).

    Accepts RFC 3339 strings with a ``Z`` suffix and nanosecond
    fractions, as the LCD reports them.
    """
    if isinstance(value, bool):
        raise TypeError("booleans are not timestamps")
    if isinstance(value, int):
        return value
    if isinstance(value, datetime):
        moment = value
    elif isinstance(value, str):
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        # fromisoformat only takes up to microseconds
        if "." in text:
            head, _, rest = text.partition(".")
            digits = rest[: len(rest) - len(rest.lstrip("0123456789"))]
            tz = rest[len(digits):]
            text = f"{head}.{digits[:6].ljust(6, '0')}{tz}"
        try:
            moment = datetime.fromisoformat(text)
        except ValueError:
            raise ValueError(f"unparseable block time: {value!r}") from None
    else:
        raise TypeError(f"unsupported timestamp type: {type(value).__name__}")

    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return int(moment.timestamp())


def _values(value: Any) -> list[Any]:
    if isinstance(value, (list, tuple)):
        return list(value)
    return [value]


def _event_attributes(logs: list[Mapping[str, Any]]) -> dict[str, Any]:
    """Merge contract-event attributes across all messages of a tx."""
    attributes: dict[str, Any] = {}
    for log in logs:
        for event in log.get("events", []):
            if event.get("type") not in CONTRACT_EVENT_TYPES:
                continue
            for attribute in event.get("attributes", []):
                attributes.setdefault(attribute["key"], attribute.get("value"))
        # eventsByType, as terra.js exposes it
        for event_type, values in log.get("eventsByType", {}).items():
            if event_type not in CONTRACT_EVENT_TYPES:
                continue
            for key, value in values.items():
                found = _values(value)
                if found:
                    attributes.setdefault(key, found[0])
    return attributes


def parse_indices_and_rates(logs: list[Mapping[str, Any]]) -> IndicesAndRates | None:
    attributes = _event_attributes(logs)
    if not all(name in attributes for name in INDICES_AND_RATES_ATTRIBUTES):
        return None
    return IndicesAndRates.from_attributes(attributes)


def parse_fees(tx: Mapping[str, Any]) -> dict[str, Decimal]:
    coins = tx.get("tx", {}).get("fee", {}).get("amount", [])
    fees: dict[str, Decimal] = {}
    for coin in coins:
        fees[coin["denom"]] = add(fees.get(coin["denom"], ZERO), to_decimal(coin["amount"]))
    return fees


def receipt_from_tx(tx: Mapping[str, Any]) -> Receipt:
    """Build a ``Receipt`` from an LCD ``txInfo`` JSON document."""
    return Receipt(
        txhash=tx.get("txhash", ""),
        timestamp=parse_block_time(tx["timestamp"]),
        indices_and_rates=parse_indices_and_rates(tx.get("logs", [])),
        fees=parse_fees(tx),
        raw_log=tx.get("raw_log", ""),
    )
