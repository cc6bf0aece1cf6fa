"""Asset identifiers and protocol constants."""

from decimal import Decimal

# Native denominations on the test chain
ULUNA = "uluna"
UUSD = "uusd"

# 365-day year, the same simplification the contract makes
SECONDS_PER_YEAR = Decimal(31_536_000)

# Event attribute names carrying the reserve update
INDICES_AND_RATES_ATTRIBUTES = (
    "liquidity_rate",
    "borrow_rate",
    "liquidity_index",
    "borrow_index",
)

# Contract events that may carry the attributes above
CONTRACT_EVENT_TYPES = ("from_contract", "wasm")

# Substring of the contract's error when a borrow exceeds collateral
INSUFFICIENT_COLLATERAL_LOG = "borrow amount exceeds maximum allowed given current collateral value"
