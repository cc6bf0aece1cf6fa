"""Result dataclasses for replay outputs."""

from dataclasses import dataclass, field
from decimal import Decimal

from reserve_model.data.interfaces import Operation
from reserve_model.protocol.reserve import IndicesAndRates


@dataclass(frozen=True)
class StepResult:
    """A single applied operation and the reserve state it led to.

    Attributes:
        step: Position in the replay, starting at 0.
        operation: What was applied.
        timestamp: Block time the reserve was accrued to.
        predicted: Indices and rates the model expects the contract to emit.
        utilization: Utilization after the operation.
        pool_liquidity: Pool liquidity after the operation.
        debt_total: Total debt (underlying) after the operation.
        observed: Values the contract actually emitted, when known.
        txhash: Transaction hash, when executed on chain.
    """

    step: int
    operation: Operation
    timestamp: int
    predicted: IndicesAndRates
    utilization: Decimal
    pool_liquidity: Decimal
    debt_total: Decimal
    observed: IndicesAndRates | None = None
    txhash: str = ""


@dataclass(frozen=True)
class SolvencyProbeResult:
    """Outcome of probing both sides of a borrow limit."""

    user: str
    denom: str
    max_borrow_amount: Decimal
    rejected_amount: Decimal
    accepted_amount: Decimal
    raw_log: str = ""


@dataclass(frozen=True)
class ScenarioResult:
    steps: list[StepResult] = field(default_factory=list)
    probes: list[SolvencyProbeResult] = field(default_factory=list)
