"""Reserve parameters used by the local test chain and deployments."""

from decimal import Decimal

from reserve_model.data.constants import ULUNA, UUSD
from reserve_model.data.interfaces import ReserveParams
from reserve_model.protocol.interest_rate import DynamicRateModel, KinkedRateModel

# --- Assets the local test chain is seeded with ---

INITIAL_ASSETS: dict[str, ReserveParams] = {
    ULUNA: ReserveParams(
        denom=ULUNA,
        borrow_slope=Decimal("4"),
        loan_to_value=Decimal("0.5"),
    ),
    UUSD: ReserveParams(
        denom=UUSD,
        borrow_slope=Decimal("5"),
        loan_to_value=Decimal("0.8"),
    ),
}

# --- Deployment configuration (mainnet-style markets) ---

DEPLOYMENT_ASSETS: dict[str, ReserveParams] = {
    ULUNA: ReserveParams(
        denom=ULUNA,
        borrow_slope=Decimal("0"),
        loan_to_value=Decimal("0.55"),
        liquidation_threshold=Decimal("0.65"),
    ),
    UUSD: ReserveParams(
        denom=UUSD,
        borrow_slope=Decimal("0"),
        loan_to_value=Decimal("0.75"),
        liquidation_threshold=Decimal("0.85"),
    ),
}

DYNAMIC_RATE_MODELS: dict[str, DynamicRateModel] = {
    ULUNA: DynamicRateModel(
        min_borrow_rate=Decimal("0"),
        max_borrow_rate=Decimal("2.0"),
        optimal_utilization=Decimal("0.7"),
        kp_1=Decimal("0.02"),
        kp_2=Decimal("0.05"),
        kp_augmentation_threshold=Decimal("0.15"),
        update_threshold_txs=10,
        update_threshold_seconds=3600,
        reserve_factor=Decimal("0.2"),
    ),
    UUSD: DynamicRateModel(
        min_borrow_rate=Decimal("0"),
        max_borrow_rate=Decimal("1.0"),
        optimal_utilization=Decimal("0.9"),
        kp_1=Decimal("0.04"),
        kp_2=Decimal("0.07"),
        kp_augmentation_threshold=Decimal("0.15"),
        update_threshold_txs=10,
        update_threshold_seconds=3600,
        reserve_factor=Decimal("0.2"),
    ),
}

KINKED_RATE_MODELS: dict[str, KinkedRateModel] = {
    ULUNA: KinkedRateModel(
        optimal_utilization=Decimal("0.7"),
        base_rate=Decimal("0"),
        slope1=Decimal("0.2"),
        slope2=Decimal("2.0"),
        reserve_factor=Decimal("0.2"),
    ),
    UUSD: KinkedRateModel(
        optimal_utilization=Decimal("0.8"),
        base_rate=Decimal("0"),
        slope1=Decimal("0.07"),
        slope2=Decimal("0.45"),
        reserve_factor=Decimal("0.2"),
    ),
}

# Oracle snapshot: units of denom per 1 uluna
EXCHANGE_RATES: dict[str, Decimal] = {
    UUSD: Decimal("15"),
}


def loan_to_values(assets: dict[str, ReserveParams] = INITIAL_ASSETS) -> dict[str, Decimal]:
    return {denom: params.loan_to_value for denom, params in assets.items()}


def liquidation_thresholds(
    assets: dict[str, ReserveParams] = DEPLOYMENT_ASSETS,
) -> dict[str, Decimal]:
    return {
        denom: params.liquidation_threshold
        for denom, params in assets.items()
        if params.liquidation_threshold is not None
    }
