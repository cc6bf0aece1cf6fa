"""Reserve Model Dashboard: main Streamlit entry point."""

import logging

import streamlit as st

from reserve_model.dashboard.components.sidebar import render_sidebar
from reserve_model.dashboard.tabs.rates import render_rates
from reserve_model.dashboard.tabs.replay import render_replay
from reserve_model.data.interfaces import ScheduledOperation
from reserve_model.data.settings import load_settings
from reserve_model.data.static_params import INITIAL_ASSETS, KINKED_RATE_MODELS
from reserve_model.protocol.errors import ReserveModelError
from reserve_model.protocol.interest_rate import LinearRateModel, StatelessRateModel
from reserve_model.simulation.scenarios import (
    build_ledger,
    canonical_operations,
    run_offline,
    schedule,
)

logger = logging.getLogger(__name__)

# Arbitrary genesis time for offline replays
GENESIS = 1_620_000_000


def _rate_models(strategy: str) -> dict[str, StatelessRateModel]:
    if strategy == "Kinked":
        return dict(KINKED_RATE_MODELS)
    return {
        denom: LinearRateModel(params.borrow_slope)
        for denom, params in INITIAL_ASSETS.items()
    }


def main() -> None:
    st.set_page_config(
        page_title="Reserve Model Dashboard",
        page_icon="📊",
        layout="wide",
    )

    st.title("Reserve Model Dashboard")
    st.caption("Interest accrual and rate curves of the money-market replica")

    params = render_sidebar()
    rate_models = _rate_models(params.rate_strategy)

    ledger = build_ledger(GENESIS, rate_models=rate_models, settings=load_settings())
    scheduled = schedule(canonical_operations(), GENESIS, params.block_interval)
    # Leave the borrow open for a while before redeem and repay
    scheduled = [
        ScheduledOperation(item.operation, item.timestamp + (params.hold_seconds if i >= 3 else 0))
        for i, item in enumerate(scheduled)
    ]
    try:
        run_offline(ledger, scheduled)
    except ReserveModelError as exc:
        logger.warning("Offline replay failed", exc_info=True)
        st.error(f"Replay failed: {exc}")
        return

    tab1, tab2 = st.tabs(["Scenario Replay", "Interest Rates"])

    with tab1:
        render_replay(ledger, params.denom)

    with tab2:
        render_rates(
            params.denom,
            rate_models[params.denom],
            current_utilization=float(ledger.utilization(params.denom)),
        )


if __name__ == "__main__":
    main()
