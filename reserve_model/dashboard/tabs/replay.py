"""Replay tab: the canonical scenario run through the model alone."""

import streamlit as st

from reserve_model.dashboard.components.charts import index_history_chart, rate_history_chart
from reserve_model.dashboard.components.metrics_cards import reserve_kpi_row
from reserve_model.simulation.ledger import ReserveLedger


def render_replay(ledger: ReserveLedger, denom: str) -> None:
    """Render index and rate paths recorded by ``ledger`` for ``denom``."""
    st.header("Scenario Replay")

    steps = [s for s in ledger.history if s.operation.denom == denom]
    if not steps:
        st.info(f"No operation in the scenario touches {denom}.")
        return

    reserve_kpi_row(steps[-1])

    history = ledger.history_frame()
    col1, col2 = st.columns(2)
    with col1:
        st.plotly_chart(index_history_chart(history, denom), use_container_width=True)
    with col2:
        st.plotly_chart(rate_history_chart(history, denom), use_container_width=True)

    st.subheader("Operations")
    st.dataframe(history, use_container_width=True, hide_index=True)
