"""Rate curve tab."""

import pandas as pd
import streamlit as st

from reserve_model.dashboard.components.charts import rate_curve_chart
from reserve_model.protocol.interest_rate import StatelessRateModel
from reserve_model.protocol.numeric import to_decimal


def render_rates(
    denom: str,
    rate_model: StatelessRateModel,
    current_utilization: float | None = None,
) -> None:
    """Render the rate curve and a sensitivity table for ``denom``."""
    st.header(f"{denom} Interest Rate Curve")

    fig = rate_curve_chart(
        rate_model.rate_curve(), current_utilization=current_utilization, title=f"{denom} Rate Curve"
    )
    st.plotly_chart(fig, use_container_width=True)

    st.subheader("Rate Sensitivity")
    rows = []
    for pct in (0, 10, 20, 40, 60, 80, 90, 95, 100):
        u = to_decimal(pct) / 100
        borrow = rate_model.borrow_rate(u)
        rows.append(
            {
                "Utilization": f"{pct}%",
                "Borrow Rate": f"{borrow * 100:.4f}%",
                "Liquidity Rate": f"{rate_model.liquidity_rate(borrow, u) * 100:.4f}%",
            }
        )
    st.table(pd.DataFrame(rows))
