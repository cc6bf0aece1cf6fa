"""Metric card components for the dashboard."""

import streamlit as st

from reserve_model.simulation.results import StepResult


def kpi_row(metrics: list[tuple[str, str, str | None]]) -> None:
    """Display a row of KPI cards.

    Args:
        metrics: List of (label, value, delta) tuples.
    """
    cols = st.columns(len(metrics))
    for col, (label, value, delta) in zip(cols, metrics):
        with col:
            st.metric(label=label, value=value, delta=delta)


def reserve_kpi_row(step: StepResult) -> None:
    """Indices, rates and utilization predicted after ``step``."""
    predicted = step.predicted
    kpi_row(
        [
            ("Liquidity Index", f"{predicted.liquidity_index:.9f}", None),
            ("Borrow Index", f"{predicted.borrow_index:.9f}", None),
            ("Liquidity Rate", f"{predicted.liquidity_rate * 100:.4f}%", None),
            ("Borrow Rate", f"{predicted.borrow_rate * 100:.4f}%", None),
            ("Utilization", f"{step.utilization * 100:.2f}%", None),
        ]
    )
