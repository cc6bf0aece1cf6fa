"""Reusable Plotly chart components."""

import pandas as pd
import plotly.graph_objects as go


def rate_curve_chart(
    df: pd.DataFrame,
    current_utilization: float | None = None,
    title: str = "Interest Rate Curve",
) -> go.Figure:
    """Borrow and liquidity rates across utilization.

    The band between the two curves is interest borrowers pay that
    depositors do not earn.

    Args:
        df: Output of ``StatelessRateModel.rate_curve``.
        current_utilization: Utilization to mark, as a fraction.
        title: Chart title.
    """
    x = df["utilization"] * 100
    fig = go.Figure()

    # liquidity first so the borrow trace can fill down to it
    for column, label, color, fill in (
        ("liquidity_rate", "Liquidity Rate", "#22c55e", None),
        ("borrow_rate", "Borrow Rate", "#ef4444", "tonexty"),
    ):
        fig.add_trace(
            go.Scatter(
                x=x,
                y=df[column] * 100,
                name=label,
                mode="lines",
                fill=fill,
                line=dict(color=color, width=2),
                hovertemplate="u=%{x:.1f}%<br>" + label + ": %{y:.3f}%<extra></extra>",
            )
        )

    if current_utilization is not None:
        fig.add_vline(
            x=current_utilization * 100,
            line_dash="dot",
            line_color="#9ca3af",
            annotation_text=f"u = {current_utilization:.2%}",
        )

    fig.update_layout(
        title=title,
        xaxis_title="Utilization (%)",
        yaxis_title="Annual rate (%)",
        hovermode="x unified",
        template="plotly_dark",
        height=420,
    )
    return fig


def index_history_chart(history: pd.DataFrame, denom: str) -> go.Figure:
    """Liquidity and borrow index of one reserve across a replay.

    Args:
        history: Output of ``ReserveLedger.history_frame``.
        denom: Reserve to plot.
    """
    rows = history[history["denom"] == denom]
    fig = go.Figure()

    for column, label, color in (
        ("liquidity_index", "Liquidity Index", "#22c55e"),
        ("borrow_index", "Borrow Index", "#ef4444"),
    ):
        fig.add_trace(
            go.Scatter(
                x=rows["timestamp"],
                y=rows[column],
                name=label,
                mode="lines+markers",
                line=dict(color=color, width=2, shape="hv"),
                text=rows["kind"],
                hovertemplate="%{text}<br>t=%{x}<br>" + label + ": %{y:.9f}<extra></extra>",
            )
        )

    fig.update_layout(
        title=f"{denom} Indices",
        xaxis_title="Block time (s)",
        yaxis_title="Index",
        template="plotly_dark",
        height=400,
    )
    return fig


def rate_history_chart(history: pd.DataFrame, denom: str) -> go.Figure:
    """Rates and utilization after each operation on one reserve."""
    rows = history[history["denom"] == denom]
    fig = go.Figure()

    for column, label, color in (
        ("utilization", "Utilization", "#6b7280"),
        ("borrow_rate", "Borrow Rate", "#ef4444"),
        ("liquidity_rate", "Liquidity Rate", "#22c55e"),
    ):
        fig.add_trace(
            go.Bar(
                x=rows["step"].astype(str) + " " + rows["kind"],
                y=rows[column] * 100,
                name=label,
                marker_color=color,
            )
        )

    fig.update_layout(
        title=f"{denom} Rates by Step",
        xaxis_title="Step",
        yaxis_title="%",
        barmode="group",
        template="plotly_dark",
        height=400,
    )
    return fig
