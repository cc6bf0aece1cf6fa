"""Sidebar parameter controls."""

from dataclasses import dataclass

import streamlit as st

from reserve_model.data.static_params import INITIAL_ASSETS


@dataclass
class SidebarParams:
    """User-controlled parameters from the sidebar."""

    denom: str
    rate_strategy: str
    block_interval: int
    hold_seconds: int


RATE_STRATEGIES = ("Linear", "Kinked")


def render_sidebar() -> SidebarParams:
    """Render sidebar controls and return selected parameters."""
    st.sidebar.header("Reserve")

    denom = st.sidebar.selectbox("Asset", list(INITIAL_ASSETS), index=1)
    strategy = st.sidebar.radio("Rate Curve", RATE_STRATEGIES, index=0)

    st.sidebar.header("Replay Timing")

    block_interval = st.sidebar.number_input(
        "Seconds between operations",
        min_value=0,
        value=5,
        step=1,
    )
    hold_seconds = st.sidebar.number_input(
        "Extra seconds before redeem",
        min_value=0,
        max_value=31_536_000,
        value=2_592_000,
        step=86_400,
        help="Time the borrow is left open so interest visibly accrues.",
    )

    return SidebarParams(
        denom=denom,
        rate_strategy=strategy,
        block_interval=int(block_interval),
        hold_seconds=int(hold_seconds),
    )
