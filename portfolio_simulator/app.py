#!/usr/bin/env python3
"""
Interactive Streamlit app for portfolio value simulation.

Run with: streamlit run portfolio_simulator/app.py
"""

import sys
import logging
from datetime import date
from pathlib import Path
import streamlit as st
import plotly.graph_objects as go

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from config.settings import (
    ALL_SYMBOLS,
    DEFAULT_END_DATE,
    DEFAULT_INVESTMENT,
    DEFAULT_START_DATE,
    DEFAULT_SYMBOLS,
    LOG_LEVEL,
)
from portfolio_simulator.data_loader import create_loader
from portfolio_simulator.portfolio_simulator import PortfolioSimulator

# Configure logging
logging.basicConfig(
    level=LOG_LEVEL,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)


@st.cache_resource(show_spinner=False)
def load_simulator():
    """Load the price index once per server process."""
    simulator = PortfolioSimulator()
    state = simulator.load(create_loader(symbols=ALL_SYMBOLS))
    return simulator, state


@st.cache_data(show_spinner=False)
def run_simulation(_simulator, symbols, start_date, end_date, investment, index_version):
    # index_version keys the cache on the loaded data; the simulator itself is not hashed
    return _simulator.simulate(list(symbols), start_date, end_date, investment)


# Page config
st.set_page_config(
    page_title="Portfolio Value Simulator",
    page_icon="📈",
    layout="wide"
)

st.title("📈 Portfolio Value Simulator")

with st.spinner(f"Loading historical prices for {', '.join(ALL_SYMBOLS)}..."):
    simulator, load_state = load_simulator()

if load_state is None or load_state.error or simulator.prices_by_date is None:
    st.markdown("Something went wrong while loading market data.")
    error = load_state.error if load_state is not None else "load was cancelled"
    st.error(f"Failed to load data: {error}")
    st.stop()

st.markdown("Explore how an equally weighted basket of large-cap names would have evolved over time.")

# Sidebar for inputs
with st.sidebar:
    st.header("Inputs")

    investment = st.number_input(
        "Investment amount",
        min_value=0.0,
        value=DEFAULT_INVESTMENT,
        step=100.0
    )

    start_date = st.date_input("Start date", value=date.fromisoformat(DEFAULT_START_DATE))
    end_date = st.date_input("End date", value=date.fromisoformat(DEFAULT_END_DATE))

    selected_symbols = st.multiselect(
        "Stocks",
        options=ALL_SYMBOLS,
        default=[s for s in DEFAULT_SYMBOLS if s in ALL_SYMBOLS]
    )

    st.caption("The portfolio is equally weighted across all selected symbols at the start date.")

start_iso = start_date.isoformat() if start_date else None
end_iso = end_date.isoformat() if end_date else None

validation_error = simulator.get_validation_error(selected_symbols, start_iso, end_iso, investment)

portfolio = None
if validation_error:
    st.error(validation_error)
else:
    portfolio = run_simulation(
        simulator,
        tuple(selected_symbols),
        start_iso,
        end_iso,
        investment,
        simulator.index_version
    )
    no_data_message = simulator.no_data_message(portfolio)
    if no_data_message:
        st.info(no_data_message)

# Summary
st.header("Portfolio Summary")

if portfolio is None:
    st.caption("Adjust the inputs above to see how the portfolio would have evolved.")
else:
    st.markdown(f"Date range: **{start_iso}** → **{end_iso}**")
    if portfolio.used_symbols:
        st.markdown(f"Selected symbols: **{', '.join(portfolio.used_symbols)}**")
    else:
        st.markdown("Selected symbols: *none with data in range*")
    if portfolio.dropped_symbols:
        st.warning(f"Ignored (no data in range): {', '.join(portfolio.dropped_symbols)}")

    col_value, col_points = st.columns(2)
    with col_value:
        st.metric(
            label="Final portfolio value",
            value=f"{portfolio.final_value:.2f}",
            delta=f"{portfolio.final_value - investment:.2f}" if portfolio.series else None
        )
    with col_points:
        st.metric(label="Data points", value=len(portfolio.series))

# Chart
if portfolio is not None and portfolio.series:
    st.header("Portfolio Chart")

    dates = [point.date for point in portfolio.series]
    values = [point.total_value for point in portfolio.series]

    fig_value = go.Figure()
    fig_value.add_trace(go.Scatter(
        x=dates,
        y=values,
        mode='lines',
        name='Portfolio Value',
        line=dict(color='#38bdf8', width=2),
        hovertemplate='%{x}<br>Value: $%{y:,.2f}<extra></extra>'
    ))
    fig_value.add_hline(
        y=investment,
        line_dash="dash",
        line_color="gray",
        annotation_text=f"Initial Value (${investment:,.0f})"
    )
    fig_value.update_layout(
        title="Portfolio Value Over Time",
        xaxis_title="Date",
        yaxis_title="Value ($)",
        hovermode='closest'
    )
    st.plotly_chart(fig_value, use_container_width=True)

# Footer
st.markdown("---")
st.caption("💡 Change the dates, amount or stocks in the sidebar and the portfolio is recalculated.")
