"""
Portfolio value simulator for equally weighted stock portfolios.

This module provides tools for:
- Loading and normalizing historical closing prices
- Valuing an equal-weight portfolio over a date range
- Interactive visualization of the portfolio value
"""

from .portfolio_simulator import PortfolioSimulator
from .data_loader import PriceDataLoader, YFinancePriceLoader, LoadState, DataLoadError
from .portfolio_calculator import PortfolioCalculator, PortfolioResult, PortfolioPoint, calculate_portfolio
from .price_normalizer import normalize_stock_data

__all__ = [
    'PortfolioSimulator',
    'PriceDataLoader',
    'YFinancePriceLoader',
    'LoadState',
    'DataLoadError',
    'PortfolioCalculator',
    'PortfolioResult',
    'PortfolioPoint',
    'calculate_portfolio',
    'normalize_stock_data',
]
