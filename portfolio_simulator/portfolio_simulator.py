"""
Portfolio simulation service.

Holds the loaded price index and answers valuation requests for it:
- Validates form inputs (dates, investment, symbols)
- Runs the equal-weight valuation for the selected symbols and range
- Reports summary information for display
"""

import logging
from typing import Optional, Sequence

from .data_loader import LoadState, PriceDataLoader
from .portfolio_calculator import PortfolioCalculator, PortfolioRequest, PortfolioResult
from .price_normalizer import PriceIndex

logger = logging.getLogger(__name__)

NO_DATA_MESSAGE = (
    "No price data is available for this combination of dates and symbols. "
    "Try widening the date range or selecting different stocks."
)


class PortfolioSimulator:
    """
    Main service for portfolio simulation.
    """

    def __init__(self, prices_by_date: Optional[PriceIndex] = None):
        """
        Initialize portfolio simulator.

        Args:
            prices_by_date: Already loaded price index, if any
        """
        self.calculator = PortfolioCalculator()
        self.prices_by_date = None
        self.index_version = 0
        if prices_by_date is not None:
            self.set_prices(prices_by_date)

    def set_prices(self, prices_by_date: PriceIndex) -> None:
        """Install a freshly loaded price index."""
        self.prices_by_date = prices_by_date
        self.index_version += 1
        logger.info(f"Using price index v{self.index_version} with {len(prices_by_date)} dates")

    def load(self, loader: PriceDataLoader) -> Optional[LoadState]:
        """
        Load prices with the given loader and install them on success.

        Returns:
            The loader's LoadState, or None if the load was superseded
        """
        state = loader.load()
        if state is not None and state.prices_by_date is not None:
            self.set_prices(state.prices_by_date)
        return state

    @staticmethod
    def get_validation_error(
        symbols: Sequence[str],
        start_date: Optional[str],
        end_date: Optional[str],
        investment: float
    ) -> Optional[str]:
        """
        Check form inputs before running a simulation.

        Args:
            symbols: Selected symbols
            start_date: Start date "YYYY-MM-DD"
            end_date: End date "YYYY-MM-DD"
            investment: Amount to invest

        Returns:
            A message for the first problem found, or None if inputs are valid
        """
        if not start_date or not end_date:
            return "Select both a start date and an end date to run the simulation."

        if str(end_date) < str(start_date):
            return "The end date should be on or after the start date."

        if investment is None or not investment > 0:
            return "Enter an investment amount greater than zero."

        if not symbols:
            return "Choose at least one stock to include in the portfolio."

        return None

    def simulate(
        self,
        symbols: Sequence[str],
        start_date: str,
        end_date: str,
        investment: float
    ) -> Optional[PortfolioResult]:
        """
        Value an equal-weight portfolio over the given range.

        Args:
            symbols: Stock symbols (e.g., ['AAPL', 'GOOG'])
            start_date: Inclusive start date "YYYY-MM-DD"
            end_date: Inclusive end date "YYYY-MM-DD"
            investment: Total amount invested

        Returns:
            PortfolioResult, or None when no prices are loaded or no symbols
            are selected
        """
        if self.prices_by_date is None or not symbols:
            return None

        request = PortfolioRequest(
            prices_by_date=self.prices_by_date,
            symbols=tuple(symbols),
            start_date=start_date,
            end_date=end_date,
            investment=investment
        )
        result = self.calculator.calculate_portfolio(request)

        if result.series:
            logger.info(
                f"Simulated {', '.join(result.used_symbols)} from {start_date} to {end_date}: "
                f"${investment:,.2f} -> ${result.final_value:,.2f} over {len(result.series)} dates"
            )
        else:
            logger.info(f"No portfolio for {list(symbols)} between {start_date} and {end_date}")

        return result

    @staticmethod
    def no_data_message(result: Optional[PortfolioResult]) -> Optional[str]:
        """Message to show when a valid request produced an empty series."""
        if result is not None and not result.series:
            return NO_DATA_MESSAGE
        return None
