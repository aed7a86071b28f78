"""
Portfolio value calculation logic.

An investment is split equally across the requested symbols that have data in
the date range. Each symbol is bought on its first available date and the
portfolio is valued on every date with data, carrying a symbol's last seen
price forward on days it has no price.
"""

import logging
import math
import datetime
from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Optional, Sequence, Tuple

from .price_normalizer import PriceIndex

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PortfolioRequest:
    """Inputs for one valuation run."""
    prices_by_date: PriceIndex
    symbols: Sequence[str]
    start_date: str  # "YYYY-MM-DD", inclusive
    end_date: str  # "YYYY-MM-DD", inclusive
    investment: float


@dataclass
class SymbolState:
    """Holding of one symbol during a valuation run."""
    shares: float
    last_price: float
    buy_date: str


@dataclass
class Allocation:
    """Buy decisions for the requested symbols."""
    per_symbol: Dict[str, SymbolState] = field(default_factory=dict)
    used_symbols: List[str] = field(default_factory=list)
    dropped_symbols: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class PortfolioPoint:
    """Portfolio value on a single date."""
    date: str
    total_value: float


@dataclass(frozen=True)
class PortfolioResult:
    """Value series plus summary of which symbols were held."""
    series: List[PortfolioPoint]
    final_value: float
    used_symbols: List[str]  # symbols that had data in range
    dropped_symbols: List[str]  # requested but no data in range


def is_valid_price(price: Any) -> bool:
    return isinstance(price, (int, float)) and not isinstance(price, bool) and not math.isnan(price)


def as_iso_date(value: Any) -> str:
    """Render a date, datetime or string as "YYYY-MM-DD"-comparable text."""
    if isinstance(value, datetime.date):
        # datetime is a date subclass; keep only the calendar day
        return value.isoformat()[:10]
    return str(value)


class PortfolioCalculator:
    """
    Calculates equal-weight portfolio values over a date range.
    """

    def get_sorted_dates_in_range(
        self,
        prices_by_date: PriceIndex,
        start_date: str,
        end_date: str
    ) -> List[str]:
        """
        Get the dates with any price data between start_date and end_date.

        ISO "YYYY-MM-DD" strings sort chronologically, so plain string
        comparison is used for both the filter and the sort.

        Args:
            prices_by_date: Price index
            start_date: Inclusive start date
            end_date: Inclusive end date

        Returns:
            Ascending list of dates (empty if nothing falls in range)
        """
        return sorted(
            date for date in prices_by_date
            if start_date <= date <= end_date
        )

    def find_buy_point(
        self,
        prices_by_date: PriceIndex,
        dates: Sequence[str],
        symbol: str
    ) -> Optional[Tuple[str, float]]:
        """Return (buy_date, buy_price) for the first valid price of symbol, or None."""
        for date in dates:
            price = prices_by_date.get(date, {}).get(symbol)
            # shares are bought with amount / price, so a zero price cannot be a buy price
            if is_valid_price(price) and price != 0:
                return date, float(price)
        return None

    def compute_initial_shares(
        self,
        prices_by_date: PriceIndex,
        dates: Sequence[str],
        symbols: Sequence[str],
        investment: float
    ) -> Allocation:
        """
        Decide which symbols are bought, when, and how many shares.

        The investment is divided only among symbols that have at least one
        valid price in `dates`. The rest are reported as dropped.

        Args:
            prices_by_date: Price index
            dates: Ascending dates of the simulation range
            symbols: Requested symbols, in display order
            investment: Total amount to invest

        Returns:
            Allocation with per-symbol state and used/dropped symbol lists,
            both in the order of `symbols`
        """
        candidates = []
        dropped_symbols = []

        for symbol in symbols:
            buy_point = self.find_buy_point(prices_by_date, dates, symbol)
            if buy_point is None:
                dropped_symbols.append(symbol)
                continue
            candidates.append((symbol, buy_point[0], buy_point[1]))

        if not candidates:
            return Allocation(dropped_symbols=dropped_symbols)

        amount_per_symbol = investment / len(candidates)

        per_symbol = {}
        for symbol, buy_date, buy_price in candidates:
            shares = amount_per_symbol / buy_price
            per_symbol[symbol] = SymbolState(
                shares=shares,
                last_price=buy_price,
                buy_date=buy_date
            )
            logger.debug(f"{symbol}: ${amount_per_symbol:.2f} / ${buy_price:.2f} = {shares:.4f} shares on {buy_date}")

        return Allocation(
            per_symbol=per_symbol,
            used_symbols=[symbol for symbol, _, _ in candidates],
            dropped_symbols=dropped_symbols
        )

    def calculate_historical_performance(
        self,
        prices_by_date: PriceIndex,
        dates: Sequence[str],
        allocation: Allocation
    ) -> List[PortfolioPoint]:
        """
        Value the allocation on each date.

        A symbol without a price on a date keeps its last seen price. States
        are copied first so the allocation itself is left untouched.

        Args:
            prices_by_date: Price index
            dates: Ascending dates to walk
            allocation: Output of compute_initial_shares

        Returns:
            One PortfolioPoint per date, in date order
        """
        states = {
            symbol: replace(allocation.per_symbol[symbol])
            for symbol in allocation.used_symbols
        }

        series = []
        for date in dates:
            prices_today = prices_by_date.get(date, {})
            total = 0.0

            for symbol in allocation.used_symbols:
                state = states[symbol]
                price = prices_today.get(symbol)
                # before the buy date the state already holds the buy price
                if date >= state.buy_date and is_valid_price(price):
                    state.last_price = float(price)
                total += state.shares * state.last_price

            series.append(PortfolioPoint(date=date, total_value=total))

        return series

    def empty_result(self, symbols: Sequence[str]) -> PortfolioResult:
        """Result for requests where nothing could be computed."""
        return PortfolioResult(
            series=[],
            final_value=0.0,
            used_symbols=[],
            dropped_symbols=list(symbols)
        )

    def build_result(
        self,
        series: List[PortfolioPoint],
        used_symbols: Sequence[str],
        dropped_symbols: Sequence[str]
    ) -> PortfolioResult:
        final_value = series[-1].total_value if series else 0.0
        return PortfolioResult(
            series=series,
            final_value=final_value,
            used_symbols=list(used_symbols),
            dropped_symbols=list(dropped_symbols)
        )

    def calculate_portfolio(self, request: PortfolioRequest) -> PortfolioResult:
        """
        Run a full valuation.

        Never raises: non-positive investment, an empty date range and
        symbols without data all end in the empty result.

        Args:
            request: PortfolioRequest

        Returns:
            PortfolioResult
        """
        symbols = list(request.symbols or [])
        investment = request.investment

        # Guard: nothing to invest -> nothing to calculate
        if not isinstance(investment, (int, float)) or not investment > 0:
            logger.warning(f"Investment must be positive, got {investment}")
            return self.empty_result(symbols)

        if not request.start_date or not request.end_date:
            logger.warning("Start and end date are both required")
            return self.empty_result(symbols)

        start_date = as_iso_date(request.start_date)
        end_date = as_iso_date(request.end_date)
        prices_by_date = request.prices_by_date or {}

        dates = self.get_sorted_dates_in_range(prices_by_date, start_date, end_date)
        if not dates:
            logger.warning(f"No price data between {start_date} and {end_date}")
            return self.empty_result(symbols)

        allocation = self.compute_initial_shares(
            prices_by_date,
            dates,
            symbols,
            investment
        )
        if not allocation.used_symbols:
            logger.warning(f"None of {symbols} has data between {start_date} and {end_date}")
            return self.empty_result(symbols)

        if allocation.dropped_symbols:
            logger.info(f"Dropped symbols without data in range: {allocation.dropped_symbols}")

        series = self.calculate_historical_performance(
            prices_by_date,
            dates,
            allocation
        )

        return self.build_result(
            series,
            allocation.used_symbols,
            allocation.dropped_symbols
        )


def calculate_portfolio(
    prices_by_date: PriceIndex,
    symbols: Sequence[str],
    start_date: str,
    end_date: str,
    investment: float
) -> PortfolioResult:
    """Value an equal-weight portfolio; see PortfolioCalculator.calculate_portfolio."""
    request = PortfolioRequest(
        prices_by_date=prices_by_date,
        symbols=tuple(symbols),
        start_date=start_date,
        end_date=end_date,
        investment=investment
    )
    return PortfolioCalculator().calculate_portfolio(request)
