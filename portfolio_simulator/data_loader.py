"""
Raw price data loading with concurrent fetching support.

Reads the stock identifier and stock price CSV resources with pandas (local
paths or URLs), or downloads daily closes with yfinance, and normalizes the
rows into a price index.
"""

import logging
import threading
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional, Sequence, Tuple

import pandas as pd
import yfinance as yf

from config.settings import (
    LOADER_MAX_WORKERS,
    PRICE_SOURCE,
    STOCK_IDENTIFIERS_CSV,
    STOCK_PRICES_CSV,
    YFINANCE_HISTORY_START,
)
from .price_normalizer import PriceIndex, normalize_stock_data

logger = logging.getLogger(__name__)

IDENTIFIER_COLUMNS = ('id_stock', 'symbol')
PRICE_COLUMNS = ('id_stock', 'close', 'date')

Records = List[Dict[str, Any]]


class DataLoadError(Exception):
    """Raised when raw price data cannot be loaded."""


@dataclass
class LoadState:
    """Outcome of a load, as seen by the presentation layer."""
    prices_by_date: Optional[PriceIndex] = None
    loading: bool = True
    error: Optional[str] = None


class PriceDataLoader:
    """
    Loads identifier and price rows and builds the price index.

    Each call to load() supersedes any load still in flight: the older call
    finishes its work but returns None instead of a LoadState.
    """

    def __init__(
        self,
        identifiers_source: Optional[str] = None,
        prices_source: Optional[str] = None,
        max_workers: Optional[int] = None
    ):
        """
        Initialize price data loader.

        Args:
            identifiers_source: Path or URL of the identifier CSV (defaults to settings)
            prices_source: Path or URL of the price CSV (defaults to settings)
            max_workers: Maximum number of concurrent reads
        """
        self.identifiers_source = identifiers_source or STOCK_IDENTIFIERS_CSV
        self.prices_source = prices_source or STOCK_PRICES_CSV
        self.max_workers = max_workers or LOADER_MAX_WORKERS
        self._generation = 0
        self._lock = threading.Lock()

    def read_csv_records(self, source: str, required_columns: Sequence[str]) -> Records:
        """
        Read a delimited-text resource into a list of row dicts.

        All values are kept as strings; blank cells become empty strings so
        that the normalizer decides what counts as missing.

        Args:
            source: Path or URL
            required_columns: Columns that must be present in the header

        Returns:
            List of {column: value} dicts, one per non-empty line
        """
        df = pd.read_csv(source, dtype=str, keep_default_na=False, skip_blank_lines=True)
        df.columns = [str(column).strip() for column in df.columns]

        missing = [column for column in required_columns if column not in df.columns]
        if missing:
            raise DataLoadError(f"{source} is missing required columns: {', '.join(missing)}")

        logger.debug(f"Read {len(df)} rows from {source}")
        return df.to_dict(orient='records')

    def load_stock_data(self) -> Tuple[Records, Records]:
        """
        Read both raw resources concurrently.

        Returns:
            Tuple of (identifier_rows, price_rows)
        """
        with ThreadPoolExecutor(max_workers=min(2, self.max_workers)) as executor:
            identifiers_future = executor.submit(
                self.read_csv_records, self.identifiers_source, IDENTIFIER_COLUMNS
            )
            prices_future = executor.submit(
                self.read_csv_records, self.prices_source, PRICE_COLUMNS
            )
            identifiers = identifiers_future.result()
            prices = prices_future.result()

        logger.info(f"Loaded {len(identifiers)} identifier rows and {len(prices)} price rows")
        return identifiers, prices

    def load_normalized_prices(self) -> PriceIndex:
        identifiers, prices = self.load_stock_data()
        return normalize_stock_data(identifiers, prices)

    def cancel(self) -> None:
        """Abandon any load currently in flight."""
        with self._lock:
            self._generation += 1

    def _begin_load(self) -> int:
        with self._lock:
            self._generation += 1
            return self._generation

    def _is_current(self, token: int) -> bool:
        with self._lock:
            return token == self._generation

    def load(self) -> Optional[LoadState]:
        """
        Load and normalize prices, reporting failures instead of raising.

        Returns:
            LoadState with either prices_by_date or error set, or None if the
            load was cancelled or superseded while running
        """
        token = self._begin_load()

        try:
            prices_by_date = self.load_normalized_prices()
        except Exception as e:
            if not self._is_current(token):
                logger.info("Discarding failed load superseded by a newer request")
                return None
            logger.error(f"Failed to load price data: {e}")
            return LoadState(prices_by_date=None, loading=False, error=str(e) or type(e).__name__)

        if not self._is_current(token):
            logger.info("Discarding load superseded by a newer request")
            return None

        logger.info(f"Price index ready with {len(prices_by_date)} dates")
        return LoadState(prices_by_date=prices_by_date, loading=False, error=None)


class YFinancePriceLoader(PriceDataLoader):
    """
    Builds the same raw rows from yfinance daily history.

    Symbols double as internal ids, so the normalizer maps them one to one.
    """

    def __init__(
        self,
        symbols: Sequence[str],
        start_date: Optional[str] = None,
        end_date: Optional[str] = None,
        max_workers: Optional[int] = None
    ):
        """
        Initialize yfinance price loader.

        Args:
            symbols: Stock symbols to download (e.g., ['AAPL', 'MSFT'])
            start_date: First date "YYYY-MM-DD" (defaults to settings)
            end_date: Last date "YYYY-MM-DD", inclusive (defaults to today)
            max_workers: Maximum number of concurrent requests
        """
        super().__init__(max_workers=max_workers)
        self.symbols = list(symbols)
        self.start_date = start_date or YFINANCE_HISTORY_START
        self.end_date = end_date or datetime.now().strftime('%Y-%m-%d')

    def _fetch_single_ticker(self, symbol: str) -> Records:
        """
        Fetch daily history for one symbol as raw price rows.

        Args:
            symbol: Stock symbol

        Returns:
            List of price rows (empty if yfinance returned nothing)
        """
        # yfinance treats end as exclusive
        end = datetime.strptime(self.end_date, '%Y-%m-%d') + timedelta(days=1)
        hist = yf.Ticker(symbol).history(start=self.start_date, end=end.strftime('%Y-%m-%d'), interval='1d')

        if hist is None or hist.empty:
            logger.warning(f"No data returned for {symbol}")
            return []

        rows = []
        for ts, bar in hist.iterrows():
            rows.append({
                'id_stock': symbol,
                'high': str(bar.get('High', '')),
                'low': str(bar.get('Low', '')),
                'close': str(bar.get('Close', '')),
                'date': pd.Timestamp(ts).strftime('%Y-%m-%d'),
            })

        logger.debug(f"Fetched {len(rows)} data points for {symbol}")
        return rows

    def load_stock_data(self) -> Tuple[Records, Records]:
        logger.info(f"Fetching daily prices for {len(self.symbols)} symbols from {self.start_date} to {self.end_date}")

        identifiers = [
            {'id_stock': symbol, 'name': symbol, 'symbol': symbol}
            for symbol in self.symbols
        ]
        prices = []
        fetched = 0

        with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            future_to_symbol = {
                executor.submit(self._fetch_single_ticker, symbol): symbol
                for symbol in self.symbols
            }

            for future in as_completed(future_to_symbol):
                symbol = future_to_symbol[future]
                try:
                    rows = future.result()
                except Exception as e:
                    logger.error(f"Error fetching {symbol}: {e}")
                    continue
                if rows:
                    prices.extend(rows)
                    fetched += 1

        logger.info(f"Successfully fetched data for {fetched}/{len(self.symbols)} symbols")
        if not prices:
            raise DataLoadError(f"No price data returned for any of {', '.join(self.symbols)}")

        return identifiers, prices


def create_loader(
    source: Optional[str] = None,
    symbols: Optional[Sequence[str]] = None
) -> PriceDataLoader:
    """
    Build the loader for the configured price source.

    Args:
        source: 'csv' or 'yfinance' (defaults to settings)
        symbols: Symbols to download when the source is yfinance

    Returns:
        PriceDataLoader instance
    """
    source = (source or PRICE_SOURCE).lower()
    if source == 'csv':
        return PriceDataLoader()
    if source == 'yfinance':
        return YFinancePriceLoader(symbols or [])
    raise ValueError(f"Unknown price source: {source}")
