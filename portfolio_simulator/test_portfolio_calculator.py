"""
Unit tests for portfolio_calculator module using unittest framework.
"""

import datetime
import math
import unittest
from .portfolio_calculator import (
    Allocation,
    PortfolioCalculator,
    PortfolioPoint,
    PortfolioRequest,
    PortfolioResult,
    SymbolState,
    calculate_portfolio,
)


MOCK_PRICES = {
    '2025-01-01': {'AAPL': 100.0, 'GOOG': 200.0},
    '2025-01-02': {'AAPL': 110.0, 'GOOG': 190.0},
    '2025-01-03': {'AAPL': 120.0, 'GOOG': 210.0},
}


class TestPortfolioCalculator(unittest.TestCase):
    """Test cases for PortfolioCalculator class."""

    def setUp(self):
        """Create a PortfolioCalculator instance for each test."""
        self.calculator = PortfolioCalculator()

    def assertEmptyResult(self, result, symbols):
        self.assertEqual(result.series, [])
        self.assertEqual(result.final_value, 0.0)
        self.assertEqual(result.used_symbols, [])
        self.assertEqual(result.dropped_symbols, list(symbols))

    # Tests for get_sorted_dates_in_range

    def test_sorted_dates_in_range_filters_and_sorts(self):
        """Test that only in-range dates are returned, ascending."""
        prices = {
            '2025-01-03': {'AAPL': 1.0},
            '2024-12-31': {'AAPL': 1.0},
            '2025-01-01': {'AAPL': 1.0},
            '2025-01-04': {'AAPL': 1.0},
        }

        dates = self.calculator.get_sorted_dates_in_range(prices, '2025-01-01', '2025-01-03')

        self.assertEqual(dates, ['2025-01-01', '2025-01-03'])

    def test_sorted_dates_in_range_is_inclusive(self):
        """Test that both range ends are included."""
        dates = self.calculator.get_sorted_dates_in_range(MOCK_PRICES, '2025-01-01', '2025-01-01')
        self.assertEqual(dates, ['2025-01-01'])

    def test_sorted_dates_in_range_empty(self):
        """Test empty index and reversed range."""
        self.assertEqual(self.calculator.get_sorted_dates_in_range({}, '2025-01-01', '2025-12-31'), [])
        self.assertEqual(self.calculator.get_sorted_dates_in_range(MOCK_PRICES, '2025-01-03', '2025-01-01'), [])

    # Tests for compute_initial_shares

    def test_compute_initial_shares_equal_weights(self):
        """Test that each used symbol receives the same dollar amount."""
        dates = sorted(MOCK_PRICES)
        allocation = self.calculator.compute_initial_shares(MOCK_PRICES, dates, ['AAPL', 'GOOG'], 1000.0)

        self.assertAlmostEqual(allocation.per_symbol['AAPL'].shares, 5.0)
        self.assertAlmostEqual(allocation.per_symbol['GOOG'].shares, 2.5)
        for symbol in ('AAPL', 'GOOG'):
            state = allocation.per_symbol[symbol]
            self.assertAlmostEqual(state.shares * state.last_price, 500.0)
            self.assertEqual(state.buy_date, '2025-01-01')

    def test_compute_initial_shares_splits_among_used_only(self):
        """Test that dropped symbols do not dilute the allocation."""
        dates = sorted(MOCK_PRICES)
        allocation = self.calculator.compute_initial_shares(
            MOCK_PRICES, dates, ['MSFT', 'AAPL', 'NVDA'], 900.0
        )

        self.assertEqual(allocation.used_symbols, ['AAPL'])
        self.assertEqual(allocation.dropped_symbols, ['MSFT', 'NVDA'])
        self.assertAlmostEqual(allocation.per_symbol['AAPL'].shares, 9.0)

    def test_compute_initial_shares_first_available_date(self):
        """Test that a symbol is bought on its first date with a price."""
        prices = {
            '2025-01-01': {'AAPL': 100.0},
            '2025-01-02': {'AAPL': 100.0, 'GOOG': 50.0},
        }
        allocation = self.calculator.compute_initial_shares(prices, sorted(prices), ['AAPL', 'GOOG'], 1000.0)

        goog = allocation.per_symbol['GOOG']
        self.assertEqual(goog.buy_date, '2025-01-02')
        self.assertEqual(goog.last_price, 50.0)
        self.assertAlmostEqual(goog.shares, 10.0)

    def test_compute_initial_shares_skips_nan_and_zero_prices(self):
        """Test that NaN and zero prices are not used as buy prices."""
        prices = {
            '2025-01-01': {'AAPL': float('nan'), 'GOOG': 0.0},
            '2025-01-02': {'AAPL': 50.0, 'GOOG': 25.0},
        }
        allocation = self.calculator.compute_initial_shares(prices, sorted(prices), ['AAPL', 'GOOG'], 100.0)

        self.assertEqual(allocation.per_symbol['AAPL'].buy_date, '2025-01-02')
        self.assertEqual(allocation.per_symbol['GOOG'].buy_date, '2025-01-02')

    def test_compute_initial_shares_allows_negative_prices(self):
        """Test that a negative price is still a usable buy price."""
        prices = {
            '2025-01-01': {'AAPL': 100.0, 'OIL': -20.0},
            '2025-01-02': {'AAPL': 100.0, 'OIL': -10.0},
        }
        allocation = self.calculator.compute_initial_shares(prices, sorted(prices), ['AAPL', 'OIL'], 1000.0)

        self.assertEqual(allocation.used_symbols, ['AAPL', 'OIL'])
        self.assertEqual(allocation.dropped_symbols, [])
        self.assertEqual(allocation.per_symbol['OIL'].buy_date, '2025-01-01')
        self.assertAlmostEqual(allocation.per_symbol['OIL'].shares, -25.0)

    def test_compute_initial_shares_no_used_symbols(self):
        """Test that no division happens when nothing has data."""
        allocation = self.calculator.compute_initial_shares(MOCK_PRICES, sorted(MOCK_PRICES), ['MSFT'], 1000.0)

        self.assertIsInstance(allocation, Allocation)
        self.assertEqual(allocation.per_symbol, {})
        self.assertEqual(allocation.used_symbols, [])
        self.assertEqual(allocation.dropped_symbols, ['MSFT'])

    # Tests for calculate_historical_performance

    def test_historical_performance_forward_fills_missing_prices(self):
        """Test that a missing price is carried forward from the last date."""
        prices = {
            '2025-01-01': {'AAPL': 100.0, 'GOOG': 50.0},
            '2025-01-02': {'AAPL': 110.0},
            '2025-01-03': {'AAPL': 120.0, 'GOOG': 60.0},
        }
        dates = sorted(prices)
        allocation = self.calculator.compute_initial_shares(prices, dates, ['AAPL', 'GOOG'], 1000.0)

        series = self.calculator.calculate_historical_performance(prices, dates, allocation)

        self.assertEqual([p.date for p in series], dates)
        self.assertAlmostEqual(series[0].total_value, 1000.0)
        # GOOG keeps its 50.0 price on 01-02
        self.assertAlmostEqual(series[1].total_value, 5 * 110.0 + 10 * 50.0)
        self.assertAlmostEqual(series[2].total_value, 5 * 120.0 + 10 * 60.0)

    def test_historical_performance_before_buy_date_uses_buy_price(self):
        """Test that a late symbol is valued at its buy price before it is bought."""
        prices = {
            '2025-01-01': {'AAPL': 100.0, 'GOOG': 0.0},
            '2025-01-02': {'AAPL': 100.0, 'GOOG': 50.0},
            '2025-01-03': {'AAPL': 100.0, 'GOOG': 100.0},
        }
        dates = sorted(prices)
        allocation = self.calculator.compute_initial_shares(prices, dates, ['AAPL', 'GOOG'], 1000.0)

        series = self.calculator.calculate_historical_performance(prices, dates, allocation)

        self.assertAlmostEqual(series[0].total_value, 1000.0)
        self.assertAlmostEqual(series[1].total_value, 1000.0)
        self.assertAlmostEqual(series[2].total_value, 1500.0)

    def test_historical_performance_ignores_nan_prices(self):
        """Test that a NaN price is treated like a missing one."""
        prices = {
            '2025-01-01': {'AAPL': 100.0},
            '2025-01-02': {'AAPL': float('nan')},
        }
        dates = sorted(prices)
        allocation = self.calculator.compute_initial_shares(prices, dates, ['AAPL'], 1000.0)

        series = self.calculator.calculate_historical_performance(prices, dates, allocation)

        self.assertAlmostEqual(series[1].total_value, 1000.0)
        self.assertFalse(math.isnan(series[1].total_value))

    def test_historical_performance_leaves_allocation_untouched(self):
        """Test that valuing an allocation does not change its states."""
        dates = sorted(MOCK_PRICES)
        allocation = self.calculator.compute_initial_shares(MOCK_PRICES, dates, ['AAPL'], 1000.0)

        first = self.calculator.calculate_historical_performance(MOCK_PRICES, dates, allocation)
        second = self.calculator.calculate_historical_performance(MOCK_PRICES, dates, allocation)

        self.assertEqual(allocation.per_symbol['AAPL'], SymbolState(shares=10.0, last_price=100.0, buy_date='2025-01-01'))
        self.assertEqual(first, second)

    # Tests for calculate_portfolio

    def test_calculate_portfolio_equal_weight(self):
        """Test the three-day two-symbol example."""
        result = calculate_portfolio(MOCK_PRICES, ['AAPL', 'GOOG'], '2025-01-01', '2025-01-03', 1000)

        # 1000 -> 500 each: 5 AAPL @ 100, 2.5 GOOG @ 200
        # End value = 5*120 + 2.5*210 = 1125
        self.assertAlmostEqual(result.final_value, 1125.0)
        self.assertEqual(result.series, [
            PortfolioPoint(date='2025-01-01', total_value=1000.0),
            PortfolioPoint(date='2025-01-02', total_value=1025.0),
            PortfolioPoint(date='2025-01-03', total_value=1125.0),
        ])
        self.assertEqual(result.used_symbols, ['AAPL', 'GOOG'])
        self.assertEqual(result.dropped_symbols, [])

    def test_calculate_portfolio_skips_symbols_with_no_data(self):
        """Test that symbols without data are dropped."""
        result = calculate_portfolio(MOCK_PRICES, ['AAPL', 'MSFT'], '2025-01-01', '2025-01-03', 1000)

        self.assertEqual(result.used_symbols, ['AAPL'])
        self.assertEqual(result.dropped_symbols, ['MSFT'])
        self.assertAlmostEqual(result.final_value, 10 * 120.0)

    def test_calculate_portfolio_zero_investment(self):
        """Test that a zero investment gives the empty result."""
        result = calculate_portfolio(MOCK_PRICES, ['AAPL', 'GOOG'], '2025-01-01', '2025-01-03', 0)
        self.assertEmptyResult(result, ['AAPL', 'GOOG'])

    def test_calculate_portfolio_negative_and_nan_investment(self):
        """Test other non-positive investments."""
        for investment in (-10.0, float('nan'), None):
            result = calculate_portfolio(MOCK_PRICES, ['AAPL'], '2025-01-01', '2025-01-03', investment)
            self.assertEmptyResult(result, ['AAPL'])

    def test_calculate_portfolio_start_after_end(self):
        """Test that a reversed range gives the empty result."""
        result = calculate_portfolio(MOCK_PRICES, ['AAPL', 'GOOG'], '2025-01-03', '2025-01-01', 1000)
        self.assertEmptyResult(result, ['AAPL', 'GOOG'])

    def test_calculate_portfolio_no_overlapping_dates(self):
        """Test that a range without data gives the empty result."""
        result = calculate_portfolio(MOCK_PRICES, ['AAPL'], '2024-01-01', '2024-12-31', 1000)
        self.assertEmptyResult(result, ['AAPL'])

    def test_calculate_portfolio_no_symbol_has_data(self):
        """Test that all-dropped symbols give the empty result."""
        result = calculate_portfolio(MOCK_PRICES, ['MSFT', 'NVDA'], '2025-01-01', '2025-01-03', 1000)
        self.assertEmptyResult(result, ['MSFT', 'NVDA'])

    def test_calculate_portfolio_accepts_date_and_datetime_bounds(self):
        """Test that date and datetime bounds keep the start day in range."""
        for start, end in (
            (datetime.date(2025, 1, 1), datetime.date(2025, 1, 3)),
            (datetime.datetime(2025, 1, 1), datetime.datetime(2025, 1, 3, 23, 59)),
        ):
            result = calculate_portfolio(MOCK_PRICES, ['AAPL', 'GOOG'], start, end, 1000)

            self.assertEqual([p.date for p in result.series], ['2025-01-01', '2025-01-02', '2025-01-03'])
            self.assertAlmostEqual(result.final_value, 1125.0)

    def test_calculate_portfolio_missing_dates_and_index(self):
        """Test that missing dates or index do not raise."""
        self.assertEmptyResult(calculate_portfolio(MOCK_PRICES, ['AAPL'], '', '2025-01-03', 1000), ['AAPL'])
        self.assertEmptyResult(calculate_portfolio(None, ['AAPL'], '2025-01-01', '2025-01-03', 1000), ['AAPL'])

    def test_calculate_portfolio_series_matches_dates_with_data(self):
        """Test series length, final value and symbol conservation."""
        prices = dict(MOCK_PRICES)
        prices['2025-01-05'] = {'NVDA': 10.0}
        symbols = ['GOOG', 'MSFT', 'AAPL']

        result = calculate_portfolio(prices, symbols, '2025-01-01', '2025-01-31', 300)

        # 01-05 only has NVDA but still counts as a date with data
        self.assertEqual(len(result.series), 4)
        self.assertEqual(result.final_value, result.series[-1].total_value)
        self.assertEqual(result.used_symbols, ['GOOG', 'AAPL'])
        self.assertEqual(result.dropped_symbols, ['MSFT'])
        self.assertEqual(sorted(result.used_symbols + result.dropped_symbols), sorted(symbols))

    def test_calculate_portfolio_is_idempotent(self):
        """Test that repeated calls give identical results."""
        request = PortfolioRequest(
            prices_by_date=MOCK_PRICES,
            symbols=('AAPL', 'GOOG'),
            start_date='2025-01-01',
            end_date='2025-01-03',
            investment=1000.0
        )

        first = self.calculator.calculate_portfolio(request)
        second = self.calculator.calculate_portfolio(request)

        self.assertIsInstance(first, PortfolioResult)
        self.assertEqual(first, second)

    def test_calculate_portfolio_does_not_mutate_index(self):
        """Test that the price index is read only."""
        prices = {date: dict(row) for date, row in MOCK_PRICES.items()}
        calculate_portfolio(prices, ['AAPL', 'GOOG'], '2025-01-01', '2025-01-03', 1000)
        self.assertEqual(prices, MOCK_PRICES)


if __name__ == '__main__':
    unittest.main()
