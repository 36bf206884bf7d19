"""
Unit tests for portfolio aggregation.

This module tests:
- Month enumeration and exclusion of investments bought later
- Exact snapshots, carry-forward and principal fallbacks
- Headline statistics and chart resampling
- Composition and ranking breakdowns
"""

import os
import sys
import unittest
from datetime import date

sys.path.append(os.path.join(os.path.dirname(__file__), '..'))

from valuation_engine.aggregation import (
    GRANULARITY_BIMONTHLY,
    GRANULARITY_MONTHLY,
    GRANULARITY_QUARTERLY,
    MonthlyAggregate,
    aggregate,
    chart_granularity,
    enumerate_months,
    investment_ranking,
    portfolio_composition,
    resample_for_chart,
    summarize,
    to_frame,
)
from valuation_engine.investment import Investment, MonthlySnapshot


def make_investment(inv_id, principal, purchase_date, category='cdb', current_value=None):
    return Investment.from_record({
        'id': inv_id,
        'name': inv_id.upper(),
        'category': category,
        'principal': principal,
        'current_value': current_value,
        'purchase_date': purchase_date,
    })


class TestEnumerateMonths(unittest.TestCase):
    """Test cases for enumerate_months()."""

    def test_inclusive_range(self):
        """Test that both boundary months are included."""
        months = enumerate_months(date(2024, 11, 20), date(2025, 2, 3))
        self.assertEqual(months, [date(2024, 11, 1), date(2024, 12, 1), date(2025, 1, 1), date(2025, 2, 1)])

    def test_reversed_range(self):
        """Test that an inverted window is empty."""
        self.assertEqual(enumerate_months(date(2024, 5, 1), date(2024, 3, 1)), [])


class TestAggregate(unittest.TestCase):
    """Test cases for aggregate()."""

    def setUp(self):
        """Set up two investments, one bought in January and one in March."""
        self.first = make_investment('a', 1000.0, '2024-01-10')
        self.second = make_investment('b', 500.0, '2024-03-05')

    def test_carry_forward(self):
        """Test that the last snapshot is carried into months without one."""
        snapshots = [MonthlySnapshot('a', date(2024, 1, 1), 1000.0, 1000.0)]
        series = aggregate([self.first], snapshots, date(2024, 1, 1), date(2024, 3, 31))

        self.assertEqual([m.total_value for m in series], [1000.0, 1000.0, 1000.0])
        self.assertEqual([m.total_applied for m in series], [1000.0, 0.0, 0.0])

    def test_carry_forward_keeps_yield(self):
        """Test that yield is carried along with the total."""
        snapshots = [
            MonthlySnapshot('a', date(2024, 1, 1), 1000.0, 1000.0),
            MonthlySnapshot('a', date(2024, 2, 1), 0.0, 1010.0),
        ]
        series = aggregate([self.first], snapshots, date(2024, 1, 1), date(2024, 4, 30))

        self.assertEqual([m.total_value for m in series], [1000.0, 1010.0, 1010.0, 1010.0])
        self.assertEqual([m.total_yield for m in series], [0.0, 1010.0, 1010.0, 1010.0])

    def test_investment_excluded_before_purchase(self):
        """Test that months before the purchase month ignore an investment."""
        snapshots = [MonthlySnapshot('a', date(2024, 1, 1), 1000.0, 1000.0)]
        series = aggregate([self.first, self.second], snapshots, date(2024, 1, 1), date(2024, 4, 30))

        self.assertEqual([m.total_value for m in series], [1000.0, 1000.0, 1500.0, 1500.0])
        self.assertEqual([m.total_applied for m in series], [1000.0, 0.0, 500.0, 0.0])

    def test_principal_fallback_without_snapshots(self):
        """Test that an investment without snapshots counts at its principal."""
        series = aggregate([self.first], [], date(2024, 1, 1), date(2024, 2, 28))
        self.assertEqual(series[0], MonthlyAggregate(date(2024, 1, 1), 1000.0, 1000.0, 0.0))
        self.assertEqual(series[1], MonthlyAggregate(date(2024, 2, 1), 0.0, 1000.0, 0.0))

    def test_snapshots_before_window_seed_state(self):
        """Test that a snapshot before the window is carried into it."""
        snapshots = [
            MonthlySnapshot('a', date(2024, 1, 1), 1000.0, 1000.0),
            MonthlySnapshot('a', date(2024, 3, 1), 0.0, 1030.0),
        ]
        series = aggregate([self.first], snapshots, date(2024, 5, 1), date(2024, 6, 30))

        self.assertEqual([m.total_value for m in series], [1030.0, 1030.0])
        self.assertEqual([m.total_applied for m in series], [0.0, 0.0])

    def test_snapshot_of_unknown_investment_ignored(self):
        """Test that snapshots of investments outside the list are not counted."""
        snapshots = [MonthlySnapshot('zzz', date(2024, 1, 1), 999.0, 999.0)]
        series = aggregate([self.first], snapshots, date(2024, 1, 1), date(2024, 1, 31))
        self.assertEqual(series[0].total_value, 1000.0)

    def test_empty_window(self):
        """Test that an inverted window gives an empty series."""
        with self.assertLogs('valuation_engine.aggregation', level='WARNING'):
            self.assertEqual(aggregate([self.first], [], date(2024, 5, 1), date(2024, 1, 1)), [])


class TestSummary(unittest.TestCase):
    """Test cases for summarize() and frame helpers."""

    def test_summarize(self):
        """Test the headline numbers of a window."""
        series = [
            MonthlyAggregate(date(2024, 1, 1), 1000.0, 1000.0, 0.0),
            MonthlyAggregate(date(2024, 2, 1), 500.0, 1520.0, 20.0),
            MonthlyAggregate(date(2024, 3, 1), 0.0, 1545.0, 45.0),
        ]
        summary = summarize(series)
        self.assertEqual(summary.total_applied, 1500.0)
        self.assertEqual(summary.final_value, 1545.0)
        self.assertAlmostEqual(summary.total_return, 45.0)
        self.assertAlmostEqual(summary.return_percentage, 3.0)

    def test_summarize_zero_applied(self):
        """Test that a window without contributions reports 0% return."""
        summary = summarize([MonthlyAggregate(date(2024, 5, 1), 0.0, 1030.0, 30.0)])
        self.assertEqual(summary.return_percentage, 0.0)
        self.assertEqual(summary.total_return, 1030.0)

    def test_summarize_empty(self):
        """Test that an empty series summarizes to zeros."""
        summary = summarize([])
        self.assertEqual((summary.total_applied, summary.final_value, summary.return_percentage), (0.0, 0.0, 0.0))

    def test_to_frame(self):
        """Test the DataFrame layout."""
        frame = to_frame([MonthlyAggregate(date(2024, 1, 1), 1000.0, 1000.0, 0.0)])
        self.assertEqual(list(frame.columns), ['total_applied', 'total_value', 'total_yield'])
        self.assertEqual(frame.index.name, 'month')


class TestChartHelpers(unittest.TestCase):
    """Test cases for chart granularity and resampling."""

    def test_chart_granularity(self):
        """Test granularity thresholds."""
        self.assertEqual(chart_granularity(date(2024, 1, 1), date(2024, 12, 31)), GRANULARITY_MONTHLY)
        self.assertEqual(chart_granularity(date(2024, 1, 1), date(2025, 1, 1)), GRANULARITY_MONTHLY)
        self.assertEqual(chart_granularity(date(2024, 1, 1), date(2026, 1, 1)), GRANULARITY_BIMONTHLY)
        self.assertEqual(chart_granularity(date(2020, 1, 1), date(2024, 6, 1)), GRANULARITY_QUARTERLY)

    def test_resample_bimonthly(self):
        """Test that applied is summed and value is the bucket's last."""
        series = [
            MonthlyAggregate(date(2024, m, 1), 100.0, 1000.0 + m, float(m))
            for m in range(1, 7)
        ]
        frame = resample_for_chart(series, GRANULARITY_BIMONTHLY)

        self.assertEqual(len(frame), 3)
        self.assertEqual(list(frame['total_applied']), [200.0, 200.0, 200.0])
        self.assertEqual(list(frame['total_value']), [1002.0, 1004.0, 1006.0])

    def test_resample_quarterly(self):
        """Test quarterly buckets."""
        series = [MonthlyAggregate(date(2024, m, 1), 10.0, float(m), 0.0) for m in range(1, 7)]
        frame = resample_for_chart(series, GRANULARITY_QUARTERLY)
        self.assertEqual(list(frame['total_value']), [3.0, 6.0])

    def test_resample_unknown(self):
        """Test that unknown granularities raise."""
        series = [MonthlyAggregate(date(2024, 1, 1), 10.0, 10.0, 0.0)]
        with self.assertRaises(ValueError):
            resample_for_chart(series, 'weekly')


class TestBreakdowns(unittest.TestCase):
    """Test cases for composition and ranking."""

    def setUp(self):
        """Set up a small mixed portfolio."""
        self.investments = [
            make_investment('a', 1000.0, '2024-01-01', 'cdb', 1100.0),
            make_investment('b', 2000.0, '2024-01-01', 'stocks', 1900.0),
            make_investment('c', 1000.0, '2024-01-01', 'cdb', 1000.0),
        ]

    def test_portfolio_composition(self):
        """Test value and share per category."""
        composition = portfolio_composition(self.investments)

        self.assertEqual(list(composition['category']), ['cdb', 'stocks'])
        self.assertEqual(list(composition['value']), [2100.0, 1900.0])
        self.assertAlmostEqual(composition['percentage'].sum(), 100.0)
        self.assertAlmostEqual(composition['percentage'].iloc[0], 52.5)

    def test_portfolio_composition_empty(self):
        """Test an empty portfolio."""
        self.assertTrue(portfolio_composition([]).empty)

    def test_ranking_by_balance(self):
        """Test ordering by current value."""
        ranking = investment_ranking(self.investments)
        self.assertEqual(list(ranking['id']), ['b', 'a', 'c'])

    def test_ranking_by_return_percentage(self):
        """Test ordering by return percentage."""
        ranking = investment_ranking(self.investments, key='return_percentage')
        self.assertEqual(list(ranking['id']), ['a', 'c', 'b'])
        self.assertAlmostEqual(ranking['return_percentage'].iloc[0], 10.0)

    def test_ranking_invalid_key(self):
        """Test that unknown keys raise."""
        with self.assertRaises(ValueError):
            investment_ranking(self.investments, key='name')


if __name__ == '__main__':
    unittest.main()
