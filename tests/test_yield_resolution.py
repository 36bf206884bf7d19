"""
Unit tests for yield configuration, categories and yield resolution.
"""

import os
import sys
import unittest
from datetime import date

sys.path.append(os.path.join(os.path.dirname(__file__), '..'))

from market_data.rate_series import IndexKind, RateSeries
from valuation_engine import categories
from valuation_engine.categories import InvestmentCategory, get_category, list_categories, register_category
from valuation_engine.yield_config import (
    FixedYield,
    IndexPlusSpread,
    IndexYield,
    parse_yield_config,
    to_simple_yield_type,
)
from valuation_engine.yield_resolution import apply_index, resolve


class TestYieldConfig(unittest.TestCase):
    """Test cases for parsing stored yield fields."""

    def test_parse_fixed(self):
        """Test that fixed yield keeps the absolute rate."""
        self.assertEqual(parse_yield_config('fixed', 11.5), FixedYield(11.5))

    def test_parse_missing_type_defaults_to_fixed(self):
        """Test that rows without a yield type are fixed-rate."""
        self.assertEqual(parse_yield_config(None, None), FixedYield(0.0))

    def test_parse_index_uses_rate_as_percent_of_index(self):
        """Test that an indexed row stores the percent of index in yield_rate."""
        self.assertEqual(parse_yield_config('cdi', 110), IndexYield(IndexKind.CDI, 110.0))

    def test_parse_index_defaults_to_full_index(self):
        """Test that a missing or zero multiplier means 100% of the index."""
        self.assertEqual(parse_yield_config('selic', None), IndexYield(IndexKind.SELIC, 100.0))
        self.assertEqual(parse_yield_config('selic', 0), IndexYield(IndexKind.SELIC, 100.0))

    def test_parse_explicit_percent_takes_precedence(self):
        """Test that an explicit percent_of_index overrides yield_rate."""
        config = parse_yield_config('cdi', 5.0, percent_of_index=95)
        self.assertEqual(config, IndexYield(IndexKind.CDI, 95.0))

    def test_parse_plus_uses_rate_as_spread(self):
        """Test that '_plus' rows store the spread in yield_rate."""
        self.assertEqual(parse_yield_config('ipca_plus', 6.2), IndexPlusSpread(IndexKind.IPCA, 6.2))

    def test_parse_unknown_type_raises(self):
        """Test that unknown yield types are rejected."""
        with self.assertRaises(ValueError):
            parse_yield_config('poupanca_turbo', 1.0)

    def test_yield_type_round_trip_names(self):
        """Test the stored type name of each variant."""
        self.assertEqual(FixedYield(1).yield_type, 'fixed')
        self.assertEqual(IndexYield(IndexKind.CDI).yield_type, 'cdi')
        self.assertEqual(IndexPlusSpread(IndexKind.IPCA, 5).yield_type, 'ipca_plus')

    def test_to_simple_yield_type(self):
        """Test stripping the '_plus' suffix."""
        self.assertEqual(to_simple_yield_type('cdi_plus'), 'cdi')
        self.assertEqual(to_simple_yield_type('selic'), 'selic')


class TestCategories(unittest.TestCase):
    """Test cases for the category taxonomy."""

    def test_equity_like_categories_are_not_formulaic(self):
        """Test that stocks, funds and real estate are marked externally."""
        for tag in ('stocks', 'funds', 'real_estate', 'real-estate'):
            self.assertFalse(get_category(tag).supports_formulaic_yield, tag)

    def test_fixed_income_categories_are_formulaic(self):
        """Test that fixed-income categories follow the rate formula."""
        for tag in ('cdb', 'bonds', 'savings', 'tesouro_direto'):
            self.assertTrue(get_category(tag).supports_formulaic_yield, tag)

    def test_unknown_category_falls_back_to_other(self):
        """Test that free-form tags are treated as 'other'."""
        category = get_category('Debêntures incentivadas')
        self.assertEqual(category.key, 'other')
        self.assertTrue(category.supports_formulaic_yield)

    def test_register_category_extends_taxonomy(self):
        """Test that new categories can be added with their own capability flag."""
        register_category(InvestmentCategory('fii_test', 'FII', supports_formulaic_yield=False))
        self.addCleanup(categories._REGISTRY.pop, 'fii_test', None)
        self.assertFalse(get_category('fii_test').supports_formulaic_yield)

    def test_list_categories(self):
        """Test that the taxonomy is listed sorted by key."""
        keys = [category.key for category in list_categories()]
        self.assertEqual(keys, sorted(keys))
        for key in ('stocks', 'funds', 'real_estate', 'cdb', 'other'):
            self.assertIn(key, keys)


class TestYieldResolution(unittest.TestCase):
    """Test cases for resolving effective rates."""

    def setUp(self):
        """Set up a CDI series with a rate change."""
        self.series = RateSeries.from_records('cdi', [
            {'reference_date': '2024-01-01', 'rate_value': 10.0},
            {'reference_date': '2024-06-01', 'rate_value': 12.0},
        ])

    def test_fixed_ignores_index_inputs(self):
        """Test that fixed rates are returned unmodified."""
        resolved = resolve(FixedYield(9.0), date(2024, 3, 1), self.series, {IndexKind.CDI: 50.0})
        self.assertEqual(resolved.annual_rate, 9.0)
        self.assertFalse(resolved.missing)

    def test_percent_of_index(self):
        """Test that 90% of a 10% index resolves to 9%."""
        self.assertAlmostEqual(apply_index(IndexYield(IndexKind.CDI, 90), 10.0), 9.0)

    def test_percent_of_index_default(self):
        """Test that an omitted percent resolves to the plain index rate."""
        self.assertAlmostEqual(apply_index(parse_yield_config('cdi', None), 10.0), 10.0)

    def test_index_plus_spread(self):
        """Test that a 2-point spread over a 10% index resolves to 12%."""
        self.assertAlmostEqual(apply_index(IndexPlusSpread(IndexKind.CDI, 2.0), 10.0), 12.0)

    def test_spread_ignores_percent_of_index(self):
        """Test that '_plus' configurations never apply a multiplier."""
        config = parse_yield_config('cdi_plus', 2.0, percent_of_index=50)
        self.assertAlmostEqual(apply_index(config, 10.0), 12.0)

    def test_resolve_uses_series_as_of_date(self):
        """Test LOCF lookup in the series."""
        config = IndexYield(IndexKind.CDI, 100)
        self.assertEqual(resolve(config, date(2024, 5, 31), self.series).annual_rate, 10.0)
        self.assertEqual(resolve(config, date(2024, 6, 1), self.series).annual_rate, 12.0)

    def test_resolve_uses_current_rates_without_series(self):
        """Test the current-rate snapshot path."""
        resolved = resolve(IndexYield(IndexKind.SELIC, 100), date(2024, 5, 1),
                           current_rates={IndexKind.SELIC: 10.5})
        self.assertEqual(resolved.annual_rate, 10.5)
        self.assertEqual(resolved.base_rate, 10.5)

    def test_missing_observation_resolves_to_zero(self):
        """Test that a missing index rate degrades to a 0% base and is flagged."""
        with self.assertLogs('valuation_engine.yield_resolution', level='WARNING'):
            resolved = resolve(IndexYield(IndexKind.IPCA, 100), date(2024, 5, 1), current_rates={})
        self.assertEqual(resolved.annual_rate, 0.0)
        self.assertTrue(resolved.missing)

    def test_missing_observation_keeps_spread(self):
        """Test that the spread still applies over a missing (0%) base."""
        with self.assertLogs('valuation_engine.yield_resolution', level='WARNING'):
            resolved = resolve(IndexPlusSpread(IndexKind.IPCA, 6.0), date(2023, 1, 1), self.series)
        self.assertEqual(resolved.annual_rate, 6.0)
        self.assertTrue(resolved.missing)


if __name__ == '__main__':
    unittest.main()
