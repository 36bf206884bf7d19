"""
Unit tests for derived ratios and goal linking.
"""

import os
import sys
import unittest
from datetime import date

sys.path.append(os.path.join(os.path.dirname(__file__), '..'))

from valuation_engine.aggregation import MonthlyAggregate
from valuation_engine.goals import Goal, GoalLink, Vault, linked_amount, refresh_goal
from valuation_engine.investment import Investment
from valuation_engine.metrics import financial_independence_ratio, financial_independence_series, goal_progress


class TestMetrics(unittest.TestCase):
    """Test cases for the ratio helpers."""

    def test_financial_independence_ratio(self):
        """Test yield as a percent of the goal."""
        self.assertAlmostEqual(financial_independence_ratio(750.0, 3000.0), 25.0)

    def test_financial_independence_ratio_without_goal(self):
        """Test that an unset or zero goal gives 0."""
        self.assertEqual(financial_independence_ratio(750.0, 0), 0.0)
        self.assertEqual(financial_independence_ratio(750.0, None), 0.0)

    def test_financial_independence_series(self):
        """Test that each month uses its total yield."""
        series = [
            MonthlyAggregate(date(2024, 1, 1), 1000.0, 1000.0, 0.0),
            MonthlyAggregate(date(2024, 2, 1), 0.0, 1300.0, 300.0),
        ]
        self.assertEqual(
            financial_independence_series(series, 600.0),
            [(date(2024, 1, 1), 0.0), (date(2024, 2, 1), 50.0)],
        )

    def test_goal_progress(self):
        """Test capped progress and the zero-target case."""
        self.assertAlmostEqual(goal_progress(250.0, 1000.0), 25.0)
        self.assertEqual(goal_progress(1500.0, 1000.0), 100.0)
        self.assertEqual(goal_progress(100.0, 0.0), 0.0)


class TestGoals(unittest.TestCase):
    """Test cases for goal links."""

    def setUp(self):
        """Set up a goal with one vault and one investment link."""
        self.goal = Goal('g1', 'Viagem', target_amount=10000.0, current_amount=123.0)
        self.vaults = {'v1': Vault('v1', 'Reserva viagem', 2500.0)}
        self.investments = {
            'i1': Investment.from_record({
                'id': 'i1', 'name': 'Tesouro Selic', 'principal': 3000.0,
                'current_value': 3250.0, 'purchase_date': '2024-01-01',
            }),
        }
        self.links = [
            GoalLink('g1', 'vault', 'v1'),
            GoalLink('g1', 'investment', 'i1'),
            GoalLink('g2', 'vault', 'v1'),
        ]

    def test_linked_amount(self):
        """Test the sum over vaults and investments of one goal."""
        self.assertEqual(linked_amount(self.goal, self.links, self.vaults, self.investments), 5750.0)

    def test_goal_without_links(self):
        """Test that unlinked goals keep their stored amount."""
        self.assertIsNone(linked_amount(self.goal, [], self.vaults, self.investments))
        self.assertEqual(refresh_goal(self.goal, [], self.vaults, self.investments), self.goal)

    def test_refresh_goal(self):
        """Test recomputing current amount and progress."""
        refreshed = refresh_goal(self.goal, self.links, self.vaults, self.investments)
        self.assertEqual(refreshed.current_amount, 5750.0)
        self.assertAlmostEqual(refreshed.progress, 57.5)
        self.assertEqual(refreshed.remaining, 4250.0)

    def test_missing_target_is_skipped(self):
        """Test that a link to a deleted vault is ignored with a warning."""
        links = [GoalLink('g1', 'vault', 'gone'), GoalLink('g1', 'investment', 'i1')]
        with self.assertLogs('valuation_engine.goals', level='WARNING'):
            amount = linked_amount(self.goal, links, self.vaults, self.investments)
        self.assertEqual(amount, 3250.0)

    def test_invalid_link_type(self):
        """Test that only vault and investment links exist."""
        with self.assertRaises(ValueError):
            GoalLink('g1', 'bank_account', 'b1')


if __name__ == '__main__':
    unittest.main()
