"""
Derived ratios shared by the dashboard, goals and planning views.

Every ratio is 0 when its denominator is 0 or unset.
"""

from typing import List, Optional, Sequence, Tuple

from valuation_engine.aggregation import MonthlyAggregate


def financial_independence_ratio(monthly_yield: float, goal: Optional[float]) -> float:
    """Monthly yield as a percent of the financial independence goal."""
    if not goal:
        return 0.0
    return monthly_yield / goal * 100


def financial_independence_series(series: Sequence[MonthlyAggregate],
                                  goal: Optional[float]) -> List[Tuple[object, float]]:
    """(month, ratio) for every month of an aggregated series, using its total yield."""
    return [(m.month, financial_independence_ratio(m.total_yield, goal)) for m in series]


def goal_progress(current_amount: float, target_amount: float) -> float:
    """Percent of a target reached, capped at 100."""
    if target_amount <= 0:
        return 0.0
    return min(current_amount / target_amount * 100, 100.0)
