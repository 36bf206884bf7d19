"""
Investment calculator.

Projects an investment with an initial amount and a fixed monthly
contribution. The annual rate is split into a simple monthly rate
(annual / 100 / 12); each month the balance earns that rate and then
receives the contribution.
"""

from dataclasses import dataclass
from typing import List, Sequence

import numpy as np
import pandas as pd


@dataclass(frozen=True)
class ProjectionInput:
    initial_amount: float
    monthly_amount: float
    annual_rate: float
    time_in_months: int
    yield_type: str = "fixed"
    investment_type: str = "other"


@dataclass
class InvestmentProjection:
    initial_amount: float
    monthly_amount: float
    time_in_months: int
    annual_rate: float
    total_invested: float
    total_yield: float
    final_amount: float
    yield_percentage: float
    monthly_data: pd.DataFrame
    scenario_name: str = ""


def calculate_projection(projection_input: ProjectionInput) -> InvestmentProjection:
    """
    Month-by-month projection.

    Returns:
        InvestmentProjection: Totals plus a DataFrame with columns month,
            invested, accumulated and yield (month 0 is the initial amount)
    """
    months = max(int(projection_input.time_in_months), 0)
    monthly_rate = projection_input.annual_rate / 100 / 12

    invested = np.empty(months + 1)
    accumulated = np.empty(months + 1)
    invested[0] = accumulated[0] = projection_input.initial_amount

    for month in range(1, months + 1):
        accumulated[month] = accumulated[month - 1] * (1 + monthly_rate) + projection_input.monthly_amount
        invested[month] = invested[month - 1] + projection_input.monthly_amount

    monthly_data = pd.DataFrame({
        'month': np.arange(months + 1),
        'invested': invested,
        'accumulated': accumulated,
        'yield': accumulated - invested,
    })

    total_invested = float(invested[-1])
    final_amount = float(accumulated[-1])
    total_yield = final_amount - total_invested

    return InvestmentProjection(
        initial_amount=projection_input.initial_amount,
        monthly_amount=projection_input.monthly_amount,
        time_in_months=months,
        annual_rate=projection_input.annual_rate,
        total_invested=total_invested,
        total_yield=total_yield,
        final_amount=final_amount,
        yield_percentage=total_yield / total_invested * 100 if total_invested > 0 else 0.0,
        monthly_data=monthly_data,
    )


def compare_scenarios(scenarios: Sequence[ProjectionInput]) -> List[InvestmentProjection]:
    """Project several inputs, naming them 'Cenário 1', 'Cenário 2', ..."""
    projections = []
    for index, scenario in enumerate(scenarios, start=1):
        projection = calculate_projection(scenario)
        projection.scenario_name = f"Cenário {index}"
        projections.append(projection)
    return projections
