"""
Investment valuation engine for a personal-finance application.

Yield resolution, daily compounding, retroactive valuation of indexed and
fixed-rate investments, portfolio aggregation and the goal/patrimony metrics
built on top of them.
"""

from valuation_engine.compounding import compound, compound_steps
from valuation_engine.investment import Investment, MonthlySnapshot
from valuation_engine.valuation import (
    RetroactiveValuator,
    ValuationResult,
    ValuationStrategy,
    valuate,
)

__version__ = "1.0.0"
