"""
Retroactive Valuation

Recomputes the current value of an investment from its principal, yield
configuration and holding period:

- Externally priced categories (stocks, funds, real estate): principal
- Fixed yield: one compounding step from purchase date to today
- Indexed yield with rate history: one step per rate regime, switching rate
  at every observation between purchase date and today
- Indexed yield without history: one step at the current index rate
  (approximation that ignores past rate changes)

`valuate` is a pure function: "today" is always passed in. The
RetroactiveValuator class is the I/O boundary that fetches rate history from
a provider before calling it.
"""

import logging
from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Dict, List, Mapping, Optional, Tuple

from market_data.rate_series import (
    IndexKind,
    RateDataUnavailableError,
    RateObservation,
    RateSeries,
    RateSeriesProvider,
)
from valuation_engine.compounding import DAY_COUNT, compound, compound_steps, days_between
from valuation_engine.investment import Investment
from valuation_engine.yield_config import FixedYield, YieldConfig
from valuation_engine.yield_resolution import apply_index, resolve

logger = logging.getLogger(__name__)


class ValuationStrategy(Enum):
    """How a valuation was obtained."""
    EXTERNAL_PRICE = "external_price"
    FIXED_RATE = "fixed_rate"
    WITH_HISTORY = "with_history"
    CURRENT_RATE_APPROXIMATION = "current_rate_approximation"


@dataclass(frozen=True)
class ValuationResult:
    """Outcome of valuing one investment."""
    investment_id: str
    value: float
    strategy: ValuationStrategy
    days: int = 0
    segments: int = 0
    missing_rate: bool = False

    def gain(self, principal: float) -> float:
        return self.value - principal


def _history_steps(config: YieldConfig, observations: List[RateObservation],
                   purchase: date, today: date) -> List[Tuple[date, float]]:
    """
    Build (until_date, effective_rate) steps from rate observations.

    The rate in force on the purchase date is the last observation on or
    before it; when the history starts later, its first rate is carried
    backwards to the purchase date.
    """
    anchor: Optional[RateObservation] = None
    later: List[RateObservation] = []
    for obs in observations:
        if obs.reference_date <= purchase:
            anchor = obs
        else:
            later.append(obs)

    current = anchor.annual_rate if anchor is not None else later[0].annual_rate

    steps = []
    for obs in later:
        steps.append((obs.reference_date, apply_index(config, current)))
        current = obs.annual_rate
    steps.append((today, apply_index(config, current)))
    return steps


def valuate(investment: Investment, today: date,
            history: Optional[RateSeries] = None,
            current_rates: Optional[Mapping[IndexKind, float]] = None,
            day_count: int = DAY_COUNT) -> ValuationResult:
    """
    Value an investment as of `today`.

    Args:
        investment: Investment to value
        today: Valuation date
        history: Observations of the investment's index covering the holding
            period; None or empty selects the current-rate approximation
        current_rates: Latest rate per index, used without history
        day_count: Days per year for the daily rate

    Returns:
        ValuationResult: New value and the strategy used
    """
    principal = investment.principal
    days = max(days_between(investment.purchase_date, today), 0)

    if not investment.supports_formulaic_yield:
        return ValuationResult(investment.id, principal, ValuationStrategy.EXTERNAL_PRICE, days)

    config = investment.yield_config

    if isinstance(config, FixedYield):
        value = compound(principal, config.rate, days, day_count)
        return ValuationResult(investment.id, value, ValuationStrategy.FIXED_RATE, days, segments=1)

    observations = [obs for obs in history if obs.reference_date <= today] if history is not None else []

    if observations:
        steps = _history_steps(config, observations, investment.purchase_date, today)
        value = compound_steps(principal, investment.purchase_date, steps, day_count)
        return ValuationResult(investment.id, value, ValuationStrategy.WITH_HISTORY, days, segments=len(steps))

    resolved = resolve(config, today, current_rates=current_rates or {})
    value = compound(principal, resolved.annual_rate, days, day_count)
    return ValuationResult(
        investment.id,
        value,
        ValuationStrategy.CURRENT_RATE_APPROXIMATION,
        days,
        segments=1,
        missing_rate=resolved.missing,
    )


class RetroactiveValuator:
    """
    Values investments with rate history fetched from a provider.

    Attributes:
        provider (RateSeriesProvider): Source of rate history and current rates
        day_count (int): Days per year for the daily rate
        strict (bool): Raise RateDataUnavailableError instead of valuing at 0%
            when an index has neither history nor a current rate
    """

    def __init__(self, provider: RateSeriesProvider, day_count: int = DAY_COUNT, strict: bool = False):
        self.provider = provider
        self.day_count = day_count
        self.strict = strict
        self._current_rates: Optional[Dict[IndexKind, float]] = None

    @classmethod
    def from_config(cls, provider: RateSeriesProvider, config: Dict) -> "RetroactiveValuator":
        valuation_config = config.get('valuation', {})
        return cls(
            provider,
            day_count=valuation_config.get('day_count', DAY_COUNT),
            strict=valuation_config.get('strict_rates', False),
        )

    def current_rates(self) -> Dict[IndexKind, float]:
        if self._current_rates is None:
            self._current_rates = self.provider.current_rates()
        return self._current_rates

    def value(self, investment: Investment, today: date) -> ValuationResult:
        """Fetch the relevant history and value one investment."""
        history = None
        current_rates = None

        if investment.supports_formulaic_yield and not isinstance(investment.yield_config, FixedYield):
            kind = investment.yield_config.kind
            history = self.provider.get_series(kind, investment.purchase_date, today)
            if history.is_empty:
                logger.info(f"No {kind.value} history for {investment.name}; using current rate")
                current_rates = self.current_rates()

        result = valuate(investment, today, history, current_rates, self.day_count)

        if result.missing_rate and self.strict:
            raise RateDataUnavailableError(
                f"No {investment.yield_config.kind.value} rate available to value {investment.name}"
            )

        logger.info(
            f"Valued {investment.name}: {investment.principal:.2f} -> {result.value:.2f} "
            f"({result.strategy.value}, {result.days} days, {result.segments} segments)"
        )
        return result

    def value_portfolio(self, investments: List[Investment], today: date) -> List[ValuationResult]:
        """Value every investment; they are independent of each other."""
        results = [self.value(investment, today) for investment in investments]
        approximated = sum(1 for r in results if r.strategy == ValuationStrategy.CURRENT_RATE_APPROXIMATION)
        if approximated:
            logger.warning(f"{approximated} of {len(results)} investments valued with the current-rate approximation")
        return results
