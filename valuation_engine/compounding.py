"""
Compounding Engine

Daily compounding of an annual nominal rate:

    daily_rate = annual_rate_percent / 100 / 365
    value      = principal * (1 + daily_rate) ** days

Time never runs backwards and rates never shrink a principal: zero or
negative days, and zero or negative rates, leave the principal unchanged.
"""

import math
from datetime import date
from typing import Iterable, Tuple

DAY_COUNT = 365


def days_between(start: date, end: date) -> int:
    """Calendar days from start to end (negative when end precedes start)."""
    return (end - start).days


def daily_rate(annual_rate_percent: float, day_count: int = DAY_COUNT) -> float:
    """Simple day-count division of an annual percent rate."""
    return annual_rate_percent / 100 / day_count


def compound(principal: float, annual_rate_percent: float, days: int,
             day_count: int = DAY_COUNT) -> float:
    """
    Compound a principal daily over a number of days.

    Args:
        principal: Starting value
        annual_rate_percent: Annual nominal rate in percent
        days: Elapsed calendar days
        day_count: Days per year used to derive the daily rate

    Returns:
        float: Compounded value; the principal itself when days <= 0,
            the rate is <= 0, or any input is NaN
    """
    if math.isnan(principal) or math.isnan(annual_rate_percent) or math.isnan(days):
        return principal
    if days <= 0 or annual_rate_percent <= 0:
        return principal
    return principal * (1 + daily_rate(annual_rate_percent, day_count)) ** days


def compound_steps(principal: float, start: date, steps: Iterable[Tuple[date, float]],
                   day_count: int = DAY_COUNT) -> float:
    """
    Chain compounding through consecutive sub-periods.

    Each step is (until_date, annual_rate_percent): the value is compounded
    from the previous boundary (initially `start`) up to until_date at that
    step's rate, and the result becomes the next step's principal.

    Args:
        principal: Starting value on `start`
        start: First boundary date
        steps: Ordered (until_date, annual_rate_percent) pairs

    Returns:
        float: Value at the last step's date
    """
    value = principal
    boundary = start
    for until, rate in steps:
        days = days_between(boundary, until)
        if days <= 0:
            continue
        value = compound(value, rate, days, day_count)
        boundary = until
    return value
