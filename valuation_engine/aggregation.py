"""
Portfolio Aggregation

Month-by-month series of applied capital, total value and yield built from
stored monthly snapshots, plus the headline statistics and the breakdowns
shown on the investment dashboard.

Monthly rules:
- A snapshot for the exact month is used as-is and becomes the last known
  state of that investment
- Without one, the last known total/yield is carried forward with no new
  applied capital
- An investment with no snapshot yet is carried at its principal; in its
  purchase month the principal counts as that month's contribution
- Investments purchased after a month are left out of it
"""

import logging
from collections import defaultdict
from dataclasses import asdict, dataclass
from datetime import date
from typing import Dict, Iterable, List, Sequence

import pandas as pd

from valuation_engine.investment import Investment, MonthlySnapshot, calculate_return, month_start

logger = logging.getLogger(__name__)

GRANULARITY_MONTHLY = "monthly"
GRANULARITY_BIMONTHLY = "bimonthly"
GRANULARITY_QUARTERLY = "quarterly"


@dataclass(frozen=True)
class MonthlyAggregate:
    month: date
    total_applied: float
    total_value: float
    total_yield: float


@dataclass(frozen=True)
class PortfolioSummary:
    total_applied: float
    final_value: float
    total_return: float
    return_percentage: float


def enumerate_months(period_start: date, period_end: date) -> List[date]:
    """First day of every calendar month in [period_start, period_end]."""
    if month_start(period_end) < month_start(period_start):
        return []
    periods = pd.period_range(start=month_start(period_start), end=month_start(period_end), freq='M')
    return [p.to_timestamp().date() for p in periods]


def _index_snapshots(snapshots: Iterable[MonthlySnapshot]) -> Dict[str, Dict[date, MonthlySnapshot]]:
    indexed: Dict[str, Dict[date, MonthlySnapshot]] = defaultdict(dict)
    for snapshot in snapshots:
        indexed[snapshot.investment_id][snapshot.month_date] = snapshot
    return indexed


def aggregate(investments: Sequence[Investment], snapshots: Iterable[MonthlySnapshot],
              period_start: date, period_end: date) -> List[MonthlyAggregate]:
    """
    Aggregate a portfolio month by month.

    Args:
        investments: Positions to aggregate
        snapshots: Stored monthly snapshots; snapshots before the period only
            seed the carried-forward state
        period_start: First day of the window (any day of the first month)
        period_end: Last day of the window (any day of the last month)

    Returns:
        List[MonthlyAggregate]: One entry per month; total_applied holds only
            the contributions recorded in that month
    """
    months = enumerate_months(period_start, period_end)
    if not months:
        logger.warning(f"Empty aggregation window {period_start} to {period_end}")
        return []

    by_investment = _index_snapshots(snapshots)

    last_known: Dict[str, MonthlySnapshot] = {}
    for investment in investments:
        prior = [s for m, s in by_investment[investment.id].items() if m < months[0]]
        if prior:
            last_known[investment.id] = max(prior, key=lambda s: s.month_date)

    series = []
    for month in months:
        applied = value = yield_total = 0.0

        for investment in investments:
            purchase_month = month_start(investment.purchase_date)
            if purchase_month > month:
                continue

            snapshot = by_investment[investment.id].get(month)
            if snapshot is not None:
                applied += snapshot.applied_value
                value += snapshot.total_value
                yield_total += snapshot.yield_value
                last_known[investment.id] = snapshot
            elif investment.id in last_known:
                carried = last_known[investment.id]
                value += carried.total_value
                yield_total += carried.yield_value
            elif purchase_month == month:
                applied += investment.principal
                value += investment.principal
            else:
                value += investment.principal

        series.append(MonthlyAggregate(month, applied, value, yield_total))

    logger.debug(f"Aggregated {len(investments)} investments over {len(months)} months")
    return series


def summarize(series: Sequence[MonthlyAggregate]) -> PortfolioSummary:
    """
    Headline statistics of an aggregated window.

    Total applied is the contribution flow over the whole window; the return
    is the last month's value minus it.
    """
    if not series:
        return PortfolioSummary(0.0, 0.0, 0.0, 0.0)
    total_applied = sum(m.total_applied for m in series)
    final_value = series[-1].total_value
    total_return, percentage = calculate_return(total_applied, final_value)
    return PortfolioSummary(total_applied, final_value, total_return, percentage)


def to_frame(series: Sequence[MonthlyAggregate]) -> pd.DataFrame:
    """Series as a DataFrame indexed by month, for charting."""
    df = pd.DataFrame([asdict(m) for m in series],
                      columns=['month', 'total_applied', 'total_value', 'total_yield'])
    df['month'] = pd.to_datetime(df['month'])
    return df.set_index('month')


def chart_granularity(start: date, end: date) -> str:
    """Monthly up to 12 months, bimonthly up to 3 years, quarterly beyond."""
    months = (end.year - start.year) * 12 + (end.month - start.month)
    if end.day < start.day:
        months -= 1
    if months <= 12:
        return GRANULARITY_MONTHLY
    if months // 12 <= 3:
        return GRANULARITY_BIMONTHLY
    return GRANULARITY_QUARTERLY


def resample_for_chart(series: Sequence[MonthlyAggregate], granularity: str) -> pd.DataFrame:
    """
    Group a monthly series into chart buckets.

    Applied capital is summed within a bucket; value and yield take the last
    month of the bucket.
    """
    df = to_frame(series)
    if granularity == GRANULARITY_MONTHLY or df.empty:
        return df

    rules = {GRANULARITY_BIMONTHLY: '2MS', GRANULARITY_QUARTERLY: 'QS'}
    if granularity not in rules:
        raise ValueError(f"Unknown granularity '{granularity}'")

    return df.resample(rules[granularity]).agg({
        'total_applied': 'sum',
        'total_value': 'last',
        'total_yield': 'last',
    }).dropna()


def portfolio_composition(investments: Sequence[Investment]) -> pd.DataFrame:
    """
    Current value per category and its share of the portfolio.

    Returns:
        pd.DataFrame: Columns category, label, value, percentage, sorted by value
    """
    columns = ['category', 'label', 'value', 'percentage']
    if not investments:
        return pd.DataFrame(columns=columns)

    df = pd.DataFrame({
        'category': [inv.category_info.key for inv in investments],
        'label': [inv.category_info.label for inv in investments],
        'value': [inv.current_value for inv in investments],
    })
    grouped = df.groupby(['category', 'label'], as_index=False)['value'].sum()
    total = grouped['value'].sum()
    grouped['percentage'] = grouped['value'] / total * 100 if total > 0 else 0.0
    return grouped.sort_values('value', ascending=False).reset_index(drop=True)[columns]


def investment_ranking(investments: Sequence[Investment], key: str = 'balance',
                       descending: bool = True) -> pd.DataFrame:
    """
    Rank investments by balance, return value or return percentage.

    Args:
        investments: Positions to rank
        key: 'balance', 'return_value' or 'return_percentage'
        descending: Sort order
    """
    columns = ['id', 'name', 'balance', 'return_value', 'return_percentage']
    if key not in columns[2:]:
        raise ValueError(f"Cannot rank by '{key}'")

    rows = []
    for inv in investments:
        return_value, return_percentage = calculate_return(inv.principal, inv.current_value)
        rows.append({
            'id': inv.id,
            'name': inv.name or 'Investimento',
            'balance': inv.current_value,
            'return_value': return_value,
            'return_percentage': return_percentage,
        })
    df = pd.DataFrame(rows, columns=columns)
    return df.sort_values(key, ascending=not descending).reset_index(drop=True)
