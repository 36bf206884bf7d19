"""
Investment data model.

Plain dataclasses mirroring the stored rows the engine consumes:
- Investment: principal, current value and yield configuration
- MonthlySnapshot: applied/total/yield value of one investment in one month
"""

import math
from dataclasses import dataclass
from datetime import date
from typing import Any, Mapping, Optional, Tuple

from market_data.rate_series import to_date
from valuation_engine.categories import InvestmentCategory, get_category
from valuation_engine.yield_config import YieldConfig, parse_yield_config

LIQUIDITY_DAILY = "daily"
LIQUIDITY_AT_MATURITY = "at_maturity"

# Spellings used by older rows
_LIQUIDITY_ALIASES = {
    "diaria": LIQUIDITY_DAILY,
    "vencimento": LIQUIDITY_AT_MATURITY,
}


def month_start(value: Any) -> date:
    """First day of the month containing value."""
    d = to_date(value)
    return d.replace(day=1)


def calculate_return(initial: float, current: float) -> Tuple[float, float]:
    """
    Absolute and percentage return.

    Returns:
        Tuple[float, float]: (current - initial, percent of initial); the
            percentage is 0 when initial is 0
    """
    value = current - initial
    percentage = 0.0 if initial == 0 else value / initial * 100
    return value, percentage


def _optional_float(value: Any) -> Optional[float]:
    if value is None:
        return None
    value = float(value)
    return None if math.isnan(value) else value


@dataclass(frozen=True)
class Investment:
    """An investment position as stored by the application."""
    id: str
    name: str
    category: str
    principal: float
    current_value: float
    purchase_date: date
    yield_type: str = "fixed"
    yield_rate: float = 0.0
    percent_of_index: Optional[float] = None
    spread: Optional[float] = None
    liquidity: Optional[str] = None
    maturity_date: Optional[date] = None
    bank_account_id: Optional[str] = None

    @classmethod
    def from_record(cls, row: Mapping[str, Any]) -> "Investment":
        """
        Build an investment from a stored row.

        Accepts 'amount' as the principal column, defaults current_value to the
        principal and yield_type to 'fixed'.
        """
        principal = float(row.get('principal', row.get('amount', 0.0)) or 0.0)
        current_value = row.get('current_value')
        liquidity = row.get('liquidity')
        if liquidity is not None:
            liquidity = _LIQUIDITY_ALIASES.get(liquidity, liquidity)
        maturity = row.get('maturity_date')

        return cls(
            id=str(row['id']),
            name=row.get('name', ''),
            category=row.get('category', row.get('type', 'other')) or 'other',
            principal=principal,
            current_value=float(current_value) if current_value else principal,
            purchase_date=to_date(row['purchase_date']),
            yield_type=row.get('yield_type') or 'fixed',
            yield_rate=float(row.get('yield_rate') or 0.0),
            percent_of_index=_optional_float(row.get('percent_of_index')),
            spread=_optional_float(row.get('spread')),
            liquidity=liquidity,
            maturity_date=to_date(maturity) if maturity else None,
            bank_account_id=row.get('bank_account_id'),
        )

    @property
    def yield_config(self) -> YieldConfig:
        return parse_yield_config(self.yield_type, self.yield_rate, self.percent_of_index, self.spread)

    @property
    def category_info(self) -> InvestmentCategory:
        return get_category(self.category)

    @property
    def supports_formulaic_yield(self) -> bool:
        return self.category_info.supports_formulaic_yield

    @property
    def total_return(self) -> float:
        return self.current_value - self.principal

    @property
    def return_percentage(self) -> float:
        return calculate_return(self.principal, self.current_value)[1]


@dataclass(frozen=True)
class MonthlySnapshot:
    """Stored applied/total value of one investment for one calendar month."""
    investment_id: str
    month_date: date
    applied_value: float
    total_value: float

    def __post_init__(self):
        object.__setattr__(self, 'month_date', month_start(self.month_date))

    @property
    def yield_value(self) -> float:
        return self.total_value - self.applied_value

    @classmethod
    def from_record(cls, row: Mapping[str, Any]) -> "MonthlySnapshot":
        return cls(
            investment_id=str(row['investment_id']),
            month_date=to_date(row['month_date']),
            applied_value=float(row.get('applied_value') or 0.0),
            total_value=float(row.get('total_value') or 0.0),
        )

    def to_record(self) -> dict:
        """Row to upsert, keyed by (investment_id, month_date)."""
        return {
            'investment_id': self.investment_id,
            'month_date': self.month_date.isoformat(),
            'applied_value': self.applied_value,
            'total_value': self.total_value,
            'yield_value': self.yield_value,
        }
