"""
Yield configuration of an investment.

Stored rows describe yield with a string type ("fixed", "cdi", "cdi_plus", ...)
and a single numeric rate whose meaning depends on the type. This module turns
them into one of three explicit variants:

- FixedYield: absolute annual rate
- IndexYield: percent of an index (e.g. 110% of CDI)
- IndexPlusSpread: index plus a spread in percentage points (e.g. IPCA + 6)
"""

from dataclasses import dataclass
from typing import Optional, Union

from market_data.rate_series import IndexKind

PLUS_SUFFIX = "_plus"
FIXED = "fixed"


@dataclass(frozen=True)
class FixedYield:
    rate: float

    @property
    def yield_type(self) -> str:
        return FIXED


@dataclass(frozen=True)
class IndexYield:
    kind: IndexKind
    percent_of_index: float = 100.0

    @property
    def yield_type(self) -> str:
        return self.kind.value


@dataclass(frozen=True)
class IndexPlusSpread:
    kind: IndexKind
    spread: float

    @property
    def yield_type(self) -> str:
        return f"{self.kind.value}{PLUS_SUFFIX}"


YieldConfig = Union[FixedYield, IndexYield, IndexPlusSpread]


def to_simple_yield_type(yield_type: str) -> str:
    """Strip the '_plus' suffix: 'cdi_plus' -> 'cdi'."""
    if yield_type.endswith(PLUS_SUFFIX):
        return yield_type[:-len(PLUS_SUFFIX)]
    return yield_type


def parse_yield_config(yield_type: Optional[str], yield_rate: Optional[float],
                       percent_of_index: Optional[float] = None,
                       spread: Optional[float] = None) -> YieldConfig:
    """
    Build a yield configuration from stored fields.

    Args:
        yield_type: 'fixed', 'cdi', 'selic', 'ipca' or an index with '_plus'
        yield_rate: Absolute rate (fixed), percent of index (indexed) or
            spread ('_plus'), as stored on the investment row
        percent_of_index: Explicit percent of index, takes precedence over yield_rate
        spread: Explicit spread, takes precedence over yield_rate

    Returns:
        YieldConfig: Parsed configuration

    Raises:
        ValueError: If the yield type is unknown
    """
    normalized = (yield_type or FIXED).strip().lower()

    if normalized == FIXED:
        return FixedYield(float(yield_rate or 0.0))

    kind = IndexKind.validate(to_simple_yield_type(normalized))

    if normalized.endswith(PLUS_SUFFIX):
        value = spread if spread is not None else yield_rate
        return IndexPlusSpread(kind, float(value or 0.0))

    value = percent_of_index if percent_of_index is not None else yield_rate
    # An unset or zero multiplier means the plain index
    return IndexYield(kind, float(value) if value else 100.0)
