"""
Yield Resolution

Turns a yield configuration into the effective annual rate for a date:

- Fixed: the configured rate, index inputs ignored
- Index: index rate * percent_of_index / 100
- Index + spread: index rate + spread (percent_of_index ignored)

A missing index observation resolves to a base rate of 0. The result is
flagged and a warning is logged so the degradation is visible.
"""

import logging
from dataclasses import dataclass
from datetime import date
from typing import Mapping, Optional

from market_data.rate_series import IndexKind, RateSeries
from valuation_engine.yield_config import FixedYield, IndexPlusSpread, IndexYield, YieldConfig

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ResolvedRate:
    """Effective annual rate plus the index rate it was derived from."""
    annual_rate: float
    base_rate: float = 0.0
    missing: bool = False


def apply_index(config: YieldConfig, base_rate: float) -> float:
    """
    Effective annual percent for a given index rate.

    Args:
        config: Yield configuration
        base_rate: Annual percent of the configured index (ignored for fixed)

    Returns:
        float: Effective annual percent
    """
    if isinstance(config, FixedYield):
        return config.rate
    if isinstance(config, IndexPlusSpread):
        return base_rate + config.spread
    if isinstance(config, IndexYield):
        return base_rate * config.percent_of_index / 100
    raise TypeError(f"Unsupported yield configuration: {config!r}")


def resolve(config: YieldConfig, as_of: date,
            rate_series: Optional[RateSeries] = None,
            current_rates: Optional[Mapping[IndexKind, float]] = None) -> ResolvedRate:
    """
    Resolve the effective annual rate of a yield configuration on a date.

    The index rate comes from `rate_series` (last observation on or before
    `as_of`) when given, otherwise from the `current_rates` snapshot.

    Args:
        config: Yield configuration
        as_of: Reference date
        rate_series: Historical series of the configured index
        current_rates: Latest known rate per index

    Returns:
        ResolvedRate: Effective rate; missing=True when no index rate was found
    """
    if isinstance(config, FixedYield):
        return ResolvedRate(config.rate)

    base: Optional[float] = None
    if rate_series is not None:
        base = rate_series.rate_as_of(as_of)
    elif current_rates is not None:
        base = current_rates.get(config.kind)

    if base is None:
        logger.warning(f"No {config.kind.value} rate available as of {as_of}; using 0%")
        return ResolvedRate(apply_index(config, 0.0), 0.0, missing=True)

    return ResolvedRate(apply_index(config, base), base)
