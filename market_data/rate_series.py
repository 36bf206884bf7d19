"""
Rate Series Data Model

This module provides the point-in-time and historical index rates consumed by
the valuation engine:
- Index kinds supported by variable-yield investments (CDI, SELIC, IPCA)
- Immutable rate observations and ordered rate series
- Last Observation Carried Forward (LOCF) lookups
- A provider interface plus an in-memory implementation

All rates are annual percentages (e.g. 10.65 means 10.65% a.a.).
"""

import logging
from abc import ABC, abstractmethod
from bisect import bisect_right
from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional, Sequence

import pandas as pd

logger = logging.getLogger(__name__)


class RateDataError(Exception):
    """Base exception for rate data issues."""
    pass


class RateDataUnavailableError(RateDataError):
    """Raised when rate data is completely unavailable."""
    pass


class RateSeriesOrderError(RateDataError):
    """Raised when observations of a series are not strictly increasing by date."""
    pass


class IndexKind(Enum):
    """Reference indices used as variable-yield bases."""
    CDI = "cdi"
    SELIC = "selic"
    IPCA = "ipca"

    @classmethod
    def validate(cls, value: Any) -> "IndexKind":
        """
        Normalize an index name into an IndexKind.

        Args:
            value: IndexKind or case-insensitive string ("cdi", "SELIC", ...)

        Returns:
            IndexKind: Matching index kind

        Raises:
            ValueError: If the value is not a known index
        """
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            valid = [e.value for e in cls]
            raise ValueError(f"Invalid index '{value}'. Valid indices: {valid}")


def to_date(value: Any) -> date:
    """Coerce ISO strings, datetimes and pandas timestamps into a date."""
    if isinstance(value, pd.Timestamp):
        return value.date()
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return pd.to_datetime(value).date()


@dataclass(frozen=True)
class RateObservation:
    """One published annual rate for an index on a reference date."""
    rate_type: IndexKind
    reference_date: date
    annual_rate: float


class RateSeries:
    """
    Ordered sequence of observations for a single index.

    Dates are strictly increasing. A period without an observation uses the
    previous observation's rate (LOCF).
    """

    def __init__(self, rate_type: IndexKind, observations: Sequence[RateObservation] = ()):
        self.rate_type = IndexKind.validate(rate_type)
        self._observations: List[RateObservation] = list(observations)

        for obs in self._observations:
            if obs.rate_type != self.rate_type:
                raise RateSeriesOrderError(
                    f"Observation for {obs.rate_type.value} added to {self.rate_type.value} series"
                )
        for previous, current in zip(self._observations, self._observations[1:]):
            if current.reference_date <= previous.reference_date:
                raise RateSeriesOrderError(
                    f"{self.rate_type.value} series dates must be strictly increasing: "
                    f"{previous.reference_date} followed by {current.reference_date}"
                )

        self._dates = [obs.reference_date for obs in self._observations]

    @classmethod
    def from_records(cls, rate_type: Any, rows: Iterable[Mapping[str, Any]]) -> "RateSeries":
        """
        Build a series from stored rows.

        Args:
            rate_type: Index kind of every row
            rows: Mappings with 'reference_date' and 'rate_value' keys, in any order

        Returns:
            RateSeries: Sorted series

        Raises:
            RateSeriesOrderError: If two rows share the same reference date
        """
        kind = IndexKind.validate(rate_type)
        observations = sorted(
            (
                RateObservation(kind, to_date(row['reference_date']), float(row['rate_value']))
                for row in rows
            ),
            key=lambda obs: obs.reference_date,
        )
        return cls(kind, observations)

    @classmethod
    def from_frame(cls, rate_type: Any, df: Optional[pd.DataFrame], column: str = 'valor') -> "RateSeries":
        """Build a series from a DataFrame indexed by date (SGS layout)."""
        kind = IndexKind.validate(rate_type)
        if df is None or df.empty:
            return cls(kind)
        clean = df[column].dropna().sort_index()
        observations = [
            RateObservation(kind, to_date(idx), float(value))
            for idx, value in clean.items()
        ]
        return cls(kind, observations)

    def to_frame(self) -> pd.DataFrame:
        """Return the series as a DataFrame indexed by date with a 'valor' column."""
        index = pd.DatetimeIndex([pd.Timestamp(d) for d in self._dates], name='data')
        return pd.DataFrame({'valor': [obs.annual_rate for obs in self._observations]}, index=index)

    @property
    def observations(self) -> List[RateObservation]:
        return list(self._observations)

    @property
    def is_empty(self) -> bool:
        return not self._observations

    def __len__(self) -> int:
        return len(self._observations)

    def __iter__(self) -> Iterator[RateObservation]:
        return iter(self._observations)

    def __repr__(self) -> str:
        return f"RateSeries({self.rate_type.value}, {len(self)} observations)"

    def latest(self) -> Optional[RateObservation]:
        """Most recent observation, or None for an empty series."""
        return self._observations[-1] if self._observations else None

    def observation_as_of(self, as_of: Any) -> Optional[RateObservation]:
        """Last observation dated on or before as_of."""
        position = bisect_right(self._dates, to_date(as_of))
        if position == 0:
            return None
        return self._observations[position - 1]

    def rate_as_of(self, as_of: Any) -> Optional[float]:
        """
        Annual rate in force on a date (LOCF).

        Returns:
            Optional[float]: Rate of the last observation on/before as_of, or None
        """
        obs = self.observation_as_of(as_of)
        return obs.annual_rate if obs is not None else None

    def between(self, start: Any, end: Any) -> "RateSeries":
        """Sub-series with reference dates in [start, end]."""
        start_d, end_d = to_date(start), to_date(end)
        return RateSeries(
            self.rate_type,
            [obs for obs in self._observations if start_d <= obs.reference_date <= end_d],
        )

    def history_for(self, start: Any, end: Any) -> "RateSeries":
        """
        Observations relevant to a holding period.

        Includes the observation in force on `start` (if any) followed by every
        observation up to `end`.
        """
        start_d, end_d = to_date(start), to_date(end)
        window = [obs for obs in self._observations if start_d < obs.reference_date <= end_d]
        anchor = self.observation_as_of(start_d)
        if anchor is not None:
            window.insert(0, anchor)
        return RateSeries(self.rate_type, window)


class RateSeriesProvider(ABC):
    """Read-only source of historical and current index rates."""

    @abstractmethod
    def get_series(self, kind: IndexKind, start: date, end: date) -> RateSeries:
        """
        Historical observations relevant to [start, end].

        Implementations return an empty series when nothing is available.
        """

    @abstractmethod
    def current_rates(self) -> Dict[IndexKind, float]:
        """Latest known annual rate per index."""


class InMemoryRateProvider(RateSeriesProvider):
    """Provider over observations already loaded in memory."""

    def __init__(self, observations: Iterable[RateObservation] = ()):
        grouped: Dict[IndexKind, List[RateObservation]] = {}
        for obs in observations:
            grouped.setdefault(obs.rate_type, []).append(obs)
        self._series = {
            kind: RateSeries(kind, sorted(items, key=lambda o: o.reference_date))
            for kind, items in grouped.items()
        }
        logger.debug(f"InMemoryRateProvider loaded series: {[k.value for k in self._series]}")

    @classmethod
    def from_records(cls, rows: Iterable[Mapping[str, Any]]) -> "InMemoryRateProvider":
        """Build from rows with 'rate_type', 'reference_date' and 'rate_value' keys."""
        return cls(
            RateObservation(
                IndexKind.validate(row['rate_type']),
                to_date(row['reference_date']),
                float(row['rate_value']),
            )
            for row in rows
        )

    def get_series(self, kind: IndexKind, start: date, end: date) -> RateSeries:
        kind = IndexKind.validate(kind)
        series = self._series.get(kind)
        if series is None:
            return RateSeries(kind)
        return series.history_for(start, end)

    def current_rates(self) -> Dict[IndexKind, float]:
        rates = {}
        for kind, series in self._series.items():
            latest = series.latest()
            if latest is not None:
                rates[kind] = latest.annual_rate
        return rates
