"""
Market data modules for the wealth valuation engine.

This package contains the index rate data model (CDI, SELIC, IPCA) and the
loader that retrieves historical rates from Banco Central do Brasil (BCB).
"""

from market_data.rate_series import (
    IndexKind,
    InMemoryRateProvider,
    RateDataError,
    RateDataUnavailableError,
    RateObservation,
    RateSeries,
    RateSeriesOrderError,
    RateSeriesProvider,
)

__version__ = "1.0.0"
