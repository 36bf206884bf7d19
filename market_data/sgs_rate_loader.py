"""
Banco Central SGS Rate Loader

This module provides functionality to:
- Retrieve historical index rates from the Banco Central SGS API
- Convert the published values into annual percentages
- Apply Last Observation Carried Forward (LOCF) normalization on B3 days
- Cache processed series on disk
- Serve the data as a RateSeriesProvider for the valuation engine

SGS Series Supported:
- 432: Selic target rate (annual %)
- 12: CDI daily rate (daily %, annualized over 252 business days)
- 433: IPCA monthly inflation (monthly %, accumulated over 12 months)
"""

import json
import logging
from datetime import date, datetime, timedelta
from pathlib import Path
from typing import Any, Dict, List, Optional

import numpy as np
import pandas as pd
import pandas_market_calendars as mcal
import requests

from market_data.rate_series import IndexKind, RateSeries, RateSeriesProvider, to_date

logger = logging.getLogger(__name__)

DEFAULT_SERIES = {
    432: IndexKind.SELIC.value,
    12: IndexKind.CDI.value,
    433: IndexKind.IPCA.value,
}


def annualize_daily_rate(valor: float, business_days: int = 252) -> float:
    """
    Annual percent equivalent of a daily SGS rate.

    Series 12 always publishes a daily percent (0.043739 means 0.043739% a.d.),
    including the low-rate years where it is below 0.01.
    """
    return ((1 + valor / 100) ** business_days - 1) * 100


def accumulate_monthly_rates(monthly: pd.Series, months: int = 12) -> pd.Series:
    """
    Rolling accumulated annual percent from monthly percent values.

    Args:
        monthly (pd.Series): Monthly rates in percent, indexed by date
        months (int): Accumulation window

    Returns:
        pd.Series: Accumulated percent, indexed by the first day of each month.
            The first `months - 1` points are dropped.
    """
    factors = 1 + monthly.sort_index() / 100
    accumulated = (factors.rolling(months).apply(np.prod, raw=True) - 1) * 100
    accumulated = accumulated.dropna()
    accumulated.index = accumulated.index.to_period('M').to_timestamp()
    return accumulated


class SGSRateLoader(RateSeriesProvider):
    """
    Rate provider backed by the Banco Central SGS API.

    This class handles:
    - Fetching series from the SGS API
    - Converting values into annual percentages per index
    - LOCF normalization on the B3 calendar and data quality checks
    - Disk caching of processed series
    """

    def __init__(self, data_path: str = None, config: Optional[Dict] = None):
        """
        Initialize the SGS Rate Loader.

        Args:
            data_path (str): Path to the cache directory (overrides config)
            config (Optional[Dict]): Settings dictionary (see config/settings.yaml)
        """
        self.config = config or {}
        sgs_config = self.config.get('sgs', {})

        processing_config = sgs_config.get('processing', {})
        self.data_path = Path(data_path or processing_config.get('data_path', 'data/sgs'))
        self.data_path.mkdir(parents=True, exist_ok=True)

        configured_series = sgs_config.get('series') or DEFAULT_SERIES
        self.sgs_series: Dict[int, IndexKind] = {
            int(series_id): IndexKind.validate(kind) for series_id, kind in configured_series.items()
        }
        self.series_by_kind: Dict[IndexKind, int] = {kind: sid for sid, kind in self.sgs_series.items()}

        api_config = sgs_config.get('api', {})
        self.base_url = api_config.get('base_url', "https://api.bcb.gov.br/dados/serie/bcdata.sgs")
        self.timeout = api_config.get('timeout', 30)
        self.user_agent = api_config.get('user_agent', 'wealth_valuation/1.0')

        self.cache_enabled = processing_config.get('cache_enabled', True)
        self.save_processed = processing_config.get('save_processed', True)
        self.cache_format = processing_config.get('cache_format', 'csv')
        self.lookback_days = processing_config.get('lookback_days', 45)

        validation_config = sgs_config.get('validation', {})
        self.enable_quality_checks = validation_config.get('enable_quality_checks', True)
        self.interest_rate_range = validation_config.get('interest_rate_range', [0, 100])
        self.inflation_range = validation_config.get('inflation_range', [-50, 100])
        self.min_data_points = validation_config.get('min_data_points', 1)

        self.trading_days_per_year = self.config.get('market', {}).get('trading_days_per_year', 252)

        self.session = requests.Session()
        self.session.headers.update({'User-Agent': self.user_agent})

        logger.info(f"SGSRateLoader initialized with data_path: {self.data_path}")
        logger.info(f"Configured series: {list(self.sgs_series.keys())}")

    def fetch_series_data(self, series_id: int, start_date: str, end_date: str) -> Optional[pd.DataFrame]:
        """
        Fetch raw data for a given SGS series between start_date and end_date.

        Args:
            series_id (int): SGS series identifier
            start_date (str): Start date in format 'dd/mm/yyyy'
            end_date (str): End date in format 'dd/mm/yyyy'

        Returns:
            Optional[pd.DataFrame]: DataFrame indexed by date with a 'valor' column, or None
        """
        if series_id not in self.sgs_series:
            logger.error(f"Invalid series_id: {series_id}. Valid series: {list(self.sgs_series.keys())}")
            return None

        url = f"{self.base_url}.{series_id}/dados"
        params = {
            "formato": "json",
            "dataInicial": start_date,
            "dataFinal": end_date
        }
        logger.info(f"Fetching SGS series {series_id} ({self.sgs_series[series_id].value}) from {start_date} to {end_date}")
        return self._request_frame(url, params, series_id)

    def fetch_latest(self, series_id: int, count: int = 1) -> Optional[pd.DataFrame]:
        """Fetch the last `count` published values of a series."""
        if series_id not in self.sgs_series:
            logger.error(f"Invalid series_id: {series_id}. Valid series: {list(self.sgs_series.keys())}")
            return None

        url = f"{self.base_url}.{series_id}/dados/ultimos/{count}"
        logger.info(f"Fetching last {count} values of SGS series {series_id}")
        return self._request_frame(url, {"formato": "json"}, series_id)

    def _request_frame(self, url: str, params: Dict[str, str], series_id: int) -> Optional[pd.DataFrame]:
        try:
            response = self.session.get(url, params=params, timeout=self.timeout)
            response.raise_for_status()

            data = response.json()

            if not data:
                logger.warning(f"No data returned for series {series_id}")
                return None

            df = pd.DataFrame(data)
            df['data'] = pd.to_datetime(df['data'], dayfirst=True)
            df.set_index('data', inplace=True)
            df['valor'] = pd.to_numeric(df['valor'], errors='coerce')
            df = df.dropna().sort_index()

            logger.info(f"Successfully fetched {len(df)} data points for series {series_id}")
            return df

        except requests.exceptions.RequestException as e:
            logger.error(f"HTTP error fetching series {series_id}: {e}")
            return None
        except (ValueError, KeyError) as e:
            logger.error(f"Malformed payload for series {series_id}: {e}")
            return None

    def to_annual_rates(self, df: Optional[pd.DataFrame], kind: IndexKind) -> pd.DataFrame:
        """
        Convert raw SGS values into annual percentages.

        Args:
            df (pd.DataFrame): Raw frame with a 'valor' column
            kind (IndexKind): Index the frame belongs to

        Returns:
            pd.DataFrame: Frame with annual percent in 'valor'
        """
        if df is None or df.empty:
            return pd.DataFrame(columns=['valor'])

        if kind == IndexKind.CDI:
            annual = df['valor'].apply(annualize_daily_rate, business_days=self.trading_days_per_year)
        elif kind == IndexKind.IPCA:
            annual = accumulate_monthly_rates(df['valor'])
        else:
            annual = df['valor']

        result = annual.to_frame('valor')
        result.index.name = 'data'
        return result

    def normalize_data_locf(self, df: pd.DataFrame, start_date: str, end_date: str) -> pd.DataFrame:
        """
        Normalize the DataFrame by applying Last Observation Carried Forward (LOCF)
        to fill missing dates, using the B3 (BVMF) trading calendar.

        Args:
            df (pd.DataFrame): Original DataFrame with date index
            start_date (str): Start date for normalization (dd/mm/yyyy)
            end_date (str): End date for normalization (dd/mm/yyyy)

        Returns:
            pd.DataFrame: DataFrame reindexed with B3 trading days and LOCF applied
        """
        if df is None or df.empty:
            logger.warning("Empty DataFrame provided for normalization")
            return pd.DataFrame()

        start_dt = pd.to_datetime(start_date, dayfirst=True)
        end_dt = pd.to_datetime(end_date, dayfirst=True)

        b3 = mcal.get_calendar('BVMF')
        schedule = b3.schedule(start_date=start_dt, end_date=end_dt)
        date_range = schedule.index

        # Observations before the window must be able to carry forward into it
        df_normalized = df.reindex(df.index.union(date_range)).sort_index()
        df_normalized['valor'] = df_normalized['valor'].ffill()
        df_normalized = df_normalized.reindex(date_range)

        # Backward fill for any remaining NaN values at the beginning
        df_normalized['valor'] = df_normalized['valor'].bfill()

        logger.info(f"Applied LOCF normalization (B3 calendar). Original: {len(df)} rows, Normalized: {len(df_normalized)} rows")
        return df_normalized

    def validate_data_quality(self, df: pd.DataFrame, kind: IndexKind) -> bool:
        """
        Validate data quality for an annualized series.

        Args:
            df (pd.DataFrame): DataFrame to validate
            kind (IndexKind): Index the frame belongs to

        Returns:
            bool: True if data quality is acceptable
        """
        if not self.enable_quality_checks:
            return True

        if df is None or df.empty:
            logger.error("DataFrame is None or empty")
            return False

        missing_count = df['valor'].isna().sum()
        if missing_count > 0:
            logger.warning(f"Found {missing_count} missing values in {kind.value} series")

        low, high = self.inflation_range if kind == IndexKind.IPCA else self.interest_rate_range
        extreme_values = df[(df['valor'] < low) | (df['valor'] > high)]
        if len(extreme_values) > 0:
            logger.warning(f"Found {len(extreme_values)} extreme values in {kind.value} series")

        if len(df) < self.min_data_points:
            logger.warning(f"Very few data points ({len(df)}) for {kind.value} series")

        return True

    def _cache_file(self, series_id: int, start_date: str, end_date: str) -> Path:
        start_str = start_date.replace('/', '')
        end_str = end_date.replace('/', '')
        suffix = '.parquet' if self.cache_format == 'parquet' else '.csv'
        return self.data_path / f"sgs_{series_id}_{start_str}_{end_str}{suffix}"

    def save_processed_data(self, df: pd.DataFrame, series_id: int, start_date: str, end_date: str) -> bool:
        """
        Save an annualized series and its metadata.

        Returns:
            bool: True if saved successfully
        """
        filepath = self._cache_file(series_id, start_date, end_date)
        try:
            if self.cache_format == 'parquet':
                df.to_parquet(filepath, engine='pyarrow')
            else:
                df.to_csv(filepath, float_format='%.8f')

            metadata = {
                'series_id': series_id,
                'rate_type': self.sgs_series[series_id].value,
                'start_date': start_date,
                'end_date': end_date,
                'data_points': len(df),
                'processing_date': datetime.now().isoformat(),
                'unit': 'annual_percent'
            }
            with open(filepath.with_suffix('.json'), 'w') as f:
                json.dump(metadata, f, indent=2)

            logger.info(f"Saved processed data to {filepath}")
            return True

        except (OSError, ValueError, ImportError) as e:
            logger.error(f"Error saving processed data: {e}")
            return False

    def load_processed_data(self, series_id: int, start_date: str, end_date: str) -> Optional[pd.DataFrame]:
        """Load a previously processed series if available."""
        filepath = self._cache_file(series_id, start_date, end_date)
        if not filepath.exists():
            return None
        try:
            if self.cache_format == 'parquet':
                df = pd.read_parquet(filepath, engine='pyarrow')
            else:
                df = pd.read_csv(filepath, index_col=0, parse_dates=True)
            logger.info(f"Loaded cached data for series {series_id}")
            return df
        except (OSError, ValueError, ImportError) as e:
            logger.error(f"Error loading processed data: {e}")
            return None

    def get_series_data(self, kind: Any, start_date: str, end_date: str,
                        use_cache: bool = None, save_processed: bool = None) -> Optional[pd.DataFrame]:
        """
        Main method to get an annualized series with caching.

        Args:
            kind: Index kind
            start_date (str): Start date in format 'dd/mm/yyyy'
            end_date (str): End date in format 'dd/mm/yyyy'
            use_cache (bool): Whether to use cached data if available (overrides config)
            save_processed (bool): Whether to save processed data (overrides config)

        Returns:
            Optional[pd.DataFrame]: Annual percent per reference date, or None
        """
        kind = IndexKind.validate(kind)
        series_id = self.series_by_kind.get(kind)
        if series_id is None:
            logger.error(f"No SGS series configured for {kind.value}")
            return None

        use_cache = self.cache_enabled if use_cache is None else use_cache
        save_processed = self.save_processed if save_processed is None else save_processed

        if use_cache:
            cached_data = self.load_processed_data(series_id, start_date, end_date)
            if cached_data is not None:
                return cached_data

        raw_data = self.fetch_series_data(series_id, start_date, end_date)
        if raw_data is None:
            return None

        annual = self.to_annual_rates(raw_data, kind)

        if not self.validate_data_quality(annual, kind):
            logger.warning(f"Data quality validation failed for {kind.value}")

        if save_processed and not annual.empty:
            self.save_processed_data(annual, series_id, start_date, end_date)

        return annual

    def get_daily_rates(self, kind: Any, start: date, end: date) -> pd.DataFrame:
        """Annual rates on every B3 trading day of [start, end], for evolution charts."""
        start_str = to_date(start).strftime('%d/%m/%Y')
        end_str = to_date(end).strftime('%d/%m/%Y')
        annual = self.get_series_data(kind, self._fetch_start(kind, start).strftime('%d/%m/%Y'), end_str)
        return self.normalize_data_locf(annual, start_str, end_str)

    def _fetch_start(self, kind: Any, start: date) -> date:
        # IPCA needs 12 prior months to accumulate the first point
        extra = 400 if IndexKind.validate(kind) == IndexKind.IPCA else self.lookback_days
        return to_date(start) - timedelta(days=extra)

    def get_series(self, kind: IndexKind, start: date, end: date) -> RateSeries:
        """
        Observations relevant to a holding period, as a RateSeries.

        Fetch failures produce an empty series.
        """
        kind = IndexKind.validate(kind)
        fetch_start = self._fetch_start(kind, start).strftime('%d/%m/%Y')
        annual = self.get_series_data(kind, fetch_start, to_date(end).strftime('%d/%m/%Y'))
        if annual is None or annual.empty:
            logger.warning(f"No {kind.value} history available for {start} to {end}")
            return RateSeries(kind)
        return RateSeries.from_frame(kind, annual).history_for(start, end)

    def current_rates(self) -> Dict[IndexKind, float]:
        """Latest annual rate per configured index; indices that fail to load are omitted."""
        rates: Dict[IndexKind, float] = {}
        for series_id, kind in self.sgs_series.items():
            count = 12 if kind == IndexKind.IPCA else 1
            raw = self.fetch_latest(series_id, count)
            annual = self.to_annual_rates(raw, kind)
            if annual.empty:
                logger.warning(f"Current {kind.value} rate unavailable")
                continue
            rates[kind] = float(annual['valor'].iloc[-1])
        return rates

    def get_available_processed_files(self) -> List[str]:
        """List cached series files."""
        return sorted(f.name for f in self.data_path.glob("sgs_*") if f.suffix != '.json')
