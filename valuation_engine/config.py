"""
Settings loader for the valuation engine.

Settings live in a YAML file (config/settings.yaml by default). A missing or
malformed file is not fatal: defaults are applied and a warning is logged.
"""

import logging
from datetime import date, datetime
from typing import Any, Dict, Optional

import pytz
import yaml

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = "config/settings.yaml"


def _apply_defaults(config: Dict[str, Any]) -> Dict[str, Any]:
    market = config.setdefault('market', {})
    market.setdefault('timezone', 'America/Sao_Paulo')
    market.setdefault('trading_days_per_year', 252)

    valuation = config.setdefault('valuation', {})
    valuation.setdefault('day_count', 365)
    valuation.setdefault('strict_rates', False)

    portfolio = config.setdefault('portfolio', {})
    portfolio.setdefault('financial_independence_goal', 0.0)

    sgs = config.setdefault('sgs', {})
    sgs.setdefault('api', {})
    sgs.setdefault('processing', {})
    sgs.setdefault('validation', {})
    return config


def load_settings(config_path: Optional[str] = DEFAULT_CONFIG_PATH) -> Dict[str, Any]:
    """
    Load configuration from a YAML file.

    Args:
        config_path (str): Path to configuration file. None skips the file.

    Returns:
        Dict[str, Any]: Configuration dictionary with defaults filled in
    """
    config: Dict[str, Any] = {}
    if config_path:
        try:
            with open(config_path, 'r', encoding='utf-8') as f:
                config = yaml.safe_load(f) or {}
            logger.info(f"Configuration loaded from {config_path}")
        except FileNotFoundError:
            logger.warning(f"Configuration file not found: {config_path}, using defaults")
        except yaml.YAMLError as e:
            logger.warning(f"Could not parse config {config_path}: {e}, using defaults")

    if not isinstance(config, dict):
        logger.warning(f"Configuration in {config_path} is not a mapping, using defaults")
        config = {}

    return _apply_defaults(config)


def today_in_market_timezone(config: Dict[str, Any], now: Optional[datetime] = None) -> date:
    """Current date in the configured market timezone."""
    tz = pytz.timezone(config['market']['timezone'])
    if now is None:
        return datetime.now(tz).date()
    if now.tzinfo is None:
        now = pytz.utc.localize(now)
    return now.astimezone(tz).date()
