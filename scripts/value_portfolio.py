#!/usr/bin/env python3
"""
Value a portfolio file and print the investment dashboard numbers.

The portfolio file is YAML with the rows the application stores:
investments, monthly snapshots, optional rate observations and bank
balances (see config/portfolio.example.yaml).

Usage:
    python scripts/value_portfolio.py PORTFOLIO [--as-of YYYY-MM-DD] [--fetch-rates]

Examples:
    # Value with the rate observations stored in the file
    python scripts/value_portfolio.py config/portfolio.example.yaml --as-of 2024-12-31

    # Value with history downloaded from Banco Central SGS
    python scripts/value_portfolio.py config/portfolio.example.yaml --fetch-rates
"""

import argparse
import logging
import os
import sys
from datetime import date

import yaml

sys.path.append(os.path.join(os.path.dirname(__file__), '..'))

from market_data.rate_series import InMemoryRateProvider, to_date
from market_data.sgs_rate_loader import SGSRateLoader
from valuation_engine.aggregation import aggregate, summarize, to_frame
from valuation_engine.config import DEFAULT_CONFIG_PATH, load_settings, today_in_market_timezone
from valuation_engine.investment import Investment, MonthlySnapshot
from valuation_engine.metrics import financial_independence_series
from valuation_engine.movements import apply_valuation
from valuation_engine.patrimony import net_worth_summary
from valuation_engine.valuation import RetroactiveValuator

logger = logging.getLogger(__name__)


def setup_logging(level=logging.INFO):
    """Set up logging configuration."""
    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[logging.StreamHandler(sys.stderr)]
    )


def parse_arguments(argv=None):
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(description='Value a portfolio file')
    parser.add_argument('portfolio', help='Portfolio YAML file')
    parser.add_argument('--as-of', type=str, help='Valuation date YYYY-MM-DD (default: today in market timezone)')
    parser.add_argument('--start', type=str, help='First month of the aggregation window (default: first purchase)')
    parser.add_argument('--end', type=str, help='Last month of the aggregation window (default: valuation date)')
    parser.add_argument('--fetch-rates', action='store_true', help='Download rate history from Banco Central SGS')
    parser.add_argument('--config', default=DEFAULT_CONFIG_PATH, help='Settings file')
    parser.add_argument('--verbose', action='store_true', help='Enable verbose logging')
    return parser.parse_args(argv)


def load_portfolio(path):
    """Read the portfolio YAML file."""
    with open(path, 'r', encoding='utf-8') as f:
        data = yaml.safe_load(f) or {}
    return {
        'investments': [Investment.from_record(row) for row in data.get('investments', [])],
        'snapshots': [MonthlySnapshot.from_record(row) for row in data.get('snapshots', [])],
        'rates': data.get('rates', []),
        'bank_balances': [float(b) for b in data.get('bank_balances', [])],
        'financial_independence_goal': data.get('financial_independence_goal'),
    }


def main(argv=None):
    """Main function."""
    args = parse_arguments(argv)
    setup_logging(logging.DEBUG if args.verbose else logging.INFO)

    settings = load_settings(args.config)
    today = to_date(args.as_of) if args.as_of else today_in_market_timezone(settings)

    try:
        portfolio = load_portfolio(args.portfolio)
    except (OSError, yaml.YAMLError, KeyError, ValueError) as e:
        print(f"Error reading portfolio {args.portfolio}: {e}")
        return 1

    investments = portfolio['investments']
    if not investments:
        print("Portfolio has no investments")
        return 1

    if args.fetch_rates:
        provider = SGSRateLoader(config=settings)
    else:
        provider = InMemoryRateProvider.from_records(portfolio['rates'])

    valuator = RetroactiveValuator.from_config(provider, settings)
    results = valuator.value_portfolio(investments, today)
    valued = [apply_valuation(inv, result) for inv, result in zip(investments, results)]

    print(f"\nValuation as of {today.isoformat()}")
    print(f"{'Investment':<28} {'Principal':>12} {'Value':>12} {'Strategy':<28}")
    print("-" * 84)
    for inv, result in zip(investments, results):
        flag = " (no rate)" if result.missing_rate else ""
        print(f"{inv.name[:28]:<28} {inv.principal:>12.2f} {result.value:>12.2f} {result.strategy.value + flag:<28}")

    start = to_date(args.start) if args.start else min(inv.purchase_date for inv in investments)
    end = to_date(args.end) if args.end else today
    series = aggregate(valued, portfolio['snapshots'], start, end)
    summary = summarize(series)

    goal = portfolio['financial_independence_goal']
    if goal is None:
        goal = settings['portfolio']['financial_independence_goal']

    frame = to_frame(series)
    frame['independence_pct'] = [ratio for _, ratio in financial_independence_series(series, goal)]
    print(f"\nMonthly evolution {start.isoformat()} to {end.isoformat()}")
    print(frame.to_string(float_format=lambda v: f"{v:,.2f}"))

    print("\nSummary")
    print(f"  Total applied:   {summary.total_applied:,.2f}")
    print(f"  Final value:     {summary.final_value:,.2f}")
    print(f"  Return:          {summary.total_return:,.2f} ({summary.return_percentage:.2f}%)")

    worth = net_worth_summary(portfolio['bank_balances'], valued)
    print(f"  Net worth:       {worth.net_worth:,.2f}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
