#!/usr/bin/env python3
"""
Download and cache Banco Central SGS index rates (SELIC, CDI, IPCA).

The cached series are annual percentages, ready to be used as rate history
by the valuation engine.

Usage:
    python scripts/download_rate_series.py [--start-date DD/MM/YYYY] [--end-date DD/MM/YYYY] [--index INDEX]

Examples:
    # Download every index for the last year
    python scripts/download_rate_series.py

    # Download CDI for a custom date range
    python scripts/download_rate_series.py --index cdi --start-date 01/01/2023 --end-date 31/12/2023
"""

import argparse
import logging
import os
import sys
from datetime import datetime, timedelta

sys.path.append(os.path.join(os.path.dirname(__file__), '..'))

from market_data.rate_series import IndexKind
from market_data.sgs_rate_loader import SGSRateLoader
from valuation_engine.config import DEFAULT_CONFIG_PATH, load_settings


def setup_logging(level=logging.INFO):
    """Set up logging configuration."""
    os.makedirs('logs', exist_ok=True)
    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[
            logging.StreamHandler(sys.stdout),
            logging.FileHandler('logs/rate_download.log')
        ]
    )


def parse_arguments(argv=None):
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description='Download and cache Banco Central SGS index rates',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python scripts/download_rate_series.py
  python scripts/download_rate_series.py --index cdi --start-date 01/01/2023 --end-date 31/12/2023
        """
    )
    parser.add_argument('--start-date', type=str, help='Start date in format DD/MM/YYYY (default: 1 year ago)')
    parser.add_argument('--end-date', type=str, help='End date in format DD/MM/YYYY (default: today)')
    parser.add_argument('--index', choices=[k.value for k in IndexKind],
                        help='Single index to download (default: all)')
    parser.add_argument('--config', default=DEFAULT_CONFIG_PATH, help='Settings file')
    parser.add_argument('--no-cache', action='store_true', help='Force fresh download (ignore cached data)')
    parser.add_argument('--no-save', action='store_true', help='Do not save processed data to files')
    parser.add_argument('--verbose', action='store_true', help='Enable verbose logging')
    return parser.parse_args(argv)


def validate_date_format(date_str):
    """Validate date format DD/MM/YYYY."""
    try:
        datetime.strptime(date_str, '%d/%m/%Y')
        return True
    except ValueError:
        return False


def get_default_dates():
    """Get default start and end dates (last year to today)."""
    end_date = datetime.now()
    start_date = end_date - timedelta(days=365)
    return start_date.strftime('%d/%m/%Y'), end_date.strftime('%d/%m/%Y')


def download_index(loader, kind, start_date, end_date, use_cache, save_processed):
    """Download one index and print a short summary."""
    print(f"\nProcessing {kind.value.upper()} from {start_date} to {end_date}")

    data = loader.get_series_data(kind, start_date, end_date, use_cache=use_cache, save_processed=save_processed)
    if data is None or data.empty:
        print(f"✗ Failed to process {kind.value}")
        return False

    print(f"✓ Successfully processed {len(data)} data points")
    print(f"  Date range: {data.index.min():%Y-%m-%d} to {data.index.max():%Y-%m-%d}")
    print(f"  Annual rate range: {data['valor'].min():.4f}% to {data['valor'].max():.4f}%")
    print(data.tail().to_string())
    return True


def main(argv=None):
    """Main function."""
    args = parse_arguments(argv)
    setup_logging(logging.DEBUG if args.verbose else logging.INFO)

    if args.start_date and args.end_date:
        if not validate_date_format(args.start_date) or not validate_date_format(args.end_date):
            print("Error: Invalid date format. Use DD/MM/YYYY")
            return 1
        start_date, end_date = args.start_date, args.end_date
    else:
        start_date, end_date = get_default_dates()

    loader = SGSRateLoader(config=load_settings(args.config))

    kinds = [IndexKind.validate(args.index)] if args.index else list(loader.series_by_kind)
    results = {
        kind: download_index(loader, kind, start_date, end_date, not args.no_cache, not args.no_save)
        for kind in kinds
    }

    print("\nDownload Summary:")
    for kind, ok in results.items():
        print(f"  {kind.value:<6} {'✓ Success' if ok else '✗ Failed'}")

    if not any(results.values()):
        print("No data was successfully downloaded")
        return 1

    if not args.no_save:
        print("\nAvailable processed files:")
        for name in loader.get_available_processed_files():
            print(f"  {name}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
