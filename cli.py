#!/usr/bin/env python3
"""
Main CLI for the ETF premium watcher.
Usage: python cli.py COMMAND [options]
"""

import asyncio
import argparse
import logging
import os
import sys
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

# Add project root to path
project_root = Path(__file__).parent
sys.path.insert(0, str(project_root))

from analysis.models import CalculationMethod, FundProfile
from analysis.premium import export_series_csv, parse_csv_data
from analysis.ranking import build_ranking_rows, find_top_recommendation, sort_ranking_rows, SORT_KEYS
from ingestion.fund_registry import find_profile, POPULAR_ETFS
from pipeline.fund_data_dag import (
    fetch_portfolio,
    fund_run_name,
    run_fund_data,
    FundDataConfig,
    DETAIL_LOOKBACK_DAYS,
    OVERVIEW_LOOKBACK_DAYS
)
from reports.advisory import analyze_premium_trend, MissingCredentialError, CALLER_POINTS
from reports.markdown_report import (
    render_advice,
    render_detail,
    render_overview,
    render_runs,
    DETAIL_RANGES
)
from storage.credential_store import set_stored_api_key, CredentialStoreError
from storage.loaders import get_connection, load_series, replace_series
from storage.run_registry import get_run_status, last_stored_run, list_recent_runs, RunNotFoundError

load_dotenv()

CSV_TICKER = 'CSV'


def main(argv=None):
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description='Premium, RSI and volatility monitor for NASDAQ-100 QDII ETFs',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python cli.py overview --sort premium --asc
  python cli.py detail 513100 --range 90
  python cli.py import-csv ./my_data.csv
  python cli.py advise 159941
  python cli.py runs --ticker 513100
  python cli.py set-key YOUR_GEMINI_KEY
        """
    )
    parser.add_argument('--db-path',
                        help='Path to SQLite database (default: env PREMIUM_WATCH_DB_PATH)')

    subparsers = parser.add_subparsers(dest='command', required=True)

    overview = subparsers.add_parser('overview', help='Rank all tracked funds')
    overview.add_argument('--days', type=int, default=OVERVIEW_LOOKBACK_DAYS,
                          help=f'Price history in trading days (default: {OVERVIEW_LOOKBACK_DAYS})')
    overview.add_argument('--sort', choices=SORT_KEYS, default='score',
                          help='Sort column (default: score)')
    overview.add_argument('--asc', action='store_true', help='Sort ascending')

    detail = subparsers.add_parser('detail', help='Dashboard for one fund')
    detail.add_argument('ticker', help='Fund code (e.g., 513100)')
    detail.add_argument('--days', type=int, default=DETAIL_LOOKBACK_DAYS,
                        help=f'Price history in trading days (default: {DETAIL_LOOKBACK_DAYS})')
    detail.add_argument('--range', type=int, choices=DETAIL_RANGES, default=DETAIL_RANGES[0],
                        dest='range_days', help='Time range for statistics (default: 30)')
    detail.add_argument('--export', help='Write the enriched series to this CSV path')

    import_csv = subparsers.add_parser('import-csv', help='Load a series from CSV')
    import_csv.add_argument('path', help='CSV file: date,price,ref_date,ref_value')
    import_csv.add_argument('--ticker', default=CSV_TICKER,
                            help=f'Store the series under this code (default: {CSV_TICKER})')

    advise = subparsers.add_parser('advise', help='Ask the advisory model about one fund')
    advise.add_argument('ticker', help='Fund code (e.g., 513100)')
    advise.add_argument('--method', choices=[m.value for m in CalculationMethod],
                        default=CalculationMethod.PRECISE_NAV.value,
                        help='Premium calculation method (default: PRECISE_NAV)')

    runs = subparsers.add_parser('runs', help='Show recent fetch runs')
    runs.add_argument('--ticker', help='Only runs for this fund')
    runs.add_argument('--limit', type=int, default=20, help='Maximum runs to list (default: 20)')
    runs.add_argument('--id', type=int, dest='run_id', help='Show a single run')

    set_key = subparsers.add_parser('set-key', help='Store the Gemini API key')
    set_key.add_argument('key', help='Gemini API key')

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=os.getenv('PREMIUM_WATCH_LOG_LEVEL', 'WARNING').upper(),
        format='%(asctime)s %(levelname)s %(name)s: %(message)s'
    )

    conn = get_connection(args.db_path)
    try:
        if args.command == 'overview':
            return show_overview(args.days, args.sort, not args.asc)
        elif args.command == 'detail':
            return show_detail(conn, args.ticker, args.days, args.range_days, args.export)
        elif args.command == 'import-csv':
            return import_csv_file(conn, Path(args.path), args.ticker)
        elif args.command == 'advise':
            return show_advice(conn, args.ticker, CalculationMethod(args.method))
        elif args.command == 'runs':
            return show_runs(conn, args.ticker, args.limit, args.run_id)
        elif args.command == 'set-key':
            return store_key(conn, args.key)
    finally:
        conn.close()


def show_overview(days: int, sort_key: str, descending: bool) -> int:
    """Fetch all tracked funds and print the ranking."""
    datasets = asyncio.run(fetch_portfolio(POPULAR_ETFS, days))

    rows = sort_ranking_rows(build_ranking_rows(datasets), sort_key, descending)
    top = find_top_recommendation(datasets)

    print(render_overview(rows, top))
    return 0


def show_detail(conn, ticker: str, days: int, range_days: int, export_path=None) -> int:
    """Fetch one fund, store its series and print its dashboard."""
    profile = find_profile(ticker)
    if profile is None:
        print(f"ERROR: Unknown fund: {ticker}", file=sys.stderr)
        return 1

    result = run_fund_data(FundDataConfig(ticker=ticker, days=days), conn)
    series = result['series']

    if not series:
        series = load_series(conn, ticker)
        if series:
            run = last_stored_run(conn, fund_run_name(ticker))
            fetched = f" fetched {run['started_at']:%Y-%m-%d %H:%M}" if run else ""
            print(f"WARNING: Live fetch returned nothing; showing stored data for {ticker}{fetched}",
                  file=sys.stderr)

    if export_path and series:
        rows = export_series_csv(series, Path(export_path))
        print(f"Exported {rows} rows to {export_path}", file=sys.stderr)

    print(render_detail(profile, series, range_days))
    return 0


def import_csv_file(conn, path: Path, ticker: str) -> int:
    """Parse a user CSV, store it and print its dashboard."""
    if not path.exists():
        print(f"ERROR: File not found: {path}", file=sys.stderr)
        return 1

    series = parse_csv_data(path.read_text(encoding='utf-8'))
    if not series:
        print("ERROR: Could not parse CSV. Expected columns: date,price,ref_date,ref_value",
              file=sys.stderr)
        return 1

    replace_series(conn, ticker, series)
    print(f"Imported {len(series)} rows as {ticker}", file=sys.stderr)

    profile = find_profile(ticker) or FundProfile(
        ticker=ticker,
        market_code='',
        name='Imported data',
        description=f'Loaded from {path.name}',
        nav_source_url='',
        price_source_url=''
    )
    print(render_detail(profile, series, DETAIL_RANGES[-1]))
    return 0


def show_advice(conn, ticker: str, method: CalculationMethod) -> int:
    """Print the advisory analysis for one fund."""
    series = load_series(conn, ticker)
    if not series:
        if find_profile(ticker) is None:
            print(f"ERROR: No data for {ticker}", file=sys.stderr)
            return 1
        series = run_fund_data(FundDataConfig(ticker=ticker), conn)['series']

    if not series:
        print(f"ERROR: No market data available for {ticker}", file=sys.stderr)
        return 1

    try:
        text = analyze_premium_trend(ticker, series[-CALLER_POINTS:], method, conn=conn)
    except MissingCredentialError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 1

    print(render_advice(ticker, text))
    return 0


def show_runs(conn, ticker: Optional[str], limit: int, run_id: Optional[int] = None) -> int:
    """Print fetch run history, or a single run."""
    if run_id is not None:
        try:
            runs = [get_run_status(conn, run_id)]
        except RunNotFoundError as e:
            print(f"ERROR: {e}", file=sys.stderr)
            return 1
    else:
        dag_name = fund_run_name(ticker) if ticker else None
        runs = list_recent_runs(conn, limit=limit, dag_name=dag_name)

    print(render_runs(runs))
    return 0


def store_key(conn, key: str) -> int:
    """Persist the API key."""
    try:
        set_stored_api_key(conn, key)
    except CredentialStoreError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 1

    print("API key saved.")
    return 0


if __name__ == '__main__':
    sys.exit(main())
