"""
Fund data DAG - orchestrates the fetch-and-combine pipeline.
Composes: Provider → Normalize → Validate/Align → Indicators → Store → Track.
"""

import asyncio
import logging
import sqlite3
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, Any, List, Optional, Sequence, Tuple

import httpx

from analysis.fund_series import compose_enriched_series
from analysis.models import EnrichedPoint, FundProfile, PriceObservation, ReferenceObservation
from analysis.ranking import FundDataset
from ingestion.fund_registry import get_profile
from ingestion.providers.eastmoney_adapter import (
    create_http_client,
    fetch_nav_trend,
    fetch_price_klines,
    FeedError
)
from ingestion.transforms.normalizers import normalize_nav_rows, normalize_price_rows
from storage.loaders import replace_series
from storage.run_registry import start_run, finish_run, RunStatus

logger = logging.getLogger(__name__)

DETAIL_LOOKBACK_DAYS = 365
# Six months of history for the overview percentile
OVERVIEW_LOOKBACK_DAYS = 180


def fund_run_name(ticker: str) -> str:
    """Run registry name for a fund's pipeline runs."""
    return f"fund_data:{ticker}"


@dataclass
class FundDataConfig:
    """Configuration for a single-fund pipeline run."""
    ticker: str
    days: int = DETAIL_LOOKBACK_DAYS

    def __post_init__(self):
        """Validate inputs."""
        if not self.ticker or not isinstance(self.ticker, str):
            raise ValueError("ticker must be non-empty string")

        if self.days <= 0:
            raise ValueError("days must be positive")


async def fetch_price_history(
    client: httpx.AsyncClient,
    market_code: str,
    days: int = DETAIL_LOOKBACK_DAYS
) -> List[PriceObservation]:
    """
    Price feed collaborator: ascending closes, empty on no data or failure.

    Args:
        client: Shared async HTTP client
        market_code: EastMoney secid
        days: Lookback window in trading days

    Returns:
        List of PriceObservation
    """
    try:
        raw = await fetch_price_klines(client, market_code, days)
    except FeedError as e:
        logger.error(f"Error fetching prices for {market_code}: {e}")
        return []

    return normalize_price_rows(raw)


async def fetch_nav_history(client: httpx.AsyncClient, ticker: str) -> List[ReferenceObservation]:
    """
    Reference-value feed collaborator: full NAV history, empty on no data or failure.

    Args:
        client: Shared async HTTP client
        ticker: Fund code

    Returns:
        List of ReferenceObservation
    """
    try:
        raw = await fetch_nav_trend(client, ticker)
    except FeedError as e:
        logger.error(f"Error fetching NAV for {ticker}: {e}")
        return []

    return normalize_nav_rows(raw)


async def fetch_fund_feeds(
    profile: FundProfile,
    days: int = DETAIL_LOOKBACK_DAYS,
    client: Optional[httpx.AsyncClient] = None
) -> Tuple[List[PriceObservation], List[ReferenceObservation]]:
    """
    Fetch the price and NAV feeds of one fund concurrently.

    Args:
        profile: Fund to fetch
        days: Price lookback in trading days
        client: Shared client; a private one is opened when omitted

    Returns:
        (prices, navs), each ascending and empty on failure
    """
    if client is None:
        async with create_http_client() as own_client:
            return await fetch_fund_feeds(profile, days, own_client)

    prices, navs = await asyncio.gather(
        fetch_price_history(client, profile.market_code, days),
        fetch_nav_history(client, profile.ticker)
    )
    return prices, navs


def build_fund_series(
    profile: FundProfile,
    prices: List[PriceObservation],
    navs: List[ReferenceObservation]
) -> List[EnrichedPoint]:
    """Combine fetched feeds into an enriched series; empty without prices."""
    if not prices:
        return []

    series = compose_enriched_series(prices, navs)
    logger.info(
        f"{profile.ticker}: {len(prices)} prices, {len(navs)} NAVs -> {len(series)} points"
    )
    return series


async def fetch_fund_series(
    profile: FundProfile,
    days: int = DETAIL_LOOKBACK_DAYS,
    client: Optional[httpx.AsyncClient] = None
) -> List[EnrichedPoint]:
    """
    Fetch both feeds for one fund concurrently and build its enriched series.

    Args:
        profile: Fund to fetch
        days: Price lookback in trading days
        client: Shared client; a private one is opened when omitted

    Returns:
        Enriched series; empty when the price feed has nothing
    """
    prices, navs = await fetch_fund_feeds(profile, days, client)
    return build_fund_series(profile, prices, navs)


async def fetch_portfolio(
    profiles: Sequence[FundProfile],
    days: int = OVERVIEW_LOOKBACK_DAYS,
    client: Optional[httpx.AsyncClient] = None
) -> List[FundDataset]:
    """
    Fetch every fund of a portfolio concurrently.

    One failing fund never aborts the batch: its series comes back empty
    and the ranking shows a degraded row for it.

    Args:
        profiles: Funds to fetch
        days: Price lookback in trading days
        client: Shared client; a private one is opened when omitted

    Returns:
        (profile, series) pairs in the order of `profiles`
    """
    if client is None:
        async with create_http_client() as own_client:
            return await fetch_portfolio(profiles, days, own_client)

    results = await asyncio.gather(
        *(fetch_fund_series(profile, days, client) for profile in profiles),
        return_exceptions=True
    )

    datasets = []
    for profile, result in zip(profiles, results):
        if isinstance(result, Exception):
            logger.error(f"Failed to load market data for {profile.ticker}: {result}")
            result = []
        datasets.append((profile, result))

    return datasets


def run_fund_data(
    config: FundDataConfig,
    conn: sqlite3.Connection,
    client: Optional[httpx.AsyncClient] = None
) -> Dict[str, Any]:
    """
    Run the pipeline for one fund and replace its stored series.

    Pipeline stages:
    1. Start run tracking
    2. Fetch price and NAV feeds concurrently
    3. Align, compute indicators and premiums
    4. Replace stored series
    5. Finish run tracking

    Args:
        config: Pipeline configuration
        conn: SQLite database connection
        client: Optional async client (tests inject a mock transport)

    Returns:
        Dictionary with run results; 'series' holds the enriched points
    """
    run_id = start_run(conn, fund_run_name(config.ticker))
    start_time = datetime.now()

    result = {
        'ticker': config.ticker,
        'days': config.days,
        'run_id': run_id,
        'status': 'running',
        'rows_in': None,
        'rows_stored': 0,
        'series': [],
        'error_message': None
    }

    try:
        profile = get_profile(config.ticker)
        prices, navs = asyncio.run(fetch_fund_feeds(profile, config.days, client))
        result['rows_in'] = len(prices)
        series = build_fund_series(profile, prices, navs)

        # Empty means the feeds failed or had nothing; keep the last good series
        if series:
            result['rows_stored'] = replace_series(conn, config.ticker, series)
        else:
            logger.warning(f"No enriched points for {config.ticker}; stored series left unchanged")
        result['series'] = series

        finish_run(
            conn=conn,
            run_id=run_id,
            status=RunStatus.COMPLETED,
            rows_in=len(prices),
            rows_out=len(series)
        )
        result['status'] = 'completed'

    except Exception as e:
        logger.error(f"fund_data run failed for {config.ticker}: {e}")
        finish_run(
            conn=conn,
            run_id=run_id,
            status=RunStatus.FAILED,
            rows_in=result['rows_in'],
            rows_out=0,
            error_message=str(e)
        )
        result['status'] = 'failed'
        result['error_message'] = str(e)

    result['duration_seconds'] = (datetime.now() - start_time).total_seconds()
    return result
