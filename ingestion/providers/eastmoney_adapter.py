"""
EastMoney adapter - fetch exchange closes and official NAV history.
Network IO allowed here, but minimal business logic.
"""

import json
import logging
import os
import re
import time
from typing import Dict, Any, List, Optional

import httpx
from dotenv import load_dotenv

load_dotenv()

logger = logging.getLogger(__name__)


class FeedError(Exception):
    """Raised when an upstream feed request fails."""
    pass


KLINE_URL = 'https://push2his.eastmoney.com/api/qt/stock/kline/get'
NAV_URL_TEMPLATE = 'https://fund.eastmoney.com/pingzhongdata/{ticker}.js'

NAV_TREND_PATTERN = re.compile(r'Data_netWorthTrend\s*=\s*(\[.*?\])\s*;', re.DOTALL)

DEFAULT_HEADERS = {
    'User-Agent': 'Mozilla/5.0 (X11; Linux x86_64) premium-watch/0.1',
    'Referer': 'https://quote.eastmoney.com/',
}


def get_http_timeout() -> float:
    """Request timeout in seconds from PREMIUM_WATCH_HTTP_TIMEOUT_S (default 15)."""
    return float(os.getenv('PREMIUM_WATCH_HTTP_TIMEOUT_S', '15'))


def create_http_client(timeout: Optional[float] = None, **kwargs) -> httpx.AsyncClient:
    """
    Create the shared async client used by both feeds.

    Args:
        timeout: Request timeout in seconds (defaults to env)
        **kwargs: Passed through to httpx.AsyncClient (e.g. transport in tests)

    Returns:
        Configured httpx.AsyncClient; caller owns closing it
    """
    return httpx.AsyncClient(
        headers=DEFAULT_HEADERS,
        timeout=timeout if timeout is not None else get_http_timeout(),
        follow_redirects=True,
        **kwargs
    )


async def fetch_price_klines(
    client: httpx.AsyncClient,
    market_code: str,
    days: int = 365
) -> List[str]:
    """
    Fetch daily kline rows for a market-qualified ticker.
    Returns raw data in provider format - no normalization.

    Args:
        client: Shared async HTTP client
        market_code: EastMoney secid, e.g. '1.513100'
        days: Number of most recent trading days to request

    Returns:
        List of "YYYY-MM-DD,close" strings, ascending; empty when no data

    Raises:
        FeedError: If the request fails or the payload is not JSON
    """
    if days <= 0:
        raise FeedError(f"days must be positive, got {days}")

    params = {
        'secid': market_code,
        'fields1': 'f1,f2,f3,f4,f5,f6',
        'fields2': 'f51,f53',  # date, close
        'klt': '101',          # daily bars
        'fqt': '1',            # forward-adjusted
        'end': '20500101',
        'lmt': str(days),
    }

    payload = await _get_json(client, KLINE_URL, params)

    data = payload.get('data') if isinstance(payload, dict) else None
    klines = data.get('klines') if isinstance(data, dict) else None
    if not klines:
        logger.warning(f"No price data found for {market_code}")
        return []

    logger.info(f"Fetched {len(klines)} klines for {market_code}")
    return list(klines)


async def fetch_nav_trend(client: httpx.AsyncClient, ticker: str) -> List[Dict[str, Any]]:
    """
    Fetch the full published NAV history of a fund.
    Returns raw data in provider format - no normalization.

    The endpoint serves a JavaScript file; the history is the
    Data_netWorthTrend array literal inside it.

    Args:
        client: Shared async HTTP client
        ticker: Six-digit fund code

    Returns:
        List of {"x": epoch_ms, "y": nav, ...} items; empty when no data

    Raises:
        FeedError: If the request fails or the array cannot be decoded
    """
    url = NAV_URL_TEMPLATE.format(ticker=ticker)
    # Cache buster, the CDN otherwise serves yesterday's file
    text = await _get_text(client, url, {'v': str(int(time.time() * 1000))})

    match = NAV_TREND_PATTERN.search(text)
    if not match:
        logger.warning(f"No NAV data found for {ticker}")
        return []

    try:
        trend = json.loads(match.group(1))
    except json.JSONDecodeError as e:
        raise FeedError(f"Invalid NAV array for {ticker}: {e}") from e

    if not isinstance(trend, list):
        logger.warning(f"Unexpected NAV payload type for {ticker}: {type(trend)}")
        return []

    logger.info(f"Fetched {len(trend)} NAV points for {ticker}")
    return trend


async def _get_json(client: httpx.AsyncClient, url: str, params: Dict[str, str]) -> Any:
    text = await _get_text(client, url, params)
    try:
        return json.loads(text)
    except json.JSONDecodeError as e:
        raise FeedError(f"Invalid JSON from {url}: {e}") from e


async def _get_text(client: httpx.AsyncClient, url: str, params: Dict[str, str]) -> str:
    try:
        response = await client.get(url, params=params)
    except httpx.TimeoutException as e:
        raise FeedError(f"Request to {url} timed out") from e
    except httpx.HTTPError as e:
        raise FeedError(f"Request to {url} failed: {e}") from e

    if response.status_code != 200:
        raise FeedError(f"HTTP {response.status_code} from {url}")

    return response.text
