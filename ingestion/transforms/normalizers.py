"""
Normalizers for transforming provider data to canonical observations.
Pure functions - no IO, network, or side effects.
Minimal normalization - only when necessary.
"""

import logging
from datetime import date, datetime, timedelta, timezone
from typing import Dict, Any, List

from analysis.models import PriceObservation, ReferenceObservation

logger = logging.getLogger(__name__)

# EastMoney publishes NAV timestamps as midnight Beijing time
CHINA_TZ = timezone(timedelta(hours=8))


def normalize_price_rows(raw_rows: List[str]) -> List[PriceObservation]:
    """
    Transform EastMoney kline rows to price observations.

    Minimal normalization:
    - "YYYY-MM-DD,close" strings to typed observations
    - Deduplication by date (keep last to handle corrections)
    - Ascending date order (required by the aligner)

    Args:
        raw_rows: Kline strings as returned by the price feed

    Returns:
        List of PriceObservation, ascending by date
    """
    if not raw_rows:
        return []

    by_date: Dict[date, PriceObservation] = {}

    for raw in raw_rows:
        parts = [p.strip() for p in str(raw).split(',')]
        if len(parts) < 2:
            logger.warning(f"Skipping malformed kline row: {raw!r}")
            continue

        try:
            row_date = date.fromisoformat(parts[0])
            close = float(parts[1])
        except ValueError:
            logger.warning(f"Skipping unparseable kline row: {raw!r}")
            continue

        by_date[row_date] = PriceObservation(date=row_date, close=close)

    return [by_date[d] for d in sorted(by_date)]


def normalize_nav_rows(raw_rows: List[Dict[str, Any]]) -> List[ReferenceObservation]:
    """
    Transform EastMoney net-worth trend items to reference observations.

    Each item looks like {"x": 1709827200000, "y": 1.2345, ...} where x is
    epoch milliseconds. Dates are taken in Beijing time; reading them as UTC
    would move every NAV one day earlier.

    Args:
        raw_rows: Items of the Data_netWorthTrend array

    Returns:
        List of ReferenceObservation, ascending by date
    """
    if not raw_rows:
        return []

    by_date: Dict[date, ReferenceObservation] = {}

    for raw in raw_rows:
        try:
            timestamp_ms = float(raw['x'])
            value = float(raw['y'])
            nav_date = datetime.fromtimestamp(timestamp_ms / 1000, tz=CHINA_TZ).date()
        except (KeyError, TypeError, ValueError, OverflowError, OSError):
            logger.warning(f"Skipping unparseable NAV item: {raw!r}")
            continue

        by_date[nav_date] = ReferenceObservation(date=nav_date, value=value)

    return [by_date[d] for d in sorted(by_date)]
