"""
Premium calculator - price vs reference value deviation and EnrichedPoint assembly.
Pure functions apart from export_series_csv, which writes one file.
"""

import logging
import math
from datetime import date
from pathlib import Path
from typing import List, Optional

import pandas as pd

from analysis.calculations.rounding import round_half_up
from analysis.models import EnrichedPoint, PriceObservation, ReferenceObservation

logger = logging.getLogger(__name__)

FEED_SOURCE = 'EastMoney (Real)'
CSV_SOURCE = 'User CSV'

CSV_COLUMNS = ['date', 'price', 'ref_date', 'ref_value']
CSV_HEADER_MARKERS = ('date', 'price')


class PremiumError(ValueError):
    """Raised when a premium cannot be computed."""
    pass


def calculate_premium(close_price: float, reference_value: float) -> float:
    """
    Premium of the traded price over its reference value.

    Formula: round((close - ref) / ref × 100, 2)

    Args:
        close_price: Exchange closing price
        reference_value: NAV or IOPV the price is compared against

    Returns:
        Signed premium in percent, rounded to 2 decimals
        (negative means the fund trades at a discount)

    Raises:
        PremiumError: If reference_value is not positive
    """
    if reference_value <= 0:
        raise PremiumError(f"Reference value must be positive, got {reference_value}")

    return round_half_up(((close_price - reference_value) / reference_value) * 100, 2)


def build_enriched_point(
    price: PriceObservation,
    reference: ReferenceObservation,
    rsi: float = 0.0,
    volatility: float = 0.0,
    lag_days: Optional[int] = None,
    source: str = FEED_SOURCE
) -> EnrichedPoint:
    """
    Assemble one EnrichedPoint from aligned inputs.

    Args:
        price: Exchange close for the trade date
        reference: Reference observation aligned to that date
        rsi: RSI at the price index (0.0 when unavailable)
        volatility: Annualized volatility at the price index (0.0 when unavailable)
        lag_days: Calendar-day lag; computed from the dates when omitted
        source: Provenance tag

    Returns:
        EnrichedPoint with premium, RSI and volatility rounded to 2 decimals
    """
    if lag_days is None:
        lag_days = (price.date - reference.date).days

    return EnrichedPoint(
        date=price.date,
        close_price=price.close,
        ref_date=reference.date,
        reference_value=reference.value,
        premium_rate=calculate_premium(price.close, reference.value),
        rsi=_finite_or_zero(round_half_up(rsi, 2)),
        volatility=_finite_or_zero(round_half_up(volatility, 2)),
        lag_days=lag_days,
        source=source
    )


def parse_csv_data(csv_content: str) -> List[EnrichedPoint]:
    """
    Parse user-supplied CSV rows of (date, price, ref_date, ref_value).

    Lines containing "date" or "price" (any case) are treated as headers and
    skipped. Lines with fewer than 4 fields, unparseable dates, or
    non-numeric/non-positive values are dropped without raising. RSI and
    volatility are 0 because there is no continuous price series behind
    the rows; lag_days is 0 because no alignment took place.

    Args:
        csv_content: Raw CSV text

    Returns:
        Parsed points in input order; empty if no line parses
    """
    points = []
    dropped = 0

    for line in csv_content.strip().splitlines():
        lowered = line.lower()
        if any(marker in lowered for marker in CSV_HEADER_MARKERS):
            continue

        parts = [p.strip() for p in line.split(',')]
        if len(parts) < 4:
            if line.strip():
                dropped += 1
            continue

        try:
            trade_date = date.fromisoformat(parts[0])
            price = float(parts[1])
            ref_date = date.fromisoformat(parts[2])
            ref_value = float(parts[3])
        except ValueError:
            dropped += 1
            continue

        if not (math.isfinite(price) and math.isfinite(ref_value)) or ref_value <= 0:
            dropped += 1
            continue

        points.append(build_enriched_point(
            PriceObservation(date=trade_date, close=price),
            ReferenceObservation(date=ref_date, value=ref_value),
            lag_days=0,
            source=CSV_SOURCE
        ))

    if dropped:
        logger.info(f"CSV import dropped {dropped} malformed line(s), kept {len(points)}")

    return points


def series_to_frame(points: List[EnrichedPoint]) -> pd.DataFrame:
    """
    Convert a series to a DataFrame in CSV import column order.

    Args:
        points: Enriched series

    Returns:
        DataFrame with date, price, ref_date, ref_value first, then the
        derived columns
    """
    columns = CSV_COLUMNS + ['premium_rate', 'rsi', 'volatility', 'lag_days', 'source']
    if not points:
        return pd.DataFrame(columns=columns)

    frame = pd.DataFrame([p.to_dict() for p in points])
    frame = frame.rename(columns={'close_price': 'price', 'reference_value': 'ref_value'})
    return frame[columns]


def export_series_csv(points: List[EnrichedPoint], output_path: Path) -> int:
    """
    Write a series as CSV that parse_csv_data() can read back.

    Args:
        points: Enriched series
        output_path: Destination file

    Returns:
        Number of rows written
    """
    output_path.parent.mkdir(parents=True, exist_ok=True)
    series_to_frame(points).to_csv(output_path, index=False)
    return len(points)


def _finite_or_zero(value: float) -> float:
    return value if math.isfinite(value) else 0.0
