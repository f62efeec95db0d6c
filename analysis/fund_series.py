"""
Fund series composer - raw observations to an enriched premium series.
Pure function that combines alignment, indicators and premium calculation.
"""

from typing import List

from analysis.calculations.rsi import calculate_rsi, DEFAULT_RSI_PERIOD
from analysis.calculations.volatility import historical_volatility, DEFAULT_VOL_WINDOW
from analysis.models import EnrichedPoint, PriceObservation, ReferenceObservation
from analysis.premium import build_enriched_point, FEED_SOURCE
from ingestion.transforms.aligner import align_series
from ingestion.transforms.validators import (
    filter_valid,
    validate_price_observation,
    validate_reference_observation
)


def compose_enriched_series(
    prices: List[PriceObservation],
    references: List[ReferenceObservation],
    rsi_period: int = DEFAULT_RSI_PERIOD,
    vol_window: int = DEFAULT_VOL_WINDOW,
    source: str = FEED_SOURCE
) -> List[EnrichedPoint]:
    """
    Build the enriched series for one fund.

    Indicators run over the full validated price series, independent of
    the NAV feed, and are joined back to aligned points by price index.
    Prices with no earlier NAV are dropped after the indicators are
    computed, so they still count as history for RSI and volatility.

    Args:
        prices: Price observations, ascending by date
        references: NAV observations, ascending by date
        rsi_period: RSI lookback
        vol_window: Volatility window in returns
        source: Provenance tag for the points

    Returns:
        EnrichedPoints in date order; empty when prices are empty
    """
    valid_prices = filter_valid(prices, validate_price_observation, 'price')
    valid_refs = filter_valid(references, validate_reference_observation, 'NAV')

    if not valid_prices:
        return []

    closes = [p.close for p in valid_prices]
    rsi_series = calculate_rsi(closes, period=rsi_period)
    vol_series = historical_volatility(closes, window=vol_window)

    return [
        build_enriched_point(
            aligned.price,
            aligned.reference,
            rsi=rsi_series[aligned.price_index],
            volatility=vol_series[aligned.price_index],
            lag_days=aligned.lag_days,
            source=source
        )
        for aligned in align_series(valid_prices, valid_refs)
    ]
