"""
Series aligner - joins exchange prices with NAV observations on different calendars.
Pure functions - no IO, network, or side effects.
"""

from bisect import bisect_left
from dataclasses import dataclass
from datetime import date
from typing import List, Sequence

from analysis.models import PriceObservation, ReferenceObservation


class AlignmentError(ValueError):
    """Raised when input series violate the alignment contract."""
    pass


# Staleness thresholds in calendar days (user-facing risk signals)
STALE_LAG_DAYS = 4         # lag > 4: hard warning
LAGGING_LAG_DAYS = 2       # 2 < lag <= 4: soft warning
FRESHNESS_BANNER_LAG_DAYS = 3  # dashboard banner when lag > 3

STALENESS_NORMAL = 'normal'
STALENESS_LAGGING = 'lagging'
STALENESS_STALE = 'stale'


@dataclass(frozen=True)
class AlignedObservation:
    """A price paired with the reference value it is compared against."""
    price_index: int
    price: PriceObservation
    reference: ReferenceObservation
    lag_days: int


def calculate_lag_days(trade_date: date, ref_date: date) -> int:
    """Whole calendar days between a trade date and its reference date."""
    return (trade_date - ref_date).days


def align_series(
    prices: Sequence[PriceObservation],
    references: Sequence[ReferenceObservation]
) -> List[AlignedObservation]:
    """
    Pair every price with the latest reference observation before it.

    Prices without any earlier reference observation are left out; that is
    insufficient history, not an error. No forward fill or interpolation.

    Args:
        prices: Price observations, ascending by date
        references: Reference observations, ascending by date (own calendar)

    Returns:
        Aligned observations in price order; price_index points back into
        `prices` so indicator streams can be joined by position

    Raises:
        AlignmentError: If either series is not ascending by date
    """
    _ensure_ascending([p.date for p in prices], 'prices')
    _ensure_ascending([r.date for r in references], 'references')

    if not references:
        return []

    ref_dates = [ref.date for ref in references]
    aligned = []

    for index, price in enumerate(prices):
        # bisect_left skips a same-day NAV: it is published after the close
        idx = bisect_left(ref_dates, price.date)
        if idx == 0:
            continue

        reference = references[idx - 1]
        aligned.append(AlignedObservation(
            price_index=index,
            price=price,
            reference=reference,
            lag_days=calculate_lag_days(price.date, reference.date)
        ))

    return aligned


def classify_staleness(lag_days: int) -> str:
    """
    Classify how stale the reference value behind a premium is.

    Thresholds:
    - normal: lag <= 2 (weekday T-1, or a plain weekend)
    - lagging: 2 < lag <= 4
    - stale: lag > 4

    Args:
        lag_days: Calendar days between trade date and reference date

    Returns:
        One of 'normal', 'lagging', 'stale'
    """
    if lag_days > STALE_LAG_DAYS:
        return STALENESS_STALE
    elif lag_days > LAGGING_LAG_DAYS:
        return STALENESS_LAGGING
    else:
        return STALENESS_NORMAL


def needs_freshness_banner(lag_days: int) -> bool:
    """True when the dashboard should warn that the NAV is out of date."""
    return lag_days > FRESHNESS_BANNER_LAG_DAYS


def _ensure_ascending(dates: List[date], name: str) -> None:
    for previous, current in zip(dates, dates[1:]):
        if current < previous:
            raise AlignmentError(f"{name} must be ascending by date ({current} after {previous})")
