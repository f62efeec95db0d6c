"""
Percentile statistics utilities.
Pure functions ranking a current value against its own history.
"""

from bisect import bisect_right
from typing import Iterable

from analysis.calculations.rounding import round_to_int
from analysis.models import StatsSummary


def percentile_stats(current: float, history: Iterable[float]) -> StatsSummary:
    """
    Rank a value against a historical population.

    rank = round(idx / len(history) * 100), where idx is the number of
    history elements at or below current (the index of the first element
    strictly greater than current in ascending order, len(history) if none).
    Higher rank means the current value is above a larger share of history,
    e.g. a premium "more expensive than rank% of the time". A value equal
    to the history maximum always ranks 100. The converse only holds for
    histories shorter than 200 values: from 200 on, rounding can lift a
    value just below the maximum to 100 as well (364 of 365 at or below
    gives 99.73, shown as P100).

    Args:
        current: Value to rank (callers usually include it in history)
        history: Comparison population, any order

    Returns:
        StatsSummary with rank 0-100 plus min/max/avg of the history;
        all zeros for an empty history
    """
    ordered = sorted(history)
    if not ordered:
        return StatsSummary(rank=0, min=0.0, max=0.0, avg=0.0)

    rank_index = bisect_right(ordered, current)
    rank = round_to_int(rank_index / len(ordered) * 100)

    return StatsSummary(
        rank=rank,
        min=ordered[0],
        max=ordered[-1],
        avg=sum(ordered) / len(ordered)
    )


def calculate_percentile(current: float, history: Iterable[float]) -> int:
    """Return only the rank of percentile_stats()."""
    return percentile_stats(current, history).rank
