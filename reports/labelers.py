"""
Classification labelers for fund dashboards and advice.
Deterministic threshold-based classifications for premium, rank, RSI and volatility.
"""

from typing import Optional


class LabelerError(Exception):
    """Raised when labeler input validation fails."""
    pass


RSI_OVERSOLD = 30
RSI_OVERBOUGHT = 70

VOL_LOW_PCT = 15
VOL_HIGH_PCT = 25

RANK_BOTTOM = 20
RANK_TOP = 80

FAIR_PREMIUM_LIMIT = 1.5


def classify_rsi_zone(rsi: float) -> str:
    """
    Classify RSI momentum.

    Thresholds:
    - oversold: < 30
    - overbought: > 70
    - neutral: 30 - 70

    Args:
        rsi: RSI value (0-100)

    Returns:
        "oversold", "overbought" or "neutral"

    Raises:
        LabelerError: If RSI is outside 0-100
    """
    if rsi is None:
        raise LabelerError("RSI cannot be None")

    if rsi < 0 or rsi > 100:
        raise LabelerError(f"RSI must be between 0 and 100, got {rsi}")

    if rsi < RSI_OVERSOLD:
        return "oversold"
    elif rsi > RSI_OVERBOUGHT:
        return "overbought"
    else:
        return "neutral"


def classify_vol_level(ann_vol_pct: float) -> str:
    """
    Classify annualized volatility level.

    Thresholds:
    - Low: < 15%
    - Moderate: 15% - 25%
    - High: > 25%

    Args:
        ann_vol_pct: Annualized volatility in percent (25.0 = 25%)

    Returns:
        Classification level: "low", "moderate", or "high"

    Raises:
        LabelerError: If input is invalid
    """
    if ann_vol_pct is None:
        raise LabelerError("Volatility cannot be None")

    if ann_vol_pct < 0:
        raise LabelerError("Volatility must be non-negative")

    if ann_vol_pct < VOL_LOW_PCT:
        return "low"
    elif ann_vol_pct <= VOL_HIGH_PCT:
        return "moderate"
    else:
        return "high"


def classify_rank_zone(rank: int) -> str:
    """
    Classify where the premium sits in its own history.

    Thresholds:
    - bottom: rank < 20 (cheaper than 80% of the time)
    - top: rank > 80
    - middle: otherwise
    """
    if rank < RANK_BOTTOM:
        return "bottom"
    elif rank > RANK_TOP:
        return "top"
    else:
        return "middle"


def classify_premium_zone(premium: float) -> str:
    """
    Coarse premium zone used in advice text.

    - discount: premium < 0
    - fair: 0 <= premium < 1.5
    - expensive: premium >= 1.5
    """
    if premium < 0:
        return "discount"
    elif premium < FAIR_PREMIUM_LIMIT:
        return "fair"
    else:
        return "expensive"


def describe_rank(rank: int, current: float, avg: Optional[float]) -> str:
    """One-line reading of a percentile rank, e.g. 'more expensive than 85% of the time'."""
    if avg is not None and current <= avg:
        return f"cheaper than {100 - rank}% of the time"
    return f"more expensive than {rank}% of the time"
