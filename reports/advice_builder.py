"""
Plain-language advice builder.
Builds a Markdown explanation of score, premium, rank, RSI and volatility with every number pre-filled.
"""

from analysis.scoring import HOLD_THRESHOLD, RECOMMEND_THRESHOLD, STRONG_BUY_THRESHOLD
from reports.labelers import (
    classify_premium_zone,
    classify_rank_zone,
    classify_rsi_zone,
    classify_vol_level
)


class AdviceBuilderError(Exception):
    """Raised when advice building fails."""
    pass


def build_plain_advice(
    premium: float,
    rank: int,
    rsi: float,
    volatility: float,
    score: int
) -> str:
    """
    Build deterministic plain-language advice for one fund.

    The first paragraph is the overall verdict from the score; the bullet
    lines that follow explain premium zone, historical position, RSI and
    volatility in that order.

    Args:
        premium: Latest premium rate in percent
        rank: Percentile rank of the premium (0-100)
        rsi: Latest RSI (0-100)
        volatility: Latest annualized volatility in percent
        score: Composite score (0-100)

    Returns:
        Markdown text

    Raises:
        AdviceBuilderError: If score or rank is outside 0-100
    """
    if not 0 <= score <= 100:
        raise AdviceBuilderError(f"Score must be between 0 and 100, got {score}")
    if not 0 <= rank <= 100:
        raise AdviceBuilderError(f"Rank must be between 0 and 100, got {rank}")

    verdict = _build_verdict(score)
    lines = [
        _build_premium_line(premium),
        _build_rank_line(rank),
        _build_rsi_line(rsi),
        _build_volatility_line(volatility)
    ]

    return verdict + "\n\n" + "\n".join(lines)


def _build_verdict(score: int) -> str:
    """Overall verdict from the score tier."""
    if score >= STRONG_BUY_THRESHOLD:
        return ("**Verdict: buy signal.** The composite score is excellent and "
                "the current price offers very good value.")
    elif score >= RECOMMEND_THRESHOLD:
        return ("**Verdict: worth watching.** Overall healthy, suitable for "
                "building a position in stages.")
    elif score >= HOLD_THRESHOLD:
        return ("**Verdict: wait and see.** Value is average, now is probably "
                "not the best time to buy.")
    else:
        return ("**Verdict: sell or stay out.** Even if this is the best of the "
                "list, the absolute score is too low and market risk is high.")


def _build_premium_line(premium: float) -> str:
    zone = classify_premium_zone(premium)
    prefix = f"- **Premium ({premium:.2f}%):** "

    if zone == "discount":
        return prefix + ("trading at a **discount**. You buy the basket below its "
                         "NAV, a clear **margin of safety**.")
    elif zone == "fair":
        return prefix + ("premium is low. The extra cost is small and the price "
                         "is **fair**, without much froth.")
    else:
        return prefix + (f"premium is high. For every 100 you buy you pay {premium:.1f} "
                         "**extra** to the market, a cost that is hard to earn back.")


def _build_rank_line(rank: int) -> str:
    zone = classify_rank_zone(rank)
    prefix = f"- **Historical position (P{rank}):** "

    if zone == "bottom":
        return prefix + ("the premium is cheaper than 80% of the recent history. "
                         "This is a **bottom zone** signal.")
    elif zone == "top":
        return prefix + ("the premium is more expensive than 80% of the recent history. "
                         "This is a **top zone**; premiums have usually fallen back from here.")
    else:
        return prefix + ("around the historical average. Neither cheap nor expensive, "
                         "no clear timing edge.")


def _build_rsi_line(rsi: float) -> str:
    zone = classify_rsi_zone(rsi)
    prefix = f"- **RSI ({rsi:.1f}):** "

    if zone == "oversold":
        return prefix + ("below 30, the market is **oversold**. A short-term rebound "
                         "is fairly likely.")
    elif zone == "overbought":
        return prefix + ("above 70, the market is **overbought**. The risk of a "
                         "short-term pullback is high.")
    else:
        return prefix + "between 30 and 70, sentiment is calm with no extreme reversal signal."


def _build_volatility_line(volatility: float) -> str:
    level = classify_vol_level(volatility)
    prefix = f"- **Volatility ({volatility:.1f}%):** "

    if level == "low":
        return prefix + ("very low. Recent moves have been **flat and steady**, "
                         "suited to long-term holders.")
    elif level == "high":
        return prefix + ("high. Prices have been **swinging sharply**; there is room "
                         "for trading the spread but it is not for beginners.")
    else:
        return prefix + "moderate, the market is behaving normally."
