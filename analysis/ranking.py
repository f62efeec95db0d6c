"""
Ranking aggregator - portfolio comparison table and top recommendation.
Pure functions over (FundProfile, enriched series) pairs.
"""

from typing import List, Optional, Sequence, Tuple

from analysis.calculations.percentile import calculate_percentile
from analysis.models import EnrichedPoint, FundProfile, RankingRow, TopRecommendation
from analysis.scoring import evaluate_fund, classify_risk


class RankingError(ValueError):
    """Raised for invalid ranking requests."""
    pass


FundDataset = Tuple[FundProfile, List[EnrichedPoint]]

SORT_KEYS = ('score', 'premium', 'rank')

# Banner styling for the top pick. Kept apart from the label tiers in
# analysis.scoring even though both sit at 60 today.
TOP_PICK_GOOD_THRESHOLD = 60
TOP_PICK_GOOD = 'good'
TOP_PICK_CAUTION = 'caution'

# Rank shown for a fund whose series came back empty
EMPTY_SERIES_RANK = 50


def build_ranking_row(profile: FundProfile, series: Sequence[EnrichedPoint]) -> RankingRow:
    """
    Build the table row for one fund.

    The latest point is ranked against the fund's full premium history
    (the latest point included). An empty series gives a degraded row:
    premium 0, rank 50, no last update.

    Args:
        profile: Fund metadata
        series: The fund's enriched series, ascending by date

    Returns:
        RankingRow for the fund
    """
    latest = series[-1] if series else None

    if latest is not None:
        premium = latest.premium_rate
        rank = calculate_percentile(premium, [p.premium_rate for p in series])
    else:
        premium = 0.0
        rank = EMPTY_SERIES_RANK

    evaluation = evaluate_fund(premium, rank)
    risk = classify_risk(premium)

    return RankingRow(
        ticker=profile.ticker,
        name=profile.name,
        premium=premium,
        rank=rank,
        score=evaluation.score,
        label=evaluation.label,
        score_color=evaluation.color,
        risk_label=risk.label,
        risk_level=risk.level,
        last_update=latest.date if latest is not None else None
    )


def build_ranking_rows(datasets: Sequence[FundDataset]) -> List[RankingRow]:
    """Build one row per fund, in input order."""
    return [build_ranking_row(profile, series) for profile, series in datasets]


def sort_ranking_rows(
    rows: Sequence[RankingRow],
    key: str = 'score',
    descending: bool = True
) -> List[RankingRow]:
    """
    Sort table rows by score, premium or rank.

    The sort is stable in both directions: rows with equal keys keep their
    input order.

    Args:
        rows: Table rows
        key: One of 'score', 'premium', 'rank'
        descending: Highest first when True

    Returns:
        New sorted list

    Raises:
        RankingError: If key is not a sortable column
    """
    if key not in SORT_KEYS:
        raise RankingError(f"Cannot sort by {key!r}; choose one of {SORT_KEYS}")

    return sorted(rows, key=lambda row: getattr(row, key), reverse=descending)


def classify_recommendation(score: int) -> str:
    """'good' when the top pick is worth highlighting, else 'caution'."""
    return TOP_PICK_GOOD if score >= TOP_PICK_GOOD_THRESHOLD else TOP_PICK_CAUTION


def find_top_recommendation(datasets: Sequence[FundDataset]) -> Optional[TopRecommendation]:
    """
    Find the single best-scoring fund of a portfolio.

    Funds with an empty series are skipped. On a tie the first fund seen
    wins; no secondary key is applied.

    Args:
        datasets: (profile, series) pairs in display order

    Returns:
        TopRecommendation, or None when no fund has data
    """
    best = None
    best_score = -1

    for profile, series in datasets:
        if not series:
            continue

        latest = series[-1]
        rank = calculate_percentile(latest.premium_rate, [p.premium_rate for p in series])
        evaluation = evaluate_fund(latest.premium_rate, rank)

        if evaluation.score > best_score:
            best_score = evaluation.score
            best = (profile, evaluation)

    if best is None:
        return None

    profile, evaluation = best
    return TopRecommendation(
        profile=profile,
        score=evaluation.score,
        label=evaluation.label,
        classification=classify_recommendation(evaluation.score)
    )
