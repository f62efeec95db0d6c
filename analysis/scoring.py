"""
Scoring engine - composite buy score and premium risk tiers.
Deterministic threshold-based classifications, no IO.
"""

from analysis.calculations.rounding import round_to_int
from analysis.models import RiskAssessment, ScoreResult


# Composite score weights
BASE_SCORE = 100.0
PREMIUM_PENALTY_PER_POINT = 20.0  # 1 percentage point of premium costs 20 points
RANK_PENALTY_PER_POINT = 0.2      # full 0-100 rank spread costs at most 20 points
DISCOUNT_BONUS = 10.0
MIN_SCORE = 0.0
MAX_SCORE = 100.0

# Label tiers on the rounded score, lower bound inclusive
STRONG_BUY_THRESHOLD = 80
RECOMMEND_THRESHOLD = 60
HOLD_THRESHOLD = 40

LABEL_STRONG_BUY = 'strongly recommended'
LABEL_RECOMMEND = 'recommended'
LABEL_HOLD = 'neutral/hold'
LABEL_SELL = 'recommend sell'

SCORE_LABELS = (LABEL_STRONG_BUY, LABEL_RECOMMEND, LABEL_HOLD, LABEL_SELL)

# Risk tiers on the premium in percent, upper bound exclusive
SAFE_PREMIUM_LIMIT = 0.5
NORMAL_PREMIUM_LIMIT = 1.5
CAUTION_PREMIUM_LIMIT = 3.0

RISK_SAFE = RiskAssessment(
    level='SAFE',
    label='undervalued',
    color='emerald',
    advice='The price is close to or below NAV, a good time to build a position.'
)
RISK_NORMAL = RiskAssessment(
    level='NORMAL',
    label='fair price',
    color='blue',
    advice='Within normal market fluctuation, suitable for regular or staged buying.'
)
RISK_CAUTION = RiskAssessment(
    level='CAUTION',
    label='notable premium',
    color='amber',
    advice='You are paying extra. Consider waiting on the sidelines or for a pullback.'
)
RISK_HIGH = RiskAssessment(
    level='HIGH',
    label='dangerous premium',
    color='rose',
    advice='Far above true value! A falling premium means an immediate loss, be extremely careful.'
)


def calculate_score(premium: float, rank: int) -> int:
    """
    Composite 0-100 buy score, higher is more attractive.

    Formula: 100 - premium×20 - rank×0.2, +10 when at a discount,
    clamped to [0, 100], then rounded half up.

    Args:
        premium: Current premium in percent
        rank: Percentile rank of the premium (0-100)

    Returns:
        Integer score in [0, 100]
    """
    score = BASE_SCORE - premium * PREMIUM_PENALTY_PER_POINT
    score -= rank * RANK_PENALTY_PER_POINT

    if premium < 0:
        score += DISCOUNT_BONUS

    score = min(MAX_SCORE, max(MIN_SCORE, score))

    return round_to_int(score)


def score_label(score: int) -> str:
    """
    Map a rounded score to its qualitative label.

    Thresholds:
    - strongly recommended: >= 80
    - recommended: >= 60
    - neutral/hold: >= 40
    - recommend sell: < 40
    """
    if score >= STRONG_BUY_THRESHOLD:
        return LABEL_STRONG_BUY
    elif score >= RECOMMEND_THRESHOLD:
        return LABEL_RECOMMEND
    elif score >= HOLD_THRESHOLD:
        return LABEL_HOLD
    else:
        return LABEL_SELL


_LABEL_COLORS = {
    LABEL_STRONG_BUY: 'emerald',
    LABEL_RECOMMEND: 'blue',
    LABEL_HOLD: 'amber',
    LABEL_SELL: 'rose',
}


def evaluate_fund(premium: float, rank: int) -> ScoreResult:
    """
    Score a fund from its current premium and the premium's percentile rank.

    Args:
        premium: Current premium in percent
        rank: Percentile rank of the premium (0-100)

    Returns:
        ScoreResult with score, label and style tag
    """
    score = calculate_score(premium, rank)
    label = score_label(score)

    return ScoreResult(score=score, label=label, color=_LABEL_COLORS[label])


def classify_risk(premium: float) -> RiskAssessment:
    """
    Classify the premium alone into a risk tier.

    Thresholds:
    - SAFE: < 0.5%
    - NORMAL: 0.5% - 1.5%
    - CAUTION: 1.5% - 3.0%
    - HIGH: >= 3.0%

    Args:
        premium: Current premium in percent

    Returns:
        RiskAssessment carrying the fixed advisory sentence for the tier
    """
    if premium < SAFE_PREMIUM_LIMIT:
        return RISK_SAFE
    elif premium < NORMAL_PREMIUM_LIMIT:
        return RISK_NORMAL
    elif premium < CAUTION_PREMIUM_LIMIT:
        return RISK_CAUTION
    else:
        return RISK_HIGH
