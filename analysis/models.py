"""
Typed value objects shared by the analysis pipeline.
All records are frozen - a fresh fetch builds new objects, never patches old ones.
"""

from dataclasses import dataclass, asdict
from datetime import date
from enum import Enum
from typing import Dict, Any, Optional


class CalculationMethod(str, Enum):
    """How the reference value for a premium is obtained."""
    REALTIME_IOPV = 'REALTIME_IOPV'  # intraday estimate (static IOPV)
    PRECISE_NAV = 'PRECISE_NAV'      # after close, official T-1 NAV


@dataclass(frozen=True)
class PriceObservation:
    """One exchange closing price."""
    date: date
    close: float


@dataclass(frozen=True)
class ReferenceObservation:
    """One official reference value (NAV/IOPV) on its own calendar."""
    date: date
    value: float


@dataclass(frozen=True)
class EnrichedPoint:
    """
    Price joined with its reference value plus indicator context.

    premium_rate, rsi and volatility are already rounded to 2 decimals.
    rsi/volatility of 0.0 mean "not enough history".
    """
    date: date
    close_price: float
    ref_date: date
    reference_value: float
    premium_rate: float
    rsi: float = 0.0
    volatility: float = 0.0
    lag_days: int = 0
    source: str = 'EastMoney (Real)'

    def to_dict(self) -> Dict[str, Any]:
        """Serialize with ISO date strings."""
        data = asdict(self)
        data['date'] = self.date.isoformat()
        data['ref_date'] = self.ref_date.isoformat()
        return data


@dataclass(frozen=True)
class FundProfile:
    """Static fund metadata."""
    ticker: str
    market_code: str  # EastMoney secid, e.g. '1.513100' (SH) or '0.159941' (SZ)
    name: str
    description: str
    nav_source_url: str
    price_source_url: str


@dataclass(frozen=True)
class StatsSummary:
    """Percentile rank of a value against a history."""
    rank: int
    min: float
    max: float
    avg: float


@dataclass(frozen=True)
class ScoreResult:
    """Composite score with its qualitative label."""
    score: int
    label: str
    color: str


@dataclass(frozen=True)
class RiskAssessment:
    """Premium-only risk tier."""
    level: str
    label: str
    color: str
    advice: str


@dataclass(frozen=True)
class RankingRow:
    """One row of the portfolio comparison table."""
    ticker: str
    name: str
    premium: float
    rank: int
    score: int
    label: str
    score_color: str
    risk_label: str
    risk_level: str
    last_update: Optional[date]


@dataclass(frozen=True)
class TopRecommendation:
    """Best-scoring fund of a portfolio and its banner classification."""
    profile: FundProfile
    score: int
    label: str
    classification: str  # 'good' or 'caution'
