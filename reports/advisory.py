"""
Advisory text for a fund's recent premium trend.
Builds the prompt from the latest points and asks Gemini for a short Markdown analysis.
"""

import logging
import os
import sqlite3
from typing import List, Optional, Sequence

from dotenv import load_dotenv

from analysis.models import CalculationMethod, EnrichedPoint
from reports.gemini_client import gemini_request
from storage.credential_store import get_stored_api_key

load_dotenv()

logger = logging.getLogger(__name__)

PROMPT_POINTS = 5
# Points handed over by interactive callers; only the last PROMPT_POINTS reach the prompt
CALLER_POINTS = 30

ANALYSIS_UNAVAILABLE_MESSAGE = (
    "The analysis service is temporarily unavailable. "
    "Please check your network connection or whether the API key is valid."
)
NO_ANALYSIS_MESSAGE = "Unable to produce an analysis."

USER_PROMPT = """Analyze the recent premium trend and technical indicators of the ETF with code {ticker}.
Premium method: {method}.
Data:
{context}

Give a short summary in 3 points covering premium risk, technical state (RSI/volatility) and a suggested action.
Do not search the web; reason only from the numbers provided.
Format the answer as Markdown."""


class MissingCredentialError(Exception):
    """Raised when no API key is stored or configured."""
    pass


def resolve_api_key(conn: Optional[sqlite3.Connection] = None) -> Optional[str]:
    """
    Find the API key: stored value first, then the GEMINI_API_KEY environment variable.

    Args:
        conn: SQLite connection holding the settings table (optional)

    Returns:
        The key, or None when neither source has one
    """
    if conn is not None:
        stored = get_stored_api_key(conn)
        if stored:
            return stored

    env_key = os.getenv('GEMINI_API_KEY', '').strip()
    return env_key or None


def build_prompt(ticker: str, points: Sequence[EnrichedPoint], method: CalculationMethod) -> str:
    """Prompt text over the last PROMPT_POINTS points."""
    recent = list(points)[-PROMPT_POINTS:]
    context = '\n'.join(_describe_point(p) for p in recent)
    return USER_PROMPT.format(
        ticker=ticker,
        method=CalculationMethod(method).value,
        context=context
    )


def analyze_premium_trend(
    ticker: str,
    points: List[EnrichedPoint],
    method: CalculationMethod,
    api_key: Optional[str] = None,
    conn: Optional[sqlite3.Connection] = None
) -> str:
    """
    Ask the advisory model for a short analysis of the latest points.

    Only a missing credential propagates; every other failure is logged and
    turned into ANALYSIS_UNAVAILABLE_MESSAGE. Nothing is retried.

    Args:
        ticker: Fund code
        points: Enriched series, ascending; the last 5 points are used
        method: Premium calculation method tag
        api_key: Explicit key (skips lookup when given)
        conn: SQLite connection used to look up the stored key

    Returns:
        Markdown analysis text

    Raises:
        MissingCredentialError: If no API key is available
    """
    api_key = api_key or resolve_api_key(conn)
    if not api_key:
        raise MissingCredentialError(
            "No Gemini API key configured. Run: python cli.py set-key YOUR_KEY"
        )

    try:
        prompt = build_prompt(ticker, points, method)
        text = gemini_request(prompt=prompt, api_key=api_key)
        return text or NO_ANALYSIS_MESSAGE

    except Exception as e:
        logger.error(f"Analysis error for {ticker}: {e}")
        return ANALYSIS_UNAVAILABLE_MESSAGE


def _describe_point(point: EnrichedPoint) -> str:
    return (
        f"Date: {point.date.isoformat()}, Price: {point.close_price}, "
        f"NAV: {point.reference_value}, Premium: {point.premium_rate}%, "
        f"RSI: {point.rsi}, Volatility: {point.volatility}%"
    )
