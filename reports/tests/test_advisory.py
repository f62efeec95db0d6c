"""
Tests for advisory text - credential lookup, prompt contents and failure mapping.
"""

import pytest
import sqlite3
from datetime import date, timedelta
from unittest.mock import patch

from analysis.models import CalculationMethod, EnrichedPoint
from reports.advisory import (
    analyze_premium_trend,
    build_prompt,
    resolve_api_key,
    MissingCredentialError,
    ANALYSIS_UNAVAILABLE_MESSAGE,
    PROMPT_POINTS
)
from reports.gemini_client import GeminiError, GeminiTimeoutError
from storage.credential_store import set_stored_api_key
from storage.loaders import init_database


@pytest.fixture
def in_memory_db():
    """Create in-memory SQLite database for testing."""
    conn = sqlite3.connect(':memory:')
    init_database(conn)
    return conn


@pytest.fixture
def series():
    """Thirty points with distinguishable premiums."""
    start = date(2024, 2, 1)
    return [
        EnrichedPoint(
            date=start + timedelta(days=i),
            close_price=1.6,
            ref_date=start + timedelta(days=i - 1),
            reference_value=1.58,
            premium_rate=round(i * 0.1, 2),
            rsi=50.0,
            volatility=20.0,
            lag_days=1
        )
        for i in range(30)
    ]


class TestResolveApiKey:
    """Tests for the stored-then-env lookup."""

    def test_stored_key_wins(self, in_memory_db, monkeypatch):
        monkeypatch.setenv('GEMINI_API_KEY', 'from-env')
        set_stored_api_key(in_memory_db, 'from-store')

        assert resolve_api_key(in_memory_db) == 'from-store'

    def test_env_fallback(self, in_memory_db, monkeypatch):
        monkeypatch.setenv('GEMINI_API_KEY', 'from-env')

        assert resolve_api_key(in_memory_db) == 'from-env'

    def test_none_anywhere(self, in_memory_db, monkeypatch):
        monkeypatch.delenv('GEMINI_API_KEY', raising=False)

        assert resolve_api_key(in_memory_db) is None
        assert resolve_api_key() is None


class TestBuildPrompt:
    """Tests for prompt contents."""

    def test_uses_last_five_points(self, series):
        """Only the most recent points reach the prompt."""
        prompt = build_prompt('513100', series, CalculationMethod.PRECISE_NAV)

        assert '513100' in prompt
        assert 'PRECISE_NAV' in prompt
        assert prompt.count('Date: ') == PROMPT_POINTS
        assert 'Date: 2024-03-01' in prompt   # last point
        assert 'Date: 2024-02-25' not in prompt  # sixth from last
        assert 'Premium: 2.9%' in prompt


class TestAnalyzePremiumTrend:
    """Tests for the advisory call and its failure modes."""

    def test_missing_credential(self, series, monkeypatch):
        """No key raises the distinguished error."""
        monkeypatch.delenv('GEMINI_API_KEY', raising=False)

        with pytest.raises(MissingCredentialError):
            analyze_premium_trend('513100', series, CalculationMethod.PRECISE_NAV)

    @patch('reports.advisory.gemini_request')
    def test_success(self, mock_request, series):
        """Model text is returned as is."""
        mock_request.return_value = "1. Premium is elevated."

        text = analyze_premium_trend('513100', series, CalculationMethod.REALTIME_IOPV, api_key='k')

        assert text == "1. Premium is elevated."
        assert mock_request.call_args.kwargs['api_key'] == 'k'
        assert 'REALTIME_IOPV' in mock_request.call_args.kwargs['prompt']

    @patch('reports.advisory.gemini_request')
    def test_stored_key_used(self, mock_request, series, in_memory_db):
        """The stored key is picked up through the connection."""
        set_stored_api_key(in_memory_db, 'stored')
        mock_request.return_value = "ok"

        analyze_premium_trend('513100', series, CalculationMethod.PRECISE_NAV, conn=in_memory_db)

        assert mock_request.call_args.kwargs['api_key'] == 'stored'

    @pytest.mark.parametrize("error", [
        GeminiError("HTTP 400: API key not valid"),
        GeminiTimeoutError("Request timed out after 60s"),
        RuntimeError("unexpected"),
    ])
    @patch('reports.advisory.gemini_request')
    def test_failures_map_to_fixed_message(self, mock_request, error, series):
        """Any other failure returns the fixed message, called once."""
        mock_request.side_effect = error

        text = analyze_premium_trend('513100', series, CalculationMethod.PRECISE_NAV, api_key='k')

        assert text == ANALYSIS_UNAVAILABLE_MESSAGE
        assert mock_request.call_count == 1
