"""
End-to-end tests for composing an enriched series from raw observations.
"""

import pytest
from datetime import date, timedelta

from analysis.calculations.percentile import percentile_stats
from analysis.fund_series import compose_enriched_series
from analysis.models import PriceObservation, ReferenceObservation
from analysis.scoring import evaluate_fund


def _prices(closes, start=date(2024, 3, 4)):
    return [PriceObservation(date=start + timedelta(days=i), close=c) for i, c in enumerate(closes)]


def _flat_refs(start=date(2024, 3, 3), count=10, value=100.0):
    return [ReferenceObservation(date=start + timedelta(days=i), value=value) for i in range(count)]


class TestComposeEnrichedSeries:
    """Tests for the fetch-and-combine composition."""

    def test_short_series_scenario(self):
        """Five prices against a flat NAV end in a sell."""
        series = compose_enriched_series(_prices([100.0, 101.0, 99.0, 102.0, 103.0]), _flat_refs())

        premiums = [p.premium_rate for p in series]
        assert premiums == [0.0, 1.0, -1.0, 2.0, 3.0]
        assert all(p.rsi == 0.0 for p in series)
        assert all(p.volatility == 0.0 for p in series)

        stats = percentile_stats(premiums[-1], premiums)
        assert stats.rank == 100

        result = evaluate_fund(premiums[-1], stats.rank)
        assert result.score == 20
        assert result.label == "recommend sell"

    def test_lag_and_ref_date(self):
        """Each point uses the previous-day NAV."""
        series = compose_enriched_series(_prices([100.0, 101.0]), _flat_refs())

        assert series[0].date == date(2024, 3, 4)
        assert series[0].ref_date == date(2024, 3, 3)
        assert series[0].lag_days == 1

    def test_unalignable_prices_dropped(self):
        """Prices with no earlier NAV are omitted."""
        refs = [ReferenceObservation(date=date(2024, 3, 5), value=100.0)]

        series = compose_enriched_series(_prices([100.0, 101.0, 102.0]), refs)

        # 03-04 and 03-05 have no NAV strictly before them
        assert [p.date for p in series] == [date(2024, 3, 6)]
        assert series[0].premium_rate == 2.0

    def test_indicators_use_full_price_history(self):
        """Dropped leading prices still feed RSI."""
        closes = [100.0 + i for i in range(20)]
        refs = [ReferenceObservation(date=date(2024, 3, 20), value=110.0)]

        series = compose_enriched_series(_prices(closes), refs)

        # Only dates after 03-20 align; RSI at those indices is already seeded
        assert len(series) == 3
        assert all(p.rsi > 0.0 for p in series)

    def test_empty_prices(self):
        """No prices gives no points."""
        assert compose_enriched_series([], _flat_refs()) == []

    def test_empty_references(self):
        """No NAV gives no points, not an error."""
        assert compose_enriched_series(_prices([100.0, 101.0]), []) == []

    def test_invalid_observations_filtered(self):
        """Non-positive values are dropped before alignment."""
        prices = _prices([100.0, -1.0, 102.0])
        refs = _flat_refs()[:1] + [ReferenceObservation(date=date(2024, 3, 4), value=0.0)]

        series = compose_enriched_series(prices, refs)

        assert [p.close_price for p in series] == [100.0, 102.0]
        assert all(p.reference_value == 100.0 for p in series)
        assert series[-1].lag_days == 3
