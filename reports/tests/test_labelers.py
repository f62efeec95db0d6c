"""
Tests for classification labelers - threshold boundaries.
"""

import pytest

from reports.labelers import (
    classify_rsi_zone,
    classify_vol_level,
    classify_rank_zone,
    classify_premium_zone,
    describe_rank,
    LabelerError
)


class TestRsiZone:
    """Tests for RSI momentum zones."""

    @pytest.mark.parametrize("rsi,expected", [
        (0.0, 'oversold'), (29.99, 'oversold'), (30.0, 'neutral'),
        (70.0, 'neutral'), (70.01, 'overbought'), (100.0, 'overbought')
    ])
    def test_boundaries(self, rsi, expected):
        assert classify_rsi_zone(rsi) == expected

    def test_out_of_range(self):
        with pytest.raises(LabelerError, match="between 0 and 100"):
            classify_rsi_zone(101.0)

    def test_none(self):
        with pytest.raises(LabelerError, match="cannot be None"):
            classify_rsi_zone(None)


class TestVolLevel:
    """Tests for volatility levels in percent."""

    @pytest.mark.parametrize("vol,expected", [
        (0.0, 'low'), (14.99, 'low'), (15.0, 'moderate'), (25.0, 'moderate'), (25.01, 'high')
    ])
    def test_boundaries(self, vol, expected):
        assert classify_vol_level(vol) == expected

    def test_negative(self):
        with pytest.raises(LabelerError, match="non-negative"):
            classify_vol_level(-1.0)


class TestRankZone:
    """Tests for historical position zones."""

    @pytest.mark.parametrize("rank,expected", [
        (0, 'bottom'), (19, 'bottom'), (20, 'middle'), (80, 'middle'), (81, 'top'), (100, 'top')
    ])
    def test_boundaries(self, rank, expected):
        assert classify_rank_zone(rank) == expected


class TestPremiumZone:
    """Tests for coarse premium zones."""

    @pytest.mark.parametrize("premium,expected", [
        (-0.01, 'discount'), (0.0, 'fair'), (1.49, 'fair'), (1.5, 'expensive'), (4.2, 'expensive')
    ])
    def test_boundaries(self, premium, expected):
        assert classify_premium_zone(premium) == expected


class TestDescribeRank:
    """Tests for the one-line rank reading."""

    def test_above_average(self):
        assert describe_rank(85, 2.0, 1.0) == 'more expensive than 85% of the time'

    def test_below_average(self):
        assert describe_rank(10, 0.2, 1.0) == 'cheaper than 90% of the time'
