"""
Tests for normalizer functions - transform provider data to canonical observations.
Using golden fixtures for exact output validation.
"""

import json
import re
import pytest
from datetime import date
from pathlib import Path

from analysis.models import PriceObservation, ReferenceObservation
from ingestion.transforms.normalizers import normalize_price_rows, normalize_nav_rows

GOLDEN_DIR = Path(__file__).parent.parent.parent / 'tests/fixtures/golden'


def load_kline_fixture():
    with open(GOLDEN_DIR / 'eastmoney_kline_513100.json', 'r') as f:
        return json.load(f)['data']['klines']


def load_nav_fixture():
    text = (GOLDEN_DIR / 'pingzhongdata_513100.js').read_text(encoding='utf-8')
    match = re.search(r'Data_netWorthTrend\s*=\s*(\[.*?\])\s*;', text)
    return json.loads(match.group(1))


class TestNormalizePriceRows:
    """Tests for kline row normalization."""

    def test_golden_klines(self):
        """Fixture rows become typed observations."""
        result = normalize_price_rows(load_kline_fixture())

        assert len(result) == 5
        assert result[0] == PriceObservation(date=date(2024, 3, 6), close=1.601)
        assert result[-1] == PriceObservation(date=date(2024, 3, 12), close=1.604)

    def test_sorted_and_deduplicated(self):
        """Out-of-order rows are sorted; the last duplicate wins."""
        rows = ['2024-03-08,1.2', '2024-03-07,1.1', '2024-03-08,1.25']

        result = normalize_price_rows(rows)

        assert [r.date for r in result] == [date(2024, 3, 7), date(2024, 3, 8)]
        assert result[1].close == 1.25

    def test_malformed_rows_skipped(self):
        """Short or unparseable rows are skipped."""
        rows = ['2024-03-07', 'not-a-date,1.0', '2024-03-08,abc', '2024-03-09,1.3']

        result = normalize_price_rows(rows)

        assert result == [PriceObservation(date=date(2024, 3, 9), close=1.3)]

    def test_empty_list(self):
        """Empty input should return empty list."""
        assert normalize_price_rows([]) == []


class TestNormalizeNavRows:
    """Tests for net-worth trend normalization."""

    def test_golden_nav_beijing_dates(self):
        """Epoch-ms timestamps map to Beijing calendar dates."""
        result = normalize_nav_rows(load_nav_fixture())

        assert result == [
            ReferenceObservation(date=date(2024, 3, 6), value=1.5741),
            ReferenceObservation(date=date(2024, 3, 7), value=1.5853),
            ReferenceObservation(date=date(2024, 3, 8), value=1.5872),
        ]

    def test_bad_items_skipped(self):
        """Items missing x or y are skipped."""
        rows = [{'x': 1709827200000}, {'y': 1.0}, None, {'x': 1709827200000, 'y': '1.5'}]

        result = normalize_nav_rows(rows)

        assert result == [ReferenceObservation(date=date(2024, 3, 8), value=1.5)]

    def test_unconvertible_timestamps_skipped(self):
        """Out-of-range or NaN timestamps drop only their own item."""
        rows = [
            {'x': 1709827200000, 'y': 1.2},
            {'x': 1e22, 'y': 1.3},
            {'x': float('nan'), 'y': 1.4},
        ]

        result = normalize_nav_rows(rows)

        assert result == [ReferenceObservation(date=date(2024, 3, 8), value=1.2)]

    def test_sorted_output(self):
        """Descending input comes back ascending."""
        rows = [{'x': 1709827200000, 'y': 1.2}, {'x': 1709654400000, 'y': 1.1}]

        result = normalize_nav_rows(rows)

        assert [r.date for r in result] == [date(2024, 3, 6), date(2024, 3, 8)]

    def test_empty_list(self):
        """Empty input should return empty list."""
        assert normalize_nav_rows([]) == []
