"""
Markdown rendering for the portfolio overview and the single-fund dashboard.
Pure functions - no I/O, just template rendering.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence

from analysis.calculations.percentile import percentile_stats
from analysis.models import EnrichedPoint, FundProfile, RankingRow, TopRecommendation
from analysis.ranking import TOP_PICK_GOOD
from analysis.scoring import classify_risk, evaluate_fund
from ingestion.transforms.aligner import classify_staleness, needs_freshness_banner
from reports.advice_builder import build_plain_advice
from reports.labelers import classify_rsi_zone, classify_vol_level, describe_rank


class ReportError(Exception):
    """Raised when report rendering fails."""
    pass


DETAIL_RANGES = (30, 90, 180, 365)
RANGE_LABELS = {
    30: 'last month',
    90: 'last 3 months',
    180: 'last 6 months',
    365: 'last year'
}
RECENT_ROWS = 10


def render_overview(rows: Sequence[RankingRow], top: Optional[TopRecommendation]) -> str:
    """
    Render the ranking table with the top-pick banner above it.

    Args:
        rows: Ranking rows, already sorted
        top: Top recommendation (None when no fund has data)

    Returns:
        Markdown string
    """
    sections = [
        "# ETF Premium Ranking",
        f"**Generated:** {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}",
        _render_top_banner(top),
        _render_ranking_table(rows)
    ]
    return '\n\n'.join(section for section in sections if section)


def render_detail(
    profile: FundProfile,
    series: Sequence[EnrichedPoint],
    range_days: int = DETAIL_RANGES[0]
) -> str:
    """
    Render the dashboard of one fund.

    Percentile statistics, score and advice are computed over the premiums of
    the last `range_days` points, as the selected time range is displayed.

    Args:
        profile: Fund profile
        series: Full enriched series, ascending
        range_days: Time range in points (30, 90, 180 or 365)

    Returns:
        Markdown string

    Raises:
        ReportError: If range_days is not a supported range
    """
    if range_days not in DETAIL_RANGES:
        raise ReportError(f"Unsupported range: {range_days}. Use one of {DETAIL_RANGES}")

    header = f"# {profile.name} ({profile.ticker})\n\n{profile.description}"

    if not series:
        return header + "\n\nNo market data available for this fund."

    displayed = list(series)[-range_days:]
    latest = displayed[-1]

    stats = percentile_stats(latest.premium_rate, [p.premium_rate for p in displayed])
    result = evaluate_fund(latest.premium_rate, stats.rank)
    risk = classify_risk(latest.premium_rate)

    sections = [header]

    if needs_freshness_banner(latest.lag_days):
        sections.append(
            f"> **Data freshness warning:** the reference NAV lags by {latest.lag_days} days "
            "(overseas holiday or source delay). The premium may not reflect the latest market."
        )

    sections.append(
        "## Advice\n\n" + build_plain_advice(
            latest.premium_rate, stats.rank, latest.rsi, latest.volatility, result.score
        )
    )

    sections.append(f"""## Snapshot ({RANGE_LABELS[range_days]})

**Date:** {latest.date.isoformat()}
**Close:** {latest.close_price:.3f}
**NAV:** {latest.reference_value:.4f} (as of {latest.ref_date.isoformat()}, {classify_staleness(latest.lag_days)})
**Premium:** {latest.premium_rate:.2f}%, {describe_rank(stats.rank, latest.premium_rate, stats.avg)}
**Range:** min {stats.min:.2f}% / avg {stats.avg:.2f}% / max {stats.max:.2f}% (P{stats.rank})
**Score:** {result.score} ({result.label})
**Risk:** {risk.label}. {risk.advice}
**RSI(14):** {latest.rsi:.1f} ({classify_rsi_zone(latest.rsi)})
**Volatility(30):** {latest.volatility:.1f}% ({classify_vol_level(latest.volatility)})
**Source:** {latest.source}""")

    sections.append(_render_recent_points(displayed[-RECENT_ROWS:]))

    return '\n\n'.join(sections)


def render_advice(ticker: str, text: str) -> str:
    """Wrap advisory text under a heading."""
    return f"# Analysis: {ticker}\n\n{text.strip()}"


def render_runs(runs: Sequence[Dict[str, Any]]) -> str:
    """
    Render fetch runs from the run registry, newest first.

    Args:
        runs: Run dictionaries as returned by storage.run_registry

    Returns:
        Markdown string
    """
    if not runs:
        return "# Fetch Runs\n\nNo runs recorded yet."

    lines = [
        "# Fetch Runs",
        "",
        "| Run | Job | Started | Status | Prices | Points | Duration | Error |",
        "|-----|-----|---------|--------|--------|--------|----------|-------|"
    ]

    for run in runs:
        seconds = run['duration_seconds']
        duration = '-' if seconds is None else f"{seconds:.1f}s"
        lines.append(
            f"| {run['run_id']} | {run['dag_name']} | "
            f"{run['started_at']:%Y-%m-%d %H:%M:%S} | {run['status'].value} | "
            f"{_or_dash(run['rows_in'])} | {_or_dash(run['rows_out'])} | "
            f"{duration} | "
            f"{run['error_message'] or ''} |"
        )

    return '\n'.join(lines)


def _render_top_banner(top: Optional[TopRecommendation]) -> str:
    if top is None:
        return "No fund has market data yet."

    name = f"{top.profile.name} ({top.profile.ticker})"
    if top.classification == TOP_PICK_GOOD:
        return f"> **Top pick:** {name}, score {top.score} ({top.label})."
    return (
        f"> **Caution:** the best candidate is {name} with score {top.score} ({top.label}). "
        "Even the top pick scores low; consider staying out."
    )


def _render_ranking_table(rows: Sequence[RankingRow]) -> str:
    lines = [
        "| Ticker | Name | Premium | Rank | Score | Label | Risk | Last Update |",
        "|--------|------|---------|------|-------|-------|------|-------------|"
    ]

    for row in rows:
        last_update = row.last_update.isoformat() if row.last_update else "Not available"
        lines.append(
            f"| {row.ticker} | {row.name} | {row.premium:.2f}% | P{row.rank} | "
            f"{row.score} | {row.label} | {row.risk_label} | {last_update} |"
        )

    return '\n'.join(lines)


def _render_recent_points(points: List[EnrichedPoint]) -> str:
    lines = [
        "## Recent Data",
        "",
        "| Date | Close | NAV Date | NAV | Premium | RSI | Volatility | Lag |",
        "|------|-------|----------|-----|---------|-----|------------|-----|"
    ]

    for p in reversed(points):
        lines.append(
            f"| {p.date.isoformat()} | {p.close_price:.3f} | {p.ref_date.isoformat()} | "
            f"{p.reference_value:.4f} | {p.premium_rate:.2f}% | {p.rsi:.1f} | "
            f"{p.volatility:.1f}% | {p.lag_days} |"
        )

    return '\n'.join(lines)


def _or_dash(value) -> str:
    return '-' if value is None else str(value)
