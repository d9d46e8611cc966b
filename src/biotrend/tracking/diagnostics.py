"""Text reports for the weekly review and weight trend."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta
from typing import Optional, Sequence

from biotrend.tracking.ema import (
    classify_direction,
    compute,
    estimate_weekly_change,
    round_half_up,
)
from biotrend.tracking.models import TrendPoint, WeightReading
from biotrend.tracking.review import WeeklyReview

PLACEHOLDER = "--"

SPARK_CHARS = "▁▂▃▄▅▆▇█"


@dataclass
class WeightReport:
    """Summary of weight tracking over a period."""

    current_weight: float
    current_trend: float
    trend_change: float  # vs period start
    weekly_rate: float  # kg/week (negative = losing)
    period_days: int
    start_trend: float


def generate_weight_report(
    readings: Sequence[WeightReading],
    days: Optional[int] = None,
    today: Optional[date] = None,
) -> Optional[WeightReport]:
    """Generate a weight report over the last ``days`` days.

    The trend is replayed over every reading first and only then narrowed
    to the period, so the reported values match the full-history series.

    Returns:
        WeightReport, or None with fewer than two readings in the period
    """
    series = compute(readings).series
    if days is not None:
        start = (today or date.today()) - timedelta(days=days - 1)
        series = [p for p in series if p.day >= start]
    if len(series) < 2:
        return None

    oldest = series[0]
    latest = series[-1]

    period_days = (latest.day - oldest.day).days or 1

    return WeightReport(
        current_weight=latest.raw_weight_kg or latest.trend_kg,
        current_trend=latest.trend_kg,
        trend_change=latest.trend_kg - oldest.trend_kg,
        weekly_rate=estimate_weekly_change(oldest.trend_kg, latest.trend_kg, period_days),
        period_days=period_days,
        start_trend=oldest.trend_kg,
    )


def format_weight_report(report: WeightReport) -> str:
    """Format weight report as text."""
    direction = "lost" if report.trend_change < 0 else "gained"
    rate_dir = "losing" if report.weekly_rate < 0 else "gaining"
    summary = summarize_change_direction(report.trend_change)

    lines = [
        f"Weight Tracking Report (last {report.period_days} days)",
        "=" * 45,
        f"Current weight: {report.current_weight:.1f} kg",
        f"Current trend:  {report.current_trend:.1f} kg (EMA)",
        f"Trend change:   {abs(report.trend_change):.1f} kg {direction} (from {report.start_trend:.1f})",
        f"Rate:           {abs(report.weekly_rate):.2f} kg/week ({rate_dir})",
        f"Direction:      {summary}",
    ]

    return "\n".join(lines)


def summarize_change_direction(trend_change: float) -> str:
    """Describe a trend change using the same rounding and deadband as the weekly review."""
    return classify_direction(round_half_up(trend_change, 1)).value


def format_kg(value: Optional[float]) -> str:
    """Format a kg value, or the placeholder when there is none."""
    if value is None:
        return PLACEHOLDER
    return f"{value:.1f} kg"


def sparkline(points: Sequence[TrendPoint]) -> str:
    """Render trend values as a unicode sparkline."""
    if not points:
        return PLACEHOLDER
    values = [p.trend_kg for p in points]
    low, high = min(values), max(values)
    span = high - low
    if span == 0:
        return SPARK_CHARS[len(SPARK_CHARS) // 2] * len(values)
    top = len(SPARK_CHARS) - 1
    return "".join(SPARK_CHARS[round((v - low) / span * top)] for v in values)


def format_review(review: WeeklyReview) -> str:
    """Format the weekly review card as text."""
    stats = review.stats
    trend = review.trend

    if trend.current_trend_kg is None:
        delta = PLACEHOLDER
    else:
        delta = f"{trend.delta_kg:+.1f} kg ({trend.direction.value})"

    lines = [
        f"Weekly Review: {review.headline}",
        "=" * 45,
        f"Protein days:  {stats.protein_days}/7 ({stats.adherence_pct}%)",
        f"Plants days:   {stats.plants_days}/7",
        f"Logged days:   {stats.total_logged_days}/7",
        f"Trend:         {format_kg(trend.current_trend_kg)}",
        f"Week change:   {delta}",
        f"Sparkline:     {sparkline(review.history)}",
        "",
        review.insight,
    ]
    return "\n".join(lines)
