"""Exponentially smoothed moving average for weight tracking.

The trend follows the Hacker's Diet recurrence:
    T_n = T_{n-1} × (1 - α) + W_n × α

With α = 0.1 the filter has roughly a 10-reading time constant, which
removes day-to-day noise from water retention, gut contents and scale
error while tracking the underlying weight.

The recurrence steps once per reading, not once per calendar day. A
reading taken after a gap of several days is treated as the next sample.

The series is always replayed from the full, date-ordered history. No
running trend is stored, so the same readings always produce the same
series regardless of the order they arrived in.

Weights are not validated here. Callers drop non-positive or NaN readings
before they reach this module.

Reference: https://www.fourmilab.ch/hackdiet/
"""

from __future__ import annotations

import math
from datetime import date
from typing import Optional, Sequence

from biotrend.tracking.models import (
    EMPTY_TREND_SUMMARY,
    Direction,
    TrendPoint,
    TrendResult,
    TrendSummary,
    WeightReading,
)

# Classic Hacker's Diet smoothing factor
DEFAULT_SMOOTHING = 0.1

# |delta| at or below this many kg counts as no movement
FLAT_THRESHOLD_KG = 0.15

# Number of trend points spanned by a week-over-week comparison
WEEK_POINTS = 7


def round_half_up(value: float, digits: int = 0) -> float:
    """Round with ties going up, matching ``Math.round`` semantics.

    Python's ``round`` rounds the exact binary value, so ``round(70.05, 1)``
    gives 70.0. Display values here scale first and then round, which gives
    70.1 for the same input.

    Example:
        >>> round_half_up(70.05, 1)
        70.1
        >>> round_half_up(1451.5)
        1452.0
    """
    scale = 10 ** digits
    return math.floor(value * scale + 0.5) / scale


def update_trend(
    prev_trend: float,
    today_weight: float,
    smoothing: float = DEFAULT_SMOOTHING,
) -> float:
    """
    Calculate the next trend value.

    Args:
        prev_trend: Previous trend value (T_{n-1})
        today_weight: New scale weight (W_n)
        smoothing: Smoothing factor α, default 0.1

    Returns:
        Next trend value (T_n)

    Example:
        >>> update_trend(70.0, 70.5)
        70.05
    """
    return prev_trend * (1 - smoothing) + today_weight * smoothing


def calculate_trend_from_scratch(
    weights: Sequence[float],
    smoothing: float = DEFAULT_SMOOTHING,
) -> list[float]:
    """
    Calculate unrounded trend values for a chronological list of weights.

    The first weight seeds the trend.

    Example:
        >>> calculate_trend_from_scratch([70.0, 70.5, 69.8])
        [70.0, 70.05, 70.025]  # approximately
    """
    if not weights:
        return []

    trends = [weights[0]]
    for weight in weights[1:]:
        trends.append(update_trend(trends[-1], weight, smoothing))
    return trends


def compute(
    readings: Sequence[WeightReading],
    smoothing: float = DEFAULT_SMOOTHING,
) -> TrendResult:
    """
    Recompute the trend series from the full reading history.

    Args:
        readings: Weight readings, one per date. Sorted here by date.
        smoothing: Smoothing factor α, default 0.1

    Returns:
        TrendResult with one point per reading (trend rounded to 0.1 kg),
        the latest trend as ``current`` and the one before it as
        ``previous``. A single reading gives ``previous == current``; no
        readings give ``None`` for both and an empty series.
    """
    if not readings:
        return TrendResult(series=[], current=None, previous=None)

    ordered = sorted(readings, key=lambda r: r.day)
    trends = calculate_trend_from_scratch(
        [r.weight_kg for r in ordered], smoothing
    )

    series = [
        TrendPoint(
            day=reading.day,
            raw_weight_kg=reading.weight_kg,
            trend_kg=round_half_up(trend, 1),
        )
        for reading, trend in zip(ordered, trends)
    ]

    current = series[-1].trend_kg
    previous = series[-2].trend_kg if len(series) > 1 else current
    return TrendResult(series=series, current=current, previous=previous)


def classify_direction(
    delta_kg: float, threshold: float = FLAT_THRESHOLD_KG
) -> Direction:
    """Classify a trend delta against the ±threshold deadband.

    Example:
        >>> classify_direction(0.15)
        <Direction.FLAT: 'flat'>
        >>> classify_direction(-0.1501)
        <Direction.DOWN: 'down'>
    """
    if delta_kg > threshold:
        return Direction.UP
    if delta_kg < -threshold:
        return Direction.DOWN
    return Direction.FLAT


def summarize(
    series: Sequence[TrendPoint], window: int = WEEK_POINTS
) -> TrendSummary:
    """
    Summarize week-over-week movement of a trend series.

    The comparison point is ``window`` points back from the latest one, or
    the oldest point when the series is shorter.

    Args:
        series: Trend points in date order (as returned by ``compute``)
        window: Points spanned by the comparison, default 7

    Returns:
        TrendSummary. Fewer than two points give no trend values, zero
        delta and a flat direction, since there is nothing to compare yet.
    """
    if len(series) < 2:
        return EMPTY_TREND_SUMMARY

    current = series[-1].trend_kg
    week_ago = series[max(0, len(series) - window)].trend_kg
    delta = round_half_up(current - week_ago, 1)

    return TrendSummary(
        current_trend_kg=current,
        trend_kg_week_ago=week_ago,
        delta_kg=delta,
        direction=classify_direction(delta),
    )


def estimate_weekly_change(trend_start: float, trend_end: float, days: int = 7) -> float:
    """
    Estimate weekly weight change from trend values.

    Args:
        trend_start: Trend value at start of period
        trend_end: Trend value at end of period
        days: Number of days in period (default 7)

    Returns:
        Estimated weekly change in kg (negative = losing)
    """
    if days <= 0:
        days = 1
    daily_change = (trend_end - trend_start) / days
    return daily_change * 7


def reading_on(
    readings: Sequence[WeightReading], day: date
) -> Optional[WeightReading]:
    """Return the reading logged on ``day``, if any."""
    for reading in readings:
        if reading.day == day:
            return reading
    return None
