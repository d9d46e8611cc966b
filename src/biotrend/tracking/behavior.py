"""Weekly habit aggregation over plate-check logs.

A day "has protein" when any slot logged that day had protein; plants are
counted the same way, independently. Adherence is protein coverage of the
whole 7-day window:

    adherence_pct = round(protein_days / 7 × 100)

The denominator is the window size, not the number of days that were
logged. Three logged days with protein on each gives 43, not 100.
"""

from __future__ import annotations

from datetime import date, timedelta
from typing import Iterable, Optional

from biotrend.tracking.ema import round_half_up
from biotrend.tracking.models import (
    EMPTY_WEEKLY_STATS,
    DayBehaviorLog,
    DayStats,
    MealSlot,
    WeeklyStats,
)

WINDOW_DAYS = 7

# Logged days or trend points needed before an insight is shown
MIN_DAYS_FOR_INSIGHT = 3


def window_bounds(today: date, days: int = WINDOW_DAYS) -> tuple[date, date]:
    """Return the inclusive ``(start, end)`` dates of the trailing window."""
    return today - timedelta(days=days - 1), today


def logs_in_window(
    logs: Iterable[DayBehaviorLog],
    today: date,
    days: int = WINDOW_DAYS,
) -> list[DayBehaviorLog]:
    """Filter logs to the trailing window, one log per date.

    When a date appears more than once the later entry in ``logs`` wins.
    """
    start, end = window_bounds(today, days)
    by_day: dict[date, DayBehaviorLog] = {}
    for log in logs:
        if start <= log.day <= end:
            by_day[log.day] = log
    return [by_day[d] for d in sorted(by_day)]


def adherence_percent(protein_days: int, days: int = WINDOW_DAYS) -> int:
    """Protein coverage of the window as a whole percentage in 0..100."""
    if days <= 0:
        return 0
    pct = int(round_half_up(protein_days / days * 100))
    return max(0, min(100, pct))


def aggregate(
    logs: Iterable[DayBehaviorLog],
    today: date,
) -> WeeklyStats:
    """
    Aggregate plate checks over the 7 days ending ``today``.

    Args:
        logs: Day logs; anything outside ``[today - 6, today]`` is ignored
        today: Last day of the window

    Returns:
        WeeklyStats for the window. No logs gives all zeros.
    """
    window = logs_in_window(logs, today)
    if not window:
        return EMPTY_WEEKLY_STATS

    protein_days = sum(1 for log in window if log.has_protein)
    plants_days = sum(1 for log in window if log.has_plants)
    logged_days = sum(1 for log in window if log.has_any_meal)

    return WeeklyStats(
        protein_days=protein_days,
        plants_days=plants_days,
        total_logged_days=logged_days,
        adherence_pct=adherence_percent(protein_days),
    )


def day_stats(log: Optional[DayBehaviorLog]) -> DayStats:
    """Tally a single day's plate checks for the daily card."""
    if log is None or not log.meals:
        return DayStats(
            protein_hits=0, plants_hits=0, meals_logged=[], has_protein_today=False
        )

    slots = [slot for slot in MealSlot if slot in log.meals]
    protein_hits = sum(1 for slot in slots if log.meals[slot].protein_present)
    plants_hits = sum(1 for slot in slots if log.meals[slot].plants_present)

    return DayStats(
        protein_hits=protein_hits,
        plants_hits=plants_hits,
        meals_logged=slots,
        has_protein_today=protein_hits > 0,
    )


def has_enough_data(
    total_logged_days: int,
    series_length: int,
    minimum: int = MIN_DAYS_FOR_INSIGHT,
) -> bool:
    """True once either the behavior log or the trend series has ``minimum`` entries."""
    return total_logged_days >= minimum or series_length >= minimum
