"""Weight trend and habit tracking.

Key components:
- EMA trend calculation (10% smoothing, replayed from full history)
- Weekly habit aggregation over plate checks
- Insight classification over (adherence tier, trend direction)

The weekly review orchestration lives in ``biotrend.tracking.review``.
"""

from __future__ import annotations

from biotrend.tracking.behavior import aggregate, day_stats, has_enough_data
from biotrend.tracking.ema import compute, summarize, update_trend
from biotrend.tracking.insight import classify
from biotrend.tracking.models import (
    DayBehaviorLog,
    Direction,
    MealCheck,
    MealSlot,
    TrendPoint,
    TrendSummary,
    WeeklyStats,
    WeightReading,
)

__all__ = [
    "DayBehaviorLog",
    "Direction",
    "MealCheck",
    "MealSlot",
    "TrendPoint",
    "TrendSummary",
    "WeeklyStats",
    "WeightReading",
    "aggregate",
    "classify",
    "compute",
    "day_stats",
    "has_enough_data",
    "summarize",
    "update_trend",
]
