"""Weekly review: recompute the whole pipeline from a pair of snapshots.

``build_review`` is a pure function of (weight readings, day logs, today).
``ReviewPublisher`` is the thin adapter for push-style data sources: each
full-replacement snapshot triggers a recompute and the resulting bundle is
handed to every subscriber. Bundles carry a sequence number so a consumer
can drop one that was superseded while it was still rendering.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from typing import Callable, Optional, Sequence

from biotrend.profiles.body_calc import (
    ArrivalEstimate,
    MacroPlan,
    estimate_arrival,
    plan,
)
from biotrend.tracking import behavior, ema, insight
from biotrend.tracking.models import (
    DayBehaviorLog,
    MealCheck,
    MealSlot,
    TrendPoint,
    TrendSummary,
    WeeklyStats,
    WeightReading,
    upsert_meal_check,
    upsert_reading,
)

logger = logging.getLogger(__name__)

# Trend points handed to the sparkline
SPARKLINE_POINTS = 7


@dataclass(frozen=True)
class WeeklyReview:
    """View-ready bundle for the weekly insight card."""

    stats: WeeklyStats
    trend: TrendSummary
    history: list[TrendPoint]
    insight: str
    headline: str
    has_enough_data: bool

    def to_dict(self) -> dict:
        """Convert to a JSON-friendly dict."""
        return {
            "stats": {
                "protein_days": self.stats.protein_days,
                "plants_days": self.stats.plants_days,
                "total_logged_days": self.stats.total_logged_days,
                "adherence_pct": self.stats.adherence_pct,
            },
            "trend": {
                "current_kg": self.trend.current_trend_kg,
                "week_ago_kg": self.trend.trend_kg_week_ago,
                "delta_kg": self.trend.delta_kg,
                "direction": self.trend.direction.value,
            },
            "history": [
                {
                    "date": point.day.isoformat(),
                    "weight_kg": point.raw_weight_kg,
                    "trend_kg": point.trend_kg,
                }
                for point in self.history
            ],
            "headline": self.headline,
            "insight": self.insight,
            "has_enough_data": self.has_enough_data,
        }


@dataclass(frozen=True)
class OnboardingResult:
    """Targets and projection shown at the end of onboarding."""

    plan: MacroPlan
    arrival: ArrivalEstimate


def build_review(
    readings: Sequence[WeightReading],
    logs: Sequence[DayBehaviorLog],
    today: date,
    sparkline_points: int = SPARKLINE_POINTS,
) -> WeeklyReview:
    """
    Run trend, aggregation and classification over one snapshot.

    Args:
        readings: Weight readings (any order, one per date)
        logs: Day behavior logs; only the 7 days ending ``today`` count
        today: Reference date for the behavior window
        sparkline_points: Number of trailing trend points to return

    Returns:
        WeeklyReview bundle. Sparse input yields placeholders, never an error.
    """
    trend_result = ema.compute(readings)
    summary = ema.summarize(trend_result.series)
    stats = behavior.aggregate(logs, today)

    enough = behavior.has_enough_data(
        stats.total_logged_days, len(trend_result.series)
    )
    message = insight.classify(stats.adherence_pct, summary.direction, enough)
    title = insight.headline(stats.adherence_pct, summary.direction, enough)

    history = trend_result.series[-sparkline_points:] if sparkline_points > 0 else []

    logger.debug(
        "Review recomputed: %d trend points, %d logged days, direction=%s, adherence=%d%%",
        len(trend_result.series),
        stats.total_logged_days,
        summary.direction.value,
        stats.adherence_pct,
    )

    return WeeklyReview(
        stats=stats,
        trend=summary,
        history=list(history),
        insight=message,
        headline=title,
        has_enough_data=enough,
    )


def build_onboarding(
    sex: str,
    age: int,
    height_cm: float,
    weight_kg: float,
    activity_multiplier: float,
    goal: str,
    target_weight_kg: float,
    today: Optional[date] = None,
) -> OnboardingResult:
    """Compute the onboarding blueprint: macro plan plus arrival estimate."""
    return OnboardingResult(
        plan=plan(sex, age, height_cm, weight_kg, activity_multiplier, goal),
        arrival=estimate_arrival(weight_kg, target_weight_kg, today),
    )


ReviewCallback = Callable[[int, WeeklyReview], None]


class ReviewPublisher:
    """Recomputes the weekly review whenever a snapshot is pushed.

    Snapshots replace the previous collection in full. The last snapshot
    wins: every publish gets a new sequence number and ``is_current`` tells
    a consumer whether the bundle it holds is still the latest.
    """

    def __init__(
        self,
        today_provider: Callable[[], date] = date.today,
        sparkline_points: int = SPARKLINE_POINTS,
    ):
        self._today_provider = today_provider
        self._sparkline_points = sparkline_points
        self._readings: list[WeightReading] = []
        self._logs: list[DayBehaviorLog] = []
        self._subscribers: list[ReviewCallback] = []
        self._sequence = 0
        self._latest: Optional[WeeklyReview] = None

    @property
    def latest(self) -> Optional[WeeklyReview]:
        """Most recently published bundle, or None before the first snapshot."""
        return self._latest

    @property
    def sequence(self) -> int:
        return self._sequence

    def is_current(self, sequence: int) -> bool:
        """True if ``sequence`` belongs to the most recent publish."""
        return sequence == self._sequence

    def subscribe(self, callback: ReviewCallback) -> Callable[[], None]:
        """Register a callback; returns a function that unregisters it.

        If a bundle has already been published the callback receives it
        immediately.
        """
        self._subscribers.append(callback)
        if self._latest is not None:
            callback(self._sequence, self._latest)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def on_weight_readings(self, snapshot: Sequence[WeightReading]) -> WeeklyReview:
        """Replace the reading snapshot and republish."""
        self._readings = list(snapshot)
        return self._publish()

    def on_behavior_logs(self, snapshot: Sequence[DayBehaviorLog]) -> WeeklyReview:
        """Replace the day-log snapshot and republish."""
        self._logs = list(snapshot)
        return self._publish()

    def log_weight(self, reading: WeightReading) -> WeeklyReview:
        """Add a reading to the held snapshot, replacing any for the same date."""
        return self.on_weight_readings(upsert_reading(self._readings, reading))

    def log_meal_check(self, day: date, slot: MealSlot, check: MealCheck) -> WeeklyReview:
        """Store a plate check in the held snapshot, replacing the same slot."""
        return self.on_behavior_logs(upsert_meal_check(self._logs, day, slot, check))

    def _publish(self) -> WeeklyReview:
        review = build_review(
            self._readings,
            self._logs,
            self._today_provider(),
            sparkline_points=self._sparkline_points,
        )
        self._sequence += 1
        self._latest = review
        sequence = self._sequence
        for callback in list(self._subscribers):
            callback(sequence, review)
        return review
