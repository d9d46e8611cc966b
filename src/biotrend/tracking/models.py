"""Data models for weight tracking, plate checks and weekly review."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import date
from enum import Enum
from typing import Optional


class MealSlot(Enum):
    """Meal slots a plate check can be logged against."""
    BREAKFAST = "breakfast"
    LUNCH = "lunch"
    DINNER = "dinner"
    SNACK = "snack"


class Direction(Enum):
    """Week-over-week trend movement."""
    UP = "up"
    DOWN = "down"
    FLAT = "flat"


class AdherenceTier(Enum):
    """Protein habit coverage bucket."""
    HIGH = "high"
    LOW = "low"


SATIETY_RANGE = (1, 5)


@dataclass(frozen=True)
class WeightReading:
    """A single scale reading. One per user per calendar day."""

    day: date
    weight_kg: float
    captured_at_millis: int = 0


@dataclass(frozen=True)
class MealCheck:
    """A plate check: protein present, plants present, satiety 1-5."""

    protein_present: bool
    plants_present: bool
    satiety: int
    captured_at_millis: int = 0

    def __post_init__(self) -> None:
        low, high = SATIETY_RANGE
        if not low <= self.satiety <= high:
            raise ValueError(
                f"satiety must be between {low} and {high}, got {self.satiety}"
            )


@dataclass(frozen=True)
class DayBehaviorLog:
    """All plate checks logged on one calendar day."""

    day: date
    meals: dict[MealSlot, MealCheck] = field(default_factory=dict)

    @property
    def has_protein(self) -> bool:
        """True if any slot that day had protein."""
        return any(check.protein_present for check in self.meals.values())

    @property
    def has_plants(self) -> bool:
        """True if any slot that day had plants."""
        return any(check.plants_present for check in self.meals.values())

    @property
    def has_any_meal(self) -> bool:
        return bool(self.meals)


@dataclass(frozen=True)
class TrendPoint:
    """One point of the smoothed series (one per reading)."""

    day: date
    raw_weight_kg: Optional[float]
    trend_kg: float


@dataclass(frozen=True)
class TrendResult:
    """Output of a full trend recomputation."""

    series: list[TrendPoint]
    current: Optional[float]
    previous: Optional[float]


@dataclass(frozen=True)
class TrendSummary:
    """Week-over-week summary of the smoothed series."""

    current_trend_kg: Optional[float]
    trend_kg_week_ago: Optional[float]
    delta_kg: float
    direction: Direction


@dataclass(frozen=True)
class WeeklyStats:
    """Habit coverage over the trailing 7-day window."""

    protein_days: int
    plants_days: int
    total_logged_days: int
    adherence_pct: int


@dataclass(frozen=True)
class DayStats:
    """Today's plate-check tally."""

    protein_hits: int
    plants_hits: int
    meals_logged: list[MealSlot]
    has_protein_today: bool

    @property
    def meals_total(self) -> int:
        return len(self.meals_logged)


EMPTY_WEEKLY_STATS = WeeklyStats(
    protein_days=0, plants_days=0, total_logged_days=0, adherence_pct=0
)

EMPTY_TREND_SUMMARY = TrendSummary(
    current_trend_kg=None,
    trend_kg_week_ago=None,
    delta_kg=0.0,
    direction=Direction.FLAT,
)


def upsert_reading(
    readings: list[WeightReading], reading: WeightReading
) -> list[WeightReading]:
    """Return a new date-ordered list with ``reading`` replacing any same-day entry."""
    kept = [r for r in readings if r.day != reading.day]
    kept.append(reading)
    return sorted(kept, key=lambda r: r.day)


def upsert_meal_check(
    logs: list[DayBehaviorLog],
    day: date,
    slot: MealSlot,
    check: MealCheck,
) -> list[DayBehaviorLog]:
    """Return a new date-ordered list with ``check`` stored under ``day``/``slot``.

    A resubmission for the same slot overwrites the earlier check.
    """
    result = []
    found = False
    for log in logs:
        if log.day == day:
            meals = dict(log.meals)
            meals[slot] = check
            result.append(replace(log, meals=meals))
            found = True
        else:
            result.append(log)
    if not found:
        result.append(DayBehaviorLog(day=day, meals={slot: check}))
    return sorted(result, key=lambda log: log.day)
