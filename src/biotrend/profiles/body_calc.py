"""Onboarding calorie and protein targets plus goal-arrival estimate.

Uses the Mifflin-St Jeor equation for BMR, multiplied by a Harris-Benedict
activity factor for TDEE. The goal shifts TDEE by a fixed amount and the
result is never allowed below a sex-specific safety floor.

All inputs are metric (kg, cm).
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import date, timedelta
from enum import Enum
from typing import Optional

from biotrend.errors import InvalidParameterError
from biotrend.tracking.ema import round_half_up


class Sex(Enum):
    """Biological sex for BMR calculation."""
    MALE = "male"
    FEMALE = "female"


class ActivityLevel(Enum):
    """Activity level for TDEE calculation."""
    SEDENTARY = "sedentary"          # Office job, minimal exercise
    LIGHT = "light"                  # Light exercise 1-3 days/week
    MODERATE = "moderate"            # Moderate exercise 3-5 days/week
    ACTIVE = "active"                # Hard exercise 6-7 days/week
    VERY_ACTIVE = "very_active"      # Physical job + hard training


class Goal(Enum):
    """Body composition goal."""
    WEIGHT_LOSS = "weight_loss"
    MAINTENANCE = "maintenance"
    MUSCLE_GAIN = "muscle_gain"


ACTIVITY_MULTIPLIERS = {
    ActivityLevel.SEDENTARY: 1.2,
    ActivityLevel.LIGHT: 1.375,
    ActivityLevel.MODERATE: 1.55,
    ActivityLevel.ACTIVE: 1.725,
    ActivityLevel.VERY_ACTIVE: 1.9,
}

# (label, description, hint) shown next to each choice during onboarding
ACTIVITY_DESCRIPTIONS = {
    ActivityLevel.SEDENTARY: (
        "Sedentary", "Office job, minimal exercise", "Most people fit here. Be honest."
    ),
    ActivityLevel.LIGHT: (
        "Lightly Active", "Light exercise 1-3 days/week", "Walking 30min daily counts."
    ),
    ActivityLevel.MODERATE: (
        "Moderately Active", "Moderate exercise 3-5 days/week", "Regular gym sessions."
    ),
    ActivityLevel.ACTIVE: (
        "Very Active", "Hard exercise 6-7 days/week", "Athletes and manual laborers."
    ),
    ActivityLevel.VERY_ACTIVE: (
        "Extremely Active", "Physical job + hard training", "Professional athletes only."
    ),
}

# kcal added to TDEE per goal
GOAL_ADJUSTMENTS = {
    Goal.WEIGHT_LOSS: -500,    # ~0.5 kg/week
    Goal.MAINTENANCE: 0,
    Goal.MUSCLE_GAIN: 250,     # lean surplus
}

FOCUS_LABELS = {
    Goal.WEIGHT_LOSS: "Caloric Deficit",
    Goal.MAINTENANCE: "Maintenance",
    Goal.MUSCLE_GAIN: "Lean Surplus",
}

MIN_SAFE_CALORIES = {
    Sex.MALE: 1500,
    Sex.FEMALE: 1200,
}

PROTEIN_GRAMS_PER_KG = 2.0

# Sustainable pace: 0.75% of body weight per week
WEEKLY_CHANGE_FRACTION = 0.0075


@dataclass(frozen=True)
class MacroPlan:
    """Daily targets computed at onboarding."""

    bmr_kcal: int
    tdee_kcal: int
    target_calories: int
    target_protein_grams: int
    focus_label: str

    def summary(self) -> str:
        """Human-readable summary of targets."""
        lines = [
            f"Focus: {self.focus_label}",
            f"BMR: {self.bmr_kcal} kcal/day",
            f"TDEE: {self.tdee_kcal} kcal/day",
            f"Target: {self.target_calories} kcal/day "
            f"({self.target_calories - self.tdee_kcal:+d} from TDEE)",
            f"Protein: {self.target_protein_grams}g/day",
        ]
        return "\n".join(lines)


@dataclass(frozen=True)
class ArrivalEstimate:
    """Projected date for reaching the goal weight."""

    weeks: int
    arrival_date: date

    @property
    def at_goal(self) -> bool:
        """Current weight already equals the goal; not a zero-week projection."""
        return self.weeks == 0


def activity_level_for(multiplier: float) -> ActivityLevel:
    """Map a raw activity multiplier back to its level.

    Raises:
        ValueError: If the multiplier is not one of the five supported values
    """
    for level, value in ACTIVITY_MULTIPLIERS.items():
        if math.isclose(value, multiplier):
            return level
    valid = sorted(ACTIVITY_MULTIPLIERS.values())
    raise ValueError(f"activity multiplier must be one of {valid}, got {multiplier}")


def calculate_bmr(
    age: int,
    sex: Sex,
    height_cm: float,
    weight_kg: float,
) -> float:
    """Calculate Basal Metabolic Rate using Mifflin-St Jeor equation.

    Args:
        age: Age in years
        sex: Biological sex
        height_cm: Height in centimetres
        weight_kg: Weight in kilograms

    Returns:
        BMR in calories per day (unrounded)
    """
    bmr = (10 * weight_kg) + (6.25 * height_cm) - (5 * age)
    if sex == Sex.MALE:
        return bmr + 5
    return bmr - 161


def calculate_tdee(bmr: float, activity_multiplier: float) -> float:
    """Calculate Total Daily Energy Expenditure (unrounded)."""
    return bmr * activity_multiplier


def plan(
    sex: str | Sex,
    age: int,
    height_cm: float,
    weight_kg: float,
    activity_multiplier: float,
    goal: str | Goal,
) -> MacroPlan:
    """Calculate calorie and protein targets.

    The goal adjustment is applied to unrounded TDEE and then clamped to the
    safety floor (1500 kcal male, 1200 kcal female). Every reported value is
    rounded half-up to a whole number only at the end.

    Args:
        sex: "male" or "female"
        age: Age in years
        height_cm: Height in centimetres
        weight_kg: Current weight in kilograms
        activity_multiplier: One of 1.2, 1.375, 1.55, 1.725, 1.9
        goal: "weight_loss", "maintenance" or "muscle_gain"

    Returns:
        MacroPlan

    Example:
        >>> plan("female", 30, 170, 70, 1.2, "weight_loss")
        MacroPlan(bmr_kcal=1452, tdee_kcal=1742, target_calories=1242,
                  target_protein_grams=140, focus_label='Caloric Deficit')
    """
    sex_enum = Sex(sex.lower()) if isinstance(sex, str) else sex
    goal_enum = Goal(goal.lower()) if isinstance(goal, str) else goal
    activity_level_for(activity_multiplier)

    bmr = calculate_bmr(age, sex_enum, height_cm, weight_kg)
    tdee = calculate_tdee(bmr, activity_multiplier)

    target = tdee + GOAL_ADJUSTMENTS[goal_enum]
    target = max(target, MIN_SAFE_CALORIES[sex_enum])

    protein = weight_kg * PROTEIN_GRAMS_PER_KG

    return MacroPlan(
        bmr_kcal=int(round_half_up(bmr)),
        tdee_kcal=int(round_half_up(tdee)),
        target_calories=int(round_half_up(target)),
        target_protein_grams=int(round_half_up(protein)),
        focus_label=FOCUS_LABELS[goal_enum],
    )


def estimate_arrival(
    current_weight_kg: float,
    target_weight_kg: float,
    today: Optional[date] = None,
) -> ArrivalEstimate:
    """Estimate when the goal weight is reached at 0.75% body weight per week.

    Args:
        current_weight_kg: Current weight, must be positive
        target_weight_kg: Goal weight, must be positive
        today: Start date of the projection (default: today)

    Returns:
        ArrivalEstimate. Equal weights give ``weeks == 0`` and ``at_goal``.

    Raises:
        InvalidParameterError: If either weight is not positive

    Example:
        >>> estimate_arrival(80, 75, date(2025, 1, 1)).weeks
        9
    """
    if not current_weight_kg > 0:
        raise InvalidParameterError(
            f"current weight must be positive, got {current_weight_kg}"
        )
    if not target_weight_kg > 0:
        raise InvalidParameterError(
            f"target weight must be positive, got {target_weight_kg}"
        )

    if today is None:
        today = date.today()

    weekly_change = current_weight_kg * WEEKLY_CHANGE_FRACTION
    weeks = math.ceil(abs(target_weight_kg - current_weight_kg) / weekly_change)

    return ArrivalEstimate(weeks=weeks, arrival_date=today + timedelta(weeks=weeks))


def plan_to_dict(macro_plan: MacroPlan, arrival: Optional[ArrivalEstimate] = None) -> dict:
    """Convert a MacroPlan (and optional arrival) to a dict for JSON output."""
    result = {
        "reference": {
            "bmr": macro_plan.bmr_kcal,
            "tdee": macro_plan.tdee_kcal,
        },
        "calories": macro_plan.target_calories,
        "protein_grams": macro_plan.target_protein_grams,
        "focus": macro_plan.focus_label,
    }
    if arrival is not None:
        result["arrival"] = {
            "weeks": arrival.weeks,
            "date": arrival.arrival_date.isoformat(),
            "at_goal": arrival.at_goal,
        }
    return result
