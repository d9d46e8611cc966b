"""Stored onboarding profile."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from biotrend.profiles.body_calc import Goal, Sex, activity_level_for


@dataclass
class UserProfile:
    """Onboarding biometrics, metric units."""

    user_id: Optional[int]
    sex: str  # 'male' or 'female'
    age: int
    height_cm: float
    weight_kg: float
    activity_multiplier: float = 1.2
    goal: str = "maintenance"
    target_weight_kg: Optional[float] = None
    display_name: Optional[str] = None
    created_at: Optional[datetime] = None

    def __post_init__(self) -> None:
        valid_sexes = tuple(s.value for s in Sex)
        if self.sex not in valid_sexes:
            raise ValueError(f"sex must be one of {valid_sexes}, got '{self.sex}'")
        valid_goals = tuple(g.value for g in Goal)
        if self.goal not in valid_goals:
            raise ValueError(f"goal must be one of {valid_goals}, got '{self.goal}'")
        activity_level_for(self.activity_multiplier)
        if self.age <= 0:
            raise ValueError(f"age must be positive, got {self.age}")
        if self.height_cm <= 0 or self.weight_kg <= 0:
            raise ValueError("height and weight must be positive")
        if self.target_weight_kg is not None and self.target_weight_kg <= 0:
            raise ValueError(
                f"target weight must be positive, got {self.target_weight_kg}"
            )
