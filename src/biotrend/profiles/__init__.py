"""Onboarding metabolic targets."""

from __future__ import annotations

from biotrend.profiles.body_calc import (
    ArrivalEstimate,
    MacroPlan,
    estimate_arrival,
    plan,
)

__all__ = ["ArrivalEstimate", "MacroPlan", "estimate_arrival", "plan"]
