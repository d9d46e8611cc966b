"""Weekly insight selection: behavior (protein adherence) vs biology (trend).

Every (tier, direction) pair maps to exactly one fixed message, and the
insufficient-data case has its own message, for seven outputs in total.

    adherence  | down              | flat              | up
    -----------+-------------------+-------------------+------------------
    high       | metabolic gold    | body adapting     | patience
    low        | progress w/ gaps  | opportunity ahead | biology is honest
"""

from __future__ import annotations

from biotrend.tracking.models import AdherenceTier, Direction

# Adherence at or above this percentage is "high"
HIGH_ADHERENCE_PCT = 60

INSUFFICIENT_DATA_MESSAGE = "Keep logging to unlock your weekly insight."
INSUFFICIENT_DATA_HEADLINE = "Keep logging"

INSIGHT_MESSAGES: dict[tuple[AdherenceTier, Direction], str] = {
    (AdherenceTier.HIGH, Direction.DOWN): (
        "Metabolic gold. Your consistency is paying off. Keep going."
    ),
    (AdherenceTier.HIGH, Direction.FLAT): (
        "Body adapting. Check sleep and stress, or slightly reduce portions."
    ),
    (AdherenceTier.HIGH, Direction.UP): (
        "Patience. Biology takes time. Trust the process and stay consistent."
    ),
    (AdherenceTier.LOW, Direction.DOWN): (
        "Progress despite gaps. Imagine what consistency could unlock."
    ),
    (AdherenceTier.LOW, Direction.FLAT): (
        "Opportunity ahead. More protein hits could break this plateau."
    ),
    (AdherenceTier.LOW, Direction.UP): (
        "Biology is honest. Focus on protein at every meal this week."
    ),
}

HEADLINES: dict[tuple[AdherenceTier, Direction], str] = {
    (AdherenceTier.HIGH, Direction.DOWN): "Metabolic gold",
    (AdherenceTier.HIGH, Direction.FLAT): "Body adapting",
    (AdherenceTier.HIGH, Direction.UP): "Patience required",
    (AdherenceTier.LOW, Direction.DOWN): "Mixed signals",
    (AdherenceTier.LOW, Direction.FLAT): "Opportunity ahead",
    (AdherenceTier.LOW, Direction.UP): "Biology is honest",
}


def adherence_tier(adherence_pct: int) -> AdherenceTier:
    """Bucket an adherence percentage into high or low."""
    if adherence_pct >= HIGH_ADHERENCE_PCT:
        return AdherenceTier.HIGH
    return AdherenceTier.LOW


def classify(
    adherence_pct: int,
    direction: Direction,
    has_enough_data: bool,
) -> str:
    """
    Pick the weekly insight message.

    Args:
        adherence_pct: Protein adherence over the window (0-100)
        direction: Week-over-week trend direction
        has_enough_data: False short-circuits to the "keep logging" message

    Returns:
        One of the seven fixed messages
    """
    if not has_enough_data:
        return INSUFFICIENT_DATA_MESSAGE
    return INSIGHT_MESSAGES[(adherence_tier(adherence_pct), Direction(direction))]


def headline(
    adherence_pct: int,
    direction: Direction,
    has_enough_data: bool,
) -> str:
    """Short card title paired with ``classify``."""
    if not has_enough_data:
        return INSUFFICIENT_DATA_HEADLINE
    return HEADLINES[(adherence_tier(adherence_pct), Direction(direction))]
