"""Pytest fixtures for biotrend tests."""

from __future__ import annotations

import logging
import tempfile
from datetime import date, timedelta
from pathlib import Path

import pytest

from biotrend.app_logging import LOGGER_NAME
from biotrend.db.connection import DatabaseConnection, set_db
from biotrend.tracking.models import (
    DayBehaviorLog,
    MealCheck,
    MealSlot,
    WeightReading,
)

TODAY = date(2025, 3, 14)


def make_readings(weights: list[float], end: date = TODAY) -> list[WeightReading]:
    """Daily readings ending at ``end``, oldest first."""
    start = end - timedelta(days=len(weights) - 1)
    return [
        WeightReading(day=start + timedelta(days=i), weight_kg=w)
        for i, w in enumerate(weights)
    ]


def make_log(
    day: date,
    protein: bool = False,
    plants: bool = False,
    slot: MealSlot = MealSlot.LUNCH,
) -> DayBehaviorLog:
    """Day log with a single plate check."""
    return DayBehaviorLog(
        day=day,
        meals={slot: MealCheck(protein_present=protein, plants_present=plants, satiety=3)},
    )


@pytest.fixture
def temp_db():
    """Create a temporary database with schema."""
    with tempfile.NamedTemporaryFile(suffix=".db", delete=False) as f:
        db_path = Path(f.name)

    db = DatabaseConnection(db_path)
    db.initialize_schema()

    yield db

    # Cleanup
    db_path.unlink(missing_ok=True)


@pytest.fixture
def cli_db(temp_db, monkeypatch, tmp_path):
    """Point the CLI at the temporary database and an empty config dir."""
    monkeypatch.setattr(
        "biotrend.config.settings._default_config_dir", lambda: tmp_path / ".biotrend"
    )
    monkeypatch.setattr("biotrend.config.settings._settings", None)
    set_db(temp_db)
    yield temp_db
    set_db(None)


@pytest.fixture(autouse=True)
def reset_package_logger():
    """Undo configure_logging so caplog sees records from every test."""
    yield
    logger = logging.getLogger(LOGGER_NAME)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    logger.propagate = True
    logger.setLevel(logging.NOTSET)
