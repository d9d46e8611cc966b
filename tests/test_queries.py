"""Tests for the sqlite persistence gateway."""

from __future__ import annotations

import logging
import sqlite3
from datetime import timedelta

import pytest

from biotrend.db.connection import DatabaseConnection
from biotrend.profiles.models import UserProfile
from biotrend.tracking.models import MealSlot
from biotrend.tracking.queries import MealQueries, UserQueries, WeightQueries
from conftest import TODAY


@pytest.fixture
def user_id(temp_db) -> int:
    profile = UserProfile(user_id=None, sex="male", age=40, height_cm=180, weight_kg=85)
    with temp_db.get_connection() as conn:
        return UserQueries.create_user(conn, profile)


class TestUserQueries:
    """Tests for UserQueries."""

    def test_round_trip(self, temp_db, user_id) -> None:
        with temp_db.get_connection() as conn:
            profile = UserQueries.get_user(conn, user_id)
        assert profile is not None
        assert profile.sex == "male"
        assert profile.activity_multiplier == 1.2
        assert profile.goal == "maintenance"
        assert profile.created_at is not None

    def test_default_user(self, temp_db, user_id) -> None:
        with temp_db.get_connection() as conn:
            assert UserQueries.get_default_user(conn).user_id == user_id

    def test_missing_user(self, temp_db) -> None:
        with temp_db.get_connection() as conn:
            assert UserQueries.get_user(conn, 99) is None
            assert UserQueries.get_default_user(conn) is None

    def test_update_requires_id(self, temp_db) -> None:
        profile = UserProfile(user_id=None, sex="male", age=40, height_cm=180, weight_kg=85)
        with temp_db.get_connection() as conn:
            with pytest.raises(ValueError):
                UserQueries.update_user(conn, profile)


class TestWeightQueries:
    """Tests for WeightQueries."""

    def test_upsert_by_date(self, temp_db, user_id) -> None:
        with temp_db.get_connection() as conn:
            WeightQueries.log_weight(conn, user_id, 85.0, TODAY, captured_at_millis=1)
            WeightQueries.log_weight(conn, user_id, 84.2, TODAY, captured_at_millis=2)
            readings = WeightQueries.get_readings(conn, user_id)
        assert len(readings) == 1
        assert readings[0].weight_kg == 84.2
        assert readings[0].captured_at_millis == 2

    def test_ascending_order(self, temp_db, user_id) -> None:
        with temp_db.get_connection() as conn:
            WeightQueries.log_weight(conn, user_id, 84.0, TODAY)
            WeightQueries.log_weight(conn, user_id, 85.0, TODAY - timedelta(days=3))
            readings = WeightQueries.get_readings(conn, user_id)
        assert [r.day for r in readings] == [TODAY - timedelta(days=3), TODAY]

    def test_days_filter(self, temp_db, user_id) -> None:
        with temp_db.get_connection() as conn:
            WeightQueries.log_weight(conn, user_id, 84.0, TODAY)
            WeightQueries.log_weight(conn, user_id, 85.0, TODAY - timedelta(days=20))
            readings = WeightQueries.get_readings(conn, user_id, days=14, end=TODAY)
        assert len(readings) == 1

    @pytest.mark.parametrize("weight", [0.0, -1.0, float("nan")])
    def test_rejects_invalid_weight(self, temp_db, user_id, weight) -> None:
        with temp_db.get_connection() as conn:
            with pytest.raises(ValueError):
                WeightQueries.log_weight(conn, user_id, weight, TODAY)

    def test_skips_malformed_rows(self, temp_db, user_id, caplog) -> None:
        """Rows with a missing or non-positive weight never reach the engine."""
        with temp_db.get_connection() as conn:
            WeightQueries.log_weight(conn, user_id, 84.0, TODAY)
            conn.execute(
                "INSERT INTO weight_log (user_id, measured_at, weight_kg) VALUES (?, ?, NULL)",
                (user_id, (TODAY - timedelta(days=1)).isoformat()),
            )
            conn.execute(
                "INSERT INTO weight_log (user_id, measured_at, weight_kg) VALUES (?, ?, -3)",
                (user_id, (TODAY - timedelta(days=2)).isoformat()),
            )
            with caplog.at_level(logging.WARNING, logger="biotrend.tracking.queries"):
                readings = WeightQueries.get_readings(conn, user_id)
        assert [r.weight_kg for r in readings] == [84.0]
        assert "Skipping malformed weight reading" in caplog.text


class TestMealQueries:
    """Tests for MealQueries."""

    def test_upsert_by_slot(self, temp_db, user_id) -> None:
        with temp_db.get_connection() as conn:
            MealQueries.log_meal_check(conn, user_id, TODAY, MealSlot.LUNCH, False, False, 2)
            MealQueries.log_meal_check(conn, user_id, TODAY, MealSlot.LUNCH, True, True, 5)
            MealQueries.log_meal_check(conn, user_id, TODAY, MealSlot.SNACK, False, True, 3)
            log = MealQueries.get_day_log(conn, user_id, TODAY)
        assert log is not None
        assert set(log.meals) == {MealSlot.LUNCH, MealSlot.SNACK}
        assert log.meals[MealSlot.LUNCH].protein_present
        assert log.meals[MealSlot.LUNCH].satiety == 5

    def test_day_logs_grouped(self, temp_db, user_id) -> None:
        with temp_db.get_connection() as conn:
            for offset in range(3):
                MealQueries.log_meal_check(
                    conn, user_id, TODAY - timedelta(days=offset), MealSlot.DINNER,
                    True, False, 3,
                )
            logs = MealQueries.get_day_logs(conn, user_id, days=7, end=TODAY)
        assert [log.day for log in logs] == [TODAY - timedelta(days=d) for d in (2, 1, 0)]

    def test_invalid_satiety(self, temp_db, user_id) -> None:
        with temp_db.get_connection() as conn:
            with pytest.raises(ValueError):
                MealQueries.log_meal_check(conn, user_id, TODAY, MealSlot.LUNCH, True, True, 0)

    def test_skips_malformed_rows(self, temp_db, user_id, caplog) -> None:
        with temp_db.get_connection() as conn:
            MealQueries.log_meal_check(conn, user_id, TODAY, MealSlot.LUNCH, True, False, 3)
            conn.execute(
                """INSERT INTO meal_checks (user_id, day, meal_slot, satiety)
                   VALUES (?, ?, 'brunch', 3)""",
                (user_id, TODAY.isoformat()),
            )
            conn.execute(
                """INSERT INTO meal_checks (user_id, day, meal_slot, satiety)
                   VALUES (?, ?, 'dinner', 9)""",
                (user_id, TODAY.isoformat()),
            )
            with caplog.at_level(logging.WARNING, logger="biotrend.tracking.queries"):
                log = MealQueries.get_day_log(conn, user_id, TODAY)
        assert list(log.meals) == [MealSlot.LUNCH]
        assert "Skipping malformed plate check" in caplog.text

    def test_empty_day(self, temp_db, user_id) -> None:
        with temp_db.get_connection() as conn:
            assert MealQueries.get_day_log(conn, user_id, TODAY) is None


class TestDatabaseConnection:
    """Tests for DatabaseConnection schema handling."""

    def test_fresh_database_missing_tables(self, tmp_path) -> None:
        db = DatabaseConnection(tmp_path / "sub" / "fresh.db")
        assert db.missing_tables() == ["user_profiles", "weight_log", "meal_checks"]
        db.ensure_schema()
        assert db.missing_tables() == []

    def test_foreign_keys_enforced(self, temp_db) -> None:
        with temp_db.get_connection() as conn:
            with pytest.raises(sqlite3.IntegrityError):
                WeightQueries.log_weight(conn, 42, 80.0, TODAY)

    def test_rollback_on_error(self, temp_db, user_id) -> None:
        with pytest.raises(RuntimeError):
            with temp_db.get_connection() as conn:
                conn.execute(
                    "INSERT INTO weight_log (user_id, measured_at, weight_kg) VALUES (?, ?, 80)",
                    (user_id, TODAY.isoformat()),
                )
                raise RuntimeError("boom")
        with temp_db.get_connection() as conn:
            assert WeightQueries.get_readings(conn, user_id) == []
