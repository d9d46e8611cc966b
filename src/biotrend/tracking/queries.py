"""Database queries for profiles, weight readings and plate checks.

Readings and plate checks are upserted by date key. Rows that cannot be
turned into a valid record are skipped with a warning, so the engine only
ever sees clean snapshots.
"""

from __future__ import annotations

import logging
import math
import sqlite3
import time
from datetime import date, datetime, timedelta
from typing import Optional

from biotrend.profiles.models import UserProfile
from biotrend.tracking.models import (
    DayBehaviorLog,
    MealCheck,
    MealSlot,
    WeightReading,
)

logger = logging.getLogger(__name__)


def _now_millis() -> int:
    return int(time.time() * 1000)


def _row_to_profile(row: sqlite3.Row) -> UserProfile:
    return UserProfile(
        user_id=row["user_id"],
        sex=row["sex"],
        age=row["age"],
        height_cm=row["height_cm"],
        weight_kg=row["weight_kg"],
        activity_multiplier=row["activity_multiplier"],
        goal=row["goal"],
        target_weight_kg=row["target_weight_kg"],
        display_name=row["display_name"],
        created_at=datetime.fromisoformat(row["created_at"]) if row["created_at"] else None,
    )


_PROFILE_COLUMNS = """
    user_id, display_name, sex, age, height_cm, weight_kg,
    activity_multiplier, goal, target_weight_kg, created_at
"""


class UserQueries:
    """Database queries for user profiles."""

    @staticmethod
    def create_user(conn: sqlite3.Connection, profile: UserProfile) -> int:
        """Create a new user profile and return the user_id."""
        cursor = conn.execute(
            """
            INSERT INTO user_profiles (display_name, sex, age, height_cm, weight_kg,
                                       activity_multiplier, goal, target_weight_kg)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                profile.display_name,
                profile.sex,
                profile.age,
                profile.height_cm,
                profile.weight_kg,
                profile.activity_multiplier,
                profile.goal,
                profile.target_weight_kg,
            ),
        )
        conn.commit()
        return cursor.lastrowid or 0

    @staticmethod
    def get_user(conn: sqlite3.Connection, user_id: int) -> Optional[UserProfile]:
        """Get user profile by ID."""
        row = conn.execute(
            f"SELECT {_PROFILE_COLUMNS} FROM user_profiles WHERE user_id = ?",
            (user_id,),
        ).fetchone()
        return _row_to_profile(row) if row is not None else None

    @staticmethod
    def get_default_user(conn: sqlite3.Connection) -> Optional[UserProfile]:
        """Get the first (default) user profile."""
        row = conn.execute(
            f"SELECT {_PROFILE_COLUMNS} FROM user_profiles ORDER BY user_id LIMIT 1"
        ).fetchone()
        return _row_to_profile(row) if row is not None else None

    @staticmethod
    def update_user(conn: sqlite3.Connection, profile: UserProfile) -> None:
        """Update an existing user profile."""
        if profile.user_id is None:
            raise ValueError("Cannot update profile without user_id")

        conn.execute(
            """
            UPDATE user_profiles
            SET display_name = ?, sex = ?, age = ?, height_cm = ?, weight_kg = ?,
                activity_multiplier = ?, goal = ?, target_weight_kg = ?
            WHERE user_id = ?
            """,
            (
                profile.display_name,
                profile.sex,
                profile.age,
                profile.height_cm,
                profile.weight_kg,
                profile.activity_multiplier,
                profile.goal,
                profile.target_weight_kg,
                profile.user_id,
            ),
        )
        conn.commit()


class WeightQueries:
    """Database queries for weight readings."""

    @staticmethod
    def log_weight(
        conn: sqlite3.Connection,
        user_id: int,
        weight_kg: float,
        measured_at: Optional[date] = None,
        captured_at_millis: Optional[int] = None,
    ) -> WeightReading:
        """
        Store a reading, replacing any reading already stored for that date.

        Raises:
            ValueError: If the weight is not a positive number
        """
        if math.isnan(weight_kg) or weight_kg <= 0:
            raise ValueError(f"weight must be positive, got {weight_kg}")
        if measured_at is None:
            measured_at = date.today()
        if captured_at_millis is None:
            captured_at_millis = _now_millis()

        conn.execute(
            """
            INSERT INTO weight_log (user_id, measured_at, weight_kg, captured_at_millis)
            VALUES (?, ?, ?, ?)
            ON CONFLICT (user_id, measured_at)
            DO UPDATE SET weight_kg = excluded.weight_kg,
                          captured_at_millis = excluded.captured_at_millis
            """,
            (user_id, measured_at.isoformat(), weight_kg, captured_at_millis),
        )
        conn.commit()

        return WeightReading(
            day=measured_at, weight_kg=weight_kg, captured_at_millis=captured_at_millis
        )

    @staticmethod
    def get_readings(
        conn: sqlite3.Connection,
        user_id: int,
        days: Optional[int] = None,
        end: Optional[date] = None,
    ) -> list[WeightReading]:
        """
        Get readings in ascending date order.

        Args:
            days: Only the ``days`` calendar days ending at ``end`` (all if None)
            end: Last day of the range (default: today)
        """
        query = """
            SELECT measured_at, weight_kg, captured_at_millis
            FROM weight_log WHERE user_id = ?
        """
        params: tuple = (user_id,)
        if days is not None:
            end = end or date.today()
            start = end - timedelta(days=days - 1)
            query += " AND measured_at BETWEEN ? AND ?"
            params = (user_id, start.isoformat(), end.isoformat())
        query += " ORDER BY measured_at"

        readings = []
        for row in conn.execute(query, params).fetchall():
            weight = row["weight_kg"]
            if weight is None or math.isnan(weight) or weight <= 0:
                logger.warning(
                    "Skipping malformed weight reading on %s: %r",
                    row["measured_at"],
                    weight,
                )
                continue
            readings.append(
                WeightReading(
                    day=date.fromisoformat(row["measured_at"]),
                    weight_kg=weight,
                    captured_at_millis=row["captured_at_millis"],
                )
            )
        return readings


class MealQueries:
    """Database queries for plate checks."""

    @staticmethod
    def log_meal_check(
        conn: sqlite3.Connection,
        user_id: int,
        day: date,
        slot: MealSlot,
        protein_present: bool,
        plants_present: bool,
        satiety: int,
        captured_at_millis: Optional[int] = None,
    ) -> MealCheck:
        """Store a plate check, replacing any earlier check for the same slot."""
        if captured_at_millis is None:
            captured_at_millis = _now_millis()
        check = MealCheck(
            protein_present=protein_present,
            plants_present=plants_present,
            satiety=satiety,
            captured_at_millis=captured_at_millis,
        )

        conn.execute(
            """
            INSERT INTO meal_checks (user_id, day, meal_slot, protein_present,
                                     plants_present, satiety, captured_at_millis)
            VALUES (?, ?, ?, ?, ?, ?, ?)
            ON CONFLICT (user_id, day, meal_slot)
            DO UPDATE SET protein_present = excluded.protein_present,
                          plants_present = excluded.plants_present,
                          satiety = excluded.satiety,
                          captured_at_millis = excluded.captured_at_millis
            """,
            (
                user_id,
                day.isoformat(),
                slot.value,
                check.protein_present,
                check.plants_present,
                check.satiety,
                check.captured_at_millis,
            ),
        )
        conn.commit()
        return check

    @staticmethod
    def get_day_logs(
        conn: sqlite3.Connection,
        user_id: int,
        days: int,
        end: Optional[date] = None,
    ) -> list[DayBehaviorLog]:
        """Get one DayBehaviorLog per day with checks, ``days`` days ending at ``end``."""
        end = end or date.today()
        start = end - timedelta(days=days - 1)
        rows = conn.execute(
            """
            SELECT day, meal_slot, protein_present, plants_present, satiety,
                   captured_at_millis
            FROM meal_checks
            WHERE user_id = ? AND day BETWEEN ? AND ?
            ORDER BY day
            """,
            (user_id, start.isoformat(), end.isoformat()),
        ).fetchall()

        by_day: dict[date, dict[MealSlot, MealCheck]] = {}
        for row in rows:
            try:
                slot = MealSlot(row["meal_slot"])
                check = MealCheck(
                    protein_present=bool(row["protein_present"]),
                    plants_present=bool(row["plants_present"]),
                    satiety=row["satiety"],
                    captured_at_millis=row["captured_at_millis"],
                )
            except (ValueError, TypeError) as exc:
                logger.warning("Skipping malformed plate check on %s: %s", row["day"], exc)
                continue
            by_day.setdefault(date.fromisoformat(row["day"]), {})[slot] = check

        return [DayBehaviorLog(day=day, meals=meals) for day, meals in sorted(by_day.items())]

    @staticmethod
    def get_day_log(
        conn: sqlite3.Connection, user_id: int, day: date
    ) -> Optional[DayBehaviorLog]:
        """Get the log for a single day, or None if nothing was checked."""
        logs = MealQueries.get_day_logs(conn, user_id, days=1, end=day)
        return logs[0] if logs else None
