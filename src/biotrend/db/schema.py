"""SQLite database schema definitions."""

SCHEMA_SQL = """
-- Onboarding biometrics (metric)
CREATE TABLE IF NOT EXISTS user_profiles (
    user_id INTEGER PRIMARY KEY AUTOINCREMENT,
    display_name TEXT,
    sex TEXT NOT NULL,
    age INTEGER NOT NULL,
    height_cm REAL NOT NULL,
    weight_kg REAL NOT NULL,
    activity_multiplier REAL NOT NULL DEFAULT 1.2,
    goal TEXT NOT NULL DEFAULT 'maintenance',
    target_weight_kg REAL,
    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
);

-- One scale reading per user per calendar day
CREATE TABLE IF NOT EXISTS weight_log (
    log_id INTEGER PRIMARY KEY AUTOINCREMENT,
    user_id INTEGER NOT NULL,
    measured_at DATE NOT NULL,
    weight_kg REAL,
    captured_at_millis INTEGER NOT NULL DEFAULT 0,
    UNIQUE (user_id, measured_at),
    FOREIGN KEY (user_id) REFERENCES user_profiles(user_id)
);

CREATE INDEX IF NOT EXISTS idx_weight_log_user_date ON weight_log(user_id, measured_at);

-- One plate check per user per day per meal slot
CREATE TABLE IF NOT EXISTS meal_checks (
    check_id INTEGER PRIMARY KEY AUTOINCREMENT,
    user_id INTEGER NOT NULL,
    day DATE NOT NULL,
    meal_slot TEXT NOT NULL,
    protein_present BOOLEAN NOT NULL DEFAULT FALSE,
    plants_present BOOLEAN NOT NULL DEFAULT FALSE,
    satiety INTEGER NOT NULL,
    captured_at_millis INTEGER NOT NULL DEFAULT 0,
    UNIQUE (user_id, day, meal_slot),
    FOREIGN KEY (user_id) REFERENCES user_profiles(user_id)
);

CREATE INDEX IF NOT EXISTS idx_meal_checks_user_day ON meal_checks(user_id, day);
"""


TRACKING_TABLES = ("user_profiles", "weight_log", "meal_checks")


def get_schema_sql() -> str:
    """Return the complete schema SQL."""
    return SCHEMA_SQL
