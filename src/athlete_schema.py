"""
Athlete Tracking Database Schema
================================
One append-only table per tracked category.

Tables:
  - strength_log     (exercise, weight, reps, sets)
  - cardio_log       (type, duration, distance, heart_rate)
  - nutrition_log    (calories, protein, carbs, fats)
  - recovery_log     (sleep_hours, hrv, soreness)
  - wrestling_log    (takedown_percentage, sparring_rounds, technique)
  - injury_log       (area, pain_level, type)

Every table carries id, notes and a date defaulting to now; history reads
are served by a (date DESC, id DESC) index.
"""
import logging

from db_utils import get_conn_str

logger = logging.getLogger("athlete_schema")

ATHLETE_SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS strength_log (
    id SERIAL PRIMARY KEY,
    exercise TEXT,
    weight NUMERIC,
    reps NUMERIC,
    sets NUMERIC,
    notes TEXT,
    date TIMESTAMPTZ NOT NULL DEFAULT NOW()
);
CREATE INDEX IF NOT EXISTS idx_strength_log_date ON strength_log(date DESC, id DESC);

CREATE TABLE IF NOT EXISTS cardio_log (
    id SERIAL PRIMARY KEY,
    type TEXT,              -- run, bike, row, ...
    duration NUMERIC,       -- minutes
    distance NUMERIC,       -- miles
    heart_rate NUMERIC,     -- average bpm
    notes TEXT,
    date TIMESTAMPTZ NOT NULL DEFAULT NOW()
);
CREATE INDEX IF NOT EXISTS idx_cardio_log_date ON cardio_log(date DESC, id DESC);

CREATE TABLE IF NOT EXISTS nutrition_log (
    id SERIAL PRIMARY KEY,
    calories NUMERIC,
    protein NUMERIC,        -- grams
    carbs NUMERIC,          -- grams
    fats NUMERIC,           -- grams
    notes TEXT,
    date TIMESTAMPTZ NOT NULL DEFAULT NOW()
);
CREATE INDEX IF NOT EXISTS idx_nutrition_log_date ON nutrition_log(date DESC, id DESC);

CREATE TABLE IF NOT EXISTS recovery_log (
    id SERIAL PRIMARY KEY,
    sleep_hours NUMERIC,
    hrv NUMERIC,            -- ms
    soreness NUMERIC,       -- 0-10 scale
    notes TEXT,
    date TIMESTAMPTZ NOT NULL DEFAULT NOW()
);
CREATE INDEX IF NOT EXISTS idx_recovery_log_date ON recovery_log(date DESC, id DESC);

CREATE TABLE IF NOT EXISTS wrestling_log (
    id SERIAL PRIMARY KEY,
    takedown_percentage NUMERIC,
    sparring_rounds NUMERIC,
    technique TEXT,
    notes TEXT,
    date TIMESTAMPTZ NOT NULL DEFAULT NOW()
);
CREATE INDEX IF NOT EXISTS idx_wrestling_log_date ON wrestling_log(date DESC, id DESC);

CREATE TABLE IF NOT EXISTS injury_log (
    id SERIAL PRIMARY KEY,
    area TEXT,
    pain_level NUMERIC,     -- 0-10 scale
    type TEXT,
    notes TEXT,
    date TIMESTAMPTZ NOT NULL DEFAULT NOW()
);
CREATE INDEX IF NOT EXISTS idx_injury_log_date ON injury_log(date DESC, id DESC);
"""


def upgrade_database(conn_str: str = None):
    """
    Apply the athlete schema to the database.
    Safe to run multiple times (uses IF NOT EXISTS).

    Parameters
    ----------
    conn_str : str, optional
        PostgreSQL connection string.  Falls back to
        POSTGRES_CONNECTION_STRING / DATABASE_URL.
    """
    import psycopg2

    conn_str = conn_str or get_conn_str()

    try:
        conn = psycopg2.connect(conn_str)
        conn.autocommit = True
        cur = conn.cursor()

        for statement in ATHLETE_SCHEMA_SQL.split(';'):
            stmt = statement.strip()
            if stmt:
                cur.execute(stmt)

        cur.close()
        conn.close()

        logger.info("Database schema upgraded successfully!")
        logger.info("   Tables: strength_log, cardio_log, nutrition_log,")
        logger.info("           recovery_log, wrestling_log, injury_log")

    except Exception as e:
        logger.error(f"Schema upgrade failed: {e}")
        raise


if __name__ == "__main__":
    upgrade_database()
