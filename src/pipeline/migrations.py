"""Startup migration and audit helpers for the record store."""

from __future__ import annotations

import logging
from typing import Any, Dict, List

import psycopg2

from athlete_schema import upgrade_database
from constants import CATEGORY_TABLES
from db_utils import get_conn_str
from models import RECORD_MODELS

log = logging.getLogger("pipeline.migrations")


def _resolve_conn_str(conn_str: str | None) -> str:
    return (conn_str or get_conn_str()).strip()


def ensure_startup_schema(conn_str: str | None = None) -> None:
    """Run idempotent startup migrations before serving requests."""
    cs = _resolve_conn_str(conn_str)
    if not cs:
        raise RuntimeError("POSTGRES_CONNECTION_STRING (or DATABASE_URL) is not configured")

    upgrade_database(cs)
    log.info("Startup migrations completed.")


def _required_columns() -> Dict[str, List[str]]:
    return {
        CATEGORY_TABLES[category]: ["id", "date", *model.columns()]
        for category, model in RECORD_MODELS.items()
    }


def schema_audit(conn_str: str | None = None) -> Dict[str, Any]:
    """Return table/column audit data for runtime inspection."""
    cs = _resolve_conn_str(conn_str)
    if not cs:
        return {
            "ok": False,
            "error": "POSTGRES_CONNECTION_STRING (or DATABASE_URL) is not configured",
            "tables": {},
            "missing_tables": [],
        }

    required_columns = _required_columns()

    out: Dict[str, Any] = {"ok": True, "tables": {}, "missing_tables": []}
    conn = psycopg2.connect(cs)
    try:
        with conn.cursor() as cur:
            for table, expected in required_columns.items():
                cur.execute(
                    """
                    SELECT EXISTS (
                        SELECT 1
                        FROM information_schema.tables
                        WHERE table_schema = 'public' AND table_name = %s
                    )
                    """,
                    (table,),
                )
                exists = bool(cur.fetchone()[0])
                table_info: Dict[str, Any] = {"exists": exists, "columns": [], "missing_columns": []}
                if not exists:
                    out["missing_tables"].append(table)
                    out["tables"][table] = table_info
                    continue

                cur.execute(
                    """
                    SELECT column_name
                    FROM information_schema.columns
                    WHERE table_schema = 'public' AND table_name = %s
                    ORDER BY ordinal_position
                    """,
                    (table,),
                )
                cols = [r[0] for r in cur.fetchall()]
                table_info["columns"] = cols
                table_info["missing_columns"] = [c for c in expected if c not in cols]
                out["tables"][table] = table_info

        out["ok"] = not out["missing_tables"] and not any(
            info.get("missing_columns") for info in out["tables"].values()
        )
        return out
    finally:
        conn.close()
