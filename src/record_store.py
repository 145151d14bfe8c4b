"""
PostgreSQL-backed record store.

Append/query access keyed by category.  History is always returned
latest-first (date DESC, id DESC), so index 0 is the most recent record.
Rows are returned in wire shape (camelCase keys, ISO dates).
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import psycopg2
from psycopg2.extras import RealDictCursor

from constants import CATEGORY_TABLES
from db_utils import get_conn_str, to_jsonable
from errors import StoreError
from models import RECORD_MODELS, TrainingRecord

log = logging.getLogger("record_store")


class RecordStore:
    """Thin psycopg2 mapping for the six category tables."""

    def __init__(self, conn_str: Optional[str] = None) -> None:
        self._conn_str = conn_str

    @property
    def conn_str(self) -> str:
        return self._conn_str or get_conn_str()

    def _connect(self):
        cs = self.conn_str
        if not cs:
            raise StoreError("POSTGRES_CONNECTION_STRING is not set")
        try:
            return psycopg2.connect(cs)
        except psycopg2.Error as e:
            raise StoreError(f"Database unreachable: {e}") from e

    @staticmethod
    def _table(category: str) -> str:
        try:
            return CATEGORY_TABLES[category]
        except KeyError:
            raise StoreError(f"Unknown category: {category}") from None

    @staticmethod
    def _to_wire(category: str, row: Dict[str, Any]) -> Dict[str, Any]:
        clean = {k: to_jsonable(v) for k, v in dict(row).items()}
        return RECORD_MODELS[category].model_validate(clean).to_wire()

    # ─── Writes ───────────────────────────────────────────────

    def insert(self, category: str, record: TrainingRecord) -> Dict[str, Any]:
        """Persist one record and return it as stored (with id and date)."""
        table = self._table(category)
        row = record.to_row()
        cols = list(row.keys())
        placeholders = ", ".join(["%s"] * len(cols))
        returning = ", ".join(["id", "date", *record.columns()])

        conn = self._connect()
        try:
            with conn.cursor(cursor_factory=RealDictCursor) as cur:
                cur.execute(
                    f"INSERT INTO {table} ({', '.join(cols)}) VALUES ({placeholders}) RETURNING {returning}",
                    tuple(row[c] for c in cols),
                )
                stored = cur.fetchone()
            conn.commit()
        except psycopg2.Error as e:
            conn.rollback()
            log.error("Insert into %s failed: %s", table, e)
            raise StoreError(f"Failed to save {category} record") from e
        finally:
            conn.close()

        return self._to_wire(category, stored)

    # ─── Reads ────────────────────────────────────────────────

    def history(self, category: str, limit: Optional[int] = None) -> List[Dict[str, Any]]:
        """Return stored records for a category, latest first."""
        table = self._table(category)
        query = f"SELECT * FROM {table} ORDER BY date DESC, id DESC"
        params: tuple = ()
        if limit is not None:
            query += " LIMIT %s"
            params = (int(limit),)

        conn = self._connect()
        try:
            with conn.cursor(cursor_factory=RealDictCursor) as cur:
                cur.execute(query, params)
                rows = cur.fetchall()
        except psycopg2.Error as e:
            log.error("History query on %s failed: %s", table, e)
            raise StoreError(f"Failed to fetch {category} history") from e
        finally:
            conn.close()

        return [self._to_wire(category, r) for r in rows]

    def ping(self) -> None:
        conn = self._connect()
        try:
            with conn.cursor() as cur:
                cur.execute("SELECT 1")
                cur.fetchone()
        except psycopg2.Error as e:
            raise StoreError(f"Database ping failed: {e}") from e
        finally:
            conn.close()
