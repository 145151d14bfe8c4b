"""
Shared test configuration.

Adds src/ to sys.path so flat modules (api, dispatch_queue, record_store,
...) import with plain `import module_name`, and provides the in-memory
collaborators the API and queue tests share:

  - FakeClock        deterministic clock + sleep for DispatchQueue timing
  - InMemoryStore    RecordStore stand-in (latest-first history)
  - make_client      TestClient over create_app() with injected store/queue
"""

import asyncio
import os
import sys
from datetime import datetime, timedelta, timezone

import pytest

_project_root = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
_src_dir = os.path.join(_project_root, "src")

if _src_dir not in sys.path:
    sys.path.insert(0, _src_dir)

from errors import StoreError  # noqa: E402
from models import RECORD_MODELS  # noqa: E402


class FakeClock:
    """Monotonic clock whose sleep() advances time instantly."""

    def __init__(self, start: float = 0.0):
        self.now = start
        self.sleeps = []

    def __call__(self) -> float:
        return self.now

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds
        await asyncio.sleep(0)


class InMemoryStore:
    """Append/query store with the RecordStore contract."""

    conn_str = ""

    def __init__(self, fail_on=None):
        self._rows = {c: [] for c in RECORD_MODELS}
        self._next_id = 1
        self._base = datetime(2026, 3, 1, tzinfo=timezone.utc)
        self.fail_on = set(fail_on or ())

    def insert(self, category, record):
        if "insert" in self.fail_on:
            raise StoreError("write rejected")
        row = record.model_copy(update={
            "id": self._next_id,
            "date": record.date or self._base + timedelta(minutes=self._next_id),
        })
        self._next_id += 1
        self._rows[category].append(row)
        return row.to_wire()

    def history(self, category, limit=None):
        if "history" in self.fail_on:
            raise StoreError("database unreachable")
        rows = sorted(self._rows[category], key=lambda r: (r.date, r.id), reverse=True)
        if limit is not None:
            rows = rows[:limit]
        return [r.to_wire() for r in rows]

    def ping(self):
        if "ping" in self.fail_on:
            raise StoreError("database unreachable")

    def seed(self, category, *bodies):
        """Insert wire-shaped bodies oldest first."""
        model = RECORD_MODELS[category]
        for body in bodies:
            self.insert(category, model.model_validate(body))


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store():
    return InMemoryStore()


@pytest.fixture
def make_client():
    from fastapi.testclient import TestClient

    from api import create_app
    from dispatch_queue import DispatchQueue

    def _make(provider, store=None, requests_per_minute=60_000, max_pending=None):
        queue = DispatchQueue(provider, requests_per_minute=requests_per_minute, max_pending=max_pending)
        app = create_app(store=store or InMemoryStore(), queue=queue)
        return TestClient(app)

    return _make
