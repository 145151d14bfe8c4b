"""
FastAPI backend for the athlete tracking front end.

Route handlers are defined here; shared utilities live in routes/helpers.py.
One DispatchQueue and one RecordStore are built per app by ``create_app``
and handed to handlers through ``app.state``.
"""

from __future__ import annotations

import json
import logging
from contextlib import asynccontextmanager
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, FastAPI, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address

import config
from analytics.alert_engine import analyze, group_by_category, has_critical
from constants import CATEGORIES, is_category
from dispatch_queue import DispatchQueue
from errors import StoreError
from gemini_provider import GeminiProvider, is_rate_limit_error
from models import RECORD_MODELS
from pipeline.insight_text import extract_action_items, structure_insights
from pipeline.migrations import ensure_startup_schema, schema_audit
from record_store import RecordStore
from routes.helpers import _analysis_prompt, _clip_text, _entry_prompt, _error

log = logging.getLogger("api")

router = APIRouter()

RATE_LIMIT_MESSAGE = "Rate limit exceeded. Please try again in a few minutes."


def _store(request: Request) -> RecordStore:
    return request.app.state.record_store


def _queue(request: Request) -> DispatchQueue:
    return request.app.state.dispatch_queue


def _throttled() -> JSONResponse:
    return _error(429, RATE_LIMIT_MESSAGE, retryAfter=config.RETRY_AFTER_SECONDS)


async def _read_body(request: Request) -> Any:
    raw = await request.body()
    if not raw.strip():
        return {}
    return json.loads(raw)


# ─── Routes ────────────────────────────────────────────────

@router.get("/")
def root() -> Dict[str, Any]:
    return {"service": "athlete-insights-api", "status": "ok"}


@router.get("/health-check")
async def health_check(request: Request) -> JSONResponse:
    queue = _queue(request)
    queue_state = {"pending": queue.pending, "in_flight": queue.in_flight}
    try:
        await run_in_threadpool(_store(request).ping)
        return JSONResponse({"status": "Online", "message": "Online", "queue": queue_state})
    except StoreError as e:
        return JSONResponse(
            status_code=200,
            content={
                "status": "Waking up",
                "message": f"Service starting or DB unavailable: {e}",
                "queue": queue_state,
            },
        )


@router.get("/api/history/{record_type}")
async def history(record_type: str, request: Request) -> Any:
    if not is_category(record_type):
        return _error(400, "Invalid data type")
    try:
        return await run_in_threadpool(_store(request).history, record_type)
    except StoreError as e:
        log.error("Error fetching historical data for %s: %s", record_type, e)
        return _error(500, "Failed to fetch historical data")


# Rate limited per app in create_app.
async def analysis(record_type: str, request: Request) -> Any:
    if not is_category(record_type):
        return _error(400, "Invalid data type")
    try:
        data = await run_in_threadpool(_store(request).history, record_type, config.ANALYSIS_WINDOW)
        insights = await _queue(request).submit(_analysis_prompt(record_type, data))
    except StoreError as e:
        log.error("Error generating analysis for %s: %s", record_type, e)
        return _error(500, "Failed to generate analysis")
    except Exception as e:
        log.error("Error generating analysis for %s: %s", record_type, e)
        if is_rate_limit_error(e):
            return _throttled()
        return _error(500, "Failed to generate analysis")

    structured = structure_insights(insights)
    return {
        "insights": insights,
        "data": data,
        "sections": structured["sections"],
        "action_items": extract_action_items(record_type, insights),
    }


@router.get("/api/alerts")
async def alerts(request: Request) -> Any:
    store = _store(request)
    try:
        snapshot: Dict[str, List[Dict[str, Any]]] = {
            category: await run_in_threadpool(store.history, category)
            for category in CATEGORIES
        }
    except StoreError as e:
        log.error("Error fetching history for alerts: %s", e)
        return _error(500, "Failed to fetch historical data")

    found = analyze(snapshot)
    return {
        "alerts": [a.to_dict() for a in found],
        "count": len(found),
        "critical": has_critical(found),
        "by_category": {
            category: [a.to_dict() for a in items]
            for category, items in group_by_category(found).items()
        },
    }


@router.get("/api/admin/migration-audit")
async def migration_audit(request: Request) -> Any:
    try:
        return await run_in_threadpool(schema_audit, _store(request).conn_str)
    except Exception as e:
        log.error("Migration audit failed: %s", e)
        return _error(500, "Migration audit failed")


@router.post("/api/{category}")
async def create_record(category: str, request: Request) -> Any:
    if not is_category(category):
        return _error(400, "Invalid data type")

    try:
        body = await _read_body(request)
        record = RECORD_MODELS[category].model_validate(body)
        stored = await run_in_threadpool(_store(request).insert, category, record)
    except (ValueError, ValidationError, StoreError) as e:
        log.error("Error saving %s data: %s", category, e)
        return _error(500, f"Failed to save {category} data")

    prompt = _entry_prompt(category, body)
    log.info("Queued %s insight request: %s", category, _clip_text(prompt, 120))
    try:
        insights = await _queue(request).submit(prompt)
    except Exception as e:
        log.error("Error generating %s insights: %s", category, e)
        if is_rate_limit_error(e):
            return _throttled()
        return _error(500, f"Failed to save {category} data")

    return {"success": True, "insights": insights, "data": stored}


# ─── App setup ─────────────────────────────────────────────

@asynccontextmanager
async def _lifespan(app: FastAPI):
    if config.AUTO_MIGRATE:
        conn_str = app.state.record_store.conn_str
        if conn_str:
            try:
                await run_in_threadpool(ensure_startup_schema, conn_str)
            except Exception as e:
                log.error("Startup migrations failed: %s", e)
        else:
            log.warning("No database configured; skipping startup migrations.")
    yield


def create_app(
    store: Optional[RecordStore] = None,
    queue: Optional[DispatchQueue] = None,
) -> FastAPI:
    app = FastAPI(title="Athlete Insights API", version="1.0.0", lifespan=_lifespan)

    limiter = Limiter(key_func=get_remote_address)
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.FRONTEND_ORIGINS,
        allow_credentials=False,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["*"],
    )

    app.state.record_store = store if store is not None else RecordStore()
    app.state.dispatch_queue = queue if queue is not None else DispatchQueue(
        GeminiProvider(),
        requests_per_minute=config.REQUESTS_PER_MINUTE,
        max_pending=config.MAX_PENDING_CALLS,
    )

    app.add_api_route(
        "/api/analysis/{record_type}",
        limiter.limit(config.INBOUND_RATE_LIMIT)(analysis),
        methods=["GET"],
    )
    app.include_router(router)
    return app


app = create_app()
