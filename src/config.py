"""Configuration loaded from .env"""

import os

from dotenv import load_dotenv

load_dotenv()


def _optional_int(name: str):
    raw = (os.getenv(name) or "").strip()
    return int(raw) if raw else None


# Gemini provider
GOOGLE_API_KEY = os.getenv("GOOGLE_API_KEY") or os.getenv("GEMINI_API_KEY", "")
GEMINI_MODEL = os.getenv("GEMINI_MODEL", "gemini/gemini-2.5-flash")
GEMINI_TEMPERATURE = float(os.getenv("GEMINI_TEMPERATURE", "0.3"))

# Outbound dispatch
REQUESTS_PER_MINUTE = float(os.getenv("GEMINI_REQUESTS_PER_MINUTE", "2"))
MAX_PENDING_CALLS = _optional_int("GEMINI_MAX_PENDING")
RETRY_AFTER_SECONDS = int(os.getenv("RETRY_AFTER_SECONDS", "60"))

# API
ANALYSIS_WINDOW = int(os.getenv("ANALYSIS_WINDOW", "10"))
INBOUND_RATE_LIMIT = os.getenv("INBOUND_RATE_LIMIT", "30/minute")
FRONTEND_ORIGINS = [
    o.strip() for o in os.getenv("FRONTEND_ORIGINS", "").split(",") if o.strip()
] or [
    "http://localhost:3000",
    "http://127.0.0.1:3000",
]
AUTO_MIGRATE = os.getenv("AUTO_MIGRATE", "1").strip().lower() not in ("0", "false", "no")

# Process
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
PORT = int(os.getenv("PORT", "5000"))
