"""
Shared helpers for API routes.
Contains: prompt construction, error payloads, text clipping.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, List

from fastapi.responses import JSONResponse

from constants import CATEGORY_LABELS

log = logging.getLogger("api")


# ─── Analysis prompt sections ──────────────────────────────

_COMMON_TAIL = (
    "Warning signs or potential issues",
    "Action items for improvement",
)

ANALYSIS_SECTIONS: Dict[str, tuple] = {
    "strength": (
        "Progress analysis (improvements or plateaus)",
        "Form and technique recommendations",
        "Volume and intensity suggestions",
        "Recovery recommendations",
        "Specific exercise recommendations",
    ) + _COMMON_TAIL,
    "cardio": (
        "Endurance progress analysis",
        "Heart rate zone optimization",
        "Training intensity distribution",
        "Recovery recommendations",
        "Specific workout suggestions",
    ) + _COMMON_TAIL,
    "nutrition": (
        "Macro nutrient balance analysis",
        "Caloric needs assessment",
        "Meal timing recommendations",
        "Pre/post workout nutrition suggestions",
        "Hydration recommendations",
    ) + _COMMON_TAIL,
    "recovery": (
        "Sleep quality analysis",
        "HRV trends and implications",
        "Soreness patterns",
        "Recovery optimization suggestions",
        "Rest day recommendations",
    ) + _COMMON_TAIL,
    "wrestling": (
        "Technique effectiveness analysis",
        "Takedown success rate trends",
        "Sparring intensity assessment",
        "Specific technique recommendations",
        "Training volume suggestions",
    ) + _COMMON_TAIL,
    "injury": (
        "Injury risk assessment",
        "Pain pattern analysis",
        "Prevention recommendations",
        "Rehabilitation suggestions",
        "Training modifications",
    ) + _COMMON_TAIL,
}


def _dumps(value: Any) -> str:
    return json.dumps(value, default=str, ensure_ascii=False)


def _entry_prompt(category: str, body: Dict[str, Any]) -> str:
    """One-shot prompt summarising a freshly submitted record."""
    label = CATEGORY_LABELS[category]
    return f"Analyze this {label} data and provide insights: {_dumps(body)}"


def _analysis_prompt(category: str, records: List[Dict[str, Any]]) -> str:
    """Structured prompt asking for the category's seven report sections."""
    label = CATEGORY_LABELS[category]
    numbered = "\n".join(
        f"{i}. {section}" for i, section in enumerate(ANALYSIS_SECTIONS[category], start=1)
    )
    return (
        f"Analyze this {label} data and provide detailed insights and recommendations:\n"
        f"{_dumps(records)}\n\n"
        "Please include:\n"
        f"{numbered}"
    )


# ─── Error payloads ────────────────────────────────────────

def _error(status_code: int, message: str, **extra: Any) -> JSONResponse:
    content: Dict[str, Any] = {"error": message}
    content.update(extra)
    return JSONResponse(status_code=status_code, content=content)


def _clip_text(text: str, max_len: int = 280) -> str:
    s = str(text or "").replace("\n", " ").strip()
    if len(s) <= max_len:
        return s
    return s[: max_len - 3].rstrip() + "..."
