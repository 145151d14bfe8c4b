"""Helpers for structuring generated insight text for UI consumption."""

from __future__ import annotations

import logging
import re
from typing import Any, Dict, List

log = logging.getLogger("pipeline.insight_text")

_NUMBERED_MARKER = re.compile(r"\d+\.\s+")
_BULLET_SPLIT = re.compile(r"\n|•")
_ITEM_PREFIX = re.compile(r"^(?:[-*•]+|\d+[.)](?=\s|$))\s*")

# Tried in order; the first match wins.  A body ends at a blank line, a
# newline followed by a letter, or end of text.
ACTION_PATTERNS = (
    re.compile(r"Action items?[:\s]+([\s\S]+?)(?=\n\n|\n[A-Z]|\Z)", re.IGNORECASE),
    re.compile(r"Recommendations?[:\s]+([\s\S]+?)(?=\n\n|\n[A-Z]|\Z)", re.IGNORECASE),
    re.compile(r"You should[:\s]+([\s\S]+?)(?=\n\n|\n[A-Z]|\Z)", re.IGNORECASE),
)

FALLBACK_ACTION_ITEMS: Dict[str, List[str]] = {
    "strength": [
        "Focus on proper form to prevent injuries and maximize gains",
        "Ensure adequate rest between training sessions",
        "Progressive overload by gradually increasing weight or reps",
    ],
    "cardio": [
        "Maintain heart rate in the optimal zone for your goals",
        "Vary intensity with interval training for better results",
        "Stay hydrated during cardio sessions",
    ],
    "nutrition": [
        "Ensure adequate protein intake for muscle recovery",
        "Time carbohydrate intake around workout sessions",
        "Stay hydrated throughout the day",
    ],
    "recovery": [
        "Prioritize sleep quality and duration",
        "Use active recovery techniques on rest days",
        "Monitor HRV to detect overtraining early",
    ],
    "wrestling": [
        "Practice key techniques with high repetition",
        "Use video analysis to identify areas for improvement",
        "Focus on conditioning specific to wrestling demands",
    ],
    "injury": [
        "Follow proper rehabilitation protocols",
        "Don't rush back to training before fully recovered",
        "Address biomechanical issues that may have caused the injury",
    ],
}

GENERAL_ACTION_ITEMS = [
    "Continue monitoring your performance trends",
    "Focus on recovery between training sessions",
    "Maintain consistent data logging for better insights",
]


def structure_insights(insights: Any) -> Dict[str, Any]:
    """Split numbered generated text into ``{"title", "content"}`` sections.

    The raw text is always returned alongside; unnumbered text yields no
    sections.
    """
    text = str(insights or "").replace("\r", "")
    structured: Dict[str, Any] = {"raw": text, "sections": []}

    chunks = _NUMBERED_MARKER.split(text)
    if len(chunks) <= 1:
        return structured

    start = 1 if not chunks[0].strip() else 0
    for chunk in chunks[start:]:
        section_text = chunk.strip()
        if not section_text:
            continue
        lines = section_text.split("\n")
        title = lines[0].strip()
        content = "\n".join(lines[1:]).strip()
        structured["sections"].append({"title": title, "content": content or title})
    return structured


def _split_items(body: str) -> List[str]:
    items = []
    for piece in _BULLET_SPLIT.split(body):
        item = _ITEM_PREFIX.sub("", piece.strip()).strip()
        if item:
            items.append(item)
    return items


def extract_action_items(category: str, insights: Any) -> List[str]:
    """Best-effort action-item list; never empty.

    Falls back to the category's fixed list when no pattern matches, and to
    the general list when the category is unknown or parsing fails.
    """
    try:
        text = str(insights or "").replace("\r", "")
        body = ""
        for pattern in ACTION_PATTERNS:
            match = pattern.search(text)
            if match and match.group(1):
                body = match.group(1).strip()
                break

        items = _split_items(body) if body else []
        if items:
            return items
        return list(FALLBACK_ACTION_ITEMS.get(category, GENERAL_ACTION_ITEMS))
    except Exception as e:
        log.debug("Action item extraction failed: %s", e)
        return list(GENERAL_ACTION_ITEMS)
