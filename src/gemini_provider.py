"""
Gemini text provider.

Wraps the crewai ``LLM`` client as an async ``prompt -> text`` callable and
translates upstream failures into the service's error taxonomy.
"""

from __future__ import annotations

import asyncio
import logging
import re
from typing import Any, Optional

from crewai import LLM
from litellm.exceptions import RateLimitError

import config
from errors import ProviderError, ProviderRateLimitError

log = logging.getLogger("gemini_provider")

_RATE_LIMIT_TEXT = re.compile(
    r"\b429\b|\brate[ _-]?limit|\bresource[_ ]exhausted\b|\bquota exceeded\b",
    re.IGNORECASE,
)


def is_rate_limit_error(exc: BaseException) -> bool:
    """Best-effort detection of upstream throttling.

    crewai's ``LLM`` surfaces litellm's ``RateLimitError``; other clients are
    recognised by a 429 status attribute or a word-bounded message match.
    """
    if isinstance(exc, (ProviderRateLimitError, RateLimitError)):
        return True
    status = getattr(exc, "status_code", None) or getattr(exc, "code", None)
    if status == 429:
        return True
    return bool(_RATE_LIMIT_TEXT.search(str(exc)))


class GeminiProvider:
    """Lazily-initialised Gemini client (avoids import-time crashes)."""

    def __init__(
        self,
        model: Optional[str] = None,
        api_key: Optional[str] = None,
        temperature: Optional[float] = None,
    ) -> None:
        self.model = model or config.GEMINI_MODEL
        self.api_key = api_key or config.GOOGLE_API_KEY
        self.temperature = config.GEMINI_TEMPERATURE if temperature is None else temperature
        self._llm: Any = None

    def _get_llm(self) -> LLM:
        if self._llm is None:
            self._llm = LLM(
                model=self.model,
                api_key=self.api_key,
                temperature=self.temperature,
            )
        return self._llm

    def generate(self, prompt: str) -> str:
        """Blocking call; returns the generated text."""
        try:
            out = self._get_llm().call(prompt)
        except Exception as e:
            if is_rate_limit_error(e):
                raise ProviderRateLimitError(str(e)) from e
            raise ProviderError(str(e)) from e
        text = getattr(out, "raw", out)
        if not isinstance(text, str) or not text.strip():
            raise ProviderError("Provider returned an empty response")
        return text

    async def __call__(self, prompt: str) -> str:
        return await asyncio.to_thread(self.generate, prompt)
