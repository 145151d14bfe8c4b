"""
Serialized, rate-limited dispatcher for generative-text calls.

All outbound provider calls go through one ``DispatchQueue``: requests are
issued strictly in submission order, one at a time, and never closer together
than ``60 / requests_per_minute`` seconds.  Each submission gets its own
future; a failing call rejects only that future and is never retried.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections import deque
from dataclasses import dataclass
from typing import Awaitable, Callable, Deque, Optional

from errors import ProviderError, QueueFullError

log = logging.getLogger("dispatch_queue")

Provider = Callable[[str], Awaitable[str]]


@dataclass
class QueuedCall:
    prompt: str
    future: "asyncio.Future[str]"


class DispatchQueue:
    """FIFO single-lane queue in front of a text provider.

    State machine: Idle -> Draining (while the queue is non-empty) -> Idle.
    The in-flight flag is checked and set inside ``submit`` before any await,
    so two drain cycles can never run concurrently on one event loop.

    ``clock`` and ``sleep`` are injectable so timing can be tested without
    real waits.  ``max_pending`` bounds the backlog of not-yet-dequeued
    calls; ``None`` leaves it unbounded.
    """

    def __init__(
        self,
        provider: Provider,
        requests_per_minute: float = 2,
        max_pending: Optional[int] = None,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        if requests_per_minute <= 0:
            raise ValueError("requests_per_minute must be positive")
        self._provider = provider
        self.requests_per_minute = requests_per_minute
        self.max_pending = max_pending
        self._clock = clock
        self._sleep = sleep

        self._queue: Deque[QueuedCall] = deque()
        self._processing = False
        self._last_call_at: Optional[float] = None
        self._worker: Optional["asyncio.Task[None]"] = None

    # ─── Introspection ────────────────────────────────────────

    @property
    def min_interval(self) -> float:
        """Minimum seconds between two call issuances."""
        return 60.0 / self.requests_per_minute

    @property
    def pending(self) -> int:
        return len(self._queue)

    @property
    def in_flight(self) -> bool:
        return self._processing

    @property
    def last_call_at(self) -> Optional[float]:
        return self._last_call_at

    # ─── Public API ───────────────────────────────────────────

    def submit(self, prompt: str) -> "asyncio.Future[str]":
        """Enqueue a prompt; the returned future settles with the provider text.

        Must be called from a running event loop.  Failures (empty prompt,
        full queue, provider errors) are delivered through the future.
        """
        loop = asyncio.get_running_loop()
        future: asyncio.Future[str] = loop.create_future()

        if not isinstance(prompt, str) or not prompt.strip():
            future.set_exception(ValueError("prompt must be a non-empty string"))
            return future
        if self.max_pending is not None and len(self._queue) >= self.max_pending:
            log.warning("Dispatch queue full (%d pending); rejecting call", len(self._queue))
            future.set_exception(QueueFullError("Too many pending insight requests"))
            return future

        self._queue.append(QueuedCall(prompt=prompt, future=future))
        if not self._processing:
            self._processing = True
            self._worker = loop.create_task(self._drain())
        return future

    # ─── Worker ───────────────────────────────────────────────

    async def _wait_for_interval(self) -> None:
        if self._last_call_at is None:
            return
        elapsed = self._clock() - self._last_call_at
        if elapsed < self.min_interval:
            delay = self.min_interval - elapsed
            log.debug("Rate limit: waiting %.2fs before next call", delay)
            await self._sleep(delay)

    async def _drain(self) -> None:
        call: Optional[QueuedCall] = None
        try:
            while self._queue:
                call = self._queue.popleft()
                await self._wait_for_interval()
                # Failed attempts consume the interval budget too.
                self._last_call_at = self._clock()
                try:
                    text = await self._provider(call.prompt)
                except Exception as e:
                    log.warning("Provider call failed: %s", e)
                    self._settle(call, error=e)
                else:
                    self._settle(call, result=text)
                call = None
        except asyncio.CancelledError:
            # Event loop is shutting down: settle everything still owed.
            shutdown = ProviderError("Dispatch queue stopped before the call completed")
            if call is not None:
                self._settle(call, error=shutdown)
            while self._queue:
                self._settle(self._queue.popleft(), error=shutdown)
            raise
        finally:
            self._processing = False
            self._worker = None

    @staticmethod
    def _settle(call: QueuedCall, result: Optional[str] = None, error: Optional[BaseException] = None) -> None:
        if call.future.done():
            # caller abandoned the result; the call still counted
            return
        if error is not None:
            call.future.set_exception(error)
        else:
            call.future.set_result(result)
