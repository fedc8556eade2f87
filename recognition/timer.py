"""Cancellable delayed callbacks.

Timers hand out a token per scheduled callback and cancel by token, so the
coordinator never depends on a specific event loop. ``AsyncioTimer`` runs on
an asyncio loop; ``ManualTimer`` runs on a virtual clock that callers advance
explicitly (used by the simulator and the test suite).
"""

import asyncio
import heapq
import itertools
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable

_token_ids = itertools.count(1)


@dataclass(frozen=True)
class TimerToken:
    """Handle for one scheduled callback."""

    id: int
    due_ms: float


class CancellableTimer(ABC):
    """Schedule-with-token, cancel-by-token."""

    @abstractmethod
    def schedule(self, delay_ms: int, callback: Callable[[], None]) -> TimerToken:
        """Run ``callback`` once after ``delay_ms`` milliseconds."""
        ...

    @abstractmethod
    def cancel(self, token: TimerToken | None) -> bool:
        """Cancel a scheduled callback.

        Returns True if the callback was still pending. Cancelling ``None``,
        a fired token or an already cancelled token is a no-op.
        """
        ...

    @abstractmethod
    def is_pending(self, token: TimerToken | None) -> bool:
        ...


class AsyncioTimer(CancellableTimer):
    """Timer backed by ``loop.call_later``."""

    def __init__(self, loop: asyncio.AbstractEventLoop | None = None):
        self._loop = loop
        self._handles: dict[TimerToken, asyncio.TimerHandle] = {}

    def _get_loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        return self._loop

    def schedule(self, delay_ms: int, callback: Callable[[], None]) -> TimerToken:
        loop = self._get_loop()
        token = TimerToken(id=next(_token_ids), due_ms=loop.time() * 1000 + delay_ms)

        def fire() -> None:
            self._handles.pop(token, None)
            callback()

        self._handles[token] = loop.call_later(delay_ms / 1000, fire)
        return token

    def cancel(self, token: TimerToken | None) -> bool:
        if token is None:
            return False
        handle = self._handles.pop(token, None)
        if handle is None:
            return False
        handle.cancel()
        return True

    def is_pending(self, token: TimerToken | None) -> bool:
        return token is not None and token in self._handles


class ManualTimer(CancellableTimer):
    """Timer on a virtual millisecond clock.

    Nothing fires until ``advance`` is called; due callbacks then run in due
    order (ties in scheduling order), with the clock set to each due time.
    """

    def __init__(self, start_ms: float = 0):
        self._now_ms = start_ms
        self._queue: list[tuple[float, int, TimerToken, Callable[[], None]]] = []
        self._pending: set[TimerToken] = set()

    def now(self) -> float:
        return self._now_ms

    def schedule(self, delay_ms: int, callback: Callable[[], None]) -> TimerToken:
        token = TimerToken(id=next(_token_ids), due_ms=self._now_ms + delay_ms)
        heapq.heappush(self._queue, (token.due_ms, token.id, token, callback))
        self._pending.add(token)
        return token

    def cancel(self, token: TimerToken | None) -> bool:
        if token is None or token not in self._pending:
            return False
        self._pending.discard(token)
        if len(self._queue) > 2 * len(self._pending) + 8:
            self._compact()
        return True

    def _compact(self) -> None:
        """Drop queue entries whose tokens were cancelled."""
        self._queue = [entry for entry in self._queue if entry[2] in self._pending]
        heapq.heapify(self._queue)

    def queued_count(self) -> int:
        """Entries still held by the queue, cancelled ones included."""
        return len(self._queue)

    def is_pending(self, token: TimerToken | None) -> bool:
        return token is not None and token in self._pending

    def pending_count(self) -> int:
        return len(self._pending)

    def advance(self, delta_ms: float) -> int:
        """Move the clock forward, firing due callbacks. Returns how many fired."""
        target = self._now_ms + delta_ms
        fired = 0
        while self._queue and self._queue[0][0] <= target:
            due_ms, _, token, callback = heapq.heappop(self._queue)
            if token not in self._pending:
                continue
            self._pending.discard(token)
            self._now_ms = due_ms
            callback()
            fired += 1
        self._now_ms = target
        return fired
