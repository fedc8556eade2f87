"""One-shot asynchronous recognition of a single ink snapshot."""

import asyncio
import logging
import re
from enum import Enum
from typing import Callable

from models import Ink, RecognitionCandidate, RecognitionContext, RecognizedInk
from recognition.backend import RecognitionBackend

logger = logging.getLogger(__name__)

NUMERIC_TEXT = re.compile(r"[0-9]+")


class TaskState(str, Enum):
    CREATED = "created"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    EMPTY = "empty"
    CANCELLED = "cancelled"


TERMINAL_STATES = frozenset({TaskState.SUCCEEDED, TaskState.EMPTY, TaskState.CANCELLED})


class SettlementState(str, Enum):
    """Whether the coordinator has consumed the task's outcome."""

    PENDING = "pending"
    COMMITTED = "committed"
    DISCARDED = "discarded"


class RecognitionTask:
    """Submits one ink to the backend and keeps at most one result.

    The task moves from CREATED to RUNNING to exactly one terminal state.
    Cancelling before the backend answers drops whatever it returns later.
    """

    def __init__(
        self,
        backend: RecognitionBackend,
        ink: Ink,
        expected_result: int,
        context: RecognitionContext | None = None,
        numeric_only: bool = True,
        prefer_expected: bool = False,
    ):
        self.backend = backend
        self.ink = ink
        self.expected_result = expected_result
        self.context = context or RecognitionContext()
        self.numeric_only = numeric_only
        self.prefer_expected = prefer_expected

        self.error: Exception | None = None
        self._state = TaskState.CREATED
        self._settlement = SettlementState.PENDING
        self._result: RecognizedInk | None = None
        self._done_callbacks: list[Callable[["RecognitionTask"], None]] = []

    @property
    def state(self) -> TaskState:
        return self._state

    @property
    def settlement(self) -> SettlementState:
        return self._settlement

    def done(self) -> bool:
        return self._state in TERMINAL_STATES

    def cancelled(self) -> bool:
        return self._state is TaskState.CANCELLED

    def result(self) -> RecognizedInk | None:
        if self._state is not TaskState.SUCCEEDED:
            return None
        return self._result

    def cancel(self) -> None:
        """Cancel the task. Has no effect once a terminal state is reached."""
        if self.done():
            return
        logger.info("Recognition task cancelled")
        self._state = TaskState.CANCELLED

    def add_done_callback(self, callback: Callable[["RecognitionTask"], None]) -> None:
        """Register a callback run once when the task succeeds or comes back empty."""
        self._done_callbacks.append(callback)

    def find_best_result(self, candidates: list[RecognitionCandidate]) -> str | None:
        """Pick the answer text among the candidates, or None."""
        expected = str(self.expected_result)
        first: str | None = None
        for candidate in candidates:
            text = candidate.text
            logger.debug("Recognition candidate: %r (expected %s)", text, expected)
            if self.numeric_only:
                if not NUMERIC_TEXT.fullmatch(text):
                    continue
            elif not text.strip():
                continue
            if first is None:
                first = text
                if not self.prefer_expected:
                    break
            if text == expected:
                return text
        return first

    async def run(self) -> str | None:
        """Recognize the ink. Returns the chosen text, or None."""
        if self._state is TaskState.CANCELLED:
            return None
        if self._state is not TaskState.CREATED:
            raise RuntimeError(f"Recognition task already {self._state.value}")

        logger.info("Running recognition on %d stroke(s)", len(self.ink.strokes))
        self._state = TaskState.RUNNING
        try:
            candidates = await self.backend.recognize(self.ink, self.context)
        except asyncio.CancelledError:
            self.cancel()
            raise
        except Exception as e:
            logger.exception("Recognition backend failed")
            self.error = e
            candidates = []

        if self._state is TaskState.CANCELLED:
            logger.debug("Discarding result of cancelled recognition task")
            return None

        text = self.find_best_result(candidates)
        if text is None:
            self._finish(TaskState.EMPTY)
            return None

        self._result = RecognizedInk(ink=self.ink, text=text)
        self._finish(TaskState.SUCCEEDED)
        logger.info("Recognition result: %s", text)
        return text

    def _finish(self, state: TaskState) -> bool:
        if self.done():
            return False
        self._state = state
        for callback in list(self._done_callbacks):
            callback(self)
        return True

    def mark_committed(self) -> bool:
        """Claim the result for delivery. Only the first successful claim wins."""
        if self._settlement is not SettlementState.PENDING:
            return False
        if self._state is not TaskState.SUCCEEDED:
            return False
        self._settlement = SettlementState.COMMITTED
        return True

    def discard(self) -> None:
        """Mark the outcome as never to be delivered."""
        if self._settlement is SettlementState.PENDING:
            self._settlement = SettlementState.DISCARDED
