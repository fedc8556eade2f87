"""
Recognition coordinator.

Owns the ink of the gesture being drawn and decides when to recognize it.
Every stroke end may start a recognition task; the result is only delivered
when the settlement timer fires, and every new pointer event defuses that
timer, so a burst of strokes settles into a single answer once the pen has
been quiet for ``settlement_timeout_ms``.
"""

import asyncio
import logging

from config import RecognitionConfig
from errors import (
    ModelNotReadyError,
    RecognizerUnavailableError,
    UnparseableResultError,
)
from models import Ink, InputAction, InputEvent, RecognitionContext, RecognizedInk
from recognition.accumulator import InkAccumulator
from recognition.backend import RecognitionBackend
from recognition.listeners import (
    ContentChangedListener,
    DownloadedModelsChangedListener,
    StatusChangedListener,
)
from recognition.model_manager import ModelManager
from recognition.task import NUMERIC_TEXT, RecognitionTask, TaskState
from recognition.timer import AsyncioTimer, CancellableTimer, TimerToken

logger = logging.getLogger(__name__)


def parse_answer(text: str | None) -> int:
    """Parse recognized text as a non-negative integer."""
    if text is None or not NUMERIC_TEXT.fullmatch(text.strip()):
        raise UnparseableResultError(text)
    return int(text)


class RecognitionCoordinator:
    """Turns pointer input into at most one settled answer per gesture.

    All methods must be called from the thread running the event loop.
    ``on_input`` needs a running loop when recognition is triggered by input.
    """

    def __init__(
        self,
        backend: RecognitionBackend | None = None,
        config: RecognitionConfig | None = None,
        timer: CancellableTimer | None = None,
        model_manager: ModelManager | None = None,
    ):
        self.config = config or RecognitionConfig()
        self.model_manager = model_manager or ModelManager(backend)
        self.timer = timer or AsyncioTimer()
        self.accumulator = InkAccumulator()

        self.trigger_recognition_after_input = self.config.trigger_recognition_after_input
        self.clear_current_ink_after_recognition = (
            self.config.clear_current_ink_after_recognition
        )
        self.expected_result = -1

        # Recognized inks, in commit order
        self.content: list[RecognizedInk] = []

        self._active_task: RecognitionTask | None = None
        self._pending_timer: TimerToken | None = None
        # Set when the settlement timeout fires before the active task is done
        self._timeout_elapsed = False
        # Bumped by reset() to invalidate recognize() calls still awaiting
        self._generation = 0
        self._spawned: set[asyncio.Task] = set()

        self._content_listeners: list[ContentChangedListener] = []
        self._status_listener: StatusChangedListener | None = None
        self._downloaded_models_listener: DownloadedModelsChangedListener | None = None
        self._status = ""

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def status(self) -> str:
        return self._status

    def _set_status(self, status: str) -> None:
        self._status = status
        if self._status_listener is not None:
            self._status_listener(status)

    @property
    def active_task(self) -> RecognitionTask | None:
        return self._active_task

    @property
    def has_pending_timer(self) -> bool:
        return self.timer.is_pending(self._pending_timer)

    def current_ink(self) -> Ink:
        return self.accumulator.current_ink()

    # ------------------------------------------------------------------
    # Listeners
    # ------------------------------------------------------------------

    def add_content_changed_listener(self, listener: ContentChangedListener) -> None:
        self._content_listeners.append(listener)

    def remove_content_changed_listener(self, listener: ContentChangedListener) -> None:
        self._content_listeners.remove(listener)

    def set_status_changed_listener(self, listener: StatusChangedListener | None) -> None:
        self._status_listener = listener

    def set_downloaded_models_changed_listener(
        self, listener: DownloadedModelsChangedListener | None
    ) -> None:
        self._downloaded_models_listener = listener

    # ------------------------------------------------------------------
    # Input
    # ------------------------------------------------------------------

    def on_input(self, event: InputEvent) -> bool:
        """Feed one pointer event. Returns False if the event was not handled."""
        # Any new event invalidates a pending settlement
        self._cancel_settlement_timer()

        point = event.to_point()
        if event.action is InputAction.DOWN:
            self.accumulator.begin_stroke(point)
        elif event.action is InputAction.MOVE:
            self.accumulator.extend_stroke(point)
        elif event.action is InputAction.UP:
            self.accumulator.end_stroke(point)
            if self.trigger_recognition_after_input:
                self._spawn_recognition()
        else:
            # CANCEL: the gesture was taken away, not finished
            self.accumulator.cancel_stroke()
            return False
        return True

    def _spawn_recognition(self) -> None:
        loop = asyncio.get_running_loop()
        task = loop.create_task(self.recognize())
        self._spawned.add(task)
        task.add_done_callback(self._spawned.discard)

    async def wait_idle(self) -> None:
        """Wait for recognitions started by ``on_input`` to finish."""
        while self._spawned:
            await asyncio.gather(*list(self._spawned))

    # ------------------------------------------------------------------
    # Recognition
    # ------------------------------------------------------------------

    async def recognize(self) -> str | None:
        """Recognize the current ink if it changed since the last request.

        Returns the recognized text, or None if nothing was recognized.
        """
        if not self.accumulator.is_dirty or self.accumulator.is_empty:
            self._set_status("No recognition, ink unchanged or empty")
            return None

        generation = self._generation
        try:
            recognizer = self.model_manager.require_recognizer()
            await self.model_manager.require_downloaded()
        except RecognizerUnavailableError as e:
            self._set_status(str(e))
            return None
        except ModelNotReadyError as e:
            if generation == self._generation:
                self._set_status(str(e))
            return None
        except Exception as e:
            logger.exception("Could not check model availability")
            self._set_status(f"Could not check model: {e}")
            return None

        if generation != self._generation:
            logger.debug("Dropping recognition request invalidated by reset")
            return None
        if not self.accumulator.is_dirty:
            # Another request already picked up this ink
            return None

        self.accumulator.mark_requested()
        task = RecognitionTask(
            recognizer,
            self.accumulator.current_ink(),
            self.expected_result,
            context=RecognitionContext(
                pre_context=self.config.pre_context,
                language_tag=self.model_manager.language_tag or "",
            ),
            numeric_only=self.config.numeric_candidates_only,
            prefer_expected=self.config.prefer_expected_candidate,
        )
        task.add_done_callback(self._on_task_done)
        self._replace_active_task(task)
        if not self.accumulator.stroke_open:
            # Otherwise the end of the open stroke arms it
            self._arm_settlement_timer()
        self._set_status("Recognizing...")
        return await task.run()

    def _replace_active_task(self, task: RecognitionTask | None) -> None:
        previous = self._active_task
        if previous is not None and previous is not task:
            previous.cancel()
            previous.discard()
        self._active_task = task

    def _on_task_done(self, task: RecognitionTask) -> None:
        if task is not self._active_task:
            return
        if task.state is TaskState.SUCCEEDED:
            if self._timeout_elapsed:
                # Result arrived after the settlement timeout had already fired
                self._arm_settlement_timer()
        elif task.error is not None:
            self._set_status(f"Recognition failed: {task.error}")
        else:
            self._set_status("No recognition result")

    # ------------------------------------------------------------------
    # Settlement
    # ------------------------------------------------------------------

    def _arm_settlement_timer(self) -> None:
        self.timer.cancel(self._pending_timer)
        self._timeout_elapsed = False
        self._pending_timer = self.timer.schedule(
            self.config.settlement_timeout_ms, self._on_settlement_timeout
        )

    def _cancel_settlement_timer(self) -> None:
        self.timer.cancel(self._pending_timer)
        self._pending_timer = None
        self._timeout_elapsed = False

    def _on_settlement_timeout(self) -> None:
        logger.info("Handling timeout trigger")
        self._pending_timer = None
        self._timeout_elapsed = True
        self.commit()

    def commit(self) -> None:
        """Deliver the active task's result to listeners, at most once."""
        task = self._active_task
        if task is None or not task.done() or task.result() is None:
            logger.debug("Nothing to commit")
            return
        if not task.mark_committed():
            return

        result = task.result()
        self._active_task = None
        self._cancel_settlement_timer()
        self.content.append(result)

        self._set_status(f"Successful recognition: {result.text}")
        if self.clear_current_ink_after_recognition:
            self.reset_current_ink()

        try:
            value = parse_answer(result.text)
        except UnparseableResultError:
            logger.info("Misparsed recognized text: %r", result.text)
            for listener in list(self._content_listeners):
                listener.on_misparsed_recognized_text(result.text)
            return

        # Listeners may advance the exercise, so read the answer first
        expected = self.expected_result
        correct = value == expected
        for listener in list(self._content_listeners):
            listener.on_new_recognized_text(result.text, correct)

    def reset_current_ink(self) -> None:
        """Drop recognized strokes, leaving a stroke still being drawn."""
        self.accumulator.clear_strokes()

    def reset(self) -> None:
        """Drop ink, history, pending timer and any in-flight recognition."""
        logger.info("reset")
        self._generation += 1
        self.accumulator.reset()
        self.content.clear()
        self._cancel_settlement_timer()
        self._replace_active_task(None)
        self._set_status("")

    # ------------------------------------------------------------------
    # Models
    # ------------------------------------------------------------------

    def set_active_model(self, language_tag: str) -> None:
        self._set_status(self.model_manager.set_model(language_tag))

    async def download(self) -> str:
        self._set_status("Download started.")
        status = await self.model_manager.download()
        await self.refresh_downloaded_models_status()
        self._set_status(status)
        return status

    async def delete_active_model(self) -> str:
        status = await self.model_manager.delete_active_model()
        await self.refresh_downloaded_models_status()
        self._set_status(status)
        return status

    async def refresh_downloaded_models_status(self) -> set[str]:
        try:
            languages = await self.model_manager.downloaded_languages()
        except Exception:
            logger.exception("Could not list downloaded models")
            return set()
        if self._downloaded_models_listener is not None:
            self._downloaded_models_listener(languages)
        return languages
