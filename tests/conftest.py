"""Shared pytest fixtures for the Ink Tutor test suite."""

import asyncio
import random
import pytest

import sys
from pathlib import Path

# Add project root to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from config import RecognitionConfig
from models import (
    Ink,
    InputAction,
    InputEvent,
    RecognitionCandidate,
    RecognitionContext,
)
from recognition import (
    ContentChangedListener,
    ManualTimer,
    RecognitionBackend,
    RecognitionCoordinator,
)


class FakeBackend(RecognitionBackend):
    """In-memory recognizer with scripted answers.

    ``responses`` is consumed one list of candidate texts per call; once it
    is exhausted every call returns ``candidates``. With ``gated`` set each
    call blocks until ``release()`` is called.
    """

    def __init__(
        self,
        candidates: list[str] | None = None,
        languages: tuple[str, ...] = ("en-US", "cs-CZ"),
        downloaded: bool = True,
    ):
        self.candidates = candidates if candidates is not None else ["7"]
        self.responses: list[list[str]] = []
        self.languages = set(languages)
        self.downloaded: set[str] = set(languages) if downloaded else set()
        self.error: Exception | None = None
        self.gated = False
        self.gates: list[asyncio.Event] = []
        self.calls: list[tuple[Ink, RecognitionContext]] = []

    def release(self) -> None:
        for gate in self.gates:
            gate.set()

    def has_model(self, language_tag: str) -> bool:
        return language_tag in self.languages

    async def recognize(
        self, ink: Ink, context: RecognitionContext
    ) -> list[RecognitionCandidate]:
        self.calls.append((ink, context))
        texts = self.responses.pop(0) if self.responses else self.candidates
        if self.gated:
            gate = asyncio.Event()
            self.gates.append(gate)
            await gate.wait()
        else:
            await asyncio.sleep(0)
        if self.error is not None:
            raise self.error
        return [RecognitionCandidate(text=text) for text in texts]

    async def is_model_downloaded(self, language_tag: str) -> bool:
        await asyncio.sleep(0)
        return language_tag in self.downloaded

    async def download_model(self, language_tag: str) -> None:
        await asyncio.sleep(0)
        if language_tag not in self.languages:
            raise ValueError(f"unknown language {language_tag}")
        self.downloaded.add(language_tag)

    async def delete_model(self, language_tag: str) -> None:
        await asyncio.sleep(0)
        self.downloaded.discard(language_tag)

    async def list_downloaded_languages(self) -> set[str]:
        await asyncio.sleep(0)
        return set(self.downloaded)


class RecordingListener(ContentChangedListener):
    """Records every notification it receives."""

    def __init__(self):
        self.recognized: list[tuple[str, bool]] = []
        self.misparsed: list[str | None] = []

    def on_new_recognized_text(self, text: str, correct: bool) -> None:
        self.recognized.append((text, correct))

    def on_misparsed_recognized_text(self, text: str | None) -> None:
        self.misparsed.append(text)


def stroke_events(t0: int, x0: float = 0.0, points: int = 3) -> list[InputEvent]:
    """DOWN, MOVE..., UP events for one stroke starting at ``t0``."""
    events = []
    for k in range(points):
        action = InputAction.MOVE
        if k == 0:
            action = InputAction.DOWN
        elif k == points - 1:
            action = InputAction.UP
        events.append(InputEvent(action=action, x=x0 + k, y=float(k), t=t0 + 10 * k))
    return events


@pytest.fixture
def backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture
def timer() -> ManualTimer:
    return ManualTimer()


@pytest.fixture
def listener() -> RecordingListener:
    return RecordingListener()


@pytest.fixture
def recognition_config() -> RecognitionConfig:
    return RecognitionConfig()


@pytest.fixture
def coordinator(backend, timer, listener, recognition_config) -> RecognitionCoordinator:
    """Coordinator with an active, downloaded en-US model and a recording listener."""
    coordinator = RecognitionCoordinator(backend, recognition_config, timer)
    coordinator.set_active_model("en-US")
    coordinator.expected_result = 7
    coordinator.add_content_changed_listener(listener)
    return coordinator


@pytest.fixture
def statuses(coordinator) -> list[str]:
    """Every status the coordinator reports from now on."""
    seen: list[str] = []
    coordinator.set_status_changed_listener(seen.append)
    return seen


@pytest.fixture
def draw_stroke(coordinator):
    """Feed one complete stroke into the coordinator."""

    def draw(t0: int, x0: float = 0.0) -> None:
        for event in stroke_events(t0, x0):
            coordinator.on_input(event)

    return draw


@pytest.fixture
def rng() -> random.Random:
    return random.Random(1234)
