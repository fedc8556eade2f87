"""Stroke capture and handwriting recognition.

This package turns pointer input into recognized answers.

Architecture:
- InkAccumulator collects points into strokes and strokes into ink
- RecognitionTask submits one ink snapshot to a backend and keeps one result
- RecognitionCoordinator decides when to recognize and settles each gesture
  exactly once, after a quiet period measured by a cancellable timer
- ModelManager selects, downloads and deletes the backend's language model

Backends implement RecognitionBackend; listeners implement
ContentChangedListener or are plain callables for status and model changes.
"""

from recognition.accumulator import InkAccumulator
from recognition.backend import RecognitionBackend
from recognition.coordinator import RecognitionCoordinator, parse_answer
from recognition.listeners import (
    ContentChangedListener,
    DownloadedModelsChangedListener,
    StatusChangedListener,
)
from recognition.model_manager import ModelManager
from recognition.task import RecognitionTask, SettlementState, TaskState
from recognition.timer import AsyncioTimer, CancellableTimer, ManualTimer, TimerToken

__all__ = [
    # Ink capture
    "InkAccumulator",
    # Backend interface
    "RecognitionBackend",
    "ModelManager",
    # Tasks
    "RecognitionTask",
    "TaskState",
    "SettlementState",
    # Coordination
    "RecognitionCoordinator",
    "parse_answer",
    # Listeners
    "ContentChangedListener",
    "StatusChangedListener",
    "DownloadedModelsChangedListener",
    # Timers
    "CancellableTimer",
    "AsyncioTimer",
    "ManualTimer",
    "TimerToken",
]
