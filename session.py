"""
Solve session: connects the exercise ledger to the recognition coordinator.

The session listens for settled answers, scores them against the current
exercise, advances to the next exercise and reports the session summary once
enough exercises have been solved.
"""

import logging
from enum import Enum
from typing import Callable

from ledger import ExerciseLedger
from models import Exercise, SummaryRow
from recognition import ContentChangedListener, RecognitionCoordinator, parse_answer

logger = logging.getLogger(__name__)


class ProgressIcon(str, Enum):
    ASLEEP = "asleep"  # not reached yet
    WAITING = "waiting"  # current, unsolved
    CRYING = "crying"  # solved incorrectly
    HEART = "heart"  # solved correctly


class SolveSession(ContentChangedListener):
    """Owner of a coordinator and a ledger for one practice session."""

    def __init__(
        self,
        coordinator: RecognitionCoordinator,
        ledger: ExerciseLedger,
        session_length: int = 5,
        on_complete: Callable[[list[SummaryRow]], None] | None = None,
    ):
        self.coordinator = coordinator
        self.ledger = ledger
        self.session_length = session_length
        self.on_complete = on_complete
        self.completed = False
        self.misparsed_count = 0

        coordinator.add_content_changed_listener(self)
        coordinator.expected_result = ledger.last().expected_result

    @property
    def current_exercise(self) -> Exercise:
        return self.ledger.last()

    def on_new_recognized_text(self, text: str, correct: bool) -> None:
        if self.completed:
            return

        exercise = self.ledger.last()
        if exercise.solved:
            logger.error("Current exercise was already solved")

        correctly_solved = exercise.solve(parse_answer(text))
        if correctly_solved != correct:
            logger.error("Recognizer verdict disagrees with exercise for %r", text)
        logger.info("Stats: %s", self.ledger.stats())

        if self.ledger.solved_count() >= self.session_length:
            self._complete()
            return

        self.ledger.generate()
        self.coordinator.expected_result = self.ledger.last().expected_result

    def on_misparsed_recognized_text(self, text: str | None) -> None:
        self.misparsed_count += 1
        logger.info("Could not read %r as an answer, waiting for another try", text)

    def _complete(self) -> None:
        self.completed = True
        logger.info("Session complete: %s", self.ledger.stats())
        if self.on_complete is not None:
            self.on_complete(self.ledger.summary())

    def progress(self) -> list[ProgressIcon]:
        """One icon per exercise slot in the session."""
        history = self.ledger.history()
        icons = []
        for i in range(self.session_length):
            if i >= len(history):
                icons.append(ProgressIcon.ASLEEP)
            elif not history[i].solved:
                icons.append(ProgressIcon.WAITING)
            elif not history[i].correct:
                icons.append(ProgressIcon.CRYING)
            else:
                icons.append(ProgressIcon.HEART)
        return icons
