"""
Exercise ledger: the ordered history of exercises in a session.

The ledger generates exercises, always exposes the most recent one as the
current exercise, and computes aggregate accuracy over what was solved.
"""

import logging
import math
import random

from pydantic import BaseModel

from config import ExerciseConfig
from errors import EmptyLedgerError
from models import Exercise, Operator, SummaryRow

logger = logging.getLogger(__name__)


class LedgerStats(BaseModel):
    """Correct and solved counts over the ledger history."""

    correct: int = 0
    solved: int = 0

    @property
    def percent(self) -> float:
        if self.solved == 0:
            return 0.0
        return 100.0 * self.correct / self.solved

    def __str__(self) -> str:
        # Round half up, matching how progress is shown to students
        return f"{self.correct} / {self.solved} ({math.floor(self.percent + 0.5)}%)"


class ExerciseLedger:
    """Append-only history of exercises. Never empty after construction."""

    def __init__(
        self,
        config: ExerciseConfig | None = None,
        rng: random.Random | None = None,
    ):
        self.config = config or ExerciseConfig()
        self._rng = rng or random.Random()
        self._history: list[Exercise] = []
        self.generate()

    def _draw(self) -> Exercise:
        bound = self.config.operand_bound
        a = self._rng.randrange(bound)
        b = self._rng.randrange(bound)
        operator = self._rng.choice(self.config.operators)
        if operator is Operator.SUBTRACTION and b > a:
            a, b = b, a
        return Exercise(a=a, b=b, operator=operator)

    def generate(self) -> Exercise:
        """Append a new random exercise and return it."""
        exercise = self._draw()
        self._history.append(exercise)
        logger.info("New exercise: %s", exercise.question())
        return exercise

    def last(self) -> Exercise:
        if not self._history:
            raise EmptyLedgerError("Exercise ledger is empty")
        return self._history[-1]

    def history(self) -> tuple[Exercise, ...]:
        return tuple(self._history)

    def stats(self) -> LedgerStats:
        correct = sum(1 for exercise in self._history if exercise.correct)
        solved = sum(1 for exercise in self._history if exercise.solved)
        return LedgerStats(correct=correct, solved=solved)

    def solved_count(self) -> int:
        return self.stats().solved

    def summary(self) -> list[SummaryRow]:
        """Rows for the results view, in history order."""
        return [
            SummaryRow(
                equation=exercise.equation(),
                solved=exercise.solved,
                correct=exercise.correct,
            )
            for exercise in self._history
        ]

    def __len__(self) -> int:
        return len(self._history)
