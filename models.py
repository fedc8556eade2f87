from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr

# Proposed solution used when the recognizer could not produce a number.
NOT_RECOGNIZED = -1000


# ============================================================================
# Ink Models
# ============================================================================


class Point(BaseModel):
    """A single pointer sample. ``t`` is a timestamp in milliseconds."""

    model_config = ConfigDict(frozen=True)

    x: float
    y: float
    t: int


class Stroke(BaseModel):
    """Ordered points between a pointer-down and the matching pointer-up."""

    model_config = ConfigDict(frozen=True)

    points: tuple[Point, ...] = Field(min_length=1)


class Ink(BaseModel):
    """A complete gesture: every stroke drawn since the last reset."""

    model_config = ConfigDict(frozen=True)

    strokes: tuple[Stroke, ...] = ()

    @property
    def is_empty(self) -> bool:
        return len(self.strokes) == 0

    @property
    def point_count(self) -> int:
        return sum(len(stroke.points) for stroke in self.strokes)


class InputAction(str, Enum):
    DOWN = "down"
    MOVE = "move"
    UP = "up"
    CANCEL = "cancel"


class InputEvent(BaseModel):
    """Raw pointer event delivered by an input source."""

    model_config = ConfigDict(frozen=True)

    action: InputAction
    x: float
    y: float
    t: int

    def to_point(self) -> Point:
        return Point(x=self.x, y=self.y, t=self.t)


# ============================================================================
# Recognition Models
# ============================================================================


class RecognitionCandidate(BaseModel):
    """One recognizer guess. Backends return candidates best first."""

    model_config = ConfigDict(frozen=True)

    text: str
    score: float | None = None


class RecognitionContext(BaseModel):
    """Hints passed to the recognizer along with the ink."""

    model_config = ConfigDict(frozen=True)

    pre_context: str = ""
    language_tag: str = ""


class RecognizedInk(BaseModel):
    """An ink together with the candidate text chosen for it."""

    model_config = ConfigDict(frozen=True)

    ink: Ink
    text: str | None


# ============================================================================
# Exercise Models
# ============================================================================


class Operator(str, Enum):
    """Supported binary arithmetic operators, keyed by display symbol."""

    ADDITION = "+"
    SUBTRACTION = "-"
    MULTIPLICATION = "×"

    @property
    def symbol(self) -> str:
        return self.value

    def apply(self, a: int, b: int) -> int:
        if self is Operator.ADDITION:
            return a + b
        elif self is Operator.SUBTRACTION:
            return a - b
        elif self is Operator.MULTIPLICATION:
            return a * b
        raise ValueError(f"Unsupported operator: {self!r}")


class Exercise(BaseModel):
    """A single arithmetic problem ``a <op> b``.

    The exercise can be solved once: after the first recognized proposal it
    stays solved, although later proposals still replace the stored value.
    """

    a: int = Field(ge=0)
    b: int = Field(ge=0)
    operator: Operator = Operator.ADDITION

    _proposed_solution: int | None = PrivateAttr(default=None)
    _solved: bool = PrivateAttr(default=False)

    @property
    def expected_result(self) -> int:
        return self.operator.apply(self.a, self.b)

    @property
    def proposed_solution(self) -> int | None:
        return self._proposed_solution

    @property
    def solved(self) -> bool:
        return self._solved

    @property
    def correct(self) -> bool:
        return self._solved and self._proposed_solution == self.expected_result

    def question(self) -> str:
        return f"{self.a} {self.operator.symbol} {self.b}"

    def solve(self, solution: int) -> bool:
        """Record a proposed solution.

        Returns True if the solution is correct. ``NOT_RECOGNIZED`` is stored
        but never marks the exercise as solved.
        """
        self._proposed_solution = solution
        if solution == NOT_RECOGNIZED:
            return False
        self._solved = True
        return self.correct

    def equation(self) -> str:
        if self.correct:
            return f"{self.question()} = {self._proposed_solution}"
        if self._proposed_solution is None or self._proposed_solution == NOT_RECOGNIZED:
            return f"{self.question()} ≠ ?"
        return f"{self.question()} ≠ {self._proposed_solution}"


class SummaryRow(BaseModel):
    """One exercise as handed to the session summary surface."""

    equation: str
    solved: bool
    correct: bool
