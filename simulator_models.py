"""Data models for the session simulator."""

from datetime import datetime

from pydantic import BaseModel, Field

from models import SummaryRow


class SimulatedStudentConfig(BaseModel):
    """Configuration for a simulated student's handwriting behavior."""

    # Probability of writing the right answer (0.5 = guessing, 0.95 = strong)
    accuracy: float = Field(default=0.8, ge=0.0, le=1.0)

    # Pointer samples per digit stroke
    stroke_points: int = Field(default=8, ge=2)

    # Time between pointer samples
    sample_interval_ms: int = Field(default=15, ge=1)

    # Pause between two digits of one answer. Pauses shorter than the
    # settlement timeout keep multi-digit answers in one gesture.
    pause_between_digits_ms: int = Field(default=250, ge=0)

    # Attempts per exercise before the simulation gives up on a session
    max_attempts_per_exercise: int = Field(default=4, ge=1)


class SimulatedRecognizerConfig(BaseModel):
    """Configuration for the simulated handwriting recognizer."""

    # Probability that one digit of the answer is read as another digit
    misread_rate: float = Field(default=0.05, ge=0.0, le=1.0)

    # Probability that no candidate is a plain number
    garble_rate: float = Field(default=0.02, ge=0.0, le=1.0)

    # Probability that a richer text candidate outranks the plain number
    rich_candidate_rate: float = Field(default=0.3, ge=0.0, le=1.0)

    model_downloaded: bool = False
    languages: list[str] = Field(default_factory=lambda: ["en-US", "cs-CZ"])


class AttemptResult(BaseModel):
    """One written answer and what the recognizer made of it."""

    session: int
    question: str
    expected: int
    written: int
    recognized_text: str | None = None
    misparsed: bool = False
    settled: bool = False
    correct: bool = False


class SessionResult(BaseModel):
    """Outcome of one simulated session."""

    session: int
    completed: bool
    summary: list[SummaryRow]
    stats: str
    correct_count: int
    solved_count: int
    misparsed_count: int
    final_status: str


class SimulationResults(BaseModel):
    """Complete results of a simulation run."""

    # Configuration
    student: SimulatedStudentConfig
    recognizer: SimulatedRecognizerConfig
    session_length: int
    random_seed: int | None
    start_time: datetime
    end_time: datetime

    # Summary statistics
    total_attempts: int
    total_solved: int
    total_correct: int
    overall_accuracy: float

    # Recognition quality: answers scored differently from what was written
    misrecognized_count: int
    unsettled_count: int

    # Detailed breakdowns
    sessions: list[SessionResult]
    attempts: list[AttemptResult]
