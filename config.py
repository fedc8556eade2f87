"""Configuration for recognition, exercise generation and sessions.

These configuration models let users tune how eagerly ink is recognized,
how exercises are drawn, and how long a session lasts.
"""

from pathlib import Path

from pydantic import BaseModel, Field

from models import Operator


class RecognitionConfig(BaseModel):
    """Configuration for the recognition coordinator."""

    language_tag: str = "en-US"
    trigger_recognition_after_input: bool = True
    clear_current_ink_after_recognition: bool = True
    settlement_timeout_ms: int = Field(default=1000, ge=0)
    pre_context: str = "1234"
    # Only digit-only candidates are accepted as answers
    numeric_candidates_only: bool = True
    # Prefer the expected answer when the recognizer lists it
    prefer_expected_candidate: bool = False


class ExerciseConfig(BaseModel):
    """Configuration for exercise generation."""

    operand_bound: int = Field(default=10, ge=1)
    operators: list[Operator] = Field(
        default_factory=lambda: [Operator.ADDITION], min_length=1
    )


class SessionConfig(BaseModel):
    """Configuration for a solve session."""

    session_length: int = Field(default=5, ge=1)


class TutorConfig(BaseModel):
    """Master configuration."""

    recognition: RecognitionConfig = Field(default_factory=RecognitionConfig)
    exercises: ExerciseConfig = Field(default_factory=ExerciseConfig)
    session: SessionConfig = Field(default_factory=SessionConfig)


def load_config(path: Path | None = None) -> TutorConfig:
    """Load configuration from a JSON file, or return defaults."""
    if path is None:
        return TutorConfig()
    return TutorConfig.model_validate_json(Path(path).read_text())
