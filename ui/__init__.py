"""Ink Tutor UI Module - Terminal interface for handwritten arithmetic."""

from ui.app import TutorUI
from ui.components import (
    ExercisePanel,
    FeedbackPanel,
    ProgressIcons,
    ResultsTable,
    StatusLine,
)
from ui.styles import (
    CHALK_BLUE,
    PENCIL_YELLOW,
    SUCCESS_GREEN,
    ERROR_RED,
    INFO_BLUE,
    MUTED_GRAY,
)

__all__ = [
    "TutorUI",
    "ExercisePanel",
    "FeedbackPanel",
    "ProgressIcons",
    "ResultsTable",
    "StatusLine",
    "CHALK_BLUE",
    "PENCIL_YELLOW",
    "SUCCESS_GREEN",
    "ERROR_RED",
    "INFO_BLUE",
    "MUTED_GRAY",
]
