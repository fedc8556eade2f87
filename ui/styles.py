from rich.theme import Theme
from rich.style import Style
from rich.text import Text

from session import ProgressIcon

CHALK_BLUE = "#2E86C1"
PENCIL_YELLOW = "#F4D03F"
SUCCESS_GREEN = "#27AE60"
ERROR_RED = "#C0392B"
INFO_BLUE = "#3498DB"
MUTED_GRAY = "#7F8C8D"
TEXT_WHITE = "#FFFFFF"

DEFAULT_THEME = Theme(
    {
        "primary": Style(color=CHALK_BLUE, bold=True),
        "secondary": Style(color=PENCIL_YELLOW, bold=True),
        "success": Style(color=SUCCESS_GREEN),
        "error": Style(color=ERROR_RED, bold=True),
        "info": Style(color=INFO_BLUE),
        "muted": Style(color=MUTED_GRAY),
        "question": Style(color=CHALK_BLUE, bold=True),
        "status": Style(color=MUTED_GRAY, italic=True),
        "title": Style(color=CHALK_BLUE, bold=True),
        "subtitle": Style(color=MUTED_GRAY),
    }
)

PROGRESS_GLYPHS = {
    ProgressIcon.ASLEEP: "😴",
    ProgressIcon.WAITING: "😳",
    ProgressIcon.CRYING: "😢",
    ProgressIcon.HEART: "❤",
}


def create_success_header() -> Text:
    """Create a success/correct answer header."""
    header = Text()
    header.append("✓ ", Style(color=SUCCESS_GREEN, bold=True))
    header.append("Correct!", Style(color=SUCCESS_GREEN, bold=True))
    return header


def create_error_header() -> Text:
    """Create an error/incorrect answer header."""
    header = Text()
    header.append("✗ ", Style(color=ERROR_RED, bold=True))
    header.append("Not quite!", Style(color=ERROR_RED, bold=True))
    return header


def create_session_complete_header() -> Text:
    """Create session complete header."""
    header = Text()
    header.append("🎉 ", Style(color=PENCIL_YELLOW))
    header.append("Session Complete!", Style(color=CHALK_BLUE, bold=True))
    return header
