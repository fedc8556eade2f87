from rich.console import Console
from rich.text import Text
from rich.panel import Panel
from ui.components import (
    ExercisePanel,
    FeedbackPanel,
    ResultsTable,
    StatusLine,
)
from ui.styles import (
    DEFAULT_THEME,
    SUCCESS_GREEN,
    ERROR_RED,
    INFO_BLUE,
)
from typing import Optional, List

from models import SummaryRow
from recognition import ContentChangedListener, RecognitionCoordinator
from session import ProgressIcon


class TutorUI(ContentChangedListener):
    """Main UI orchestrator for the ink tutor.

    Listens to a coordinator for settled answers and status changes and
    renders them on a rich console.
    """

    def __init__(self, console: Optional[Console] = None):
        self.console = console or Console(theme=DEFAULT_THEME)
        self.last_status = ""

    def attach(self, coordinator: RecognitionCoordinator) -> None:
        """Subscribe to a coordinator's answers and status updates."""
        coordinator.add_content_changed_listener(self)
        coordinator.set_status_changed_listener(self.show_status)

    def on_new_recognized_text(self, text: str, correct: bool) -> None:
        self.show_feedback(correct, text)

    def on_misparsed_recognized_text(self, text: Optional[str]) -> None:
        self.show_error(f"Could not read {text!r} as a number, try again")

    def show_exercise(
        self,
        question: str,
        progress: Optional[List[ProgressIcon]] = None,
    ) -> None:
        """Display the question to answer.

        Args:
            question: The exercise question, e.g. "3 + 4".
            progress: Progress icons for every exercise slot of the session.
        """
        self.console.print(ExercisePanel(question=question, progress=progress))
        self.console.print()

    def show_feedback(self, is_correct: bool, recognized_text: str) -> None:
        """Display feedback for a recognized answer."""
        self.console.print(
            FeedbackPanel(is_correct=is_correct, recognized_text=recognized_text)
        )
        self.console.print()

    def show_status(self, status: str) -> None:
        """Display a coordinator status update."""
        self.last_status = status
        if status:
            self.console.print(StatusLine(status))

    def show_results(self, rows: List[SummaryRow], stats: str) -> None:
        """Display the session summary."""
        self.console.print(ResultsTable(rows, stats))
        self.console.print()

    def show_error(self, message: str) -> None:
        """Display an error message."""
        self.console.print(
            Panel(
                Text(f"Error: {message}", style=ERROR_RED),
                title="Error",
                border_style=ERROR_RED,
            )
        )

    def show_info(self, message: str) -> None:
        """Display an informational message."""
        self.console.print(Text(message, style=INFO_BLUE))

    def show_success(self, message: str) -> None:
        """Display a success message."""
        self.console.print(Text(message, style=SUCCESS_GREEN))
