from rich.text import Text
from rich.panel import Panel
from rich.table import Table
from rich.style import Style
from rich.align import Align
from rich import box
from typing import Optional, List

from models import SummaryRow
from session import ProgressIcon
from ui.styles import (
    CHALK_BLUE,
    PENCIL_YELLOW,
    SUCCESS_GREEN,
    ERROR_RED,
    MUTED_GRAY,
    TEXT_WHITE,
    PROGRESS_GLYPHS,
    create_error_header,
    create_session_complete_header,
    create_success_header,
)


class ProgressIcons:
    """One icon per exercise slot of the session."""

    def __init__(self, icons: List[ProgressIcon]):
        self.icons = icons

    def render(self) -> Text:
        content = Text()
        for i, icon in enumerate(self.icons):
            if i > 0:
                content.append(" ")
            content.append(PROGRESS_GLYPHS[icon])
        return content

    def __rich__(self) -> Text:
        return self.render()


class ExercisePanel:
    """A styled panel for displaying the current question."""

    def __init__(
        self,
        question: str,
        progress: Optional[List[ProgressIcon]] = None,
    ):
        self.question = question
        self.progress = progress or []

    def render(self) -> Panel:
        content = Text()

        if self.progress:
            content.append(ProgressIcons(self.progress).render())
            content.append("\n\n")

        content.append(f"{self.question} = ?", Style(color=CHALK_BLUE, bold=True))

        return Panel(
            Align.left(content),
            title="Ink Tutor",
            subtitle="Write the answer",
            border_style=CHALK_BLUE,
            box=box.HEAVY,
            padding=(1, 2),
        )

    def __rich__(self) -> Panel:
        return self.render()


class FeedbackPanel:
    """A styled panel for the verdict on a recognized answer."""

    def __init__(self, is_correct: bool, recognized_text: str):
        self.is_correct = is_correct
        self.recognized_text = recognized_text

    def render(self) -> Panel:
        content = Text()

        if self.is_correct:
            content.append(create_success_header())
        else:
            content.append(create_error_header())

        content.append("\n\n")
        content.append("Recognized: ", Style(color=MUTED_GRAY))
        content.append(
            self.recognized_text,
            Style(color=SUCCESS_GREEN if self.is_correct else ERROR_RED, bold=True),
        )

        return Panel(
            Align.left(content),
            title="Result",
            border_style=SUCCESS_GREEN if self.is_correct else ERROR_RED,
            box=box.HEAVY,
            padding=(1, 2),
        )

    def __rich__(self) -> Panel:
        return self.render()


class StatusLine:
    """Single line of coordinator status text."""

    def __init__(self, status: str):
        self.status = status

    def render(self) -> Text:
        text = Text()
        text.append("» ", Style(color=PENCIL_YELLOW))
        text.append(self.status or "Ready", Style(color=MUTED_GRAY, italic=True))
        return text

    def __rich__(self) -> Text:
        return self.render()


class ResultsTable:
    """Session summary: one equation per exercise plus the overall stats."""

    def __init__(self, rows: List[SummaryRow], stats: str):
        self.rows = rows
        self.stats = stats

    def render(self) -> Panel:
        table = Table(
            show_header=True,
            header_style=Style(color=CHALK_BLUE, bold=True),
            border_style=MUTED_GRAY,
            row_styles=[Style(), Style(dim=True)],
            box=box.HEAVY,
        )

        table.add_column("#", justify="right", style=Style(color=MUTED_GRAY))
        table.add_column("Equation", style=Style(color=TEXT_WHITE))
        table.add_column("Result", justify="center")

        for i, row in enumerate(self.rows, start=1):
            if row.correct:
                verdict = Text("✓", style=Style(color=SUCCESS_GREEN, bold=True))
            elif row.solved:
                verdict = Text("✗", style=Style(color=ERROR_RED, bold=True))
            else:
                verdict = Text("…", style=Style(color=MUTED_GRAY))
            table.add_row(str(i), row.equation, verdict)

        content = Table.grid()
        content.add_row(Align.center(create_session_complete_header()))
        content.add_row(Align.center(table))
        content.add_row(
            Align.center(Text(self.stats, style=Style(color=PENCIL_YELLOW, bold=True)))
        )

        return Panel(
            content,
            title="Session Summary",
            border_style=PENCIL_YELLOW,
            box=box.HEAVY,
            padding=(1, 1),
        )

    def __rich__(self) -> Panel:
        return self.render()
