"""Core simulation logic for the session simulator.

A simulated student writes answers as digit strokes, a simulated recognizer
reads them back with configurable errors, and the real coordinator, ledger
and session settle everything on a virtual clock.
"""

import asyncio
import json
import logging
import math
import random
from datetime import datetime
from pathlib import Path

from rich import box
from rich.console import Console
from rich.table import Table

from config import TutorConfig
from ledger import ExerciseLedger
from models import (
    Ink,
    InputAction,
    InputEvent,
    RecognitionCandidate,
    RecognitionContext,
    Stroke,
    SummaryRow,
)
from recognition import (
    ContentChangedListener,
    ManualTimer,
    RecognitionBackend,
    RecognitionCoordinator,
)
from session import SolveSession
from simulator_models import (
    AttemptResult,
    SessionResult,
    SimulatedRecognizerConfig,
    SimulatedStudentConfig,
    SimulationResults,
)
from ui import TutorUI

logger = logging.getLogger(__name__)

DIGIT_WIDTH = 40.0
DIGIT_HEIGHT = 60.0


class SimulatedBackend(RecognitionBackend):
    """Recognizer that knows which digit every simulated stroke encodes."""

    def __init__(
        self,
        config: SimulatedRecognizerConfig,
        rng: random.Random | None = None,
    ):
        self.config = config
        self.rng = rng or random.Random()
        self.recognize_calls = 0
        self._digits: dict[Stroke, str] = {}
        self._downloaded: set[str] = (
            set(config.languages) if config.model_downloaded else set()
        )

    def register_stroke(self, stroke: Stroke, digit: str) -> None:
        self._digits[stroke] = digit

    def has_model(self, language_tag: str) -> bool:
        return language_tag in self.config.languages

    def read_ink(self, ink: Ink) -> str:
        """Ground truth text of an ink; unknown strokes read as '?'."""
        return "".join(self._digits.get(stroke, "?") for stroke in ink.strokes)

    async def recognize(
        self, ink: Ink, context: RecognitionContext
    ) -> list[RecognitionCandidate]:
        self.recognize_calls += 1
        # Yield to the loop like a real asynchronous recognizer would
        await asyncio.sleep(0)

        text = self.read_ink(ink)
        if self.rng.random() < self.config.garble_rate:
            return [
                RecognitionCandidate(text=f"{text}?", score=0.4),
                RecognitionCandidate(text="?", score=0.1),
            ]

        if text and self.rng.random() < self.config.misread_rate:
            i = self.rng.randrange(len(text))
            wrong = self.rng.choice([d for d in "0123456789" if d != text[i]])
            text = text[:i] + wrong + text[i + 1 :]

        candidates = [
            RecognitionCandidate(text=text, score=0.9),
            RecognitionCandidate(text=f"{text}.", score=0.6),
            RecognitionCandidate(text=text[::-1], score=0.2),
        ]
        if self.rng.random() < self.config.rich_candidate_rate:
            candidates[0], candidates[1] = candidates[1], candidates[0]
        return candidates

    async def is_model_downloaded(self, language_tag: str) -> bool:
        await asyncio.sleep(0)
        return language_tag in self._downloaded

    async def download_model(self, language_tag: str) -> None:
        await asyncio.sleep(0)
        if not self.has_model(language_tag):
            raise ValueError(f"No model for language: {language_tag}")
        self._downloaded.add(language_tag)

    async def delete_model(self, language_tag: str) -> None:
        await asyncio.sleep(0)
        self._downloaded.discard(language_tag)

    async def list_downloaded_languages(self) -> set[str]:
        await asyncio.sleep(0)
        return set(self._downloaded)


class SimulatedWriter:
    """Writes answers into the coordinator as one stroke per digit."""

    def __init__(
        self,
        coordinator: RecognitionCoordinator,
        backend: SimulatedBackend,
        timer: ManualTimer,
        config: SimulatedStudentConfig,
        rng: random.Random | None = None,
    ):
        self.coordinator = coordinator
        self.backend = backend
        self.timer = timer
        self.config = config
        self.rng = rng or random.Random()

    def digit_events(self, digit: str, position: int) -> list[InputEvent]:
        """Pointer events tracing one digit, starting at the current clock."""
        n = self.config.stroke_points
        x0 = position * DIGIT_WIDTH
        phase = int(digit) * math.pi / 5
        events = []
        for k in range(n):
            action = InputAction.MOVE
            if k == 0:
                action = InputAction.DOWN
            elif k == n - 1:
                action = InputAction.UP
            x = x0 + DIGIT_WIDTH / 2 * (1 + math.sin(phase + k)) + self.rng.uniform(-1, 1)
            y = DIGIT_HEIGHT * k / (n - 1) + self.rng.uniform(-1, 1)
            t = int(self.timer.now()) + k * self.config.sample_interval_ms
            events.append(InputEvent(action=action, x=x, y=y, t=t))
        return events

    async def write(self, answer: int) -> None:
        for position, digit in enumerate(str(answer)):
            if position > 0:
                self.timer.advance(self.config.pause_between_digits_ms)

            events = self.digit_events(digit, position)
            stroke = Stroke(points=tuple(e.to_point() for e in events))
            self.backend.register_stroke(stroke, digit)

            for i, event in enumerate(events):
                if i > 0:
                    self.timer.advance(self.config.sample_interval_ms)
                self.coordinator.on_input(event)
            await self.coordinator.wait_idle()


class AttemptRecorder(ContentChangedListener):
    """Remembers the last settled answer."""

    def __init__(self):
        self.clear()

    def clear(self) -> None:
        self.text: str | None = None
        self.misparsed = False
        self.settled = False

    def on_new_recognized_text(self, text: str, correct: bool) -> None:
        self.text = text
        self.settled = True

    def on_misparsed_recognized_text(self, text: str | None) -> None:
        self.text = text
        self.misparsed = True
        self.settled = True


class Simulator:
    """Runs simulated practice sessions."""

    def __init__(
        self,
        config: TutorConfig,
        student: SimulatedStudentConfig,
        recognizer: SimulatedRecognizerConfig,
        rng: random.Random | None = None,
        ui: TutorUI | None = None,
    ):
        self.config = config
        self.student = student
        self.recognizer = recognizer
        self.rng = rng or random.Random()
        self.ui = ui

        self.attempts: list[AttemptResult] = []
        self.session_results: list[SessionResult] = []

    def _choose_answer(self, expected: int) -> int:
        if self.rng.random() < self.student.accuracy:
            return expected
        wrong = expected + self.rng.choice([-2, -1, 1, 2])
        if wrong < 0:
            wrong = expected + 1
        return wrong

    async def _run_session(self, number: int) -> SessionResult:
        timer = ManualTimer()
        backend = SimulatedBackend(self.recognizer, self.rng)
        coordinator = RecognitionCoordinator(backend, self.config.recognition, timer)
        ledger = ExerciseLedger(self.config.exercises, self.rng)
        summary: list[SummaryRow] = []
        session = SolveSession(
            coordinator,
            ledger,
            self.config.session.session_length,
            on_complete=summary.extend,
        )
        recorder = AttemptRecorder()
        coordinator.add_content_changed_listener(recorder)
        if self.ui is not None:
            self.ui.attach(coordinator)

        coordinator.set_active_model(self.config.recognition.language_tag)
        if not await coordinator.model_manager.is_model_downloaded():
            await coordinator.download()

        writer = SimulatedWriter(coordinator, backend, timer, self.student, self.rng)
        max_attempts = self.student.max_attempts_per_exercise * session.session_length
        attempts = 0
        while not session.completed and attempts < max_attempts:
            attempts += 1
            exercise = session.current_exercise
            if self.ui is not None:
                self.ui.show_exercise(exercise.question(), session.progress())

            written = self._choose_answer(exercise.expected_result)
            recorder.clear()
            await writer.write(written)
            if not self.config.recognition.trigger_recognition_after_input:
                await coordinator.recognize()
            timer.advance(self.config.recognition.settlement_timeout_ms)

            if not recorder.settled:
                logger.info("Answer %d was not settled, rewriting", written)
            if not coordinator.accumulator.is_empty:
                coordinator.reset_current_ink()

            self.attempts.append(
                AttemptResult(
                    session=number,
                    question=exercise.question(),
                    expected=exercise.expected_result,
                    written=written,
                    recognized_text=recorder.text,
                    misparsed=recorder.misparsed,
                    settled=recorder.settled,
                    correct=recorder.settled
                    and not recorder.misparsed
                    and exercise.correct,
                )
            )

        stats = ledger.stats()
        result = SessionResult(
            session=number,
            completed=session.completed,
            summary=summary or ledger.summary(),
            stats=str(stats),
            correct_count=stats.correct,
            solved_count=stats.solved,
            misparsed_count=session.misparsed_count,
            final_status=coordinator.status,
        )
        if self.ui is not None:
            self.ui.show_results(result.summary, result.stats)
            if result.completed:
                self.ui.show_success(f"Session {number} complete: {result.stats}")
        return result

    async def run_async(self, sessions: int) -> list[SessionResult]:
        for number in range(1, sessions + 1):
            self.session_results.append(await self._run_session(number))
        return self.session_results

    def run(self, sessions: int, seed: int | None = None) -> SimulationResults:
        """Run the full simulation."""
        start_time = datetime.now()
        asyncio.run(self.run_async(sessions))
        end_time = datetime.now()

        total_solved = sum(r.solved_count for r in self.session_results)
        total_correct = sum(r.correct_count for r in self.session_results)
        misrecognized = sum(
            1
            for a in self.attempts
            if a.settled and not a.misparsed and a.recognized_text != str(a.written)
        )
        return SimulationResults(
            student=self.student,
            recognizer=self.recognizer,
            session_length=self.config.session.session_length,
            random_seed=seed,
            start_time=start_time,
            end_time=end_time,
            total_attempts=len(self.attempts),
            total_solved=total_solved,
            total_correct=total_correct,
            overall_accuracy=total_correct / total_solved if total_solved > 0 else 0.0,
            misrecognized_count=misrecognized,
            unsettled_count=sum(1 for a in self.attempts if not a.settled),
            sessions=self.session_results,
            attempts=self.attempts,
        )


def print_console_summary(results: SimulationResults, console: Console) -> None:
    """Print formatted console summary of simulation results."""
    console.print()
    console.print("=" * 80)
    console.print("                        SIMULATION COMPLETE")
    console.print("=" * 80)
    console.print()
    console.print("Configuration:")
    console.print(f"  Sessions simulated: {len(results.sessions)}")
    console.print(f"  Session length:     {results.session_length}")
    console.print(f"  Total attempts:     {results.total_attempts}")
    console.print()
    console.print("Student Parameters:")
    console.print(f"  Accuracy:           {results.student.accuracy:.2f}")
    console.print(f"  Digit pause:        {results.student.pause_between_digits_ms} ms")
    console.print()
    console.print("Recognizer Parameters:")
    console.print(f"  Misread rate:       {results.recognizer.misread_rate:.2f}")
    console.print(f"  Garble rate:        {results.recognizer.garble_rate:.2f}")
    console.print()
    console.print("=" * 80)
    console.print("                        OVERALL RESULTS")
    console.print("=" * 80)
    console.print()
    console.print(
        f"Total correct:        {results.total_correct} / {results.total_solved} "
        f"({results.overall_accuracy * 100:.1f}%)"
    )
    console.print(f"Misrecognized:        {results.misrecognized_count}")
    console.print(f"Unsettled attempts:   {results.unsettled_count}")
    console.print()
    console.print("=" * 80)
    console.print("                        SESSION BREAKDOWN")
    console.print("=" * 80)
    console.print()

    table = Table(box=box.SIMPLE, header_style="bold")
    table.add_column("Session", justify="right")
    table.add_column("Completed", justify="center")
    table.add_column("Stats")
    table.add_column("Misparsed", justify="right")
    table.add_column("Final status")
    for session in results.sessions:
        table.add_row(
            str(session.session),
            "yes" if session.completed else "no",
            session.stats,
            str(session.misparsed_count),
            session.final_status,
        )
    console.print(table)


def save_json_results(results: SimulationResults, output_path: Path) -> None:
    """Save simulation results to JSON file."""
    data = json.loads(results.model_dump_json())

    with open(output_path, "w") as f:
        json.dump(data, f, indent=2, default=str)


def run_simulation_and_report(
    config: TutorConfig,
    student: SimulatedStudentConfig,
    recognizer: SimulatedRecognizerConfig,
    sessions: int,
    output_path: Path | None = None,
    verbose: bool = False,
    seed: int | None = None,
    console: Console | None = None,
) -> SimulationResults:
    """Run simulation and generate all outputs."""
    rng = random.Random(seed)
    console = console or Console()
    summary_ui = TutorUI(console)

    simulator = Simulator(
        config,
        student,
        recognizer,
        rng=rng,
        ui=summary_ui if verbose else None,
    )
    results = simulator.run(sessions, seed=seed)

    print_console_summary(results, console)

    if output_path is not None:
        save_json_results(results, output_path)
        summary_ui.show_info(f"Results saved to: {output_path}")

    return results
