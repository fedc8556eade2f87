"""Collects pointer samples into strokes and strokes into ink."""

from errors import InputPreconditionError
from models import Ink, Point, Stroke


class InkAccumulator:
    """Builds the ink of the gesture currently being drawn.

    The dirty flag is raised when a stroke is closed and tells the
    coordinator that the ink changed since its last recognition request.
    """

    def __init__(self):
        self._strokes: list[Stroke] = []
        self._points: list[Point] | None = None
        self._dirty = False

    @property
    def is_dirty(self) -> bool:
        return self._dirty

    @property
    def is_empty(self) -> bool:
        return not self._strokes

    @property
    def stroke_open(self) -> bool:
        return self._points is not None

    def begin_stroke(self, point: Point) -> None:
        if self._points is not None:
            raise InputPreconditionError("begin_stroke called while a stroke is open")
        self._points = [point]

    def extend_stroke(self, point: Point) -> None:
        self._append(point, "extend_stroke")

    def end_stroke(self, point: Point) -> Stroke:
        self._append(point, "end_stroke")
        stroke = Stroke(points=tuple(self._points))
        self._strokes.append(stroke)
        self._points = None
        self._dirty = True
        return stroke

    def _append(self, point: Point, operation: str) -> None:
        if self._points is None:
            raise InputPreconditionError(f"{operation} called before begin_stroke")
        if point.t < self._points[-1].t:
            raise InputPreconditionError(
                f"{operation}: timestamp {point.t} precedes {self._points[-1].t}"
            )
        self._points.append(point)

    def cancel_stroke(self) -> None:
        """Drop the stroke being drawn, if any. Closed strokes are kept."""
        self._points = None

    def clear_strokes(self) -> None:
        """Drop closed strokes but keep a stroke that is still being drawn."""
        self._strokes = []
        self._dirty = False

    def mark_requested(self) -> None:
        """Clear the dirty flag once a recognition request has been issued."""
        self._dirty = False

    def reset(self) -> None:
        self._strokes = []
        self._points = None
        self._dirty = False

    def current_ink(self) -> Ink:
        """Immutable snapshot of all closed strokes."""
        return Ink(strokes=tuple(self._strokes))

    def pending_points(self) -> tuple[Point, ...]:
        """Points of the stroke still being drawn, for rendering."""
        return tuple(self._points or ())
