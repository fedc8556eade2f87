"""Exception taxonomy for the ink tutor."""


class InkTutorError(Exception):
    """Base class for all ink tutor errors."""


class InputPreconditionError(InkTutorError, RuntimeError):
    """Pointer events arrived out of order (e.g. a move without a down).

    This is a programming error in the input source and is never caught by
    the coordinator.
    """


class RecognizerUnavailableError(InkTutorError):
    """No recognition model has been configured."""


class ModelNotReadyError(InkTutorError):
    """The active model has not been downloaded yet."""


class UnparseableResultError(InkTutorError, ValueError):
    """Recognized text is not a non-negative integer."""

    def __init__(self, text: str | None):
        super().__init__(f"Cannot parse recognized text: {text!r}")
        self.text = text


class EmptyLedgerError(InkTutorError, LookupError):
    """The exercise ledger was queried before any exercise existed."""
