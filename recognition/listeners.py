"""Listener interfaces notified by the recognition coordinator."""

from abc import ABC, abstractmethod
from typing import Callable


class ContentChangedListener(ABC):
    """Notified when a gesture has been recognized and settled."""

    @abstractmethod
    def on_new_recognized_text(self, text: str, correct: bool) -> None:
        """Called with numeric recognized text and whether it answers the exercise."""
        ...

    @abstractmethod
    def on_misparsed_recognized_text(self, text: str | None) -> None:
        """Called when the recognized text cannot be read as a number."""
        ...


# Called with the new status string
StatusChangedListener = Callable[[str], None]

# Called with the set of downloaded language tags
DownloadedModelsChangedListener = Callable[[set[str]], None]
