"""Abstract interface for handwriting-recognition backends."""

from abc import ABC, abstractmethod

from models import Ink, RecognitionCandidate, RecognitionContext


class RecognitionBackend(ABC):
    """Abstract interface for a handwriting recognizer and its model store.

    Every operation that may touch the network or the model runs as a
    coroutine; implementations must not block the event loop.
    """

    @abstractmethod
    def has_model(self, language_tag: str) -> bool:
        """Check whether a model exists for the language tag.

        Args:
            language_tag: BCP-47 language tag, e.g. 'en-US'.

        Returns:
            True if a model can be selected for this tag.
        """
        pass

    @abstractmethod
    async def recognize(
        self, ink: Ink, context: RecognitionContext
    ) -> list[RecognitionCandidate]:
        """Recognize an ink.

        Args:
            ink: The ink to recognize.
            context: Recognition hints (pre-context, language).

        Returns:
            Candidates ordered best first. May be empty.
        """
        pass

    @abstractmethod
    async def is_model_downloaded(self, language_tag: str) -> bool:
        pass

    @abstractmethod
    async def download_model(self, language_tag: str) -> None:
        pass

    @abstractmethod
    async def delete_model(self, language_tag: str) -> None:
        pass

    @abstractmethod
    async def list_downloaded_languages(self) -> set[str]:
        pass
