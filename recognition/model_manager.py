"""Selection, download and deletion of the active recognition model."""

import logging
import re

from errors import ModelNotReadyError, RecognizerUnavailableError
from recognition.backend import RecognitionBackend

logger = logging.getLogger(__name__)

LANGUAGE_TAG = re.compile(r"[A-Za-z]{2,8}(-[A-Za-z0-9]{1,8})*")


class ModelManager:
    """Tracks the active language model of a recognition backend.

    Operations report their outcome as human-readable status strings;
    backend failures are logged and turned into statuses, never raised.
    """

    def __init__(self, backend: RecognitionBackend | None):
        self.backend = backend
        self.language_tag: str | None = None

    @property
    def recognizer(self) -> RecognitionBackend | None:
        """The backend, if a model is selected."""
        if self.language_tag is None:
            return None
        return self.backend

    def set_model(self, language_tag: str) -> str:
        self.language_tag = None

        if self.backend is None:
            return "Recognizer not set"
        if not LANGUAGE_TAG.fullmatch(language_tag):
            logger.error("Failed to parse language '%s'", language_tag)
            return f"Failed to parse language: {language_tag}"
        if not self.backend.has_model(language_tag):
            return f"No model for language: {language_tag}"

        self.language_tag = language_tag
        logger.info("Model set for language '%s'", language_tag)
        return f"Model set for language: {language_tag}"

    def require_recognizer(self) -> RecognitionBackend:
        recognizer = self.recognizer
        if recognizer is None:
            raise RecognizerUnavailableError("Recognizer not set")
        return recognizer

    async def is_model_downloaded(self) -> bool:
        recognizer = self.require_recognizer()
        return await recognizer.is_model_downloaded(self.language_tag)

    async def require_downloaded(self) -> None:
        if not await self.is_model_downloaded():
            raise ModelNotReadyError("Model not downloaded yet")

    async def download(self) -> str:
        if self.recognizer is None:
            return "Model not selected."
        try:
            await self.backend.download_model(self.language_tag)
        except Exception as e:
            logger.exception("Error while downloading the model")
            return f"Error while downloading the model: {e}"
        logger.info("Model download succeeded")
        return "Downloaded model successfully"

    async def delete_active_model(self) -> str:
        if self.recognizer is None:
            logger.info("Model not set")
            return "Model not set"
        try:
            if not await self.backend.is_model_downloaded(self.language_tag):
                return "Model not downloaded yet"
            await self.backend.delete_model(self.language_tag)
        except Exception as e:
            logger.exception("Error while deleting the model")
            return f"Error while deleting the model: {e}"
        logger.info("Model successfully deleted")
        return "Model successfully deleted"

    async def downloaded_languages(self) -> set[str]:
        if self.backend is None:
            return set()
        return set(await self.backend.list_downloaded_languages())
