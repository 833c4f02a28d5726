from abc import ABC, abstractmethod


class BaseExtractor(ABC):
    """Contract for all format extractors."""

    name: str = "base"

    @abstractmethod
    def can_handle(self, mime_type: str) -> bool:
        """Return True if this extractor accepts the given media type."""

    @abstractmethod
    def extract(self, data: bytes) -> str:
        """Convert raw artifact bytes into plain or markdown text.

        Args:
            data: Raw file content.

        Returns:
            Extracted text. Never blank.

        Raises:
            ExtractionError: if extraction fails; EmptyContentError if the
                result would be blank.
        """


def normalize_media_type(mime_type: str) -> str:
    """Lower-case a media type and drop its parameters ("; charset=...")."""
    return mime_type.split(";", 1)[0].strip().lower()
