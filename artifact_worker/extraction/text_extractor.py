from artifact_worker.extraction.base import BaseExtractor
from artifact_worker.extraction.exceptions import EmptyContentError, InvalidEncodingError


class TextExtractor(BaseExtractor):
    """Passes plain text formats through after validating UTF-8."""

    name = "text"

    TEXT_TYPES = (
        "text/plain",
        "text/markdown",
        "text/csv",
        "text/html",
        "text/xml",
        "application/json",
        "application/xml",
    )

    def can_handle(self, mime_type: str) -> bool:
        return mime_type.startswith(self.TEXT_TYPES)

    def extract(self, data: bytes) -> str:
        try:
            text = data.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise InvalidEncodingError(f"File is not valid UTF-8 text: {exc}") from exc

        if not text.strip():
            raise EmptyContentError("File contains no text content")
        return text
