from artifact_worker.extraction.base import BaseExtractor
from artifact_worker.extraction.exceptions import (
    EmptyContentError,
    ExtractionNotImplementedError,
    NotConfiguredError,
    UnsupportedFormatError,
)
from artifact_worker.extraction.vision_client import BaseVisionClient

PDF = "application/pdf"


class ImageOcrExtractor(BaseExtractor):
    """OCR through a vision model for images, and the fallback for scanned PDFs.

    Scanned PDFs are recognized but need PDF-to-image conversion, which is not
    implemented; they fail with ExtractionNotImplementedError. Content whose
    signature is neither a PDF nor a supported image is rejected before any
    vision call.
    """

    name = "image_ocr"

    OCR_TYPES = (
        PDF,
        "image/png",
        "image/jpeg",
        "image/jpg",
        "image/gif",
        "image/webp",
    )

    def __init__(self, vision_client: BaseVisionClient | None = None) -> None:
        self._vision_client = vision_client

    def can_handle(self, mime_type: str) -> bool:
        return mime_type in self.OCR_TYPES

    def extract(self, data: bytes) -> str:
        if self._vision_client is None:
            raise NotConfiguredError("Vision API key not configured for image OCR")

        media_type = detect_media_type(data)
        if media_type is None:
            raise UnsupportedFormatError(
                "Unrecognized image format for OCR; supported formats are PNG, JPEG, GIF and WebP"
            )
        if media_type == PDF:
            raise ExtractionNotImplementedError(
                "Scanned PDF OCR requires PDF-to-image conversion (not yet implemented). "
                "Use text-based PDFs or upload pages as images (PNG/JPEG)"
            )

        text = self._vision_client.extract_text(data, media_type)
        if not text.strip():
            raise EmptyContentError("No text extracted from image via OCR")
        return text


def detect_media_type(data: bytes) -> str | None:
    """Identify the media type from the file signature, or None if unknown."""
    if data.startswith(b"%PDF"):
        return PDF
    if data.startswith(b"\x89PNG"):
        return "image/png"
    if data.startswith(b"\xff\xd8\xff"):
        return "image/jpeg"
    if data.startswith(b"GIF8"):
        return "image/gif"
    if data.startswith(b"RIFF") and data[8:12] == b"WEBP":
        return "image/webp"
    return None
