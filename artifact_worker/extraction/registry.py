from artifact_worker.config.settings import Settings
from artifact_worker.extraction.base import BaseExtractor, normalize_media_type
from artifact_worker.extraction.eml_extractor import EmlExtractor
from artifact_worker.extraction.exceptions import UnsupportedFormatError
from artifact_worker.extraction.ocr_extractor import ImageOcrExtractor
from artifact_worker.extraction.spreadsheet_extractor import SpreadsheetExtractor
from artifact_worker.extraction.text_extractor import TextExtractor
from artifact_worker.extraction.vision_client import OpenAIVisionClientAdapter
from artifact_worker.extraction.zip_extractor import ZipExtractor
from artifact_worker.pdf.factory import PdfExtractorFactory


class ExtractorRegistry:
    """Ordered extractors; the first whose can_handle matches wins.

    Media types are lower-cased and stripped of parameters before matching,
    so extractors only ever see the bare type. The registry never retries
    with another extractor on failure. Callers that want a fallback ask for
    next_extractor explicitly.
    """

    def __init__(self, extractors: list[BaseExtractor] | None = None) -> None:
        self._extractors: list[BaseExtractor] = list(extractors or [])

    def register(self, extractor: BaseExtractor) -> None:
        self._extractors.append(extractor)

    @property
    def extractors(self) -> tuple[BaseExtractor, ...]:
        return tuple(self._extractors)

    def can_extract(self, mime_type: str) -> bool:
        media_type = normalize_media_type(mime_type)
        return any(e.can_handle(media_type) for e in self._extractors)

    def get_extractor(self, mime_type: str) -> BaseExtractor:
        """Return the first extractor accepting the media type.

        Raises:
            UnsupportedFormatError: if none matches.
        """
        media_type = normalize_media_type(mime_type)
        for extractor in self._extractors:
            if extractor.can_handle(media_type):
                return extractor
        raise UnsupportedFormatError(f"No extractor available for MIME type: {mime_type}")

    def next_extractor(self, mime_type: str, after: BaseExtractor) -> BaseExtractor | None:
        """Return the next extractor after `after` that accepts the media type."""
        try:
            start = self._extractors.index(after) + 1
        except ValueError:
            return None
        media_type = normalize_media_type(mime_type)
        for extractor in self._extractors[start:]:
            if extractor.can_handle(media_type):
                return extractor
        return None

    def extract(self, mime_type: str, data: bytes) -> str:
        return self.get_extractor(mime_type).extract(data)


def build_registry(settings: Settings) -> ExtractorRegistry:
    """Register extractors in dispatch order: text, spreadsheet, PDF, OCR, email, ZIP.

    The ZIP extractor goes last and dispatches archive members back through
    this registry.
    """
    vision_client = None
    if settings.vision_api_key:
        vision_client = OpenAIVisionClientAdapter(
            api_key=settings.vision_api_key,
            model=settings.vision_model_name,
            timeout_seconds=settings.vision_timeout_seconds,
            base_url=settings.vision_base_url,
        )
    registry = ExtractorRegistry(
        [
            TextExtractor(),
            SpreadsheetExtractor(),
            PdfExtractorFactory.create(settings),
            ImageOcrExtractor(vision_client),
            EmlExtractor(),
        ]
    )
    registry.register(ZipExtractor(registry))
    return registry
