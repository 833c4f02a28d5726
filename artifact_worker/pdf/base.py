from abc import abstractmethod

from artifact_worker.extraction.base import BaseExtractor
from artifact_worker.extraction.exceptions import EmptyContentError
from artifact_worker.logging.logger import Log

PAGE_SEPARATOR = "\n\n"


class BasePdfExtractor(BaseExtractor):
    """Contract for all PDF text extraction adapters.

    Adapters return one entry per page; None marks a page whose text could
    not be extracted. Such pages are skipped so one bad page does not abort
    the document.
    """

    name = "pdf"

    def can_handle(self, mime_type: str) -> bool:
        return mime_type.startswith("application/pdf")

    def extract(self, data: bytes) -> str:
        pages = self._extract_pages(data)
        skipped = sum(1 for text in pages if text is None)
        if skipped:
            Log.warning(f"{self.name}: skipped {skipped} of {len(pages)} unreadable pages")

        text = "".join(
            page.rstrip() + PAGE_SEPARATOR
            for page in pages
            if page is not None and page.strip()
        )
        if not text.strip():
            raise EmptyContentError("No text content extracted from PDF")
        return text

    @abstractmethod
    def _extract_pages(self, data: bytes) -> list[str | None]:
        """Return page texts in order, None for unreadable pages.

        Raises:
            PdfExtractionError: if the document cannot be opened at all.
        """
