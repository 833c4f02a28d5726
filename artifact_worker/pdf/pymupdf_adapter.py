from typing import Any

import pymupdf

from artifact_worker.extraction.exceptions import PdfExtractionError
from artifact_worker.logging.logger import Log
from artifact_worker.pdf.base import BasePdfExtractor


class PyMuPdfAdapter(BasePdfExtractor):
    """Extracts text from PDF using PyMuPDF."""

    name = "pymupdf"

    def _extract_pages(self, data: bytes) -> list[str | None]:
        try:
            with pymupdf.open(stream=data, filetype="pdf") as doc:  # type: ignore[no-untyped-call]
                return [
                    self._page_text(page, number)
                    for number, page in enumerate(doc, start=1)
                ]
        except Exception as exc:
            raise PdfExtractionError(f"pymupdf extraction failed: {exc}") from exc

    @staticmethod
    def _page_text(page: Any, number: int) -> str | None:
        try:
            text: str = page.get_text()
            return text
        except Exception as exc:
            Log.warning(f"pymupdf: page {number} unreadable: {exc}")
            return None
