import io
from typing import Any

import pdfplumber

from artifact_worker.extraction.exceptions import PdfExtractionError
from artifact_worker.logging.logger import Log
from artifact_worker.pdf.base import BasePdfExtractor


class PdfPlumberAdapter(BasePdfExtractor):
    """Extracts text from PDF using pdfplumber."""

    name = "pdfplumber"

    def _extract_pages(self, data: bytes) -> list[str | None]:
        try:
            with pdfplumber.open(io.BytesIO(data)) as pdf:
                return [
                    self._page_text(page, number)
                    for number, page in enumerate(pdf.pages, start=1)
                ]
        except Exception as exc:
            raise PdfExtractionError(f"pdfplumber extraction failed: {exc}") from exc

    @staticmethod
    def _page_text(page: Any, number: int) -> str | None:
        try:
            return page.extract_text() or ""
        except Exception as exc:
            Log.warning(f"pdfplumber: page {number} unreadable: {exc}")
            return None
