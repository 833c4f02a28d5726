import io
from collections.abc import Iterable
from typing import Any

from openpyxl import load_workbook

from artifact_worker.extraction.base import BaseExtractor
from artifact_worker.extraction.exceptions import EmptyContentError, SpreadsheetExtractionError
from artifact_worker.logging.logger import Log


class SpreadsheetExtractor(BaseExtractor):
    """Renders every sheet of a workbook as a markdown table."""

    name = "spreadsheet"

    SPREADSHEET_TYPES = (
        "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        "application/vnd.ms-excel",
        "application/vnd.ms-excel.sheet.macroenabled.12",
    )
    MAX_ROWS_PER_SHEET = 1000

    def can_handle(self, mime_type: str) -> bool:
        return mime_type.lower().startswith(self.SPREADSHEET_TYPES)

    def extract(self, data: bytes) -> str:
        try:
            workbook = load_workbook(io.BytesIO(data), read_only=True, data_only=True)
        except Exception as exc:
            raise SpreadsheetExtractionError(f"Failed to open spreadsheet: {exc}") from exc

        try:
            sections: list[str] = []
            has_content = False
            for sheet in workbook.worksheets:
                section, sheet_has_rows = self._render_sheet(sheet.title, sheet.iter_rows(values_only=True))
                sections.append(section)
                has_content = has_content or sheet_has_rows
        finally:
            workbook.close()

        if not sections:
            raise EmptyContentError("No sheets found in spreadsheet")
        if not has_content:
            raise EmptyContentError("No content extracted from spreadsheet")
        return "\n\n".join(sections)

    def _render_sheet(
        self, title: str, rows: Iterable[tuple[Any, ...]]
    ) -> tuple[str, bool]:
        lines = [f"Sheet: {title}", "-" * (len(title) + 7), ""]

        kept: list[list[str]] = []
        total_rows = 0
        for row in rows:
            total_rows += 1
            if total_rows > self.MAX_ROWS_PER_SHEET:
                continue
            cells = [_format_cell(value) for value in row]
            if any(cell.strip() for cell in cells):
                kept.append(cells)

        if total_rows > self.MAX_ROWS_PER_SHEET:
            Log.info(
                f"Sheet '{title}' truncated to {self.MAX_ROWS_PER_SHEET} of {total_rows} rows"
            )
            lines.append(
                f"(Showing first {self.MAX_ROWS_PER_SHEET} rows of {total_rows})"
            )
            lines.append("")

        if not kept:
            lines.append("(Empty sheet)")
            return "\n".join(lines), False

        width = max(_used_width(cells) for cells in kept)
        for index, cells in enumerate(kept):
            padded = (cells + [""] * width)[:width]
            lines.append("| " + " | ".join(padded) + " |")
            if index == 0 and len(kept) > 1:
                lines.append("|" + " --- |" * width)
        return "\n".join(lines), True


def _format_cell(value: Any) -> str:
    if value is None:
        return ""
    text = str(value)
    return text.replace("|", "\\|").replace("\r", " ").replace("\n", " ")


def _used_width(cells: list[str]) -> int:
    width = len(cells)
    while width > 0 and not cells[width - 1].strip():
        width -= 1
    return width
