import io
import re
import zipfile
from pathlib import PurePosixPath
from typing import TYPE_CHECKING

from artifact_worker.extraction.base import BaseExtractor
from artifact_worker.extraction.exceptions import (
    ArchiveExtractionError,
    EmptyContentError,
    ExtractionError,
)

if TYPE_CHECKING:
    from artifact_worker.extraction.registry import ExtractorRegistry

_CONTROL_CHARS = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f]")


class ZipExtractor(BaseExtractor):
    """Extracts every file in a ZIP archive through the registry.

    Member types are guessed from the file extension. A member that fails to
    extract gets an inline error note instead of failing the whole archive.
    """

    name = "zip"

    ZIP_TYPES = (
        "application/zip",
        "application/x-zip-compressed",
        "application/x-zip",
    )
    EXTENSION_TYPES = {
        ".pdf": "application/pdf",
        ".txt": "text/plain",
        ".md": "text/markdown",
        ".csv": "text/csv",
        ".json": "application/json",
        ".xml": "application/xml",
        ".html": "text/html",
        ".htm": "text/html",
        ".xlsx": "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        ".xls": "application/vnd.ms-excel",
        ".doc": "application/msword",
        ".docx": "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
        ".eml": "message/rfc822",
        ".msg": "application/vnd.ms-outlook",
    }
    DEFAULT_TYPE = "text/plain"

    def __init__(self, registry: "ExtractorRegistry") -> None:
        self._registry = registry

    def can_handle(self, mime_type: str) -> bool:
        return mime_type in self.ZIP_TYPES

    def extract(self, data: bytes) -> str:
        try:
            archive = zipfile.ZipFile(io.BytesIO(data))
        except zipfile.BadZipFile as exc:
            raise ArchiveExtractionError(f"Failed to open ZIP archive: {exc}") from exc

        sections: list[str] = []
        file_count = 0
        with archive:
            for info in archive.infolist():
                if info.is_dir():
                    continue
                try:
                    member = archive.read(info)
                except (zipfile.BadZipFile, RuntimeError, NotImplementedError, OSError) as exc:
                    sections.append(f"\n--- {info.filename} ---\n[Error: Could not read file: {exc}]\n")
                    continue
                if not member:
                    continue
                file_count += 1
                text = self._member_text(info.filename, member).strip()
                sections.append(f"\n--- File: {info.filename} ---\n{text}\n")

        if file_count == 0:
            raise EmptyContentError("No extractable files found in ZIP archive")

        result = f"ZIP Archive Contents ({file_count} files):\n" + "\n".join(sections)
        return _CONTROL_CHARS.sub("", result)

    def media_type_for(self, filename: str) -> str:
        suffix = PurePosixPath(filename).suffix.lower()
        return self.EXTENSION_TYPES.get(suffix, self.DEFAULT_TYPE)

    def _member_text(self, filename: str, data: bytes) -> str:
        mime_type = self.media_type_for(filename)
        if self._registry.can_extract(mime_type):
            try:
                return self._registry.extract(mime_type, data)
            except ExtractionError as exc:
                return f"[Error: Could not extract text from {filename}: {exc}]"
        if looks_like_text(data):
            return data.decode("utf-8", errors="replace")
        return f"[Binary file - no text extractor available for type: {mime_type}]"


def looks_like_text(data: bytes) -> bool:
    """At most one NUL byte in ten over the first 512 bytes."""
    sample = data[:512]
    if not sample:
        return False
    return sample.count(0) <= len(sample) // 10
