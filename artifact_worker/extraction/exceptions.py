class ExtractionError(Exception):
    """Base exception for all text extraction failures."""


class UnsupportedFormatError(ExtractionError):
    """Raised when no registered extractor handles a media type."""


class EmptyContentError(ExtractionError):
    """Raised when extraction yields no text after trimming whitespace."""


class InvalidEncodingError(ExtractionError):
    """Raised when text bytes are not valid UTF-8."""


class NotConfiguredError(ExtractionError):
    """Raised when an extractor needs a credential that is not configured."""


class ExtractionNotImplementedError(ExtractionError):
    """Raised for inputs an extractor recognizes but cannot process yet."""


class PdfExtractionError(ExtractionError):
    """Raised when a PDF cannot be opened or parsed at all."""


class SpreadsheetExtractionError(ExtractionError):
    """Raised when a workbook cannot be opened."""


class OcrProviderError(ExtractionError):
    """Raised when the vision OCR provider call fails."""


class EmailExtractionError(ExtractionError):
    """Raised when an email message cannot be parsed."""


class ArchiveExtractionError(ExtractionError):
    """Raised when a ZIP archive cannot be opened."""
