class ProcessorError(Exception):
    """Base exception for all processor-related errors."""


class ArtifactNotFoundError(ProcessorError):
    """Raised when an artifact cannot be found in the database."""


class FileReadError(ProcessorError):
    """Raised when an artifact's file cannot be read from storage."""


class AIProviderError(ProcessorError):
    """Raised when the AI analysis capability fails for any reason."""


class PersistenceError(ProcessorError):
    """Raised when the backing store rejects a read or write."""
