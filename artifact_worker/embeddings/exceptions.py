class EmbeddingsError(Exception):
    """Base exception for embedding generation."""


class EmbeddingsNetworkError(EmbeddingsError):
    """Raised when the embeddings provider cannot be reached or rejects the call."""
