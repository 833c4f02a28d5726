from abc import ABC, abstractmethod
from dataclasses import dataclass, field

import httpx
import openai

from artifact_worker.analysis.models import TokenUsage
from artifact_worker.embeddings.exceptions import EmbeddingsError, EmbeddingsNetworkError


@dataclass(frozen=True)
class EmbeddingResult:
    vector: list[float]
    model: str
    usage: TokenUsage = field(default_factory=TokenUsage)


class BaseEmbeddingsClient(ABC):
    """Contract for providers that turn text into a single vector."""

    @property
    @abstractmethod
    def model(self) -> str: ...

    @abstractmethod
    def embed(self, text: str) -> EmbeddingResult: ...


class OpenAIEmbeddingsClient(BaseEmbeddingsClient):
    """Embeddings client built on the OpenAI-compatible embeddings API."""

    def __init__(
        self,
        *,
        api_key: str,
        model: str,
        timeout_seconds: int,
        base_url: str | None = None,
    ) -> None:
        self._model = model
        self._client = openai.OpenAI(
            api_key=api_key,
            timeout=timeout_seconds,
            base_url=base_url,
        )

    @property
    def model(self) -> str:
        return self._model

    def embed(self, text: str) -> EmbeddingResult:
        try:
            response = self._client.embeddings.create(model=self._model, input=text)
        except (openai.APIConnectionError, httpx.ConnectError, httpx.TimeoutException) as exc:
            raise EmbeddingsNetworkError(f"Embeddings provider network error: {exc}") from exc
        except openai.APIError as exc:
            raise EmbeddingsNetworkError(f"Embeddings provider API error: {exc}") from exc

        if not response.data:
            raise EmbeddingsError("Embeddings provider returned no vectors")
        usage = response.usage
        return EmbeddingResult(
            vector=list(response.data[0].embedding),
            model=response.model or self._model,
            usage=TokenUsage(input_tokens=int(usage.prompt_tokens or 0) if usage else 0),
        )
