from abc import ABC, abstractmethod

from artifact_worker.analysis.models import ChatCompletion


class BaseAnalysisClient(ABC):
    """Contract for provider-specific analysis AI clients."""

    @abstractmethod
    def create_chat_completion(
        self,
        *,
        model: str,
        temperature: float,
        system_prompt: str,
        user_prompt: str,
        json_schema: dict[str, object],
    ) -> ChatCompletion:
        """Return provider response text with model and token usage."""
