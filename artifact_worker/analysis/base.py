from abc import ABC, abstractmethod

from artifact_worker.analysis.models import AnalysisOutcome, ProgramContext


class BaseAnalyzer(ABC):
    """Contract for the AI analysis capability."""

    @property
    @abstractmethod
    def model(self) -> str:
        """Model name requested from the provider."""

    @abstractmethod
    def analyze(
        self,
        text: str,
        context: ProgramContext,
        filename: str = "",
    ) -> AnalysisOutcome:
        """Turn extracted artifact text into structured metadata.

        Args:
            text: Extracted plain/markdown text of the artifact.
            context: Program identity fields for the prompt.
            filename: Original filename, a useful hint for document type.

        Returns:
            AnalysisOutcome with the validated result, model and token usage.

        Raises:
            AnalysisError: on any failure.
        """
