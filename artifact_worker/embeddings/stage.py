import time

from artifact_worker.config.settings import Settings
from artifact_worker.database.repositories.artifact_repository import ArtifactRepository
from artifact_worker.database.repositories.embedding_repository import EmbeddingRepository
from artifact_worker.embeddings.client import BaseEmbeddingsClient, OpenAIEmbeddingsClient
from artifact_worker.embeddings.exceptions import EmbeddingsError
from artifact_worker.events.base import EventBus
from artifact_worker.events.exceptions import EventError
from artifact_worker.events.models import EVENT_SOURCE, ArtifactEmbeddingsCreated, Event
from artifact_worker.logging.logger import Log
from artifact_worker.metrics.tracker import MetricsTracker


class EmbeddingsStage:
    """Generates and stores the single embedding vector of an artifact.

    Re-running the stage for the same artifact overwrites the stored vector.
    """

    def __init__(
        self,
        *,
        client: BaseEmbeddingsClient,
        artifact_repo: ArtifactRepository,
        embedding_repo: EmbeddingRepository,
        metrics: MetricsTracker,
        max_chars: int,
        event_bus: EventBus | None = None,
    ) -> None:
        self._client = client
        self._artifact_repo = artifact_repo
        self._embedding_repo = embedding_repo
        self._metrics = metrics
        self._max_chars = max_chars
        self._event_bus = event_bus

    def generate(
        self,
        artifact_id: str,
        program_id: str,
        correlation_id: str | None = None,
    ) -> None:
        """Embed the artifact's stored text and upsert the vector.

        Raises:
            EmbeddingsError: if there is no stored text or the provider fails.
            PersistenceError: if the vector cannot be stored.
        """
        content = self._artifact_repo.get_raw_content(artifact_id)
        if not content or not content.strip():
            raise EmbeddingsError(f"Artifact {artifact_id} has no extracted content to embed")
        if len(content) > self._max_chars:
            content = content[: self._max_chars]

        started = time.monotonic()
        try:
            result = self._client.embed(content)
        except EmbeddingsError as exc:
            self._metrics.record_ai_call(
                program_id=program_id,
                job_type="artifact_embeddings",
                model=self._client.model,
                duration_seconds=time.monotonic() - started,
                success=False,
                error=str(exc),
            )
            raise
        self._metrics.record_ai_call(
            program_id=program_id,
            job_type="artifact_embeddings",
            model=result.model,
            duration_seconds=time.monotonic() - started,
            success=True,
            usage=result.usage,
        )

        self._embedding_repo.upsert(artifact_id, result.vector, result.model)
        Log.info(
            f"Stored embedding for artifact {artifact_id} "
            f"(model={result.model}, dimensions={len(result.vector)})"
        )
        self._publish(artifact_id, program_id, result.model, correlation_id)

    def _publish(
        self,
        artifact_id: str,
        program_id: str,
        model: str,
        correlation_id: str | None,
    ) -> None:
        if self._event_bus is None:
            return
        try:
            self._event_bus.publish(
                Event.create(
                    ArtifactEmbeddingsCreated(
                        artifact_id=artifact_id, program_id=program_id, model=model
                    ),
                    source=EVENT_SOURCE,
                    correlation_id=correlation_id,
                )
            )
        except EventError as exc:
            Log.warning(f"Failed to publish embeddings event for artifact {artifact_id}: {exc}")


def build_embeddings_stage(
    settings: Settings,
    *,
    metrics: MetricsTracker,
    event_bus: EventBus | None = None,
) -> EmbeddingsStage | None:
    """Build the stage, or None when no embeddings credential is configured."""
    if not settings.embeddings_api_key:
        Log.info("Embeddings disabled: no embeddings API key configured")
        return None
    client = OpenAIEmbeddingsClient(
        api_key=settings.embeddings_api_key,
        model=settings.embeddings_model_name,
        timeout_seconds=settings.embeddings_timeout_seconds,
        base_url=settings.embeddings_base_url or None,
    )
    return EmbeddingsStage(
        client=client,
        artifact_repo=ArtifactRepository(),
        embedding_repo=EmbeddingRepository(),
        metrics=metrics,
        max_chars=settings.embeddings_max_chars,
        event_bus=event_bus,
    )
