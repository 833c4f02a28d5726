import time
from pathlib import Path

from artifact_worker.analysis.base import BaseAnalyzer
from artifact_worker.analysis.context import ProgramContextProvider
from artifact_worker.analysis.factory import AnalyzerFactory
from artifact_worker.analysis.models import AnalysisOutcome, ProgramContext
from artifact_worker.config.settings import Settings
from artifact_worker.database.models import Artifact
from artifact_worker.database.repositories.analysis_repository import AnalysisRepository
from artifact_worker.database.repositories.artifact_repository import ArtifactRepository
from artifact_worker.database.repositories.program_repository import ProgramRepository
from artifact_worker.embeddings.stage import EmbeddingsStage, build_embeddings_stage
from artifact_worker.events.base import EventBus
from artifact_worker.events.exceptions import EventError
from artifact_worker.events.models import EVENT_SOURCE, ArtifactAnalyzed, Event
from artifact_worker.extraction.base import normalize_media_type
from artifact_worker.extraction.exceptions import EmptyContentError
from artifact_worker.extraction.registry import ExtractorRegistry, build_registry
from artifact_worker.logging.logger import Log
from artifact_worker.metrics.tracker import MetricsTracker
from artifact_worker.processor.exceptions import AIProviderError, PersistenceError
from artifact_worker.processor.file_loader import FileLoader

PDF_MIME_TYPE = "application/pdf"


class ArtifactProcessor:
    """Orchestrates analysis of one claimed artifact.

    Pipeline: load -> extract -> context -> analyze -> persist -> complete ->
    publish -> embeddings. The caller owns the claim and the failure
    transition; anything raised here means the artifact did not complete.
    """

    def __init__(
        self,
        *,
        file_loader: FileLoader,
        registry: ExtractorRegistry,
        context_provider: ProgramContextProvider,
        analyzer: BaseAnalyzer,
        artifact_repo: ArtifactRepository,
        analysis_repo: AnalysisRepository,
        event_bus: EventBus,
        metrics: MetricsTracker,
        embeddings: EmbeddingsStage | None = None,
    ) -> None:
        self._file_loader = file_loader
        self._registry = registry
        self._context_provider = context_provider
        self._analyzer = analyzer
        self._artifact_repo = artifact_repo
        self._analysis_repo = analysis_repo
        self._event_bus = event_bus
        self._metrics = metrics
        self._embeddings = embeddings

    def process(self, artifact: Artifact, correlation_id: str | None = None) -> None:
        """Run the analysis pipeline for a claimed artifact."""
        artifact_id = artifact.artifact_id
        Log.info(f"Processing artifact {artifact_id} ({artifact.filename}, {artifact.mime_type})")
        started = time.monotonic()

        # Step 1: Load file
        data = self._file_loader.load(artifact)
        Log.info(f"Loaded {len(data)} bytes for artifact {artifact_id}")

        # Step 2: Extract text
        text = self._extract(artifact, data)
        Log.info(f"Extracted {len(text)} chars from artifact {artifact_id}")

        # Step 3: Program context
        context = self._context_provider.build(artifact.program_id)

        # Step 4: Analyze
        outcome = self._analyze(artifact, text, context)

        # Step 5: Persist results and extracted text together
        self._analysis_repo.replace_results(
            artifact_id,
            extracted_text=text,
            result=outcome.result,
            model=outcome.model,
            processing_time_ms=int((time.monotonic() - started) * 1000),
        )

        # Step 6: Completed
        if not self._artifact_repo.mark_completed(artifact_id):
            raise PersistenceError(
                f"Artifact {artifact_id} was no longer processing when marking completed"
            )
        Log.info(f"Artifact {artifact_id} completed")

        # Step 7: Notify and enrich. Neither can fail the artifact any more.
        self._publish_analyzed(artifact, correlation_id)
        self._run_embeddings(artifact, correlation_id)

    def _extract(self, artifact: Artifact, data: bytes) -> str:
        extractor = self._registry.get_extractor(artifact.mime_type)
        try:
            return extractor.extract(data)
        except EmptyContentError:
            if normalize_media_type(artifact.mime_type) != PDF_MIME_TYPE:
                raise
            fallback = self._registry.next_extractor(artifact.mime_type, after=extractor)
            if fallback is None:
                raise
            Log.info(
                f"No text layer in artifact {artifact.artifact_id}, "
                f"falling back to {fallback.name}"
            )
            return fallback.extract(data)

    def _analyze(
        self, artifact: Artifact, text: str, context: ProgramContext
    ) -> AnalysisOutcome:
        started = time.monotonic()
        try:
            outcome = self._analyzer.analyze(text, context, artifact.filename)
        except Exception as exc:
            self._metrics.record_ai_call(
                program_id=artifact.program_id,
                job_type="artifact_analysis",
                model=self._analyzer.model,
                duration_seconds=time.monotonic() - started,
                success=False,
                error=str(exc),
            )
            raise AIProviderError(f"Analysis failed: {exc}") from exc

        self._metrics.record_ai_call(
            program_id=artifact.program_id,
            job_type="artifact_analysis",
            model=outcome.model,
            duration_seconds=time.monotonic() - started,
            success=True,
            usage=outcome.usage,
        )
        return outcome

    def _publish_analyzed(self, artifact: Artifact, correlation_id: str | None) -> None:
        try:
            self._event_bus.publish(
                Event.create(
                    ArtifactAnalyzed(
                        artifact_id=artifact.artifact_id, program_id=artifact.program_id
                    ),
                    source=EVENT_SOURCE,
                    correlation_id=correlation_id,
                )
            )
        except EventError as exc:
            Log.error(f"Failed to publish analyzed event for artifact {artifact.artifact_id}: {exc}")

    def _run_embeddings(self, artifact: Artifact, correlation_id: str | None) -> None:
        if self._embeddings is None:
            return
        try:
            self._embeddings.generate(artifact.artifact_id, artifact.program_id, correlation_id)
        except Exception as exc:
            Log.warning(f"Embeddings failed for artifact {artifact.artifact_id}: {exc}")


def build_processor(
    settings: Settings,
    *,
    event_bus: EventBus,
    metrics: MetricsTracker,
    files_root: Path | None = None,
) -> ArtifactProcessor:
    """Build an ArtifactProcessor with all required adapters."""
    artifact_repo = ArtifactRepository()
    return ArtifactProcessor(
        file_loader=FileLoader(files_root=files_root or Path(settings.files_root)),
        registry=build_registry(settings),
        context_provider=ProgramContextProvider(ProgramRepository()),
        analyzer=AnalyzerFactory.create(settings),
        artifact_repo=artifact_repo,
        analysis_repo=AnalysisRepository(),
        event_bus=event_bus,
        metrics=metrics,
        embeddings=build_embeddings_stage(settings, metrics=metrics, event_bus=event_bus),
    )
