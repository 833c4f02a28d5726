import argparse

from artifact_worker.config.settings import Settings
from artifact_worker.database.connection import close_pool, init_pool
from artifact_worker.database.repositories.ai_usage_repository import AiUsageRepository
from artifact_worker.database.repositories.artifact_repository import ArtifactRepository
from artifact_worker.events.factory import EventBusFactory
from artifact_worker.logging.logger import Log
from artifact_worker.metrics.tracker import MetricsTracker
from artifact_worker.processor.exceptions import ProcessorError
from artifact_worker.processor.processor import build_processor
from artifact_worker.processor.reanalysis import ReanalysisService
from artifact_worker.worker.artifact_runner import ArtifactRunner
from artifact_worker.worker.worker import Worker


def main() -> None:
    """Entry point: initialize pool -> build dependencies -> run both triggers."""
    settings = Settings()
    Log.configure(settings.log_level)
    init_pool(settings)

    try:
        event_bus = EventBusFactory.create(settings)
        metrics = MetricsTracker(usage_sink=AiUsageRepository())
        artifact_repo = ArtifactRepository()
        processor = build_processor(settings, event_bus=event_bus, metrics=metrics)
        runner = ArtifactRunner(processor, artifact_repo, metrics)
        worker = Worker(
            runner=runner,
            artifact_repo=artifact_repo,
            event_bus=event_bus,
            settings=settings,
        )
        worker.run()
        snapshot = metrics.snapshot()
        Log.info(
            f"Session totals: {snapshot.ai_calls} AI calls, "
            f"${snapshot.cost_usd:.4f}, outcomes={snapshot.outcomes}"
        )
    finally:
        close_pool()


def reanalyze(argv: list[str] | None = None) -> int:
    """Entry point: send completed or failed artifacts back to pending."""
    parser = argparse.ArgumentParser(
        prog="artifact-reanalyze",
        description="Reset artifacts to pending so the worker analyzes them again.",
    )
    parser.add_argument("artifact_ids", nargs="+", metavar="ARTIFACT_ID")
    parser.add_argument("--correlation-id", default=None)
    args = parser.parse_args(argv)

    settings = Settings()
    Log.configure(settings.log_level)
    init_pool(settings)

    try:
        event_bus = EventBusFactory.create(settings)
        try:
            service = ReanalysisService(ArtifactRepository(), event_bus)
            rejected = [
                artifact_id
                for artifact_id in args.artifact_ids
                if not _request_reanalysis(service, artifact_id, args.correlation_id)
            ]
        finally:
            event_bus.close()
    finally:
        close_pool()
    return 1 if rejected else 0


def _request_reanalysis(
    service: ReanalysisService, artifact_id: str, correlation_id: str | None
) -> bool:
    """One artifact's failure is logged and counted as rejected; the rest still run."""
    try:
        return service.request(artifact_id, correlation_id)
    except ProcessorError as exc:
        Log.error(f"Reanalysis of artifact {artifact_id} failed: {exc}")
        return False


if __name__ == "__main__":
    main()
