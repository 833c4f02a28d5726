from artifact_worker.database.repositories.artifact_repository import ArtifactRepository
from artifact_worker.logging.logger import Log
from artifact_worker.metrics.tracker import MetricsTracker
from artifact_worker.processor.exceptions import PersistenceError
from artifact_worker.processor.processor import ArtifactProcessor


class ArtifactRunner:
    """Claim one artifact, process it, and record the terminal status.

    Shared by the event path and the poller; the conditional claim decides
    which of them gets to run a given artifact.
    """

    def __init__(
        self,
        processor: ArtifactProcessor,
        artifact_repo: ArtifactRepository,
        metrics: MetricsTracker,
    ) -> None:
        self._processor = processor
        self._artifact_repo = artifact_repo
        self._metrics = metrics

    def run(self, artifact_id: str, correlation_id: str | None = None) -> bool:
        """Execute a single artifact with error handling.

        Returns True when this caller won the claim, False when the artifact
        was not pending (or the claim could not be attempted).
        """
        try:
            claimed = self._artifact_repo.claim(artifact_id)
        except PersistenceError as exc:
            Log.warning(f"Claim failed for artifact {artifact_id}, will retry on next poll: {exc}")
            return False
        if not claimed:
            Log.debug(f"Artifact {artifact_id} already claimed or not pending, skipping")
            self._metrics.record_outcome("skipped")
            return False

        self._metrics.record_outcome("claimed")
        Log.info(f"Claimed artifact {artifact_id}")
        try:
            artifact = self._artifact_repo.find_by_id(artifact_id)
            self._processor.process(artifact, correlation_id)
        except Exception as exc:
            self._handle_failure(artifact_id, exc)
        else:
            self._metrics.record_outcome("completed")
        return True

    def _handle_failure(self, artifact_id: str, exc: Exception) -> None:
        """Move the artifact to failed, keeping the error text.

        Storage errors take this path too, so a rejected result write never
        leaves the artifact in processing. If the store is down the update
        fails as well and the error is logged.
        """
        Log.error(f"Artifact {artifact_id} failed: {exc}")
        self._metrics.record_outcome("failed")
        try:
            if not self._artifact_repo.mark_failed(artifact_id, str(exc)):
                Log.warning(f"Artifact {artifact_id} was no longer processing, failure not recorded")
        except PersistenceError as db_exc:
            Log.error(f"Could not mark artifact {artifact_id} as failed: {db_exc}")
