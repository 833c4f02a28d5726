from artifact_worker.database.repositories.artifact_repository import ArtifactRepository
from artifact_worker.events.base import EventBus
from artifact_worker.events.exceptions import EventError
from artifact_worker.events.models import EVENT_SOURCE, ArtifactUploaded, Event
from artifact_worker.logging.logger import Log


class ReanalysisService:
    """Sends a finished artifact back through analysis.

    This is the only way out of a terminal status. Existing results stay in
    place until the new run replaces them.
    """

    def __init__(self, artifact_repo: ArtifactRepository, event_bus: EventBus | None) -> None:
        self._artifact_repo = artifact_repo
        self._event_bus = event_bus

    def request(self, artifact_id: str, correlation_id: str | None = None) -> bool:
        """Reset the artifact to pending and announce it.

        Returns False when the artifact is not completed or failed (it is
        pending, processing, or missing); nothing is changed in that case.

        Raises:
            ArtifactNotFoundError: if the artifact vanished after the reset.
            PersistenceError: on database failure.
        """
        if not self._artifact_repo.reset_for_reanalysis(artifact_id):
            Log.warning(f"Artifact {artifact_id} is not in a terminal status, not reanalyzing")
            return False
        Log.info(f"Artifact {artifact_id} reset to pending for reanalysis")

        if self._event_bus is None:
            return True
        artifact = self._artifact_repo.find_by_id(artifact_id)
        try:
            self._event_bus.publish(
                Event.create(
                    ArtifactUploaded(artifact_id=artifact_id, program_id=artifact.program_id),
                    source=EVENT_SOURCE,
                    correlation_id=correlation_id,
                )
            )
        except EventError as exc:
            # The reconciliation poller still picks the pending row up.
            Log.warning(f"Failed to publish reanalysis event for artifact {artifact_id}: {exc}")
        return True
