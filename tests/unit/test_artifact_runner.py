import threading
from unittest.mock import MagicMock

from artifact_worker.database.models import Artifact, ProcessingStatus
from artifact_worker.database.repositories.artifact_repository import ArtifactRepository
from artifact_worker.metrics.tracker import MetricsTracker
from artifact_worker.processor.exceptions import AIProviderError, PersistenceError
from artifact_worker.processor.processor import ArtifactProcessor
from artifact_worker.worker.artifact_runner import ArtifactRunner

ARTIFACT_ID = "6a1b7c40-0000-4000-8000-000000000001"


def _artifact() -> Artifact:
    return Artifact(
        artifact_id=ARTIFACT_ID,
        program_id="p-1",
        filename="notes.txt",
        mime_type="text/plain",
        file_size_bytes=1,
        storage_path="notes.txt",
        processing_status=ProcessingStatus.PROCESSING,
    )


def _make_runner(claimed: bool = True) -> tuple[ArtifactRunner, MagicMock, MagicMock, MetricsTracker]:
    """Create an ArtifactRunner with mocked dependencies."""
    processor = MagicMock(spec=ArtifactProcessor)
    repo = MagicMock(spec=ArtifactRepository)
    repo.claim.return_value = claimed
    repo.find_by_id.return_value = _artifact()
    repo.mark_failed.return_value = True
    metrics = MetricsTracker()
    return ArtifactRunner(processor, repo, metrics), processor, repo, metrics


class _StatusStore:
    """In-memory artifacts table with compare-and-set status updates."""

    def __init__(self, status: str) -> None:
        self.status = status
        self._lock = threading.Lock()

    def _transition(self, from_statuses: tuple[str, ...], to_status: str) -> bool:
        with self._lock:
            if self.status not in from_statuses:
                return False
            self.status = to_status
            return True

    def claim(self, artifact_id: str) -> bool:
        return self._transition((ProcessingStatus.PENDING,), ProcessingStatus.PROCESSING)

    def mark_failed(self, artifact_id: str, error: str) -> bool:
        return self._transition((ProcessingStatus.PROCESSING,), ProcessingStatus.FAILED)


class TestSuccessfulProcessing:
    def test_claims_then_processes(self) -> None:
        runner, processor, repo, _metrics = _make_runner()

        assert runner.run(ARTIFACT_ID, correlation_id="corr-1") is True

        repo.claim.assert_called_once_with(ARTIFACT_ID)
        processor.process.assert_called_once_with(_artifact(), "corr-1")
        repo.mark_failed.assert_not_called()

    def test_records_outcomes(self) -> None:
        runner, _processor, _repo, metrics = _make_runner()

        runner.run(ARTIFACT_ID)

        assert metrics.snapshot().outcomes == {"claimed": 1, "completed": 1}


class TestClaimConflict:
    def test_lost_claim_returns_silently(self) -> None:
        runner, processor, repo, metrics = _make_runner(claimed=False)

        assert runner.run(ARTIFACT_ID) is False

        processor.process.assert_not_called()
        repo.mark_failed.assert_not_called()
        assert metrics.snapshot().outcomes == {"skipped": 1}

    def test_claim_database_error_returns_false(self) -> None:
        runner, processor, repo, _metrics = _make_runner()
        repo.claim.side_effect = PersistenceError("db down")

        assert runner.run(ARTIFACT_ID) is False
        processor.process.assert_not_called()

    def test_concurrent_triggers_process_once(self) -> None:
        store = _StatusStore(ProcessingStatus.PENDING)
        processor = MagicMock(spec=ArtifactProcessor)
        repo = MagicMock(spec=ArtifactRepository)
        repo.claim.side_effect = store.claim
        repo.find_by_id.return_value = _artifact()
        runner = ArtifactRunner(processor, repo, MetricsTracker())
        barrier = threading.Barrier(2)
        results: list[bool] = []
        results_lock = threading.Lock()

        def trigger() -> None:
            barrier.wait()
            won = runner.run(ARTIFACT_ID)
            with results_lock:
                results.append(won)

        threads = [threading.Thread(target=trigger) for _ in range(2)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert sorted(results) == [False, True]
        processor.process.assert_called_once()


class TestFailure:
    def test_marks_failed_with_error_text(self) -> None:
        runner, processor, repo, metrics = _make_runner()
        processor.process.side_effect = AIProviderError("Analysis failed: timeout")

        assert runner.run(ARTIFACT_ID) is True

        repo.mark_failed.assert_called_once_with(ARTIFACT_ID, "Analysis failed: timeout")
        assert metrics.snapshot().outcomes["failed"] == 1

    def test_failed_artifact_is_not_claimable_again(self) -> None:
        store = _StatusStore(ProcessingStatus.PENDING)
        processor = MagicMock(spec=ArtifactProcessor)
        processor.process.side_effect = RuntimeError("boom")
        repo = MagicMock(spec=ArtifactRepository)
        repo.claim.side_effect = store.claim
        repo.mark_failed.side_effect = store.mark_failed
        repo.find_by_id.return_value = _artifact()
        runner = ArtifactRunner(processor, repo, MetricsTracker())

        runner.run(ARTIFACT_ID)

        assert store.status == ProcessingStatus.FAILED
        assert runner.run(ARTIFACT_ID) is False
        processor.process.assert_called_once()

    def test_persistence_error_marks_failed(self) -> None:
        runner, processor, repo, metrics = _make_runner()
        processor.process.side_effect = PersistenceError("invalid input for type date")

        assert runner.run(ARTIFACT_ID) is True

        repo.mark_failed.assert_called_once_with(ARTIFACT_ID, "invalid input for type date")
        assert metrics.snapshot().outcomes["failed"] == 1

    def test_rejected_result_write_does_not_leave_processing(self) -> None:
        store = _StatusStore(ProcessingStatus.PENDING)
        runner, processor, repo, _metrics = _make_runner()
        repo.claim.side_effect = store.claim
        repo.mark_failed.side_effect = store.mark_failed
        processor.process.side_effect = PersistenceError("tx aborted")

        runner.run(ARTIFACT_ID)

        assert store.status == ProcessingStatus.FAILED

    def test_mark_failed_database_error_is_logged(self) -> None:
        runner, processor, repo, _metrics = _make_runner()
        processor.process.side_effect = RuntimeError("boom")
        repo.mark_failed.side_effect = PersistenceError("db down")

        assert runner.run(ARTIFACT_ID) is True
