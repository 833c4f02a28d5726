from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor
from datetime import UTC, datetime, timedelta

import pytest

from artifact_worker.database.models import ProcessingStatus
from artifact_worker.database.repositories.artifact_repository import ArtifactRepository
from artifact_worker.processor.exceptions import ArtifactNotFoundError


@pytest.mark.integration
class TestArtifactRepositoryIntegration:
    def test_only_one_concurrent_claim_wins(self, seed_artifact: Callable[..., str]) -> None:
        artifact_id = seed_artifact()
        repo = ArtifactRepository()

        with ThreadPoolExecutor(max_workers=6) as pool:
            results = list(pool.map(lambda _: repo.claim(artifact_id), range(6)))

        assert results.count(True) == 1
        assert repo.find_by_id(artifact_id).processing_status == ProcessingStatus.PROCESSING

    def test_claim_refuses_completed_artifact(self, seed_artifact: Callable[..., str]) -> None:
        artifact_id = seed_artifact(status=ProcessingStatus.COMPLETED)

        assert ArtifactRepository().claim(artifact_id) is False

    def test_mark_completed_stamps_processed_at(self, seed_artifact: Callable[..., str]) -> None:
        artifact_id = seed_artifact()
        repo = ArtifactRepository()
        repo.claim(artifact_id)

        assert repo.mark_completed(artifact_id) is True

        artifact = repo.find_by_id(artifact_id)
        assert artifact.processing_status == ProcessingStatus.COMPLETED
        assert artifact.processed_at is not None
        assert artifact.processing_error is None

    def test_mark_failed_keeps_error_text(self, seed_artifact: Callable[..., str]) -> None:
        artifact_id = seed_artifact()
        repo = ArtifactRepository()
        repo.claim(artifact_id)

        assert repo.mark_failed(artifact_id, "File not found: notes.txt") is True

        artifact = repo.find_by_id(artifact_id)
        assert artifact.processing_status == ProcessingStatus.FAILED
        assert artifact.processing_error == "File not found: notes.txt"

    def test_mark_completed_requires_processing(self, seed_artifact: Callable[..., str]) -> None:
        artifact_id = seed_artifact()

        assert ArtifactRepository().mark_completed(artifact_id) is False

    def test_reset_for_reanalysis_clears_error(self, seed_artifact: Callable[..., str]) -> None:
        artifact_id = seed_artifact()
        repo = ArtifactRepository()
        repo.claim(artifact_id)
        repo.mark_failed(artifact_id, "boom")

        assert repo.reset_for_reanalysis(artifact_id) is True

        artifact = repo.find_by_id(artifact_id)
        assert artifact.processing_status == ProcessingStatus.PENDING
        assert artifact.processing_error is None
        assert artifact.processed_at is None

    def test_reset_refuses_processing_artifact(self, seed_artifact: Callable[..., str]) -> None:
        artifact_id = seed_artifact(status=ProcessingStatus.PROCESSING)

        assert ArtifactRepository().reset_for_reanalysis(artifact_id) is False

    def test_find_pending_orders_by_upload_time(self, seed_artifact: Callable[..., str]) -> None:
        now = datetime.now(UTC)
        newer = seed_artifact(uploaded_at=now - timedelta(days=1))
        older = seed_artifact(uploaded_at=now - timedelta(days=3000))
        seed_artifact(status=ProcessingStatus.COMPLETED)

        pending = ArtifactRepository().find_pending(limit=1000)
        ids = [a.artifact_id for a in pending]

        assert older in ids and newer in ids
        assert ids.index(older) < ids.index(newer)
        assert all(a.processing_status == ProcessingStatus.PENDING for a in pending)

    def test_find_pending_skips_deleted(self, seed_artifact: Callable[..., str], db_conn) -> None:
        artifact_id = seed_artifact()
        db_conn.execute(
            "UPDATE artifacts SET deleted_at = NOW() WHERE artifact_id = %s", (artifact_id,)
        )
        db_conn.commit()

        ids = [a.artifact_id for a in ArtifactRepository().find_pending(limit=1000)]

        assert artifact_id not in ids

    def test_find_by_id_raises_for_unknown_artifact(self, integration_pool: None) -> None:
        with pytest.raises(ArtifactNotFoundError):
            ArtifactRepository().find_by_id("00000000-0000-0000-0000-000000000000")

    def test_get_raw_content(self, seed_artifact: Callable[..., str]) -> None:
        artifact_id = seed_artifact(raw_content="Quarterly review notes")

        assert ArtifactRepository().get_raw_content(artifact_id) == "Quarterly review notes"
