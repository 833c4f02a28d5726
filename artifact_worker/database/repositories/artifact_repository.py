from typing import Any

import psycopg
from psycopg.rows import dict_row

from artifact_worker.database.connection import get_connection
from artifact_worker.database.models import Artifact, ProcessingStatus
from artifact_worker.processor.exceptions import ArtifactNotFoundError, PersistenceError

_ARTIFACT_COLUMNS = """
    artifact_id, program_id, filename, mime_type, file_size_bytes,
    storage_path, processing_status, uploaded_at, processed_at,
    raw_content, processing_error
"""


class ArtifactRepository:
    """Database operations for the artifacts table.

    Every write to processing_status is a conditional update on the current
    status, so two triggers racing on the same row cannot both win.
    """

    def claim(self, artifact_id: str) -> bool:
        """Move an artifact from pending to processing.

        Returns False when the row was not pending (already claimed, finished,
        or missing). Only the caller that gets True may process the artifact.
        """
        return self._transition(
            artifact_id,
            from_statuses=(ProcessingStatus.PENDING,),
            to_status=ProcessingStatus.PROCESSING,
        )

    def mark_completed(self, artifact_id: str) -> bool:
        """Move a claimed artifact to completed and stamp processed_at."""
        return self._transition(
            artifact_id,
            from_statuses=(ProcessingStatus.PROCESSING,),
            to_status=ProcessingStatus.COMPLETED,
        )

    def mark_failed(self, artifact_id: str, error: str) -> bool:
        """Move a claimed artifact to failed, retaining the error text."""
        return self._transition(
            artifact_id,
            from_statuses=(ProcessingStatus.PROCESSING,),
            to_status=ProcessingStatus.FAILED,
            error=error,
        )

    def reset_for_reanalysis(self, artifact_id: str) -> bool:
        """Return a completed or failed artifact to pending."""
        return self._transition(
            artifact_id,
            from_statuses=ProcessingStatus.TERMINAL,
            to_status=ProcessingStatus.PENDING,
        )

    def find_by_id(self, artifact_id: str) -> Artifact:
        """Find an artifact by ID.

        Raises:
            ArtifactNotFoundError: if no live artifact with this ID exists.
            PersistenceError: on database failure.
        """
        try:
            with get_connection() as conn:
                with conn.cursor(row_factory=dict_row) as cur:
                    cur.execute(
                        f"""
                        SELECT {_ARTIFACT_COLUMNS}
                        FROM artifacts
                        WHERE artifact_id = %s
                          AND deleted_at IS NULL
                        """,
                        (artifact_id,),
                    )
                    row = cur.fetchone()
        except psycopg.Error as exc:
            raise PersistenceError(f"Failed to load artifact {artifact_id}: {exc}") from exc

        if row is None:
            raise ArtifactNotFoundError(f"Artifact {artifact_id} not found")
        return self._to_artifact(row)

    def find_pending(self, limit: int) -> list[Artifact]:
        """Return up to `limit` pending artifacts, oldest upload first."""
        try:
            with get_connection() as conn:
                with conn.cursor(row_factory=dict_row) as cur:
                    cur.execute(
                        f"""
                        SELECT {_ARTIFACT_COLUMNS}
                        FROM artifacts
                        WHERE processing_status = %s
                          AND deleted_at IS NULL
                        ORDER BY uploaded_at
                        LIMIT %s
                        """,
                        (ProcessingStatus.PENDING, limit),
                    )
                    rows = cur.fetchall()
        except psycopg.Error as exc:
            raise PersistenceError(f"Failed to query pending artifacts: {exc}") from exc

        return [self._to_artifact(row) for row in rows]

    def get_raw_content(self, artifact_id: str) -> str | None:
        """Return the stored extracted text for an artifact."""
        try:
            with get_connection() as conn:
                with conn.cursor() as cur:
                    cur.execute(
                        "SELECT raw_content FROM artifacts WHERE artifact_id = %s",
                        (artifact_id,),
                    )
                    row = cur.fetchone()
        except psycopg.Error as exc:
            raise PersistenceError(
                f"Failed to load content for artifact {artifact_id}: {exc}"
            ) from exc

        if row is None:
            raise ArtifactNotFoundError(f"Artifact {artifact_id} not found")
        content: str | None = row[0]
        return content

    def _transition(
        self,
        artifact_id: str,
        *,
        from_statuses: tuple[str, ...],
        to_status: str,
        error: str | None = None,
    ) -> bool:
        processed_at_sql = "NOW()" if to_status in ProcessingStatus.TERMINAL else "NULL"
        try:
            with get_connection() as conn:
                with conn.cursor() as cur:
                    cur.execute(
                        f"""
                        UPDATE artifacts
                        SET processing_status = %s,
                            processing_error = %s,
                            processed_at = {processed_at_sql},
                            updated_at = NOW()
                        WHERE artifact_id = %s
                          AND processing_status = ANY(%s)
                        """,
                        (to_status, error, artifact_id, list(from_statuses)),
                    )
                    changed = cur.rowcount == 1
                conn.commit()
        except psycopg.Error as exc:
            raise PersistenceError(
                f"Failed to set artifact {artifact_id} to {to_status}: {exc}"
            ) from exc
        return changed

    @staticmethod
    def _to_artifact(row: dict[str, Any]) -> Artifact:
        return Artifact(
            artifact_id=str(row["artifact_id"]),
            program_id=str(row["program_id"]),
            filename=row["filename"],
            mime_type=row["mime_type"] or "",
            file_size_bytes=row["file_size_bytes"] or 0,
            storage_path=row["storage_path"],
            processing_status=row["processing_status"],
            uploaded_at=row["uploaded_at"],
            processed_at=row["processed_at"],
            raw_content=row["raw_content"],
            processing_error=row["processing_error"],
        )
