import psycopg

from artifact_worker.database.connection import get_connection
from artifact_worker.processor.exceptions import ArtifactNotFoundError, PersistenceError


def format_vector(vector: list[float]) -> str:
    """Render a vector in pgvector's text input format."""
    return "[" + ",".join(f"{v:.8f}" for v in vector) + "]"


class EmbeddingRepository:
    """Database operations for the artifact_embeddings table (one row per artifact)."""

    def upsert(self, artifact_id: str, vector: list[float], model: str) -> None:
        """Insert or overwrite the artifact's embedding.

        Raises:
            ArtifactNotFoundError: if the artifact row does not exist.
            PersistenceError: on database failure.
        """
        try:
            with get_connection() as conn:
                with conn.cursor() as cur:
                    cur.execute(
                        """
                        INSERT INTO artifact_embeddings (artifact_id, embedding, embedding_model)
                        SELECT artifact_id, %s::vector, %s
                        FROM artifacts
                        WHERE artifact_id = %s
                        ON CONFLICT (artifact_id) DO UPDATE SET
                            embedding = EXCLUDED.embedding,
                            embedding_model = EXCLUDED.embedding_model,
                            created_at = NOW()
                        """,
                        (format_vector(vector), model, artifact_id),
                    )
                    if cur.rowcount == 0:
                        raise ArtifactNotFoundError(f"Artifact {artifact_id} not found")
                conn.commit()
        except psycopg.Error as exc:
            raise PersistenceError(
                f"Failed to store embedding for artifact {artifact_id}: {exc}"
            ) from exc

    def count_for_artifact(self, artifact_id: str) -> int:
        """Number of stored embeddings for an artifact (0 or 1)."""
        try:
            with get_connection() as conn:
                with conn.cursor() as cur:
                    cur.execute(
                        "SELECT COUNT(*) FROM artifact_embeddings WHERE artifact_id = %s",
                        (artifact_id,),
                    )
                    row = cur.fetchone()
        except psycopg.Error as exc:
            raise PersistenceError(
                f"Failed to count embeddings for artifact {artifact_id}: {exc}"
            ) from exc
        return int(row[0]) if row else 0
