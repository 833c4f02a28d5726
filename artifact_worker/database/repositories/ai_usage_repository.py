import psycopg

from artifact_worker.database.connection import get_connection
from artifact_worker.metrics.models import AiCallMetrics
from artifact_worker.processor.exceptions import PersistenceError


class AiUsageRepository:
    """Database operations for the ai_usage table."""

    def insert(self, metrics: AiCallMetrics) -> None:
        """Store one AI call's usage and cost."""
        try:
            with get_connection() as conn:
                conn.execute(
                    """
                    INSERT INTO ai_usage (
                        program_id, module, job_type, model,
                        tokens_input, tokens_output, tokens_cached, tokens_total,
                        cost_usd, duration_ms, success, error_message, created_at
                    ) VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s)
                    """,
                    (
                        metrics.program_id or None,
                        metrics.module,
                        metrics.job_type,
                        metrics.model,
                        metrics.usage.input_tokens,
                        metrics.usage.output_tokens,
                        metrics.usage.cached_tokens,
                        metrics.usage.total_tokens,
                        metrics.cost_usd,
                        metrics.duration_ms,
                        metrics.success,
                        metrics.error,
                        metrics.timestamp,
                    ),
                )
                conn.commit()
        except psycopg.Error as exc:
            raise PersistenceError(f"Failed to store AI usage: {exc}") from exc
