from datetime import date

import psycopg
from psycopg.types.json import Jsonb

from artifact_worker.analysis.models import AnalysisResult
from artifact_worker.database.connection import get_connection
from artifact_worker.processor.exceptions import ArtifactNotFoundError, PersistenceError


class AnalysisRepository:
    """Persists analysis results (summary, topics, persons, facts, insights).

    Results are replaced, never merged: a new analysis deletes the previous
    sets for the artifact inside the same transaction that inserts the new ones.
    """

    def replace_results(
        self,
        artifact_id: str,
        *,
        extracted_text: str,
        result: AnalysisResult,
        model: str,
        processing_time_ms: int,
    ) -> None:
        """Write the extracted text and all result sets as one transaction.

        Raises:
            ArtifactNotFoundError: if the artifact row does not exist.
            PersistenceError: on database failure (nothing is written).
        """
        try:
            with get_connection() as conn:
                with conn.cursor() as cur:
                    cur.execute(
                        """
                        UPDATE artifacts
                        SET raw_content = %s,
                            artifact_category = %s,
                            ai_model_version = %s,
                            ai_processing_time_ms = %s,
                            updated_at = NOW()
                        WHERE artifact_id = %s
                        """,
                        (
                            extracted_text,
                            result.document_type,
                            model,
                            processing_time_ms,
                            artifact_id,
                        ),
                    )
                    if cur.rowcount == 0:
                        conn.rollback()
                        raise ArtifactNotFoundError(f"Artifact {artifact_id} not found")

                    for table in (
                        "artifact_topics",
                        "artifact_persons",
                        "artifact_facts",
                        "artifact_insights",
                    ):
                        cur.execute(
                            f"DELETE FROM {table} WHERE artifact_id = %s",
                            (artifact_id,),
                        )

                    self._upsert_summary(cur, artifact_id, result, model)
                    self._insert_topics(cur, artifact_id, result)
                    self._insert_persons(cur, artifact_id, result)
                    self._insert_facts(cur, artifact_id, result)
                    self._insert_insights(cur, artifact_id, result)
                conn.commit()
        except psycopg.Error as exc:
            raise PersistenceError(
                f"Failed to store analysis for artifact {artifact_id}: {exc}"
            ) from exc

    @staticmethod
    def _upsert_summary(
        cur: psycopg.Cursor, artifact_id: str, result: AnalysisResult, model: str
    ) -> None:
        summary = result.summary
        cur.execute(
            """
            INSERT INTO artifact_summaries (
                artifact_id, executive_summary, key_takeaways, sentiment,
                priority, confidence_score, ai_model
            ) VALUES (%s, %s, %s, %s, %s, %s, %s)
            ON CONFLICT (artifact_id) DO UPDATE SET
                executive_summary = EXCLUDED.executive_summary,
                key_takeaways = EXCLUDED.key_takeaways,
                sentiment = EXCLUDED.sentiment,
                priority = EXCLUDED.priority,
                confidence_score = EXCLUDED.confidence_score,
                ai_model = EXCLUDED.ai_model,
                created_at = NOW()
            """,
            (
                artifact_id,
                summary.executive_summary,
                summary.key_takeaways,
                summary.sentiment,
                summary.priority,
                result.document_type_confidence,
                model,
            ),
        )

    @staticmethod
    def _insert_topics(cur: psycopg.Cursor, artifact_id: str, result: AnalysisResult) -> None:
        if not result.topics:
            return
        cur.executemany(
            """
            INSERT INTO artifact_topics (artifact_id, topic_name, confidence_score)
            VALUES (%s, %s, %s)
            ON CONFLICT (artifact_id, topic_name) DO NOTHING
            """,
            [(artifact_id, t.name, t.confidence) for t in result.topics],
        )

    @staticmethod
    def _insert_persons(cur: psycopg.Cursor, artifact_id: str, result: AnalysisResult) -> None:
        if not result.persons:
            return
        cur.executemany(
            """
            INSERT INTO artifact_persons (
                artifact_id, person_name, person_role, person_organization,
                context_snippets, confidence_score
            ) VALUES (%s, %s, %s, %s, %s, %s)
            """,
            [
                (
                    artifact_id,
                    p.name,
                    p.role,
                    p.organization,
                    Jsonb([p.context] if p.context else []),
                    p.confidence,
                )
                for p in result.persons
            ],
        )

    @staticmethod
    def _insert_facts(cur: psycopg.Cursor, artifact_id: str, result: AnalysisResult) -> None:
        if not result.facts:
            return
        cur.executemany(
            """
            INSERT INTO artifact_facts (
                artifact_id, fact_type, fact_key, fact_value,
                normalized_value_numeric, normalized_value_date, unit,
                confidence_score
            ) VALUES (%s, %s, %s, %s, %s, %s, %s, %s)
            ON CONFLICT (artifact_id, fact_key, fact_value) DO NOTHING
            """,
            [
                (
                    artifact_id,
                    f.type,
                    f.key,
                    f.value,
                    f.numeric_value,
                    _iso_date_or_none(f.date_value),
                    f.unit,
                    f.confidence,
                )
                for f in result.facts
            ],
        )

    @staticmethod
    def _insert_insights(cur: psycopg.Cursor, artifact_id: str, result: AnalysisResult) -> None:
        if not result.insights:
            return
        cur.executemany(
            """
            INSERT INTO artifact_insights (
                artifact_id, insight_type, title, description, severity,
                suggested_action, impacted_modules, confidence_score
            ) VALUES (%s, %s, %s, %s, %s, %s, %s, %s)
            """,
            [
                (
                    artifact_id,
                    i.type,
                    i.title,
                    i.description,
                    i.severity,
                    i.suggested_action,
                    i.impacted_modules,
                    i.confidence,
                )
                for i in result.insights
            ],
        )


def _iso_date_or_none(value: str | None) -> str | None:
    """Keep only real calendar dates; anything else stays in fact_value only."""
    if value is None:
        return None
    try:
        return date.fromisoformat(value).isoformat()
    except ValueError:
        return None
