import os
import uuid
from collections.abc import Callable, Generator
from datetime import datetime
from pathlib import Path
from typing import Any

import psycopg
import pytest

from artifact_worker.config.settings import Settings
from artifact_worker.database.connection import (
    build_conninfo,
    close_pool,
    get_connection,
    init_pool,
)

SCHEMA_DIR = Path(__file__).parent


def _test_settings() -> Settings:
    os.environ.setdefault("DB_DATABASE", "artifact_worker_test")
    return Settings(
        analysis_provider="example",
        event_bus_backend="memory",
        vision_api_key="",
        embeddings_api_key="",
    )


def _apply(conn: psycopg.Connection[Any], filename: str) -> None:
    conn.execute((SCHEMA_DIR / filename).read_text())
    conn.commit()


@pytest.fixture(scope="session")
def test_settings() -> Settings:
    return _test_settings()


@pytest.fixture(scope="session")
def integration_pool(test_settings: Settings) -> Generator[None, None, None]:
    try:
        with psycopg.connect(build_conninfo(test_settings), connect_timeout=3) as conn:
            _apply(conn, "schema.sql")
    except psycopg.Error as e:
        pytest.skip(
            f"PostgreSQL test DB not available: {e}. "
            "Set DB_* env or see tests/integration/README.md"
        )
    init_pool(test_settings)
    try:
        yield
    finally:
        close_pool()


@pytest.fixture(scope="session")
def vector_schema(integration_pool: None) -> None:
    with get_connection() as conn:
        try:
            _apply(conn, "vector_schema.sql")
        except psycopg.Error as e:
            conn.rollback()
            pytest.skip(f"pgvector extension not available: {e}")


@pytest.fixture
def db_conn(integration_pool: None) -> Generator[psycopg.Connection[Any], None, None]:
    with get_connection() as conn:
        yield conn


@pytest.fixture
def integration_cleanup() -> Generator[list[tuple[str, str]], None, None]:
    cleanup: list[tuple[str, str]] = []
    yield cleanup
    if not cleanup:
        return
    with get_connection() as conn:
        with conn.cursor() as cur:
            for table, row_id in cleanup:
                if table == "artifacts":
                    cur.execute("DELETE FROM artifacts WHERE artifact_id = %s", (row_id,))
            for table, row_id in cleanup:
                if table == "programs":
                    cur.execute("DELETE FROM ai_usage WHERE program_id = %s", (row_id,))
                    cur.execute("DELETE FROM programs WHERE program_id = %s", (row_id,))
        conn.commit()


@pytest.fixture
def seed_program(
    db_conn: psycopg.Connection[Any],
    integration_cleanup: list[tuple[str, str]],
) -> str:
    program_id = str(uuid.uuid4())
    with db_conn.cursor() as cur:
        cur.execute(
            """
            INSERT INTO programs (program_id, program_name, program_code, internal_organization)
            VALUES (%s, %s, %s, %s)
            """,
            (program_id, "Apollo Modernisation", "APM", "Acme Corp"),
        )
    db_conn.commit()
    integration_cleanup.append(("programs", program_id))
    return program_id


@pytest.fixture
def seed_artifact(
    db_conn: psycopg.Connection[Any],
    integration_cleanup: list[tuple[str, str]],
    seed_program: str,
) -> Callable[..., str]:
    def _seed(
        *,
        status: str = "pending",
        storage_path: str = "programs/apm/notes.txt",
        mime_type: str = "text/plain",
        uploaded_at: datetime | None = None,
        raw_content: str | None = None,
    ) -> str:
        artifact_id = str(uuid.uuid4())
        with db_conn.cursor() as cur:
            cur.execute(
                """
                INSERT INTO artifacts (
                    artifact_id, program_id, filename, mime_type, file_size_bytes,
                    storage_path, processing_status, raw_content, uploaded_at
                ) VALUES (%s, %s, %s, %s, %s, %s, %s, %s, COALESCE(%s, NOW()))
                """,
                (
                    artifact_id,
                    seed_program,
                    Path(storage_path).name,
                    mime_type,
                    128,
                    storage_path,
                    status,
                    raw_content,
                    uploaded_at,
                ),
            )
        db_conn.commit()
        integration_cleanup.append(("artifacts", artifact_id))
        return artifact_id

    return _seed


@pytest.fixture
def files_root(tmp_path: Path) -> Path:
    return tmp_path


@pytest.fixture
def text_file_on_disk(files_root: Path) -> Callable[[str, str], str]:
    def _write(storage_path: str, content: str) -> str:
        path = files_root / storage_path
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
        return storage_path

    return _write
