import psycopg
from psycopg.rows import dict_row

from artifact_worker.database.connection import get_connection
from artifact_worker.database.models import ProgramRecord
from artifact_worker.processor.exceptions import PersistenceError


class ProgramRepository:
    """Read-only access to the programs table."""

    def find_by_id(self, program_id: str) -> ProgramRecord | None:
        """Return the program row, or None if it does not exist."""
        try:
            with get_connection() as conn:
                with conn.cursor(row_factory=dict_row) as cur:
                    cur.execute(
                        """
                        SELECT program_id, program_name, program_code,
                               internal_organization
                        FROM programs
                        WHERE program_id = %s
                        """,
                        (program_id,),
                    )
                    row = cur.fetchone()
        except psycopg.Error as exc:
            raise PersistenceError(f"Failed to load program {program_id}: {exc}") from exc

        if row is None:
            return None
        return ProgramRecord(
            program_id=str(row["program_id"]),
            program_name=row["program_name"],
            program_code=row["program_code"],
            internal_organization=row["internal_organization"],
        )
