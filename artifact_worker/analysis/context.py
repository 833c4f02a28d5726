from artifact_worker.analysis.models import ProgramContext
from artifact_worker.database.repositories.program_repository import ProgramRepository
from artifact_worker.logging.logger import Log

DEFAULT_PROGRAM_NAME = "Default Program"
DEFAULT_COMPANY_NAME = "Company"
DEFAULT_TAXONOMY = (
    "Risk Categories: technical, financial, schedule, resource, external | "
    "Spend Categories: labor, materials, software, travel, other"
)


class ProgramContextProvider:
    """Builds the program context passed to the analysis prompt."""

    def __init__(self, program_repo: ProgramRepository) -> None:
        self._program_repo = program_repo

    def build(self, program_id: str) -> ProgramContext:
        """Load program identity, falling back to the default context.

        Lookup failures are logged and never fail the analysis.
        """
        try:
            program = self._program_repo.find_by_id(program_id)
        except Exception as exc:
            Log.warning(f"Program lookup failed for {program_id}, using default context: {exc}")
            return default_context(program_id)

        if program is None:
            Log.warning(f"Program {program_id} not found, using default context")
            return default_context(program_id)

        return ProgramContext(
            program_id=program.program_id,
            program_name=program.program_name,
            program_code=program.program_code,
            company_name=program.internal_organization or DEFAULT_COMPANY_NAME,
            custom_taxonomy=DEFAULT_TAXONOMY,
        )


def default_context(program_id: str) -> ProgramContext:
    return ProgramContext(
        program_id=program_id,
        program_name=DEFAULT_PROGRAM_NAME,
        program_code=program_id[:8],
        company_name=DEFAULT_COMPANY_NAME,
        custom_taxonomy=DEFAULT_TAXONOMY,
    )
