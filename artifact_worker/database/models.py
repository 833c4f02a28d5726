from dataclasses import dataclass
from datetime import datetime


class ProcessingStatus:
    """Values of artifacts.processing_status."""

    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"

    TERMINAL = (COMPLETED, FAILED)


@dataclass(frozen=True)
class Artifact:
    """Represents a row from the artifacts table (columns the worker uses)."""

    artifact_id: str
    program_id: str
    filename: str
    mime_type: str
    file_size_bytes: int
    storage_path: str
    processing_status: str
    uploaded_at: datetime | None = None
    processed_at: datetime | None = None
    raw_content: str | None = None
    processing_error: str | None = None


@dataclass(frozen=True)
class ProgramRecord:
    """Represents the program columns needed to build analysis context."""

    program_id: str
    program_name: str
    program_code: str
    internal_organization: str | None = None
