from pathlib import Path

from artifact_worker.database.models import Artifact
from artifact_worker.processor.exceptions import FileReadError


class FileLoader:
    """Resolves an artifact's storage path under the files root and reads its bytes."""

    FILES_ROOT = Path("/app/files")

    def __init__(self, files_root: Path | None = None) -> None:
        self._files_root = files_root if files_root is not None else self.FILES_ROOT

    def load(self, artifact: Artifact) -> bytes:
        """Read artifact bytes from disk.

        Raises:
            FileReadError: if the path escapes the files root, is missing, or unreadable.
        """
        path = self._resolve_path(artifact)
        if not path.is_file():
            raise FileReadError(f"File not found: {path}")
        try:
            return path.read_bytes()
        except OSError as exc:
            raise FileReadError(f"Failed to read {path}: {exc}") from exc

    def _resolve_path(self, artifact: Artifact) -> Path:
        if not artifact.storage_path:
            raise FileReadError(f"Artifact {artifact.artifact_id} has no storage path")
        root = self._files_root.resolve()
        path = (root / artifact.storage_path.lstrip("/")).resolve()
        if not path.is_relative_to(root):
            raise FileReadError(f"Storage path escapes files root: {artifact.storage_path}")
        return path
