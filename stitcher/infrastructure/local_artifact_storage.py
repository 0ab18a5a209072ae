"""
Local Artifact Storage Implementation

Concrete implementation of IArtifactStorage on the local filesystem.
Downloaded inputs and concat manifests go to ``<base>/scratch``, finished
artifacts to ``<base>/outputs``.
"""

import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional

from stitcher.domain.file_storage.repositories import IArtifactStorage

logger = logging.getLogger(__name__)


class LocalArtifactStorage(IArtifactStorage):
    """
    Local filesystem implementation of IArtifactStorage.

    Attributes:
        base_path: Storage root holding the scratch and output areas
    """

    def __init__(self, base_path: str = "/tmp/video-stitcher"):
        """
        Initialize the local artifact storage.

        Args:
            base_path: Storage root (default: /tmp/video-stitcher)
        """
        self.base_path = Path(base_path)
        self._scratch_dir = self.base_path / "scratch"
        self._output_dir = self.base_path / "outputs"
        self._ensure_directories()

    def _ensure_directories(self) -> None:
        """
        Create the storage areas if they don't exist.

        Raises:
            PermissionError: If insufficient permissions to create directory
            OSError: If directory creation fails for other reasons
        """
        for directory in (self._scratch_dir, self._output_dir):
            try:
                directory.mkdir(parents=True, exist_ok=True)
            except PermissionError as e:
                raise PermissionError(
                    f"Insufficient permissions to create storage directory: {directory}"
                ) from e
            except OSError as e:
                raise OSError(f"Failed to create storage directory: {directory}") from e

    @property
    def scratch_dir(self) -> Path:
        return self._scratch_dir

    @property
    def output_dir(self) -> Path:
        return self._output_dir

    def resolve_output(self, filename: str) -> Optional[Path]:
        if not filename or not filename.strip():
            return None
        if filename != Path(filename).name or filename in (".", ".."):
            return None

        candidate = (self._output_dir / filename).resolve()
        if candidate.parent != self._output_dir.resolve():
            return None
        return candidate

    def exists(self, path: Path) -> bool:
        try:
            return Path(path).is_file()
        except (OSError, ValueError):
            return False

    def delete(self, path: Path) -> bool:
        """
        Delete a file. Idempotent: a missing file returns False without error.

        Raises:
            OSError: If the file exists but cannot be removed
        """
        try:
            Path(path).unlink()
            return True
        except FileNotFoundError:
            return False

    def list_stale_files(self, cutoff: datetime) -> List[Path]:
        stale = []
        for directory in (self._scratch_dir, self._output_dir):
            if not directory.is_dir():
                continue
            for entry in directory.iterdir():
                try:
                    if not entry.is_file():
                        continue
                    modified = datetime.fromtimestamp(entry.stat().st_mtime, tz=timezone.utc)
                except OSError:
                    # Removed between listing and stat
                    continue
                if modified < cutoff:
                    stale.append(entry)
        return stale
