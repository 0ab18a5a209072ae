"""
Artifact Storage Repository Interface

Abstract interface for the physical files a stitching job produces: the
scratch area that holds downloaded inputs and concat manifests, and the
output area that holds finished artifacts served to clients.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from pathlib import Path
from typing import List, Optional


class IArtifactStorage(ABC):
    """
    Interface for job file storage.

    Contract Guarantees:
    - delete() is idempotent and never fails for a missing file
    - resolve_output() never returns a path outside the output area
    - exists() never raises for invalid names
    """

    @property
    @abstractmethod
    def scratch_dir(self) -> Path:
        """Directory for downloaded inputs and temporary manifests."""
        pass  # pragma: no cover

    @property
    @abstractmethod
    def output_dir(self) -> Path:
        """Directory for finished artifacts."""
        pass  # pragma: no cover

    @abstractmethod
    def resolve_output(self, filename: str) -> Optional[Path]:
        """
        Map an artifact file name to its location in the output area.

        Args:
            filename: Bare file name, e.g. ``stitched_<job_id>.mp4``

        Returns:
            Absolute path, or None when the name is empty, contains path
            separators, or would escape the output area
        """
        pass  # pragma: no cover

    @abstractmethod
    def exists(self, path: Path) -> bool:
        pass  # pragma: no cover

    @abstractmethod
    def delete(self, path: Path) -> bool:
        """
        Delete a file.

        Returns:
            True if the file was deleted, False if it did not exist
        """
        pass  # pragma: no cover

    @abstractmethod
    def list_stale_files(self, cutoff: datetime) -> List[Path]:
        """
        List files in the scratch and output areas last modified before ``cutoff``.
        """
        pass  # pragma: no cover
