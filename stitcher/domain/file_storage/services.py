"""
File Storage Services

Domain service for stitched artifact naming, retrieval and cleanup.
"""

import logging
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Optional

from stitcher.domain.errors import ArtifactNotFoundError
from stitcher.domain.media_processing.value_objects import OutputFormat

from .repositories import IArtifactStorage

logger = logging.getLogger(__name__)

OUTPUT_PREFIX = "stitched_"


class FileManager:
    """
    Domain service for managing stitched artifacts.

    Owns the naming scheme ``stitched_<job_id>.<format>`` and the public
    download URL built from it.
    """

    def __init__(self, storage: IArtifactStorage, public_base: str = "/api/v1/downloads"):
        """
        Initialize FileManager with storage.

        Args:
            storage: Physical file storage
            public_base: URL prefix under which artifacts are served
        """
        self.storage = storage
        self.public_base = public_base.rstrip("/")

    @staticmethod
    def output_filename(job_id: str, output_format: OutputFormat) -> str:
        return f"{OUTPUT_PREFIX}{job_id}.{output_format.value}"

    def output_path(self, job_id: str, output_format: OutputFormat) -> Path:
        """Location the concatenated artifact for ``job_id`` is written to."""
        return self.storage.output_dir / self.output_filename(job_id, output_format)

    def public_url(self, filename: str) -> str:
        return f"{self.public_base}/{filename}"

    def resolve_output_file(self, filename: str) -> Path:
        """
        Find a finished artifact by file name.

        Args:
            filename: Bare artifact file name

        Returns:
            Path to the artifact

        Raises:
            ArtifactNotFoundError: If the name is invalid or the file is missing
        """
        path = self.storage.resolve_output(filename)
        if path is None or not self.storage.exists(path):
            raise ArtifactNotFoundError(f"File not found: {filename}")
        return path

    def delete_output(self, job_id: str, output_format: OutputFormat) -> bool:
        """
        Delete the artifact of a job.

        Returns:
            True if a file was removed
        """
        path = self.output_path(job_id, output_format)
        try:
            deleted = self.storage.delete(path)
        except OSError as e:
            logger.warning(f"Failed to delete artifact for job {job_id}: {e}")
            return False
        if deleted:
            logger.info(f"Deleted artifact {path.name} for job {job_id}")
        return deleted

    def cleanup_orphaned_files(
        self, max_age: timedelta, now: Optional[datetime] = None
    ) -> int:
        """
        Delete scratch and output files older than ``max_age``.

        Catches leftovers of jobs whose record was already swept, or of
        workers that died mid-job.

        Returns:
            Number of files removed
        """
        cutoff = (now or datetime.now(timezone.utc)) - max_age
        count = 0
        for path in self.storage.list_stale_files(cutoff):
            try:
                if self.storage.delete(path):
                    count += 1
            except OSError as e:
                logger.warning(f"Error cleaning up orphaned file {path}: {e}")

        if count:
            logger.info(f"Removed {count} orphaned file(s)")
        return count
