"""
Job Management Repositories

Repository interface for job persistence.
Concrete implementations are in the infrastructure layer.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Callable, Iterable, List, Optional

from .entities import StitchJob
from .value_objects import JobStatus

# Mutates a job in place; invoked while the store holds the job's write lock
JobMutator = Callable[[StitchJob], None]


class JobRepository(ABC):
    """Abstract repository interface for job persistence."""

    @abstractmethod
    def save(self, job: StitchJob) -> bool:
        """
        Save or update a job.

        Args:
            job: StitchJob to save

        Returns:
            True if successful, False otherwise
        """
        pass  # pragma: no cover

    @abstractmethod
    def get(self, job_id: str) -> Optional[StitchJob]:
        """
        Retrieve a job by ID.

        Returns a detached copy; changing it does not change the store.

        Args:
            job_id: Job identifier

        Returns:
            StitchJob if found, None otherwise
        """
        pass  # pragma: no cover

    @abstractmethod
    def delete(self, job_id: str) -> bool:
        """
        Delete a job.

        Args:
            job_id: Job identifier

        Returns:
            True if deleted, False otherwise
        """
        pass  # pragma: no cover

    @abstractmethod
    def exists(self, job_id: str) -> bool:
        """
        Check if job exists.

        Args:
            job_id: Job identifier

        Returns:
            True if exists, False otherwise
        """
        pass  # pragma: no cover

    @abstractmethod
    def update(self, job_id: str, mutator: JobMutator) -> Optional[StitchJob]:
        """
        Atomically read, mutate and write back a single job.

        Writes to the same job are serialized. Exceptions raised by the
        mutator propagate and leave the stored record unchanged.

        Args:
            job_id: Job identifier
            mutator: Callable applied to the current record

        Returns:
            Copy of the updated StitchJob, or None if the job doesn't exist
        """
        pass  # pragma: no cover

    @abstractmethod
    def find_by_status(
        self, statuses: Iterable[JobStatus], limit: int = 100
    ) -> List[StitchJob]:
        """
        Find jobs whose status is one of ``statuses``.

        Args:
            statuses: Statuses to match
            limit: Maximum number of jobs to return

        Returns:
            Matching jobs, in no particular order
        """
        pass  # pragma: no cover

    @abstractmethod
    def get_expired_jobs(self, now: datetime) -> List[StitchJob]:
        """
        Get every job whose ``expires_at`` is strictly before ``now``.

        Status is not considered.
        """
        pass  # pragma: no cover
