"""
In-Memory Job Repository Implementation

Process-local JobRepository for single-process deployments running jobs on
the thread dispatcher. Records do not survive a restart.
"""

import logging
import threading
from datetime import datetime
from typing import Dict, Iterable, List, Optional

from stitcher.domain.job_management.entities import StitchJob
from stitcher.domain.job_management.repositories import JobMutator, JobRepository
from stitcher.domain.job_management.value_objects import JobStatus

logger = logging.getLogger(__name__)


class InMemoryJobRepository(JobRepository):
    """
    Dictionary-backed implementation of JobRepository.

    A registry lock guards the dictionary itself and each job has its own
    lock that serializes writes to that job. Reads take no job lock and
    always return copies, so a caller never holds a reference to the stored
    record.
    """

    def __init__(self):
        self._jobs: Dict[str, StitchJob] = {}
        self._job_locks: Dict[str, threading.Lock] = {}
        self._registry_lock = threading.Lock()

    def _lock_for(self, job_id: str) -> threading.Lock:
        with self._registry_lock:
            return self._job_locks.setdefault(job_id, threading.Lock())

    def _existing_lock(self, job_id: str) -> Optional[threading.Lock]:
        with self._registry_lock:
            if job_id not in self._jobs:
                return None
            return self._job_locks.setdefault(job_id, threading.Lock())

    def save(self, job: StitchJob) -> bool:
        with self._lock_for(job.job_id):
            with self._registry_lock:
                self._jobs[job.job_id] = job.copy()
        return True

    def get(self, job_id: str) -> Optional[StitchJob]:
        with self._registry_lock:
            job = self._jobs.get(job_id)
            return job.copy() if job is not None else None

    def delete(self, job_id: str) -> bool:
        with self._lock_for(job_id):
            with self._registry_lock:
                removed = self._jobs.pop(job_id, None)
                self._job_locks.pop(job_id, None)
        return removed is not None

    def exists(self, job_id: str) -> bool:
        with self._registry_lock:
            return job_id in self._jobs

    def update(self, job_id: str, mutator: JobMutator) -> Optional[StitchJob]:
        lock = self._existing_lock(job_id)
        if lock is None:
            return None

        with lock:
            with self._registry_lock:
                current = self._jobs.get(job_id)
            if current is None:
                return None

            # Mutate a copy so a raising mutator leaves the record untouched
            updated = current.copy()
            mutator(updated)

            with self._registry_lock:
                if job_id not in self._jobs:
                    logger.debug(f"Job {job_id} was deleted during update")
                    return None
                self._jobs[job_id] = updated
            return updated.copy()

    def _snapshot(self) -> List[StitchJob]:
        with self._registry_lock:
            return [job.copy() for job in self._jobs.values()]

    def find_by_status(
        self, statuses: Iterable[JobStatus], limit: int = 100
    ) -> List[StitchJob]:
        wanted = set(statuses)
        return [job for job in self._snapshot() if job.status in wanted][:limit]

    def get_expired_jobs(self, now: datetime) -> List[StitchJob]:
        return [job for job in self._snapshot() if job.expires_at < now]

    def count(self) -> int:
        with self._registry_lock:
            return len(self._jobs)
