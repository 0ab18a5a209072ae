"""
Redis Job Repository Implementation

Concrete Redis-based implementation of JobRepository interface.
Job records are stored as JSON under ``job:<job_id>``; writes to one job
are serialized with a distributed lock on ``lock:job:<job_id>``.
"""

import logging
from datetime import datetime
from typing import Iterable, List, Optional

from stitcher.domain.job_management.entities import StitchJob
from stitcher.domain.job_management.repositories import JobMutator, JobRepository
from stitcher.domain.job_management.value_objects import JobStatus

from .redis_repository import RedisRepository

logger = logging.getLogger(__name__)


class RedisJobRepository(JobRepository):
    """
    Redis-based implementation of JobRepository.

    Expiry is decided by the sweeper from ``expires_at``. The key TTL is
    only a safety net for records the sweeper never reaches, so it is set
    to the retention window plus one sweep interval.
    """

    def __init__(self, redis_repository: RedisRepository, ttl_seconds: int,
                 lock_timeout: int = 10, lock_blocking_timeout: int = 5):
        """
        Initialize with Redis repository.

        Args:
            redis_repository: RedisRepository instance
            ttl_seconds: Key TTL applied on every write
            lock_timeout: Seconds a job write lock is held at most
            lock_blocking_timeout: Seconds to wait for a job write lock
        """
        self.redis_repo = redis_repository
        self.key_prefix = "job"
        self.ttl = ttl_seconds
        self.lock_timeout = lock_timeout
        self.lock_blocking_timeout = lock_blocking_timeout

    def _key(self, job_id: str) -> str:
        return f"{self.key_prefix}:{job_id}"

    def _job_lock(self, job_id: str):
        return self.redis_repo.distributed_lock(
            self._key(job_id),
            timeout=self.lock_timeout,
            blocking_timeout=self.lock_blocking_timeout,
        )

    def _deserialize(self, job_id: str, data: Optional[dict]) -> Optional[StitchJob]:
        if data is None:
            return None
        try:
            return StitchJob.from_dict(data)
        except (KeyError, ValueError, TypeError) as e:
            logger.error(f"Error deserializing job {job_id}: {e}")
            return None

    def save(self, job: StitchJob) -> bool:
        """Save or update a job in Redis."""
        return self.redis_repo.set_json(self._key(job.job_id), job.to_dict(), ttl=self.ttl)

    def get(self, job_id: str) -> Optional[StitchJob]:
        """Retrieve a job from Redis."""
        return self._deserialize(job_id, self.redis_repo.get_json(self._key(job_id)))

    def delete(self, job_id: str) -> bool:
        """Delete a job from Redis under its write lock."""
        with self._job_lock(job_id):
            return self.redis_repo.delete(self._key(job_id))

    def exists(self, job_id: str) -> bool:
        """Check if job exists in Redis."""
        return self.redis_repo.exists(self._key(job_id))

    def update(self, job_id: str, mutator: JobMutator) -> Optional[StitchJob]:
        """
        Read, mutate and write a job while holding its distributed lock.

        Raises:
            LockError: If the lock cannot be acquired in time
        """
        with self._job_lock(job_id):
            job = self.get(job_id)
            if job is None:
                return None

            mutator(job)

            # A lock that expired mid-update may have let the sweeper in
            if not self.exists(job_id):
                logger.debug(f"Job {job_id} was deleted during update")
                return None

            if not self.save(job):
                logger.error(f"Failed to persist update for job {job_id}")
                return None
            return job

    def _iter_jobs(self) -> Iterable[StitchJob]:
        keys = list(self.redis_repo.scan_keys(f"{self.key_prefix}:*"))
        if not keys:
            return []

        job_ids = [k[len(self.key_prefix) + 1:] for k in keys]
        records = self.redis_repo.get_many_json(keys)
        jobs = []
        for job_id, data in zip(job_ids, records):
            job = self._deserialize(job_id, data)
            if job is not None:
                jobs.append(job)
        return jobs

    def find_by_status(
        self, statuses: Iterable[JobStatus], limit: int = 100
    ) -> List[StitchJob]:
        wanted = set(statuses)
        matches = []
        for job in self._iter_jobs():
            if job.status in wanted:
                matches.append(job)
                if len(matches) >= limit:
                    break
        return matches

    def get_expired_jobs(self, now: datetime) -> List[StitchJob]:
        return [job for job in self._iter_jobs() if job.expires_at < now]
