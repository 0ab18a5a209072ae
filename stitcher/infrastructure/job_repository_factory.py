"""
Job Repository Factory

Selects the job store implementation from configuration.
"""

import logging
from typing import Callable, Optional

from stitcher.config.stitch_config import StitchConfig
from stitcher.domain.job_management.repositories import JobRepository

from .memory_job_repository import InMemoryJobRepository
from .redis_job_repository import RedisJobRepository
from .redis_repository import RedisRepository

logger = logging.getLogger(__name__)


class JobRepositoryFactory:
    """
    Factory for creating job repository implementations.

    Selection Logic:
    - JOB_STORE_BACKEND=memory selects the process-local store
    - JOB_STORE_BACKEND=redis (default) selects the Redis store
    """

    @staticmethod
    def create(
        config: StitchConfig,
        redis_repository_provider: Optional[Callable[[], RedisRepository]] = None,
    ) -> JobRepository:
        """
        Create the configured job repository.

        Args:
            config: Stitch configuration
            redis_repository_provider: Returns the shared RedisRepository;
                only called for the Redis backend

        Raises:
            ValueError: If the backend name is unknown, or Redis is selected
                without a provider
        """
        backend = config.job_store_backend

        if backend == "memory":
            logger.info("Using in-memory job store")
            return InMemoryJobRepository()

        if backend == "redis":
            if redis_repository_provider is None:
                raise ValueError("Redis job store requires a Redis connection")
            logger.info("Using Redis job store")
            return RedisJobRepository(
                redis_repository_provider(), ttl_seconds=config.job_ttl_seconds
            )

        raise ValueError(f"Unknown JOB_STORE_BACKEND '{backend}'. Allowed: redis, memory")
