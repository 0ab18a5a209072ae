"""
Job Management Services

Domain services for job lifecycle management.
"""

import logging
from datetime import datetime, timedelta
from typing import TYPE_CHECKING, Callable, List, Optional, Sequence

from stitcher.domain.errors import DomainError, JobNotFoundError, JobStateError
from stitcher.domain.events import DomainEvent, JobExpiredEvent
from stitcher.domain.media_processing.value_objects import OutputFormat, QualityPreset

from .entities import DEFAULT_RETENTION, StitchJob, utcnow
from .repositories import JobRepository
from .value_objects import JobProgress, JobStatus

if TYPE_CHECKING:
    from stitcher.application.event_publisher import EventPublisher

logger = logging.getLogger(__name__)

JobAction = Callable[[StitchJob], Optional[DomainEvent]]


class JobManager:
    """
    Domain service for managing stitching job lifecycle.

    Coordinates job creation, status updates, and completion. Every mutation
    goes through ``JobRepository.update`` so writes to one job are serialized.
    Mutations addressed to a job that no longer exists are ignored and
    return None.
    """

    def __init__(
        self,
        job_repository: JobRepository,
        event_publisher: Optional["EventPublisher"] = None,
        retention: timedelta = DEFAULT_RETENTION,
    ):
        """
        Initialize JobManager with repository.

        Args:
            job_repository: Repository for job persistence
            event_publisher: Optional publisher for domain events
            retention: Lifetime of a job record before it is swept
        """
        self.job_repo = job_repository
        self.event_publisher = event_publisher
        self.retention = retention

    def create_job(
        self,
        video_urls: Sequence[str],
        output_format: OutputFormat = OutputFormat.MP4,
        quality: QualityPreset = QualityPreset.AUTO,
    ) -> StitchJob:
        """
        Create a new pending stitching job.

        Args:
            video_urls: Source URLs in concatenation order
            output_format: Target container format
            quality: Quality preset

        Returns:
            Created StitchJob

        Raises:
            DomainError: If the job cannot be saved
        """
        job = StitchJob.create(video_urls, output_format, quality, retention=self.retention)

        if not self.job_repo.save(job):
            raise DomainError("Failed to save job to repository")

        logger.info(f"Created job {job.job_id} with {len(job.video_urls)} videos")
        return job

    def find_job(self, job_id: str) -> Optional[StitchJob]:
        """Retrieve a job by ID, or None if absent."""
        return self.job_repo.get(job_id)

    def get_job(self, job_id: str) -> StitchJob:
        """
        Retrieve a job by ID.

        Raises:
            JobNotFoundError: If job doesn't exist
        """
        job = self.job_repo.get(job_id)

        if job is None:
            raise JobNotFoundError(f"Job {job_id} not found")

        return job

    def start_job(self, job_id: str) -> Optional[StitchJob]:
        """
        Move a pending job to processing at the downloading stage.

        Raises:
            JobStateError: If job is already terminal
        """
        return self._mutate(job_id, lambda job: job.start(), "start")

    def update_progress(self, job_id: str, progress: JobProgress) -> Optional[StitchJob]:
        """
        Record progress for a processing job.

        A percentage lower than the recorded one is not written.

        Raises:
            JobStateError: If job is not processing
        """
        logger.debug(f"Job {job_id} progress {progress.percentage}% ({progress.phase})")
        return self._mutate(job_id, lambda job: job.update_progress(progress), "progress update")

    def complete_job(self, job_id: str, download_url: str) -> Optional[StitchJob]:
        """
        Mark job as completed with its public download URL.

        Raises:
            JobStateError: If job is not processing
        """
        return self._mutate(job_id, lambda job: job.complete(download_url), "completion")

    def fail_job(
        self, job_id: str, error_message: str, error_category: Optional[str] = None
    ) -> Optional[StitchJob]:
        """
        Mark job as failed.

        Args:
            job_id: Job identifier
            error_message: Error description
            error_category: Optional error category for tracking

        Raises:
            JobStateError: If job is already terminal
        """
        return self._mutate(
            job_id, lambda job: job.fail(error_message, error_category), "failure"
        )

    def list_active_jobs(self, limit: int = 100) -> List[StitchJob]:
        """Jobs that are pending or processing."""
        return self.job_repo.find_by_status(
            [JobStatus.PENDING, JobStatus.PROCESSING], limit=limit
        )

    def sweep_expired_jobs(self, now: Optional[datetime] = None) -> List[StitchJob]:
        """
        Delete every job whose retention window has elapsed, whatever its status.

        Running it again without new expirations removes nothing.

        Args:
            now: Reference time, defaults to the current UTC time

        Returns:
            The jobs that were removed by this call
        """
        now = now or utcnow()
        removed = []

        for job in self.job_repo.get_expired_jobs(now):
            try:
                deleted = self.job_repo.delete(job.job_id)
            except Exception as e:
                # Left for the next sweep
                logger.warning(f"Could not delete expired job {job.job_id}: {e}")
                continue
            if not deleted:
                continue
            removed.append(job)
            logger.info(f"Swept expired job {job.job_id} ({job.status.value})")
            self._publish(
                JobExpiredEvent(
                    aggregate_id=job.job_id,
                    occurred_at=now,
                    status=job.status.value,
                    expires_at=job.expires_at,
                )
            )

        return removed

    def get_job_status_info(self, job_id: str) -> dict:
        """
        Get job status information for API response.

        ``download_url`` is present only for completed jobs and ``error``
        only for failed ones.

        Raises:
            JobNotFoundError: If job doesn't exist
        """
        return self.describe_job(self.get_job(job_id))

    @staticmethod
    def describe_job(job: StitchJob) -> dict:
        """Status view of a job as returned by the API."""
        info = {
            "job_id": job.job_id,
            "status": job.status.value,
            "progress": job.progress.percentage,
            "phase": job.progress.phase,
            "video_count": len(job.video_urls),
            "format": job.output_format.value,
            "quality": job.quality.value,
            "created_at": job.created_at.isoformat(),
            "updated_at": job.updated_at.isoformat(),
            "expires_at": job.expires_at.isoformat(),
        }
        if job.status == JobStatus.COMPLETED:
            info["download_url"] = job.download_url
        if job.status == JobStatus.FAILED:
            info["error"] = job.error_message
            info["error_category"] = job.error_category
        return info

    def _mutate(self, job_id: str, action: JobAction, label: str) -> Optional[StitchJob]:
        events = []

        def mutator(job: StitchJob) -> None:
            event = action(job)
            if event is not None:
                events.append(event)

        try:
            job = self.job_repo.update(job_id, mutator)
        except ValueError as e:
            raise JobStateError(str(e)) from e

        if job is None:
            logger.warning(f"Ignoring {label} for missing job {job_id}")
            return None

        for event in events:
            self._publish(event)
        return job

    def _publish(self, event: DomainEvent) -> None:
        if self.event_publisher is not None:
            self.event_publisher.publish(event)
