"""
Job Management Entities

Domain entities for stitching job management.
"""

import uuid
from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta, timezone
from typing import List, Optional, Sequence

from stitcher.domain.events import (
    JobCompletedEvent,
    JobFailedEvent,
    JobProgressUpdatedEvent,
    JobStartedEvent,
)
from stitcher.domain.media_processing.value_objects import OutputFormat, QualityPreset

from .value_objects import JobProgress, JobStatus

DEFAULT_RETENTION = timedelta(hours=24)


def utcnow() -> datetime:
    """Timezone-aware current UTC time."""
    return datetime.now(timezone.utc)


@dataclass
class StitchJob:
    """
    Entity representing a stitching job.

    Manages the job lifecycle with status transitions and progress tracking.
    Terminal states (completed, failed) accept no further transitions.
    """

    job_id: str
    video_urls: List[str]
    output_format: OutputFormat
    quality: QualityPreset
    status: JobStatus
    progress: JobProgress
    created_at: datetime
    updated_at: datetime
    expires_at: datetime
    download_url: Optional[str] = None
    error_message: Optional[str] = None
    error_category: Optional[str] = None

    @classmethod
    def create(
        cls,
        video_urls: Sequence[str],
        output_format: OutputFormat = OutputFormat.MP4,
        quality: QualityPreset = QualityPreset.AUTO,
        retention: timedelta = DEFAULT_RETENTION,
        now: Optional[datetime] = None,
    ) -> "StitchJob":
        """
        Factory method to create a new pending job.

        Args:
            video_urls: Source URLs in concatenation order
            output_format: Target container format
            quality: Quality preset
            retention: How long the record lives before the sweeper reaps it
            now: Creation time, defaults to the current UTC time

        Returns:
            New StitchJob instance
        """
        created_at = now or utcnow()
        return cls(
            job_id=str(uuid.uuid4()),
            video_urls=list(video_urls),
            output_format=output_format,
            quality=quality,
            status=JobStatus.PENDING,
            progress=JobProgress.initial(),
            created_at=created_at,
            updated_at=created_at,
            expires_at=created_at + retention,
        )

    def start(self) -> Optional[JobStartedEvent]:
        """
        Transition job to processing state at the downloading stage.

        Idempotent when the job is already processing.

        Returns:
            JobStartedEvent if a transition occurred, None if already processing

        Raises:
            ValueError: If job is in a terminal state
        """
        if self.status not in [JobStatus.PENDING, JobStatus.PROCESSING]:
            raise ValueError(f"Cannot start job in {self.status.value} state")

        if self.status == JobStatus.PROCESSING:
            return None

        self.status = JobStatus.PROCESSING
        self.progress = JobProgress.downloading()
        self.updated_at = utcnow()

        return JobStartedEvent(
            aggregate_id=self.job_id,
            occurred_at=self.updated_at,
            video_count=len(self.video_urls),
            output_format=self.output_format.value,
            quality=self.quality.value,
        )

    def update_progress(self, progress: JobProgress) -> JobProgressUpdatedEvent:
        """
        Record progress while processing.

        The percentage never moves backwards: a lower value keeps the
        recorded percentage and only updates the phase.

        Raises:
            ValueError: If job is not processing, or progress claims 100
        """
        if self.status != JobStatus.PROCESSING:
            raise ValueError(
                f"Cannot update progress for job in {self.status.value} state"
            )
        if progress.percentage >= 100:
            raise ValueError("Progress 100 is reserved for completed jobs")

        if progress.percentage < self.progress.percentage:
            progress = replace(progress, percentage=self.progress.percentage)

        self.progress = progress
        self.updated_at = utcnow()

        return JobProgressUpdatedEvent(
            aggregate_id=self.job_id,
            occurred_at=self.updated_at,
            percentage=progress.percentage,
            phase=progress.phase,
        )

    def complete(self, download_url: str) -> JobCompletedEvent:
        """
        Mark job as completed.

        Args:
            download_url: Public reference to the stitched artifact

        Raises:
            ValueError: If job is not processing or the URL is empty
        """
        if self.status != JobStatus.PROCESSING:
            raise ValueError(f"Cannot complete job in {self.status.value} state")
        if not download_url:
            raise ValueError("download_url is required to complete a job")

        self.status = JobStatus.COMPLETED
        self.progress = JobProgress.completed()
        self.download_url = download_url
        self.updated_at = utcnow()

        return JobCompletedEvent(
            aggregate_id=self.job_id,
            occurred_at=self.updated_at,
            download_url=download_url,
        )

    def fail(self, error_message: str, error_category: Optional[str] = None) -> JobFailedEvent:
        """
        Mark job as failed.

        Progress keeps whatever value was last recorded.

        Args:
            error_message: Error description
            error_category: Optional error category for tracking

        Raises:
            ValueError: If job is already in a terminal state
        """
        if self.status.is_terminal():
            raise ValueError(f"Cannot fail job in {self.status.value} state")

        self.status = JobStatus.FAILED
        self.error_message = error_message or "Unknown error"
        self.error_category = error_category
        self.updated_at = utcnow()

        return JobFailedEvent(
            aggregate_id=self.job_id,
            occurred_at=self.updated_at,
            error_message=self.error_message,
            error_category=error_category or "unknown",
        )

    def is_terminal(self) -> bool:
        """Check if job is in terminal state (completed or failed)."""
        return self.status.is_terminal()

    def is_active(self) -> bool:
        """Check if job is pending or processing."""
        return self.status.is_active()

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        """Check if the retention window has elapsed."""
        return self.expires_at < (now or utcnow())

    @property
    def output_filename(self) -> str:
        return f"stitched_{self.job_id}.{self.output_format.value}"

    def copy(self) -> "StitchJob":
        """Detached copy, so readers cannot mutate a stored record."""
        return replace(self, video_urls=list(self.video_urls))

    def to_dict(self) -> dict:
        """Convert job to dictionary for serialization."""
        return {
            "job_id": self.job_id,
            "video_urls": list(self.video_urls),
            "output_format": self.output_format.value,
            "quality": self.quality.value,
            "status": self.status.value,
            "progress": self.progress.to_dict(),
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
            "expires_at": self.expires_at.isoformat(),
            "download_url": self.download_url,
            "error_message": self.error_message,
            "error_category": self.error_category,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "StitchJob":
        """Create StitchJob from dictionary."""
        return cls(
            job_id=data["job_id"],
            video_urls=list(data["video_urls"]),
            output_format=OutputFormat(data["output_format"]),
            quality=QualityPreset(data["quality"]),
            status=JobStatus(data["status"]),
            progress=JobProgress.from_dict(data["progress"]),
            created_at=datetime.fromisoformat(data["created_at"]),
            updated_at=datetime.fromisoformat(data["updated_at"]),
            expires_at=datetime.fromisoformat(data["expires_at"]),
            download_url=data.get("download_url"),
            error_message=data.get("error_message"),
            error_category=data.get("error_category"),
        )
