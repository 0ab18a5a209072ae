"""
Job Application Service

Coordinates the submission and query use cases of the API.
"""

import logging
from typing import Any, Dict, Iterable, Optional

from stitcher.domain.errors import ApplicationError, ErrorCategory, JobNotFoundError
from stitcher.domain.job_management import JobManager
from stitcher.domain.media_processing.value_objects import StitchRequest
from stitcher.infrastructure.task_dispatcher import TaskDispatcher

logger = logging.getLogger(__name__)


class JobService:
    """
    Application service for job management operations.

    Validates submissions, creates jobs and hands them to the dispatcher.
    """

    def __init__(self, job_manager: JobManager, dispatcher: TaskDispatcher):
        """
        Initialize JobService.

        Args:
            job_manager: JobManager domain service
            dispatcher: Runs the stitching workflow outside the request
        """
        self.job_manager = job_manager
        self.dispatcher = dispatcher

    def create_stitch_job(
        self,
        videos: Optional[Iterable[str]],
        output_format: Optional[str] = None,
        quality: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Validate a submission, create the job and dispatch it.

        Returns:
            Dictionary with job information

        Raises:
            ValidationError: If the submission is invalid; no job is created
            ApplicationError: If the job could not be dispatched; the job
                is marked failed
        """
        request = StitchRequest.from_input(videos, output_format, quality)

        job = self.job_manager.create_job(
            request.video_urls, request.output_format, request.quality
        )

        try:
            self.dispatcher.dispatch(job.job_id)
        except Exception as e:
            logger.error(f"Failed to dispatch job {job.job_id}: {e}", exc_info=True)
            self.job_manager.fail_job(
                job.job_id,
                f"Failed to queue job: {e}",
                ErrorCategory.SYSTEM_ERROR.value,
            )
            raise ApplicationError(
                ErrorCategory.SYSTEM_ERROR,
                f"Failed to queue job {job.job_id}",
                {"job_id": job.job_id},
            ) from e

        return {
            "job_id": job.job_id,
            "status": job.status.value,
            "message": "Stitching job created successfully",
        }

    def get_job_status(self, job_id: str) -> Dict[str, Any]:
        """
        Get job status information.

        Raises:
            JobNotFoundError: If job doesn't exist
        """
        try:
            return self.job_manager.get_job_status_info(job_id)
        except JobNotFoundError:
            logger.warning(f"Job not found: {job_id}")
            raise

    def list_active_jobs(self) -> Dict[str, Any]:
        jobs = [
            self.job_manager.describe_job(job)
            for job in self.job_manager.list_active_jobs()
        ]
        return {"jobs": jobs, "count": len(jobs)}
