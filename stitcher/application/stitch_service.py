"""
Stitch Service

Application service that orchestrates the complete stitching workflow:
download, validate, concatenate, publish. Every outcome is recorded on the
job; nothing raised inside the workflow escapes ``execute_stitch``.
"""

import logging
import math
from pathlib import Path
from typing import List, Sequence

from stitcher.domain.errors import (
    DomainError,
    ErrorCategory,
    ValidationError,
    categorize_error,
)
from stitcher.domain.file_storage.services import FileManager
from stitcher.domain.job_management.entities import StitchJob
from stitcher.domain.job_management.services import JobManager
from stitcher.domain.job_management.value_objects import JobProgress
from stitcher.domain.media_processing.repositories import (
    IMediaProcessor,
    IVideoDownloader,
    ProgressCallback,
)
from stitcher.domain.media_processing.value_objects import MIN_VIDEO_URLS

from .stitch_result import StitchResult

logger = logging.getLogger(__name__)

# Concatenation progress [0, 100] is mapped onto job progress [60, 95]
CONCAT_BASE = 60
CONCAT_SPAN = 0.35


class StitchService:
    """
    Application service for orchestrating stitching workflows.

    Coordinates JobManager, FileManager, the video downloader and the media
    processor. Only the task running a job writes its progress.
    """

    def __init__(
        self,
        job_manager: JobManager,
        file_manager: FileManager,
        downloader: IVideoDownloader,
        media_processor: IMediaProcessor,
        cleanup_refetch_on_failure: bool = True,
    ):
        """
        Initialize Stitch Service with dependencies.

        Args:
            job_manager: Domain service for job lifecycle management
            file_manager: Domain service for artifact naming and storage
            downloader: Fetches source videos
            media_processor: Probes and concatenates media
            cleanup_refetch_on_failure: After a failure, download the sources
                once more and delete whatever that pass fetches
        """
        self.job_manager = job_manager
        self.file_manager = file_manager
        self.downloader = downloader
        self.media_processor = media_processor
        self.cleanup_refetch_on_failure = cleanup_refetch_on_failure

    def execute_stitch(self, job_id: str) -> StitchResult:
        """
        Execute the complete stitching workflow for a job.

        Workflow:
        1. Load the job and reject fewer than two URLs
        2. Start the job (10%, downloading) and fetch every source
        3. Probe every download (40%, validating)
        4. Concatenate in submission order (60-95%, concatenating)
        5. Publish the artifact URL and complete the job (100%)
        6. On error: fail the job with its message and category, then clean up

        Args:
            job_id: Unique job identifier

        Returns:
            StitchResult with success/failure information
        """
        job = self.job_manager.find_job(job_id)
        if job is None:
            logger.error(f"Job {job_id} not found, nothing to process")
            return StitchResult.create_failure(
                job_id, ErrorCategory.JOB_NOT_FOUND, f"Job {job_id} not found"
            )

        if job.is_terminal():
            # Redelivered task for a job that already finished
            logger.warning(f"Job {job_id} is already {job.status.value}, skipping")
            return StitchResult(
                success=job.download_url is not None,
                job_id=job_id,
                download_url=job.download_url,
                error_message=job.error_message,
            )

        downloaded: List[Path] = []
        try:
            if len(job.video_urls) < MIN_VIDEO_URLS:
                raise ValidationError(
                    f"At least {MIN_VIDEO_URLS} videos are required, got {len(job.video_urls)}"
                )

            if self.job_manager.start_job(job_id) is None:
                return self._vanished(job_id)

            downloaded = self.downloader.fetch_all(job.video_urls, job_id)

            self.job_manager.update_progress(job_id, JobProgress.validating())
            self._validate_all(job_id, downloaded)

            self.job_manager.update_progress(job_id, JobProgress.concatenating())
            output_path = self.file_manager.output_path(job_id, job.output_format)
            self.media_processor.concatenate(
                downloaded,
                output_path,
                job.output_format,
                job.quality,
                on_progress=self._concat_progress(job_id),
            )

            self.job_manager.update_progress(job_id, JobProgress.publishing())
            download_url = self.file_manager.public_url(output_path.name)
            if self.job_manager.complete_job(job_id, download_url) is None:
                self.file_manager.delete_output(job_id, job.output_format)
                self._cleanup_inputs(job_id, downloaded)
                return self._vanished(job_id)

            self._cleanup_inputs(job_id, downloaded)
            logger.info(f"Job {job_id} completed successfully: {download_url}")
            return StitchResult.create_success(job_id, download_url)

        except Exception as e:
            return self._handle_error(job, e, downloaded)

    def _validate_all(self, job_id: str, paths: Sequence[Path]) -> None:
        for path in paths:
            info = self.media_processor.probe(path)
            logger.debug(
                f"Job {job_id}: {path.name} is {info.width}x{info.height}, "
                f"{info.duration:.1f}s ({info.format})"
            )

    def _concat_progress(self, job_id: str) -> ProgressCallback:
        def on_progress(percent: float) -> None:
            # Halves round up
            mapped = math.floor(CONCAT_BASE + percent * CONCAT_SPAN + 0.5)
            self.job_manager.update_progress(job_id, JobProgress.concatenating(mapped))

        return on_progress

    def _vanished(self, job_id: str) -> StitchResult:
        logger.warning(f"Job {job_id} was removed while processing")
        return StitchResult.create_failure(
            job_id, ErrorCategory.JOB_NOT_FOUND, f"Job {job_id} not found"
        )

    def _handle_error(
        self, job: StitchJob, exception: Exception, downloaded: Sequence[Path]
    ) -> StitchResult:
        """
        Fail the job with a categorized message, then clean up best-effort.

        Returns:
            StitchResult indicating failure
        """
        job_id = job.job_id
        error_category = categorize_error(exception)

        if isinstance(exception, DomainError):
            error_message = str(exception)
            logger.error(f"Job {job_id} failed with {error_category.value}: {error_message}")
        else:
            error_message = f"Unexpected error: {type(exception).__name__}: {exception}"
            logger.error(f"Job {job_id} failed: {error_message}", exc_info=True)

        try:
            self.job_manager.fail_job(job_id, error_message, error_category.value)
        except Exception as e:
            logger.error(f"Failed to update job {job_id} status: {e}")

        self._cleanup_after_failure(job, downloaded)

        return StitchResult.create_failure(job_id, error_category, error_message)

    def _cleanup_inputs(self, job_id: str, paths: Sequence[Path]) -> None:
        try:
            removed = self.downloader.cleanup(paths)
            logger.debug(f"Job {job_id}: removed {removed} input file(s)")
        except Exception as e:
            logger.warning(f"Job {job_id}: failed to remove input files: {e}")

    def _cleanup_after_failure(self, job: StitchJob, downloaded: Sequence[Path]) -> None:
        """
        Remove everything the failed run may have left behind.

        Never raises and never touches the recorded error.
        """
        job_id = job.job_id
        self._cleanup_inputs(job_id, downloaded)

        try:
            self.file_manager.delete_output(job_id, job.output_format)
        except Exception as e:
            logger.warning(f"Job {job_id}: failed to remove partial output: {e}")

        if not self.cleanup_refetch_on_failure or not job.video_urls:
            return

        # The downloader keeps no record of what it wrote, so fetch the
        # sources again and delete whatever that pass returns
        try:
            refetched = self.downloader.fetch_all(job.video_urls, job_id)
        except Exception as e:
            logger.debug(f"Job {job_id}: cleanup refetch failed: {e}")
            return
        self._cleanup_inputs(job_id, refetched)
