"""
Unit tests for the StitchJob entity lifecycle.
"""

from datetime import timedelta

import pytest

from stitcher.domain.events import (
    JobCompletedEvent,
    JobFailedEvent,
    JobProgressUpdatedEvent,
    JobStartedEvent,
)
from stitcher.domain.job_management.entities import StitchJob
from stitcher.domain.job_management.value_objects import JobProgress, JobStatus
from stitcher.domain.media_processing.value_objects import OutputFormat, QualityPreset

from tests.fixtures.domain_fixtures import create_stitch_job


class TestCreate:
    def test_new_job_is_pending_at_zero(self, sample_video_urls, fixed_now):
        job = StitchJob.create(sample_video_urls, now=fixed_now)

        assert job.status == JobStatus.PENDING
        assert job.progress.percentage == 0
        assert job.created_at == fixed_now
        assert job.updated_at == fixed_now
        assert job.expires_at == fixed_now + timedelta(hours=24)
        assert job.download_url is None
        assert job.error_message is None

    def test_job_ids_are_unique(self, sample_video_urls):
        ids = {StitchJob.create(sample_video_urls).job_id for _ in range(50)}
        assert len(ids) == 50

    def test_urls_are_copied(self):
        urls = ["https://h/a.mp4", "https://h/b.mp4"]
        job = StitchJob.create(urls)
        urls.append("https://h/c.mp4")
        assert len(job.video_urls) == 2

    def test_output_filename(self):
        job = StitchJob.create(["https://h/a.mp4", "https://h/b.mp4"], OutputFormat.WEBM)
        assert job.output_filename == f"stitched_{job.job_id}.webm"


class TestStart:
    def test_start_moves_to_downloading(self):
        job = create_stitch_job()
        event = job.start()

        assert isinstance(event, JobStartedEvent)
        assert event.video_count == 2
        assert job.status == JobStatus.PROCESSING
        assert job.progress == JobProgress.downloading()

    def test_start_is_idempotent_while_processing(self):
        job = create_stitch_job(JobStatus.PROCESSING)
        assert job.start() is None
        assert job.status == JobStatus.PROCESSING

    @pytest.mark.parametrize("status", [JobStatus.COMPLETED, JobStatus.FAILED])
    def test_start_rejected_once_terminal(self, status):
        job = create_stitch_job(status)
        with pytest.raises(ValueError):
            job.start()


class TestProgress:
    def test_progress_requires_processing(self):
        job = create_stitch_job()
        with pytest.raises(ValueError):
            job.update_progress(JobProgress.validating())

    def test_progress_never_decreases(self):
        job = create_stitch_job(JobStatus.PROCESSING)
        job.update_progress(JobProgress.concatenating(80))
        event = job.update_progress(JobProgress.concatenating(70))

        assert isinstance(event, JobProgressUpdatedEvent)
        assert job.progress.percentage == 80
        assert job.progress.phase == "concatenating"

    def test_hundred_is_reserved_for_completion(self):
        job = create_stitch_job(JobStatus.PROCESSING)
        with pytest.raises(ValueError):
            job.update_progress(JobProgress(percentage=100, phase="concatenating"))


class TestComplete:
    def test_complete_sets_url_and_hundred(self):
        job = create_stitch_job(JobStatus.PROCESSING)
        event = job.complete("/api/v1/downloads/x.mp4")

        assert isinstance(event, JobCompletedEvent)
        assert job.status == JobStatus.COMPLETED
        assert job.progress.percentage == 100
        assert job.download_url == "/api/v1/downloads/x.mp4"
        assert job.error_message is None

    def test_complete_requires_processing(self):
        with pytest.raises(ValueError):
            create_stitch_job().complete("/x")

    def test_complete_requires_url(self):
        job = create_stitch_job(JobStatus.PROCESSING)
        with pytest.raises(ValueError):
            job.complete("")


class TestFail:
    def test_fail_keeps_last_progress(self):
        job = create_stitch_job(JobStatus.PROCESSING)
        job.update_progress(JobProgress.validating())
        event = job.fail("Invalid video file: a.mp4", "invalid_media")

        assert isinstance(event, JobFailedEvent)
        assert job.status == JobStatus.FAILED
        assert job.progress.percentage == 40
        assert job.error_message == "Invalid video file: a.mp4"
        assert job.error_category == "invalid_media"
        assert job.download_url is None

    def test_pending_job_can_fail(self):
        job = create_stitch_job()
        job.fail("dispatch failed", "system_error")
        assert job.status == JobStatus.FAILED
        assert job.progress.percentage == 0

    @pytest.mark.parametrize("status", [JobStatus.COMPLETED, JobStatus.FAILED])
    def test_terminal_job_cannot_fail(self, status):
        job = create_stitch_job(status)
        with pytest.raises(ValueError):
            job.fail("late error")

    def test_empty_message_is_replaced(self):
        job = create_stitch_job(JobStatus.PROCESSING)
        job.fail("")
        assert job.error_message == "Unknown error"


class TestExpiry:
    def test_is_expired(self, fixed_now):
        job = create_stitch_job(now=fixed_now, retention=timedelta(hours=1))
        assert not job.is_expired(fixed_now + timedelta(minutes=59))
        assert job.is_expired(fixed_now + timedelta(hours=1, seconds=1))


class TestSerialization:
    @pytest.mark.parametrize("status", list(JobStatus))
    def test_round_trip(self, status):
        job = create_stitch_job(status, quality=QualityPreset.LOW)
        restored = StitchJob.from_dict(job.to_dict())
        assert restored == job

    def test_copy_is_detached(self):
        job = create_stitch_job()
        copy = job.copy()
        copy.video_urls.append("https://h/c.mp4")
        copy.start()
        assert len(job.video_urls) == 2
        assert job.status == JobStatus.PENDING
