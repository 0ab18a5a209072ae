"""
Unit tests for JobService

The dispatcher is mocked; jobs live in the in-memory store.
"""

from unittest.mock import Mock

import pytest

from stitcher.application.job_service import JobService
from stitcher.domain.errors import (
    ApplicationError,
    ErrorCategory,
    InvalidUrlError,
    JobNotFoundError,
    ValidationError,
)
from stitcher.domain.job_management.value_objects import JobStatus


@pytest.fixture
def dispatcher():
    return Mock()


@pytest.fixture
def job_service(job_manager, dispatcher):
    return JobService(job_manager, dispatcher)


class TestCreateStitchJob:
    def test_valid_submission_is_pending_and_dispatched(
        self, job_service, job_manager, dispatcher, sample_video_urls
    ):
        result = job_service.create_stitch_job(sample_video_urls, "mp4", "auto")

        assert result["status"] == "pending"
        assert result["message"] == "Stitching job created successfully"
        dispatcher.dispatch.assert_called_once_with(result["job_id"])

        status = job_service.get_job_status(result["job_id"])
        assert status["status"] == "pending"
        assert status["progress"] == 0

    def test_defaults_when_format_and_quality_missing(self, job_service, job_manager):
        result = job_service.create_stitch_job(["https://h/a.mp4", "https://h/b.mp4"])
        job = job_manager.get_job(result["job_id"])
        assert job.output_format.value == "mp4"
        assert job.quality.value == "auto"

    @pytest.mark.parametrize("videos", [
        ["https://h/a.mp4"],
        [f"https://h/{i}.mp4" for i in range(11)],
        None,
    ])
    def test_invalid_shape_creates_no_job(self, job_service, job_repository, dispatcher, videos):
        with pytest.raises(ValidationError):
            job_service.create_stitch_job(videos)
        assert job_repository.count() == 0
        dispatcher.dispatch.assert_not_called()

    def test_invalid_url_creates_no_job(self, job_service, job_repository):
        with pytest.raises(InvalidUrlError):
            job_service.create_stitch_job(["https://h/a.mp4", "javascript:alert(1)"])
        assert job_repository.count() == 0

    def test_dispatch_failure_fails_job(self, job_service, job_repository, dispatcher):
        dispatcher.dispatch.side_effect = ConnectionError("broker down")

        with pytest.raises(ApplicationError) as exc_info:
            job_service.create_stitch_job(["https://h/a.mp4", "https://h/b.mp4"])

        assert exc_info.value.category == ErrorCategory.SYSTEM_ERROR
        job_id = exc_info.value.context["job_id"]
        job = job_repository.get(job_id)
        assert job.status == JobStatus.FAILED
        assert "broker down" in job.error_message


class TestQueries:
    def test_missing_job(self, job_service):
        with pytest.raises(JobNotFoundError):
            job_service.get_job_status("missing")

    def test_list_active_jobs(self, job_service, job_manager):
        first = job_service.create_stitch_job(["https://h/a.mp4", "https://h/b.mp4"])
        second = job_service.create_stitch_job(["https://h/c.mp4", "https://h/d.mp4"])
        job_manager.start_job(second["job_id"])
        job_manager.fail_job(second["job_id"], "boom")

        active = job_service.list_active_jobs()

        assert active["count"] == 1
        assert active["jobs"][0]["job_id"] == first["job_id"]
