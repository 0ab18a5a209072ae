"""
Unit tests for StitchService

Runs the whole workflow against the in-memory job store, real local
storage and the fake downloader and media processor from tests.fixtures.
"""

from unittest.mock import Mock

import pytest

from stitcher.application.stitch_service import StitchService
from stitcher.domain.errors import ErrorCategory
from stitcher.domain.events import JobProgressUpdatedEvent
from stitcher.domain.job_management.entities import StitchJob
from stitcher.domain.job_management.services import JobManager
from stitcher.domain.job_management.value_objects import JobStatus
from stitcher.domain.media_processing.value_objects import OutputFormat, QualityPreset

from tests.fixtures.mock_adapters import NOT_A_VIDEO, FakeMediaProcessor, FakeVideoDownloader

A = "https://h/a.mp4"
B = "https://h/b.mp4"


@pytest.fixture
def publisher():
    return Mock()


@pytest.fixture
def manager(job_repository, publisher):
    return JobManager(job_repository, publisher)


def build_service(manager, file_manager, downloader, processor, **kwargs):
    return StitchService(manager, file_manager, downloader, processor, **kwargs)


def scratch_files(artifact_storage):
    return sorted(p.name for p in artifact_storage.scratch_dir.iterdir())


class TestHappyPath:
    def test_two_videos_complete_with_download_url(
        self, manager, file_manager, artifact_storage, fake_downloader, fake_processor
    ):
        job = manager.create_job([A, B])
        service = build_service(manager, file_manager, fake_downloader, fake_processor)

        result = service.execute_stitch(job.job_id)

        stored = manager.get_job(job.job_id)
        assert result.success
        assert stored.status == JobStatus.COMPLETED
        assert stored.progress.percentage == 100
        assert stored.download_url.endswith(f"{job.job_id}.mp4")
        assert stored.error_message is None
        assert result.download_url == stored.download_url

        output = artifact_storage.output_dir / f"stitched_{job.job_id}.mp4"
        assert output.read_bytes() == b"https://h/a.mp4\nhttps://h/b.mp4"
        assert scratch_files(artifact_storage) == []

    def test_concatenation_follows_submission_order(
        self, manager, file_manager, artifact_storage, fake_processor
    ):
        urls = ["https://h/1.mp4", "https://h/2.mp4", "https://h/3.mp4"]
        downloader = FakeVideoDownloader(
            artifact_storage.scratch_dir,
            delays={urls[0]: 0.15, urls[1]: 0.05},
        )
        job = manager.create_job(urls)

        build_service(manager, file_manager, downloader, fake_processor).execute_stitch(job.job_id)

        assert downloader.completion_order == [urls[2], urls[1], urls[0]]
        joined = [p.name for p in fake_processor.concatenated[0]]
        assert joined == [f"{job.job_id}_0.mp4", f"{job.job_id}_1.mp4", f"{job.job_id}_2.mp4"]
        output = artifact_storage.output_dir / f"stitched_{job.job_id}.mp4"
        assert output.read_bytes().split(b"\n") == [u.encode() for u in urls]

    def test_progress_is_monotonic_and_mapped(
        self, manager, publisher, file_manager, fake_downloader, fake_processor
    ):
        job = manager.create_job([A, B])
        build_service(manager, file_manager, fake_downloader, fake_processor).execute_stitch(
            job.job_id
        )

        recorded = [
            call.args[0].percentage for call in publisher.publish.call_args_list
            if isinstance(call.args[0], JobProgressUpdatedEvent)
        ]
        assert recorded == sorted(recorded)
        assert recorded[0] == 40
        assert 78 in recorded
        assert max(recorded) == 95

    def test_concat_progress_rounds_halves_up(self, manager, publisher, file_manager, fake_downloader):
        job = manager.create_job([A, B])
        processor = FakeMediaProcessor(progress_ticks=(30, 70))

        build_service(manager, file_manager, fake_downloader, processor).execute_stitch(job.job_id)

        recorded = [
            call.args[0].percentage for call in publisher.publish.call_args_list
            if isinstance(call.args[0], JobProgressUpdatedEvent)
        ]
        assert 71 in recorded
        assert 85 in recorded
        assert 70 not in recorded

    def test_format_and_quality_reach_processor(
        self, manager, file_manager, artifact_storage, fake_downloader
    ):
        processor = Mock(wraps=FakeMediaProcessor())
        job = manager.create_job([A, B], OutputFormat.WEBM, QualityPreset.LOW)

        result = build_service(manager, file_manager, fake_downloader, processor).execute_stitch(
            job.job_id
        )

        args = processor.concatenate.call_args.args
        assert args[1] == artifact_storage.output_dir / f"stitched_{job.job_id}.webm"
        assert args[2] == OutputFormat.WEBM
        assert args[3] == QualityPreset.LOW
        assert result.download_url.endswith(".webm")


class TestFailures:
    def test_non_video_source_names_offending_file(
        self, manager, file_manager, artifact_storage, fake_processor
    ):
        downloader = FakeVideoDownloader(artifact_storage.scratch_dir, contents={B: NOT_A_VIDEO})
        job = manager.create_job([A, B])

        result = build_service(manager, file_manager, downloader, fake_processor).execute_stitch(
            job.job_id
        )

        stored = manager.get_job(job.job_id)
        assert not result.success
        assert result.error_category == ErrorCategory.INVALID_MEDIA
        assert stored.status == JobStatus.FAILED
        assert f"{job.job_id}_1.mp4" in stored.error_message
        assert stored.error_category == "invalid_media"
        assert stored.download_url is None
        assert stored.progress.percentage == 40
        assert fake_processor.concatenated == []
        assert scratch_files(artifact_storage) == []

    def test_unreachable_host_times_out_without_partial_files(
        self, manager, file_manager, artifact_storage, fake_processor
    ):
        unreachable = "https://unreachable.invalid/b.mp4"
        downloader = FakeVideoDownloader(artifact_storage.scratch_dir, timeouts=[unreachable])
        job = manager.create_job([A, unreachable])

        build_service(manager, file_manager, downloader, fake_processor).execute_stitch(job.job_id)

        stored = manager.get_job(job.job_id)
        assert stored.status == JobStatus.FAILED
        assert "timed out" in stored.error_message
        assert stored.error_category == "download_timeout"
        assert stored.progress.percentage == 10
        assert scratch_files(artifact_storage) == []
        assert list(artifact_storage.output_dir.iterdir()) == []

    def test_concatenation_failure_removes_partial_output(
        self, manager, file_manager, artifact_storage, fake_downloader
    ):
        processor = FakeMediaProcessor(fail_exit_code=1)
        job = manager.create_job([A, B])

        result = build_service(manager, file_manager, fake_downloader, processor).execute_stitch(
            job.job_id
        )

        stored = manager.get_job(job.job_id)
        assert result.error_category == ErrorCategory.CONCATENATION_FAILED
        assert stored.error_message == "FFmpeg process exited with code 1"
        assert stored.progress.percentage == 95
        assert list(artifact_storage.output_dir.iterdir()) == []
        assert scratch_files(artifact_storage) == []

    def test_unexpected_error_is_recorded(
        self, manager, file_manager, fake_downloader
    ):
        processor = Mock(wraps=FakeMediaProcessor())
        processor.probe.side_effect = RuntimeError("disk on fire")
        job = manager.create_job([A, B])

        result = build_service(manager, file_manager, fake_downloader, processor).execute_stitch(
            job.job_id
        )

        stored = manager.get_job(job.job_id)
        assert result.error_category == ErrorCategory.SYSTEM_ERROR
        assert stored.error_message == "Unexpected error: RuntimeError: disk on fire"

    def test_too_few_urls_fail_before_download(
        self, manager, job_repository, file_manager, fake_downloader, fake_processor
    ):
        job = StitchJob.create([A])
        job_repository.save(job)

        result = build_service(
            manager, file_manager, fake_downloader, fake_processor,
            cleanup_refetch_on_failure=False,
        ).execute_stitch(job.job_id)

        stored = manager.get_job(job.job_id)
        assert result.error_category == ErrorCategory.INVALID_REQUEST
        assert stored.status == JobStatus.FAILED
        assert stored.progress.percentage == 0
        assert fake_downloader.fetch_calls == []


class TestFailureCleanup:
    def test_refetch_pass_runs_and_is_deleted(
        self, manager, file_manager, artifact_storage, fake_processor
    ):
        downloader = FakeVideoDownloader(artifact_storage.scratch_dir, contents={A: NOT_A_VIDEO})
        job = manager.create_job([A, B])

        build_service(manager, file_manager, downloader, fake_processor).execute_stitch(job.job_id)

        assert downloader.fetch_calls == [[A, B], [A, B]]
        assert scratch_files(artifact_storage) == []

    def test_refetch_can_be_disabled(
        self, manager, file_manager, artifact_storage, fake_processor
    ):
        downloader = FakeVideoDownloader(artifact_storage.scratch_dir, contents={A: NOT_A_VIDEO})
        job = manager.create_job([A, B])

        build_service(
            manager, file_manager, downloader, fake_processor, cleanup_refetch_on_failure=False
        ).execute_stitch(job.job_id)

        assert len(downloader.fetch_calls) == 1
        assert scratch_files(artifact_storage) == []

    def test_cleanup_errors_do_not_replace_recorded_error(
        self, manager, file_manager, artifact_storage, fake_processor
    ):
        downloader = FakeVideoDownloader(artifact_storage.scratch_dir, contents={A: NOT_A_VIDEO})
        downloader.cleanup = Mock(side_effect=OSError("read-only"))
        job = manager.create_job([A, B])

        result = build_service(manager, file_manager, downloader, fake_processor).execute_stitch(
            job.job_id
        )

        assert result.error_category == ErrorCategory.INVALID_MEDIA
        assert "Invalid video file" in manager.get_job(job.job_id).error_message


class TestEdgeCases:
    def test_missing_job(self, manager, file_manager, fake_downloader, fake_processor):
        result = build_service(manager, file_manager, fake_downloader, fake_processor).execute_stitch(
            "missing"
        )
        assert not result.success
        assert result.error_category == ErrorCategory.JOB_NOT_FOUND
        assert fake_downloader.fetch_calls == []

    def test_redelivered_terminal_job_is_skipped(
        self, manager, file_manager, fake_downloader, fake_processor
    ):
        job = manager.create_job([A, B])
        service = build_service(manager, file_manager, fake_downloader, fake_processor)
        first = service.execute_stitch(job.job_id)

        second = service.execute_stitch(job.job_id)

        assert second.success
        assert second.download_url == first.download_url
        assert len(fake_downloader.fetch_calls) == 1

    def test_job_deleted_mid_run_leaves_no_artifact(
        self, manager, job_repository, file_manager, artifact_storage, fake_processor
    ):
        downloader = FakeVideoDownloader(artifact_storage.scratch_dir)
        original_fetch = downloader.fetch_all

        def fetch_then_delete(urls, job_id):
            paths = original_fetch(urls, job_id)
            job_repository.delete(job_id)
            return paths

        downloader.fetch_all = fetch_then_delete
        job = manager.create_job([A, B])

        result = build_service(manager, file_manager, downloader, fake_processor).execute_stitch(
            job.job_id
        )

        assert not result.success
        assert result.error_category == ErrorCategory.JOB_NOT_FOUND
        assert list(artifact_storage.output_dir.iterdir()) == []
        assert scratch_files(artifact_storage) == []
