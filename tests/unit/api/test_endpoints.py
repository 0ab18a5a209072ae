"""
Unit tests for the API v1 endpoints.

Each test gets a fresh Flask app with the namespaces mounted on a new Api.
Services are real, backed by the in-memory store and a temporary storage
root; only the task dispatcher is mocked so nothing is processed.
"""

from datetime import timedelta
from unittest.mock import Mock

import pytest
from flask import Flask
from flask_restx import Api

from stitcher.api.v1.namespaces import download_ns, job_ns, maintenance_ns
from stitcher.application.expiry_sweeper import ExpirySweeper
from stitcher.application.job_service import JobService
from stitcher.domain.errors import ErrorCategory
from stitcher.domain.job_management.value_objects import JobStatus

from tests.fixtures.domain_fixtures import create_stitch_job


@pytest.fixture
def dispatcher():
    return Mock()


@pytest.fixture
def sweeper(job_manager, file_manager):
    return ExpirySweeper(job_manager, file_manager, retention=timedelta(hours=24))


@pytest.fixture
def flask_app(job_manager, file_manager, dispatcher, sweeper):
    """Create Flask app for testing."""
    app = Flask(__name__)
    app.config["TESTING"] = True

    api = Api(app, version="1.0", title="Video Stitcher API", doc="/doc")
    api.add_namespace(job_ns, path="/api/v1/jobs")
    api.add_namespace(download_ns, path="/api/v1/downloads")
    api.add_namespace(maintenance_ns, path="/api/v1/maintenance")

    container = Mock()
    container.resolve.side_effect = lambda cls: {ExpirySweeper: sweeper}[cls]

    app.container = container
    app.job_service = JobService(job_manager, dispatcher)
    app.file_manager = file_manager
    return app


@pytest.fixture
def client(flask_app):
    """Create test client."""
    return flask_app.test_client()


# =============================================================================
# POST /api/v1/jobs/
# =============================================================================

class TestCreateJob:
    def test_valid_submission_returns_202_pending(self, client, dispatcher):
        response = client.post(
            "/api/v1/jobs/",
            json={"videos": ["https://h/a.mp4", "https://h/b.mp4"], "format": "mp4"},
        )

        assert response.status_code == 202
        data = response.get_json()
        assert data["status"] == "pending"
        assert data["job_id"]
        dispatcher.dispatch.assert_called_once_with(data["job_id"])

        status = client.get(f"/api/v1/jobs/{data['job_id']}").get_json()
        assert status["status"] == "pending"
        assert status["progress"] == 0

    @pytest.mark.parametrize("body", [
        {"videos": ["https://h/a.mp4"]},
        {"videos": [f"https://h/{i}.mp4" for i in range(11)]},
        {"videos": "https://h/a.mp4"},
        {"videos": ["https://h/a.mp4", "https://h/b.mp4"], "format": "gif"},
        {"videos": ["https://h/a.mp4", "https://h/b.mp4"], "quality": "ultra"},
        {},
    ])
    def test_invalid_submission_returns_400_and_creates_nothing(
        self, client, job_repository, dispatcher, body
    ):
        response = client.post("/api/v1/jobs/", json=body)

        assert response.status_code == 400
        assert response.get_json()["error"] == ErrorCategory.INVALID_REQUEST.value
        assert job_repository.count() == 0
        dispatcher.dispatch.assert_not_called()

    def test_invalid_url_returns_400(self, client):
        response = client.post(
            "/api/v1/jobs/", json={"videos": ["https://h/a.mp4", "not a url"]}
        )
        assert response.status_code == 400
        assert response.get_json()["error"] == ErrorCategory.INVALID_URL.value

    def test_non_json_body_returns_400(self, client):
        response = client.post("/api/v1/jobs/", data="videos=1", content_type="text/plain")
        assert response.status_code == 400

    def test_dispatch_failure_returns_500(self, client, dispatcher, job_repository):
        dispatcher.dispatch.side_effect = ConnectionError("broker down")

        response = client.post(
            "/api/v1/jobs/", json={"videos": ["https://h/a.mp4", "https://h/b.mp4"]}
        )

        assert response.status_code == 500
        assert response.get_json()["error"] == ErrorCategory.SYSTEM_ERROR.value
        jobs = job_repository.find_by_status([JobStatus.FAILED])
        assert len(jobs) == 1

    def test_missing_service_returns_503(self, client, flask_app):
        flask_app.job_service = None
        response = client.post(
            "/api/v1/jobs/", json={"videos": ["https://h/a.mp4", "https://h/b.mp4"]}
        )
        assert response.status_code == 503


# =============================================================================
# GET /api/v1/jobs/<job_id> and /api/v1/jobs/active
# =============================================================================

class TestJobStatus:
    def test_unknown_job_returns_404(self, client):
        response = client.get("/api/v1/jobs/does-not-exist")
        assert response.status_code == 404
        assert response.get_json()["error"] == ErrorCategory.JOB_NOT_FOUND.value

    def test_completed_job_has_download_url(self, client, job_repository):
        job = create_stitch_job(JobStatus.COMPLETED)
        job_repository.save(job)

        data = client.get(f"/api/v1/jobs/{job.job_id}").get_json()

        assert data["status"] == "completed"
        assert data["progress"] == 100
        assert data["download_url"].endswith(f"{job.job_id}.mp4")
        assert "error" not in data

    def test_failed_job_has_error(self, client, job_repository):
        job = create_stitch_job(JobStatus.FAILED)
        job_repository.save(job)

        data = client.get(f"/api/v1/jobs/{job.job_id}").get_json()

        assert data["status"] == "failed"
        assert data["error"]
        assert "download_url" not in data

    def test_active_jobs(self, client, job_repository):
        pending = create_stitch_job()
        job_repository.save(pending)
        job_repository.save(create_stitch_job(JobStatus.COMPLETED))

        response = client.get("/api/v1/jobs/active")

        assert response.status_code == 200
        data = response.get_json()
        assert data["count"] == 1
        assert data["jobs"][0]["job_id"] == pending.job_id


# =============================================================================
# GET /api/v1/downloads/<filename>
# =============================================================================

class TestDownload:
    @pytest.mark.parametrize("extension,mimetype", [
        ("mp4", "video/mp4"),
        ("webm", "video/webm"),
        ("mov", "video/quicktime"),
    ])
    def test_streams_artifact_as_attachment(self, client, artifact_storage, extension, mimetype):
        name = f"stitched_abc.{extension}"
        (artifact_storage.output_dir / name).write_bytes(b"stitched bytes")

        response = client.get(f"/api/v1/downloads/{name}")

        assert response.status_code == 200
        assert response.data == b"stitched bytes"
        assert response.mimetype == mimetype
        assert "attachment" in response.headers["Content-Disposition"]
        assert name in response.headers["Content-Disposition"]
        response.close()

    def test_unknown_extension_is_octet_stream(self, client, artifact_storage):
        (artifact_storage.output_dir / "stitched_abc.bin").write_bytes(b"x")
        response = client.get("/api/v1/downloads/stitched_abc.bin")
        assert response.mimetype == "application/octet-stream"
        response.close()

    def test_missing_file_returns_404(self, client):
        response = client.get("/api/v1/downloads/stitched_missing.mp4")
        assert response.status_code == 404
        assert response.get_json()["error"] == ErrorCategory.FILE_NOT_FOUND.value


# =============================================================================
# POST /api/v1/maintenance/cleanup
# =============================================================================

class TestCleanup:
    def test_reports_counts(self, client, job_repository, fixed_now):
        job_repository.save(create_stitch_job(now=fixed_now, retention=timedelta(hours=1)))

        response = client.post("/api/v1/maintenance/cleanup")

        assert response.status_code == 200
        data = response.get_json()
        assert data["message"] == "Cleanup completed"
        assert data["expired_jobs_removed"] == 1
        assert data["errors"] == []

    def test_always_200(self, client, sweeper):
        sweeper.job_manager = Mock()
        sweeper.job_manager.sweep_expired_jobs.side_effect = RuntimeError("store down")

        response = client.post("/api/v1/maintenance/cleanup")

        assert response.status_code == 200
        assert response.get_json()["errors"]
