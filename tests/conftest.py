"""
Shared pytest fixtures and configuration for the video stitcher test suite.

This module provides:
- Environment defaults so the app runs without Redis, Celery or ffmpeg
- Hypothesis configuration for property-based testing
- Shared fixtures for jobs, repositories and fake media adapters
- Directory based markers
"""

import os
import tempfile

# Must run before any module reads its configuration from the environment
os.environ.setdefault("JOB_STORE_BACKEND", "memory")
os.environ.setdefault("TASK_BACKEND", "thread")
os.environ.setdefault("SWEEPER_ENABLED", "false")
os.environ.setdefault("CELERY_BROKER_URL", "memory://")
os.environ.setdefault("CELERY_RESULT_BACKEND", "cache+memory://")
os.environ.setdefault("STITCH_STORAGE_ROOT", tempfile.mkdtemp(prefix="stitcher-tests-"))

from datetime import datetime, timedelta, timezone

import pytest
from hypothesis import HealthCheck, Phase, settings

from stitcher.domain.file_storage.services import FileManager
from stitcher.domain.job_management.services import JobManager
from stitcher.infrastructure.local_artifact_storage import LocalArtifactStorage
from stitcher.infrastructure.memory_job_repository import InMemoryJobRepository

from tests.fixtures.mock_adapters import FakeMediaProcessor, FakeVideoDownloader

settings.register_profile(
    "default",
    max_examples=100,
    deadline=None,
    suppress_health_check=[HealthCheck.too_slow],
    phases=[Phase.explicit, Phase.reuse, Phase.generate, Phase.target, Phase.shrink],
)
settings.register_profile(
    "ci",
    max_examples=200,
    deadline=None,
    suppress_health_check=[HealthCheck.too_slow],
)
settings.register_profile(
    "dev",
    max_examples=10,
    deadline=None,
    suppress_health_check=[HealthCheck.too_slow],
)
settings.load_profile(os.getenv("HYPOTHESIS_PROFILE", "default"))


# =============================================================================
# Sample Data Fixtures
# =============================================================================

@pytest.fixture
def sample_video_urls():
    """Two reachable-looking video URLs in submission order."""
    return ["https://h/a.mp4", "https://h/b.mp4"]


@pytest.fixture
def fixed_now():
    """Provide a fixed timezone-aware datetime for deterministic testing."""
    return datetime(2024, 1, 15, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def expired_datetime():
    """A datetime two hours in the past."""
    return datetime.now(timezone.utc) - timedelta(hours=2)


# =============================================================================
# Service Fixtures
# =============================================================================

@pytest.fixture
def job_repository():
    return InMemoryJobRepository()


@pytest.fixture
def job_manager(job_repository):
    return JobManager(job_repository)


@pytest.fixture
def artifact_storage(tmp_path):
    return LocalArtifactStorage(str(tmp_path / "storage"))


@pytest.fixture
def file_manager(artifact_storage):
    return FileManager(artifact_storage)


@pytest.fixture
def fake_downloader(artifact_storage):
    return FakeVideoDownloader(artifact_storage.scratch_dir)


@pytest.fixture
def fake_processor():
    return FakeMediaProcessor()


# =============================================================================
# Pytest Configuration Hooks
# =============================================================================

def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line(
        "markers", "unit: Unit tests (fast, no external dependencies)"
    )
    config.addinivalue_line(
        "markers", "property: Property-based tests using Hypothesis"
    )
    config.addinivalue_line(
        "markers", "contract: Shared behaviour of every JobRepository implementation"
    )
    config.addinivalue_line(
        "markers", "e2e: Full workflow through the HTTP API"
    )


def pytest_collection_modifyitems(config, items):
    """
    Automatically mark tests based on their location.

    - tests/unit/* -> @pytest.mark.unit
    - tests/property/* -> @pytest.mark.property
    - tests/contracts/* -> @pytest.mark.contract
    - tests/e2e/* -> @pytest.mark.e2e
    """
    markers = {
        "unit": pytest.mark.unit,
        "property": pytest.mark.property,
        "contracts": pytest.mark.contract,
        "e2e": pytest.mark.e2e,
    }
    for item in items:
        test_path = str(item.fspath)

        for directory, marker in markers.items():
            if f"/{directory}/" in test_path or f"\\{directory}\\" in test_path:
                item.add_marker(marker)
                break
