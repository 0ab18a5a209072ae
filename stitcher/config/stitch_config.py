"""
Stitch Configuration

Settings for job processing: storage locations, timeouts, external tool
paths and the job store and dispatcher backends.
"""

import os
from datetime import timedelta
from typing import Optional


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def _env_float(name: str) -> Optional[float]:
    value = os.getenv(name)
    if value is None or value.strip() == "":
        return None
    return float(value)


class StitchConfig:
    """Job processing settings."""

    def __init__(self):
        self.storage_root = os.getenv("STITCH_STORAGE_ROOT", "/tmp/video-stitcher")
        self.download_timeout = float(os.getenv("DOWNLOAD_TIMEOUT_SECONDS", 30))
        self.max_parallel_downloads = int(os.getenv("MAX_PARALLEL_DOWNLOADS", 10))
        self.retention_hours = float(os.getenv("JOB_RETENTION_HOURS", 24))
        self.sweep_interval = int(os.getenv("SWEEP_INTERVAL_SECONDS", 3600))

        self.ffmpeg_path = os.getenv("FFMPEG_PATH", "ffmpeg")
        self.ffprobe_path = os.getenv("FFPROBE_PATH", "ffprobe")
        self.probe_timeout = float(os.getenv("FFPROBE_TIMEOUT_SECONDS", 60))
        # Unset means concatenation may run indefinitely
        self.concat_timeout = _env_float("FFMPEG_CONCAT_TIMEOUT")

        self.job_store_backend = os.getenv("JOB_STORE_BACKEND", "redis").lower()
        self.task_backend = os.getenv("TASK_BACKEND", "celery").lower()
        self.max_concurrent_jobs = int(os.getenv("MAX_CONCURRENT_JOBS", 4))

        self.cleanup_refetch_on_failure = _env_bool("CLEANUP_REFETCH_ON_FAILURE", True)
        self.sweeper_enabled = _env_bool("SWEEPER_ENABLED", True)
        self.public_download_base = os.getenv("PUBLIC_DOWNLOAD_BASE", "/api/v1/downloads")

    @property
    def retention(self) -> timedelta:
        return timedelta(hours=self.retention_hours)

    @property
    def job_ttl_seconds(self) -> int:
        """Redis key TTL: retention plus one sweep interval."""
        return int(self.retention.total_seconds()) + self.sweep_interval
