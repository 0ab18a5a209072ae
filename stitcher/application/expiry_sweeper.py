"""
Expiry Sweeper

Removes job records past their retention window together with their
artifacts, and scratch files nothing refers to anymore.
"""

import logging
import threading
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional

from stitcher.domain.file_storage.services import FileManager
from stitcher.domain.job_management import JobManager

logger = logging.getLogger(__name__)


@dataclass
class SweepReport:
    """Counts from one sweep run."""

    jobs_removed: int = 0
    artifacts_removed: int = 0
    orphaned_files_removed: int = 0
    errors: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "expired_jobs_removed": self.jobs_removed,
            "artifacts_removed": self.artifacts_removed,
            "orphaned_files_removed": self.orphaned_files_removed,
            "errors": list(self.errors),
        }


class ExpirySweeper:
    """
    Garbage collector for expired jobs.

    ``run_once`` never raises; failures end up in the report. In thread
    mode ``start`` runs it every ``interval_seconds`` on a daemon thread,
    in Celery mode the beat schedule calls it instead.
    """

    def __init__(
        self,
        job_manager: JobManager,
        file_manager: FileManager,
        retention: timedelta,
        interval_seconds: float = 3600,
    ):
        self.job_manager = job_manager
        self.file_manager = file_manager
        self.retention = retention
        self.interval_seconds = interval_seconds
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def run_once(self, now: Optional[datetime] = None) -> SweepReport:
        """
        Sweep expired jobs, their artifacts and orphaned files.

        Running it twice without new expirations changes nothing.
        """
        report = SweepReport()

        try:
            swept = self.job_manager.sweep_expired_jobs(now)
        except Exception as e:
            message = f"Error sweeping expired jobs: {e}"
            report.errors.append(message)
            logger.error(message, exc_info=True)
            swept = []
        report.jobs_removed = len(swept)

        for job in swept:
            try:
                if self.file_manager.delete_output(job.job_id, job.output_format):
                    report.artifacts_removed += 1
            except Exception as e:
                message = f"Error deleting artifact of job {job.job_id}: {e}"
                report.errors.append(message)
                logger.warning(message)

        try:
            report.orphaned_files_removed = self.file_manager.cleanup_orphaned_files(
                self.retention, now
            )
        except Exception as e:
            message = f"Error cleaning up orphaned files: {e}"
            report.errors.append(message)
            logger.error(message, exc_info=True)

        logger.info(
            f"Sweep completed - Jobs: {report.jobs_removed}, "
            f"Artifacts: {report.artifacts_removed}, "
            f"Orphaned: {report.orphaned_files_removed}, "
            f"Errors: {len(report.errors)}"
        )
        return report

    def start(self) -> None:
        """Start the periodic sweep on a daemon thread. No-op if running."""
        if self.is_running():
            return
        self._stop_event.clear()
        self._thread = threading.Thread(
            target=self._loop, name="expiry-sweeper", daemon=True
        )
        self._thread.start()
        logger.info(f"Expiry sweeper started, interval {self.interval_seconds}s")

    def stop(self, timeout: float = 5.0) -> None:
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None

    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def _loop(self) -> None:
        while not self._stop_event.wait(self.interval_seconds):
            self.run_once()
