"""
Task Dispatchers

Run a job's orchestration outside the request that created it, either on
a Celery worker or on a local thread pool.
"""

import logging
from abc import ABC, abstractmethod
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any, Callable, Optional

logger = logging.getLogger(__name__)

STITCH_TASK_NAME = "stitcher.tasks.stitch_videos"
STITCH_QUEUE = "stitch_queue"


class TaskDispatcher(ABC):
    """Hands a job id to whatever executes the stitching workflow."""

    @abstractmethod
    def dispatch(self, job_id: str) -> None:
        """
        Schedule processing of a job. Returns immediately.

        Raises:
            Exception: If the job could not be scheduled
        """
        pass  # pragma: no cover

    def is_available(self) -> bool:
        return True

    def shutdown(self, wait: bool = True) -> None:
        pass


class CeleryTaskDispatcher(TaskDispatcher):
    """
    Sends the stitch task to the Celery broker by name.

    Sending by name keeps the API process from importing the task modules.
    """

    def __init__(self, celery_app):
        self.celery = celery_app

    def dispatch(self, job_id: str) -> None:
        result = self.celery.send_task(STITCH_TASK_NAME, args=[job_id], queue=STITCH_QUEUE)
        logger.info(f"Queued job {job_id} as Celery task {result.id}")

    def is_available(self) -> bool:
        return self.celery is not None


class ThreadTaskDispatcher(TaskDispatcher):
    """
    Runs jobs on a bounded in-process thread pool.

    Jobs beyond ``max_workers`` wait in the executor queue.
    """

    def __init__(self, runner: Callable[[str], Any], max_workers: int = 4):
        """
        Args:
            runner: Executes the workflow for one job id
            max_workers: Jobs processed concurrently
        """
        self.runner = runner
        self._executor: Optional[ThreadPoolExecutor] = ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix="stitch-job"
        )

    def dispatch(self, job_id: str) -> Future:
        if self._executor is None:
            raise RuntimeError("Dispatcher has been shut down")
        future = self._executor.submit(self._run, job_id)
        logger.info(f"Queued job {job_id} on local worker pool")
        return future

    def _run(self, job_id: str) -> Any:
        try:
            return self.runner(job_id)
        except Exception as e:
            logger.error(f"Worker crashed while processing job {job_id}: {e}", exc_info=True)
            return None

    def is_available(self) -> bool:
        return self._executor is not None

    def shutdown(self, wait: bool = True) -> None:
        if self._executor is not None:
            self._executor.shutdown(wait=wait)
            self._executor = None
