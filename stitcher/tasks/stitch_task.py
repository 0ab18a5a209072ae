"""
Stitch Task

Celery task running one stitching job.
Thin wrapper that delegates to StitchService.
"""

import logging
import time
from typing import Any, Dict

from celery_app import celery_app
from stitcher.infrastructure.task_dispatcher import STITCH_TASK_NAME

logger = logging.getLogger(__name__)


@celery_app.task(bind=True, name=STITCH_TASK_NAME)
def stitch_videos(self, job_id: str) -> Dict[str, Any]:
    """
    Run the stitching workflow for a job.

    The outcome is recorded on the job by StitchService; the returned
    dictionary only mirrors it for the Celery result backend.

    Args:
        job_id: Unique job identifier

    Returns:
        dict: StitchResult as a dictionary
    """
    from celery_app import flask_app
    from stitcher.application.stitch_service import StitchService

    start_time = time.time()
    logger.info(f"Task started for job {job_id}")

    stitch_service = flask_app.container.resolve(StitchService)

    try:
        result = stitch_service.execute_stitch(job_id)
    except Exception as e:
        duration_ms = (time.time() - start_time) * 1000
        logger.error(f"Task failed for job {job_id} after {duration_ms:.2f}ms: {e}")
        raise

    duration_ms = (time.time() - start_time) * 1000
    logger.info(
        f"Task finished for job {job_id} in {duration_ms:.2f}ms "
        f"(success={result.success})"
    )
    return result.to_dict()
