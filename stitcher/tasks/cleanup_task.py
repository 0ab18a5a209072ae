"""
Cleanup Task

Celery beat task removing expired jobs, their artifacts and orphaned files.
"""

import logging

from celery_app import celery_app
from stitcher.config.celery_config import SWEEP_TASK_NAME

logger = logging.getLogger(__name__)


@celery_app.task(bind=True, name=SWEEP_TASK_NAME)
def sweep_expired_jobs(self):
    """
    Periodic sweep, scheduled every SWEEP_INTERVAL_SECONDS by Celery beat.

    Returns:
        dict: Cleanup statistics with counts and errors
    """
    from celery_app import flask_app
    from stitcher.application.expiry_sweeper import ExpirySweeper

    logger.info("Starting cleanup task")
    sweeper = flask_app.container.resolve(ExpirySweeper)
    report = sweeper.run_once()
    return report.to_dict()
