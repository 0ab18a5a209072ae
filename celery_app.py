"""
Celery Application Instance

Creates the Celery app instance for use by workers and beat scheduler.
Uses the app factory so the dependency container is fully initialized.
"""

import logging
import os

from app_factory import create_app

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)

flask_app = create_app()

celery_app = flask_app.celery

# Task modules are registered by name: they import this module, so
# importing them here would be circular. The worker imports them on start.
celery_app.conf.imports = (
    "stitcher.tasks.stitch_task",
    "stitcher.tasks.cleanup_task",
)
