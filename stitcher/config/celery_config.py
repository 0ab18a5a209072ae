"""
Celery Configuration

Broker, queues and beat schedule for the stitch workers. Stitch jobs and
sweeps run on separate queues so a long concatenation never delays a sweep.
"""

import os

from celery import Celery
from kombu import Queue

from stitcher.infrastructure.task_dispatcher import STITCH_QUEUE, STITCH_TASK_NAME

SWEEP_TASK_NAME = "stitcher.tasks.sweep_expired_jobs"
SWEEP_QUEUE = "cleanup_queue"


class CeleryConfig:
    """Celery settings, read from the environment at import time."""

    broker_url = os.getenv("CELERY_BROKER_URL", "redis://localhost:6379/0")
    result_backend = os.getenv("CELERY_RESULT_BACKEND", "redis://localhost:6379/0")
    result_expires = 3600

    task_serializer = "json"
    result_serializer = "json"
    accept_content = ["json"]
    timezone = "UTC"
    enable_utc = True

    # A worker takes one job at a time and acknowledges it only when done,
    # so a job survives the loss of its worker
    worker_prefetch_multiplier = 1
    task_acks_late = True
    worker_max_tasks_per_child = 50
    worker_concurrency = int(os.getenv("CELERY_WORKER_CONCURRENCY", 2))

    task_default_queue = "default"
    task_queues = (
        Queue("default", routing_key="default"),
        Queue(STITCH_QUEUE, routing_key="stitch"),
        Queue(SWEEP_QUEUE, routing_key="cleanup"),
    )
    task_routes = {
        STITCH_TASK_NAME: {"queue": STITCH_QUEUE},
        SWEEP_TASK_NAME: {"queue": SWEEP_QUEUE},
    }

    beat_schedule = {
        "sweep-expired-jobs": {
            "task": SWEEP_TASK_NAME,
            "schedule": float(os.getenv("SWEEP_INTERVAL_SECONDS", 3600)),
        },
    }

    # Ten parallel downloads plus a re-encode of the result can be slow
    task_soft_time_limit = int(os.getenv("CELERY_TASK_SOFT_TIME_LIMIT", 5400))
    task_time_limit = int(os.getenv("CELERY_TASK_TIME_LIMIT", 6000))


def make_celery(app) -> Celery:
    """
    Build the Celery app bound to a Flask app.

    Every task body runs inside ``app.app_context()``.
    """
    celery = Celery(app.import_name)
    celery.config_from_object(CeleryConfig)

    base = celery.Task

    class FlaskContextTask(base):
        def __call__(self, *args, **kwargs):
            with app.app_context():
                return self.run(*args, **kwargs)

    celery.Task = FlaskContextTask
    return celery
