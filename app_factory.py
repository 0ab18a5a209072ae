"""
Application Factory

Creates and configures the Flask application with all dependencies.
The factory pattern keeps the app testable: configuration objects can be
passed in and services overridden through the container.
"""

import atexit
import logging
import os
from typing import Optional

from flask import Flask, jsonify
from flask_cors import CORS

from stitcher.application.dependency_container import DependencyContainer
from stitcher.application.event_publisher import EventPublisher
from stitcher.application.expiry_sweeper import ExpirySweeper
from stitcher.application.job_service import JobService
from stitcher.application.stitch_service import StitchService
from stitcher.config.celery_config import make_celery
from stitcher.config.redis_config import get_redis_repository, init_redis, redis_health_check
from stitcher.config.stitch_config import StitchConfig
from stitcher.domain.file_storage import FileManager
from stitcher.domain.job_management import JobManager, JobRepository
from stitcher.infrastructure.ffmpeg_media_processor import FFmpegMediaProcessor
from stitcher.infrastructure.http_video_downloader import HttpVideoDownloader
from stitcher.infrastructure.job_repository_factory import JobRepositoryFactory
from stitcher.infrastructure.local_artifact_storage import LocalArtifactStorage
from stitcher.infrastructure.task_dispatcher import (
    CeleryTaskDispatcher,
    TaskDispatcher,
    ThreadTaskDispatcher,
)

logger = logging.getLogger(__name__)


class AppConfig:
    """Application configuration."""

    def __init__(self):
        self.api_version = os.getenv("API_VERSION", "v1")
        self.flask_env = os.getenv("FLASK_ENV", "development")
        self.is_production = self.flask_env == "production"
        self.host = os.getenv("FLASK_HOST", "0.0.0.0")
        self.port = int(os.getenv("FLASK_PORT", 8000))
        self.debug = os.getenv("FLASK_DEBUG", "false").lower() == "true"
        self.log_level = os.getenv("LOG_LEVEL", "INFO").upper()


def create_app(
    config: Optional[AppConfig] = None,
    stitch_config: Optional[StitchConfig] = None,
) -> Flask:
    """
    Create and configure Flask application.

    Args:
        config: Application configuration, uses default if None
        stitch_config: Job processing configuration, uses default if None

    Returns:
        Configured Flask application
    """
    if config is None:
        config = AppConfig()
    if stitch_config is None:
        stitch_config = StitchConfig()

    app = Flask(__name__)

    CORS(
        app,
        resources={
            r"/*": {
                "origins": "*",
                "methods": ["GET", "POST", "OPTIONS"],
                "allow_headers": ["Content-Type", "Authorization"],
                "expose_headers": ["Content-Type", "Content-Disposition"],
                "max_age": 3600,
            }
        },
    )

    _initialize_infrastructure(app, stitch_config)
    _initialize_services(app, stitch_config)
    _register_blueprints(app, config)
    _register_health_endpoint(app)

    return app


def _initialize_infrastructure(app: Flask, stitch_config: StitchConfig) -> None:
    """
    Initialize Redis (only when it backs the job store) and Celery.

    The Celery instance is always created so the worker process and the
    task decorators can use it; the API only sends to it in celery mode.
    """
    if stitch_config.job_store_backend == "redis":
        init_redis()
        logger.info("Redis initialized successfully")

    app.celery = make_celery(app)
    logger.info("Celery initialized successfully")


def _create_dispatcher(
    app: Flask, stitch_config: StitchConfig, stitch_service: StitchService
) -> TaskDispatcher:
    backend = stitch_config.task_backend

    if backend == "celery":
        # Workers run in other processes and never see a memory store
        if stitch_config.job_store_backend != "redis":
            raise ValueError(
                f"TASK_BACKEND 'celery' requires JOB_STORE_BACKEND 'redis', "
                f"got '{stitch_config.job_store_backend}'"
            )
        return CeleryTaskDispatcher(app.celery)
    if backend == "thread":
        return ThreadTaskDispatcher(
            stitch_service.execute_stitch, max_workers=stitch_config.max_concurrent_jobs
        )

    raise ValueError(f"Unknown TASK_BACKEND '{backend}'. Allowed: celery, thread")


def _initialize_services(app: Flask, stitch_config: StitchConfig) -> None:
    """
    Build every service and register it in the DependencyContainer.

    API routes reach services through ``app.job_service`` / ``app.file_manager``
    or ``current_app.container``; Celery tasks through ``flask_app.container``.
    """
    container = DependencyContainer()

    event_publisher = EventPublisher()
    container.setup_event_handlers(event_publisher)
    container.register_singleton(EventPublisher, event_publisher)

    job_repository = JobRepositoryFactory.create(
        stitch_config, redis_repository_provider=get_redis_repository
    )
    container.register_singleton(JobRepository, job_repository)

    job_manager = JobManager(
        job_repository, event_publisher, retention=stitch_config.retention
    )
    container.register_singleton(JobManager, job_manager)

    storage = LocalArtifactStorage(stitch_config.storage_root)
    container.register_singleton(LocalArtifactStorage, storage)

    file_manager = FileManager(storage, public_base=stitch_config.public_download_base)
    container.register_singleton(FileManager, file_manager)

    downloader = HttpVideoDownloader(
        storage.scratch_dir,
        timeout=stitch_config.download_timeout,
        max_workers=stitch_config.max_parallel_downloads,
    )
    container.register_singleton(HttpVideoDownloader, downloader)

    media_processor = FFmpegMediaProcessor(
        storage.scratch_dir,
        ffmpeg_path=stitch_config.ffmpeg_path,
        ffprobe_path=stitch_config.ffprobe_path,
        probe_timeout=stitch_config.probe_timeout,
        concat_timeout=stitch_config.concat_timeout,
    )
    container.register_singleton(FFmpegMediaProcessor, media_processor)

    stitch_service = StitchService(
        job_manager,
        file_manager,
        downloader,
        media_processor,
        cleanup_refetch_on_failure=stitch_config.cleanup_refetch_on_failure,
    )
    container.register_singleton(StitchService, stitch_service)

    dispatcher = _create_dispatcher(app, stitch_config, stitch_service)
    container.register_singleton(TaskDispatcher, dispatcher)

    job_service = JobService(job_manager, dispatcher)
    container.register_singleton(JobService, job_service)

    sweeper = ExpirySweeper(
        job_manager,
        file_manager,
        retention=stitch_config.retention,
        interval_seconds=stitch_config.sweep_interval,
    )
    container.register_singleton(ExpirySweeper, sweeper)

    # Celery beat drives the sweep in celery mode
    if stitch_config.task_backend == "thread":
        atexit.register(dispatcher.shutdown)
        if stitch_config.sweeper_enabled:
            sweeper.start()
            atexit.register(sweeper.stop)

    app.container = container
    app.job_service = job_service
    app.file_manager = file_manager

    logger.info(
        f"Services initialized: {container.registered_count()} registrations, "
        f"store={stitch_config.job_store_backend}, tasks={stitch_config.task_backend}"
    )


def _register_blueprints(app: Flask, config: AppConfig) -> None:
    from stitcher.api.v1 import api_v1_bp

    app.register_blueprint(api_v1_bp)

    logger.info(
        f"API {config.api_version} registered at /api/{config.api_version} "
        f"with Swagger UI at /api/{config.api_version}/docs"
    )


def _get_health_status(app: Flask) -> tuple[dict, int]:
    """
    Get health status of all system components.

    Returns:
        Tuple of (health_status_dict, http_status_code)
    """
    health_status = {
        "status": "ok",
        "message": "backend ready",
        "job_store": "unknown",
        "dispatcher": "unknown",
        "ffmpeg": "unknown",
    }

    try:
        redis_ok = redis_health_check()
        if redis_ok is None:
            health_status["job_store"] = "memory"
        elif redis_ok:
            health_status["job_store"] = "connected"
        else:
            health_status["job_store"] = "disconnected"
            health_status["status"] = "degraded"
    except Exception as e:
        health_status["job_store"] = f"error: {e}"
        health_status["status"] = "degraded"

    container = getattr(app, "container", None)
    if container is None:
        health_status["status"] = "degraded"
        return health_status, 503

    if container.resolve(TaskDispatcher).is_available():
        health_status["dispatcher"] = "available"
    else:
        health_status["dispatcher"] = "unavailable"
        health_status["status"] = "degraded"

    if container.resolve(FFmpegMediaProcessor).is_available():
        health_status["ffmpeg"] = "available"
    else:
        health_status["ffmpeg"] = "missing"
        health_status["status"] = "degraded"

    status_code = 200 if health_status["status"] == "ok" else 503
    return health_status, status_code


def _register_health_endpoint(app: Flask) -> None:
    @app.route("/health", methods=["GET"])
    def health():
        """
        Health check endpoint.
        Returns overall health status of the application and its dependencies.
        """
        health_status, status_code = _get_health_status(app)
        return jsonify(health_status), status_code
