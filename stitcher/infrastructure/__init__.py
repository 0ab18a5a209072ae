"""Infrastructure layer: job stores, HTTP downloads, ffmpeg and local storage."""

from .ffmpeg_media_processor import FFmpegMediaProcessor
from .http_video_downloader import HttpVideoDownloader
from .local_artifact_storage import LocalArtifactStorage
from .memory_job_repository import InMemoryJobRepository
from .redis_job_repository import RedisJobRepository
from .redis_repository import RedisConnectionManager, RedisRepository

__all__ = [
    'FFmpegMediaProcessor',
    'HttpVideoDownloader',
    'LocalArtifactStorage',
    'InMemoryJobRepository',
    'RedisJobRepository',
    'RedisConnectionManager',
    'RedisRepository',
]
