"""
Media Processing Domain

Validates stitching input and defines the downloader and media tool contracts.
"""

from .repositories import IMediaProcessor, IVideoDownloader, ProgressCallback
from .value_objects import (
    MAX_VIDEO_URLS,
    MIN_VIDEO_URLS,
    MediaInfo,
    OutputFormat,
    QualityPreset,
    StitchRequest,
    VideoUrl,
)

__all__ = [
    "IMediaProcessor",
    "IVideoDownloader",
    "ProgressCallback",
    "MediaInfo",
    "OutputFormat",
    "QualityPreset",
    "StitchRequest",
    "VideoUrl",
    "MIN_VIDEO_URLS",
    "MAX_VIDEO_URLS",
]
