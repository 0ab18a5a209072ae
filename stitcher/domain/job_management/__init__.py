"""
Job Management Domain

Manages asynchronous stitching jobs, progress tracking, and status updates.
"""

from .entities import StitchJob
from .value_objects import JobStatus, JobProgress
from .services import JobManager
from .repositories import JobRepository

__all__ = [
    'StitchJob',
    'JobStatus',
    'JobProgress',
    'JobManager',
    'JobRepository',
]
