"""
Application Services Layer

Orchestrates domain services and coordinates use cases.
"""

from .event_publisher import EventPublisher
from .expiry_sweeper import ExpirySweeper, SweepReport
from .job_service import JobService
from .stitch_result import StitchResult
from .stitch_service import StitchService

__all__ = [
    'EventPublisher',
    'ExpirySweeper',
    'SweepReport',
    'JobService',
    'StitchResult',
    'StitchService',
]
