"""
File Storage Domain

Manages the scratch inputs and finished artifacts of stitching jobs.
"""

from .repositories import IArtifactStorage
from .services import FileManager

__all__ = [
    "IArtifactStorage",
    "FileManager",
]
