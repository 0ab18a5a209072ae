"""
Domain Events

Immutable records of job lifecycle changes. JobManager publishes them after
a change is persisted; handlers (logging) react without the domain knowing
about them.
"""

from abc import ABC
from dataclasses import dataclass, fields
from datetime import datetime
from typing import Any, Dict


@dataclass(frozen=True)
class DomainEvent(ABC):
    """
    Base class for all domain events.

    Attributes:
        aggregate_id: The job the event is about
        occurred_at: Timezone-aware UTC time of the change
    """
    aggregate_id: str
    occurred_at: datetime

    def to_dict(self) -> Dict[str, Any]:
        """Flat, JSON-ready dictionary: event type plus every field."""
        data: Dict[str, Any] = {"event_type": type(self).__name__}
        for field in fields(self):
            value = getattr(self, field.name)
            data[field.name] = value.isoformat() if isinstance(value, datetime) else value
        return data


@dataclass(frozen=True)
class JobStartedEvent(DomainEvent):
    """A pending job moved to processing and its downloads began."""
    video_count: int
    output_format: str
    quality: str


@dataclass(frozen=True)
class JobProgressUpdatedEvent(DomainEvent):
    percentage: int
    phase: str


@dataclass(frozen=True)
class JobCompletedEvent(DomainEvent):
    """The stitched output was published at ``download_url``."""
    download_url: str


@dataclass(frozen=True)
class JobFailedEvent(DomainEvent):
    error_message: str
    error_category: str


@dataclass(frozen=True)
class JobExpiredEvent(DomainEvent):
    """The sweeper removed a job past its retention window."""
    status: str
    expires_at: datetime
