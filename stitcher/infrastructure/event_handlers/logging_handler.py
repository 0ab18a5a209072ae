"""
Logging Event Handler

Writes one log line per domain event, so the job lifecycle can be followed
in the process logs without the domain layer knowing about logging.
"""

import logging
from typing import Dict, Tuple

from stitcher.domain.events import (
    DomainEvent,
    JobCompletedEvent,
    JobExpiredEvent,
    JobFailedEvent,
    JobProgressUpdatedEvent,
    JobStartedEvent,
)

# Level and label per event type; progress ticks are too frequent for info
EVENT_LOG_LEVELS: Dict[type, Tuple[int, str]] = {
    JobStartedEvent: (logging.INFO, "Job started"),
    JobProgressUpdatedEvent: (logging.DEBUG, "Job progress"),
    JobCompletedEvent: (logging.INFO, "Job completed"),
    JobFailedEvent: (logging.ERROR, "Job failed"),
    JobExpiredEvent: (logging.INFO, "Job expired"),
}

_ENVELOPE_FIELDS = ("event_type", "aggregate_id", "occurred_at")


class LoggingEventHandler:
    """Logs job lifecycle events at a level matching their significance."""

    def __init__(self, logger: logging.Logger):
        self.logger = logger

    def handle(self, event: DomainEvent) -> None:
        level, label = EVENT_LOG_LEVELS.get(
            type(event), (logging.DEBUG, f"Unhandled event {type(event).__name__}")
        )
        fields = [f"job_id={event.aggregate_id}"]
        fields.extend(
            f"{key}={value}"
            for key, value in event.to_dict().items()
            if key not in _ENVELOPE_FIELDS
        )
        message = f"{label}: {', '.join(fields)}"

        try:
            self._emit(level, message)
        except Exception as e:
            self.logger.error(
                f"Error logging {type(event).__name__} for job {event.aggregate_id}: {e}",
                exc_info=True,
            )

    def _emit(self, level: int, message: str) -> None:
        if level >= logging.ERROR:
            self.logger.error(message)
        elif level >= logging.INFO:
            self.logger.info(message)
        else:
            self.logger.debug(message)
