"""
Job Management Value Objects

Job status and the progress reported while a job moves through its stages.
"""

from dataclasses import dataclass
from enum import Enum


class JobStatus(Enum):
    """Lifecycle state of a job. Completed and failed are terminal."""
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"

    def is_terminal(self) -> bool:
        return self in (JobStatus.COMPLETED, JobStatus.FAILED)

    def is_active(self) -> bool:
        return not self.is_terminal()


# Percentage at which each stage starts
STAGE_START = {
    "queued": 0,
    "downloading": 10,
    "validating": 40,
    "concatenating": 60,
    "publishing": 95,
    "completed": 100,
}

CONCAT_BAND = (STAGE_START["concatenating"], STAGE_START["publishing"])


@dataclass(frozen=True)
class JobProgress:
    """
    Percentage and phase name of a job.

    Each stage has a fixed starting percentage; concatenation moves within
    60-95 and only completion reaches 100.
    """
    percentage: int
    phase: str

    def __post_init__(self):
        if not 0 <= self.percentage <= 100:
            raise ValueError(f"Percentage must be between 0 and 100, got {self.percentage}")
        if not self.phase:
            raise ValueError("Phase is required")

    def to_dict(self):
        return {"percentage": self.percentage, "phase": self.phase}

    @classmethod
    def from_dict(cls, data: dict) -> 'JobProgress':
        return cls(
            percentage=data.get("percentage", 0),
            phase=data.get("phase", "queued"),
        )

    @classmethod
    def at_stage(cls, phase: str) -> 'JobProgress':
        return cls(percentage=STAGE_START[phase], phase=phase)

    @classmethod
    def initial(cls) -> 'JobProgress':
        return cls.at_stage("queued")

    @classmethod
    def downloading(cls) -> 'JobProgress':
        return cls.at_stage("downloading")

    @classmethod
    def validating(cls) -> 'JobProgress':
        return cls.at_stage("validating")

    @classmethod
    def concatenating(cls, percentage: int = CONCAT_BAND[0]) -> 'JobProgress':
        """Progress inside the concatenation band, clamped to it."""
        low, high = CONCAT_BAND
        return cls(percentage=max(low, min(high, percentage)), phase="concatenating")

    @classmethod
    def publishing(cls) -> 'JobProgress':
        return cls.at_stage("publishing")

    @classmethod
    def completed(cls) -> 'JobProgress':
        return cls.at_stage("completed")
