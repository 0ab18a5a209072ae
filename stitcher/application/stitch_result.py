"""
Stitch Result

Outcome of one ``StitchService.execute_stitch`` run, returned to the Celery
result backend. The job record stays the source of truth for clients.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional

from stitcher.domain.errors import ErrorCategory


@dataclass(frozen=True)
class StitchResult:
    success: bool
    job_id: str
    download_url: Optional[str] = None
    error_category: Optional[ErrorCategory] = None
    error_message: Optional[str] = None

    @classmethod
    def create_success(cls, job_id: str, download_url: str) -> "StitchResult":
        return cls(True, job_id, download_url=download_url)

    @classmethod
    def create_failure(
        cls, job_id: str, error_category: ErrorCategory, error_message: str
    ) -> "StitchResult":
        return cls(False, job_id, error_category=error_category, error_message=error_message)

    @property
    def status(self) -> str:
        return "completed" if self.success else "failed"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "status": self.status,
            "job_id": self.job_id,
            "download_url": self.download_url,
            "error": self.error_message,
            "error_category": self.error_category.value if self.error_category else None,
        }
