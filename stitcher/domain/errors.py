"""
Error Handling Module

Defines domain exceptions and error categories for the stitching service.
Domain exceptions are pure and have no external dependencies.
Application exceptions carry user-facing messaging for API responses.
"""

from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional, Tuple, Union


class ErrorCategory(Enum):
    """Error category enumeration for structured error handling."""

    INVALID_REQUEST = "invalid_request"
    INVALID_URL = "invalid_url"
    DOWNLOAD_FAILED = "download_failed"
    DOWNLOAD_TIMEOUT = "download_timeout"
    INVALID_MEDIA = "invalid_media"
    CONCATENATION_FAILED = "concatenation_failed"
    JOB_NOT_FOUND = "job_not_found"
    FILE_NOT_FOUND = "file_not_found"
    SYSTEM_ERROR = "system_error"


# User-friendly error messages with actionable guidance
ERROR_MESSAGES: Dict[ErrorCategory, Dict[str, str]] = {
    ErrorCategory.INVALID_REQUEST: {
        "title": "Invalid Request",
        "message": "The request is missing required information or contains invalid data.",
        "action": "Provide between 2 and 10 video URLs and a supported format and quality.",
    },
    ErrorCategory.INVALID_URL: {
        "title": "Invalid Video URL",
        "message": "One of the video URLs is not a valid http(s) address.",
        "action": "Check each URL and try again.",
    },
    ErrorCategory.DOWNLOAD_FAILED: {
        "title": "Download Failed",
        "message": "One of the source videos could not be downloaded.",
        "action": "Make sure every URL is publicly reachable and try again.",
    },
    ErrorCategory.DOWNLOAD_TIMEOUT: {
        "title": "Download Timeout",
        "message": "A source video host did not respond in time.",
        "action": "Check that the host is online, or use a different source.",
    },
    ErrorCategory.INVALID_MEDIA: {
        "title": "Invalid Video File",
        "message": "One of the downloaded files is not a playable video.",
        "action": "Make sure every URL points directly to a video file.",
    },
    ErrorCategory.CONCATENATION_FAILED: {
        "title": "Stitching Failed",
        "message": "The videos could not be joined together.",
        "action": "Try a different quality setting, or use videos with matching formats.",
    },
    ErrorCategory.JOB_NOT_FOUND: {
        "title": "Job Not Found",
        "message": "The requested stitching job could not be found or has expired.",
        "action": "Please submit a new job.",
    },
    ErrorCategory.FILE_NOT_FOUND: {
        "title": "File Not Found",
        "message": "The requested file could not be found or has been deleted.",
        "action": "Please submit the job again.",
    },
    ErrorCategory.SYSTEM_ERROR: {
        "title": "System Error",
        "message": "An unexpected error occurred while processing your request.",
        "action": "Please try again later. If the problem persists, contact support.",
    },
}


# ============================================================================
# Domain Exceptions (Pure - No External Dependencies)
# ============================================================================

class DomainError(Exception):
    """
    Base exception for all domain errors.

    Domain exceptions can optionally wrap original errors for context.
    """

    category = ErrorCategory.SYSTEM_ERROR

    def __init__(self, message: str, original_error: Exception = None):
        """
        Initialize domain error.

        Args:
            message: Error message
            original_error: Optional original exception that caused this error
        """
        super().__init__(message)
        self.original_error = original_error


class ValidationError(DomainError):
    """Raised when a submission has an invalid shape. No job is created."""

    category = ErrorCategory.INVALID_REQUEST


class InvalidUrlError(ValidationError):
    """Raised when a video URL fails syntax validation."""

    category = ErrorCategory.INVALID_URL


class DownloadFailedError(DomainError):
    """
    Raised when fetching a source video fails.

    Covers non-success status, transport errors, timeouts and malformed
    URLs. Carries the failing URL so it can be recorded on the job.
    """

    category = ErrorCategory.DOWNLOAD_FAILED

    def __init__(
        self,
        url: str,
        reason: str,
        original_error: Exception = None,
        timed_out: bool = False,
    ):
        super().__init__(f"Failed to download {url}: {reason}", original_error)
        self.url = url
        self.reason = reason
        self.timed_out = timed_out
        if timed_out:
            self.category = ErrorCategory.DOWNLOAD_TIMEOUT


class MediaProcessingError(DomainError):
    """
    Base exception for media tool errors.

    Raised directly when the external tool cannot be run at all.
    """

    pass


class InvalidMediaError(MediaProcessingError):
    """Raised when a downloaded file is not decodable or has no video stream."""

    category = ErrorCategory.INVALID_MEDIA

    def __init__(
        self,
        path: Union[str, Path],
        reason: str = "not a valid video",
        original_error: Exception = None,
    ):
        self.path = Path(path)
        self.filename = self.path.name
        self.reason = reason
        super().__init__(f"Invalid video file: {self.filename}", original_error)


class ConcatenationFailedError(MediaProcessingError):
    """Raised when the concatenation tool exits with a non-zero code."""

    category = ErrorCategory.CONCATENATION_FAILED

    def __init__(self, exit_code: int, detail: Optional[str] = None):
        message = f"FFmpeg process exited with code {exit_code}"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)
        self.exit_code = exit_code


class NotFoundError(DomainError):
    """Base exception for lookups that find nothing."""

    pass


class JobNotFoundError(NotFoundError):
    """Raised when a job is not found."""

    category = ErrorCategory.JOB_NOT_FOUND


class ArtifactNotFoundError(NotFoundError):
    """Raised when an output artifact is missing at retrieval time."""

    category = ErrorCategory.FILE_NOT_FOUND


class JobStateError(DomainError):
    """Raised when an invalid state transition is attempted."""

    pass


def categorize_error(exception: Exception) -> ErrorCategory:
    """Map any exception raised during processing to an error category."""
    if isinstance(exception, DomainError):
        return exception.category
    return ErrorCategory.SYSTEM_ERROR


# ============================================================================
# Application Layer Exceptions
# ============================================================================

class ApplicationError(Exception):
    """
    Error carrying the user-facing title, message and action of its category.

    ``technical_message`` holds the detail returned as ``details`` in API
    error bodies; ``context`` carries identifiers such as the job id.
    """

    def __init__(
        self,
        category: ErrorCategory,
        technical_message: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        self.category = category
        self.technical_message = technical_message or ""
        self.context = context or {}

        info = ERROR_MESSAGES.get(category, ERROR_MESSAGES[ErrorCategory.SYSTEM_ERROR])
        self.title = info["title"]
        self.message = info["message"]
        self.action = info["action"]
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        body = {
            "error": self.category.value,
            "title": self.title,
            "message": self.message,
            "action": self.action,
        }
        if self.technical_message:
            body["details"] = self.technical_message
        return body


def create_error_response(
    category: ErrorCategory,
    technical_message: Optional[str] = None,
    context: Optional[Dict[str, Any]] = None,
    status_code: int = 400,
) -> Tuple[Dict[str, Any], int]:
    """JSON body and status code for a failed API request."""
    return ApplicationError(category, technical_message, context).to_dict(), status_code
