"""
API Models for request/response validation and Swagger documentation
"""

from flask_restx import fields

from stitcher.api.v1 import api

# =============================================================================
# Request Models
# =============================================================================

stitch_request = api.model(
    "StitchRequest",
    {
        "videos": fields.List(
            fields.String,
            required=True,
            description="Between 2 and 10 video URLs, joined in this order",
            example=["https://example.com/a.mp4", "https://example.com/b.mp4"],
        ),
        "format": fields.String(
            description="Output container",
            enum=["mp4", "webm", "mov"],
            default="mp4",
        ),
        "quality": fields.String(
            description="Encoding preset; auto copies streams without re-encoding",
            enum=["auto", "high", "medium", "low"],
            default="auto",
        ),
    },
)

# =============================================================================
# Response Models
# =============================================================================

job_response = api.model(
    "JobResponse",
    {
        "job_id": fields.String(description="Unique job identifier"),
        "status": fields.String(
            description="Job status",
            enum=["pending", "processing", "completed", "failed"],
        ),
        "message": fields.String(description="Status message"),
    },
)

job_status_response = api.model(
    "JobStatusResponse",
    {
        "job_id": fields.String(description="Job identifier"),
        "status": fields.String(
            description="Job status",
            enum=["pending", "processing", "completed", "failed"],
        ),
        "progress": fields.Integer(description="Progress percentage (0-100)", min=0, max=100),
        "phase": fields.String(description="Current processing phase"),
        "video_count": fields.Integer(description="Number of source videos"),
        "format": fields.String(description="Output container"),
        "quality": fields.String(description="Quality preset"),
        "created_at": fields.String(description="Submission time (ISO timestamp)"),
        "updated_at": fields.String(description="Last change (ISO timestamp)"),
        "expires_at": fields.String(description="When the job is removed (ISO timestamp)"),
        "download_url": fields.String(description="Present only when completed"),
        "error": fields.String(description="Present only when failed"),
        "error_category": fields.String(description="Present only when failed"),
    },
)

active_jobs_response = api.model(
    "ActiveJobsResponse",
    {
        "jobs": fields.List(fields.Nested(job_status_response)),
        "count": fields.Integer(description="Number of pending or processing jobs"),
    },
)

cleanup_response = api.model(
    "CleanupResponse",
    {
        "message": fields.String(description="Always 'Cleanup completed'"),
        "expired_jobs_removed": fields.Integer(),
        "artifacts_removed": fields.Integer(),
        "orphaned_files_removed": fields.Integer(),
        "errors": fields.List(fields.String),
    },
)

error_response = api.model(
    "ErrorResponse",
    {
        "error": fields.String(description="Error category"),
        "title": fields.String(description="Short error title"),
        "message": fields.String(description="User-facing message"),
        "action": fields.String(description="Suggested next step"),
        "details": fields.String(description="Technical details", allow_null=True),
    },
)
