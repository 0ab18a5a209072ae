"""
API Namespaces - Organized endpoint groups
"""

from flask import current_app, request, send_file
from flask_restx import Namespace, Resource

from stitcher.api.v1.models import (
    active_jobs_response,
    cleanup_response,
    error_response,
    job_response,
    job_status_response,
    stitch_request,
)
from stitcher.application.expiry_sweeper import ExpirySweeper
from stitcher.domain.errors import (
    ApplicationError,
    ArtifactNotFoundError,
    ErrorCategory,
    JobNotFoundError,
    ValidationError,
    create_error_response,
)
from stitcher.domain.media_processing.value_objects import OutputFormat

# =============================================================================
# Job Namespace - Job submission and status
# =============================================================================

job_ns = Namespace("jobs", description="Stitching job operations")


def _job_service_unavailable():
    return create_error_response(
        ErrorCategory.SYSTEM_ERROR, "Job service not initialized", status_code=503
    )


@job_ns.route("/")
class JobList(Resource):
    """Submit stitching jobs"""

    @job_ns.doc("create_stitch_job")
    @job_ns.expect(stitch_request)
    @job_ns.response(202, "Accepted", job_response)
    @job_ns.response(400, "Bad Request", error_response)
    @job_ns.response(500, "Internal Server Error", error_response)
    def post(self):
        """
        Start a stitching job

        Validates the URLs, creates a pending job and queues it. Returns a
        job_id to poll for progress.
        """
        job_service = getattr(current_app, "job_service", None)
        if job_service is None:
            return _job_service_unavailable()

        data = request.get_json(silent=True)
        if not isinstance(data, dict):
            return create_error_response(
                ErrorCategory.INVALID_REQUEST,
                "Request body must be a JSON object",
                status_code=400,
            )

        try:
            job_data = job_service.create_stitch_job(
                data.get("videos"), data.get("format"), data.get("quality")
            )
            current_app.logger.info(f"[API_V1] Accepted job {job_data['job_id']}")
            return job_data, 202

        except ValidationError as e:
            return create_error_response(e.category, str(e), status_code=400)
        except ApplicationError as e:
            return create_error_response(e.category, e.technical_message, status_code=500)
        except Exception as e:
            current_app.logger.exception(f"Unexpected error creating stitch job: {e}")
            return create_error_response(
                ErrorCategory.SYSTEM_ERROR,
                f"Failed to create stitch job: {e}",
                status_code=500,
            )


@job_ns.route("/active")
class ActiveJobs(Resource):
    """Jobs still waiting or running"""

    @job_ns.doc("list_active_jobs")
    @job_ns.response(200, "Success", active_jobs_response)
    def get(self):
        """List pending and processing jobs"""
        job_service = getattr(current_app, "job_service", None)
        if job_service is None:
            return _job_service_unavailable()

        return job_service.list_active_jobs(), 200


@job_ns.route("/<string:job_id>")
@job_ns.param("job_id", "The job identifier")
class Job(Resource):
    """Job status operations"""

    @job_ns.doc("get_job_status")
    @job_ns.response(200, "Success", job_status_response)
    @job_ns.response(404, "Job Not Found", error_response)
    @job_ns.response(500, "Internal Server Error", error_response)
    def get(self, job_id):
        """
        Get job status and progress

        Poll this endpoint until the status is completed or failed.
        download_url is present only once completed, error only once failed.
        """
        job_service = getattr(current_app, "job_service", None)
        if job_service is None:
            return _job_service_unavailable()

        try:
            return job_service.get_job_status(job_id), 200

        except JobNotFoundError:
            return create_error_response(
                ErrorCategory.JOB_NOT_FOUND, f"Job {job_id} not found", status_code=404
            )
        except Exception as e:
            current_app.logger.exception(f"Error getting job status for {job_id}: {e}")
            return create_error_response(
                ErrorCategory.SYSTEM_ERROR,
                f"Internal server error: {e}",
                status_code=500,
            )


# =============================================================================
# Download Namespace - Finished artifacts
# =============================================================================

download_ns = Namespace("downloads", description="Stitched file downloads")


@download_ns.route("/<string:filename>")
@download_ns.param("filename", "Artifact file name, e.g. stitched_<job_id>.mp4")
class DownloadFile(Resource):
    """Download a stitched file"""

    @download_ns.doc("download_file")
    @download_ns.response(200, "File content")
    @download_ns.response(404, "File Not Found", error_response)
    def get(self, filename):
        """
        Download a finished artifact

        Streams the file as an attachment with a content type matching its format.
        """
        file_manager = getattr(current_app, "file_manager", None)
        if file_manager is None:
            return create_error_response(
                ErrorCategory.SYSTEM_ERROR, "File service not initialized", status_code=503
            )

        try:
            path = file_manager.resolve_output_file(filename)
        except ArtifactNotFoundError:
            current_app.logger.warning(f"[DOWNLOAD_FILE_V1] File not found: {filename}")
            return create_error_response(
                ErrorCategory.FILE_NOT_FOUND, f"File not found: {filename}", status_code=404
            )

        try:
            mimetype = OutputFormat(path.suffix.lstrip(".").lower()).mimetype
        except ValueError:
            mimetype = "application/octet-stream"

        current_app.logger.info(f"[DOWNLOAD_FILE_V1] Serving {filename}")
        return send_file(
            path,
            as_attachment=True,
            download_name=filename,
            mimetype=mimetype,
        )


# =============================================================================
# Maintenance Namespace - On-demand cleanup
# =============================================================================

maintenance_ns = Namespace("maintenance", description="Maintenance operations")


@maintenance_ns.route("/cleanup")
class Cleanup(Resource):
    """Run the expiry sweep now"""

    @maintenance_ns.doc("run_cleanup")
    @maintenance_ns.response(200, "Cleanup completed", cleanup_response)
    def post(self):
        """
        Remove expired jobs and their files

        Always answers 200; failures are listed in "errors".
        """
        container = getattr(current_app, "container", None)
        if container is None:
            return {"message": "Cleanup completed", "errors": ["Services not initialized"]}, 200

        report = container.resolve(ExpirySweeper).run_once()
        return {"message": "Cleanup completed", **report.to_dict()}, 200
