"""
API v1

Blueprint mounting the jobs, downloads and maintenance namespaces under
``/api/<API_VERSION>``, with Swagger UI at ``/api/<API_VERSION>/docs``.
"""

import os

from flask import Blueprint
from flask_restx import Api

API_VERSION = os.getenv("API_VERSION", "v1")

api_v1_bp = Blueprint("api_v1", __name__, url_prefix=f"/api/{API_VERSION}")

api = Api(
    api_v1_bp,
    version="1.0",
    title="Video Stitcher API",
    description="Download remote videos and join them into a single file",
    doc="/docs",
    license="MIT",
)

# Namespaces import models bound to ``api``
from .namespaces import download_ns, job_ns, maintenance_ns

api.add_namespace(job_ns, path="/jobs")
api.add_namespace(download_ns, path="/downloads")
api.add_namespace(maintenance_ns, path="/maintenance")
