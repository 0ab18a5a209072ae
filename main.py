"""
main.py

Flask API for the video stitching service.

Dependencies:
  - Python packages: Flask, flask-restx, flask-cors, requests, redis, celery
  - System: ffmpeg and ffprobe on PATH
  - Infrastructure: Redis server (unless JOB_STORE_BACKEND=memory and TASK_BACKEND=thread)

Notes:
  - API v1 endpoints available at /api/v1/ with Swagger docs at /api/v1/docs
  - Workers: celery -A celery_app.celery_app worker -Q stitch_queue,cleanup_queue
"""

import logging

from app_factory import AppConfig, create_app

config = AppConfig()

logging.basicConfig(
    level=config.log_level,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)

app = create_app(config)

if __name__ == "__main__":
    app.run(host=config.host, port=config.port, debug=config.debug)
