"""Video stitching job service."""

__version__ = "1.0.0"
