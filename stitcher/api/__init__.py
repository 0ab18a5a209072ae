"""HTTP API of the stitching service."""
