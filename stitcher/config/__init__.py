"""Configuration for the stitching service, read from environment variables."""
