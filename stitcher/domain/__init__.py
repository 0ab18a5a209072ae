"""
Domain Layer

Entities, value objects, services and repository contracts for stitching jobs.
Has no dependency on Flask, Celery or Redis.
"""
