"""
Celery tasks

Thin wrappers that resolve application services from the container.
Registered on the worker through ``celery_app.conf.imports``.
"""
