"""Shared test fixtures: domain object builders and fake adapters."""
