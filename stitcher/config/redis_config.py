"""
Redis Configuration

Connection settings for the Redis job store, and the process-wide
connection manager the application factory initializes when
JOB_STORE_BACKEND=redis.
"""

import os
from typing import Any, Dict, Optional

import redis

from stitcher.infrastructure.redis_repository import RedisConnectionManager, RedisRepository


class RedisConfig:
    """
    Redis connection settings.

    REDIS_URL (``redis://[:password@]host:port/db``) takes precedence over
    the individual REDIS_HOST / REDIS_PORT / REDIS_DB / REDIS_PASSWORD.
    """

    def __init__(self):
        self.host = os.getenv("REDIS_HOST", "localhost")
        self.port = int(os.getenv("REDIS_PORT", 6379))
        self.db = int(os.getenv("REDIS_DB", 0))
        self.password = os.getenv("REDIS_PASSWORD")
        self.max_connections = int(os.getenv("REDIS_MAX_CONNECTIONS", 20))

        self.url = os.getenv("REDIS_URL")
        if self.url:
            self._apply_url(redis.connection.parse_url(self.url))

    def _apply_url(self, params: Dict[str, Any]) -> None:
        for name in ("host", "port", "db", "password"):
            if params.get(name) is not None:
                setattr(self, name, params[name])

    def connection_kwargs(self) -> Dict[str, Any]:
        return {
            "host": self.host,
            "port": self.port,
            "db": self.db,
            "password": self.password,
            "max_connections": self.max_connections,
        }


_redis_manager: Optional[RedisConnectionManager] = None


def init_redis(config: Optional[RedisConfig] = None) -> RedisConnectionManager:
    """Create the shared connection manager, replacing any previous one."""
    global _redis_manager

    _redis_manager = RedisConnectionManager(**(config or RedisConfig()).connection_kwargs())
    return _redis_manager


def get_redis_client() -> redis.Redis:
    """
    Raises:
        RuntimeError: If init_redis() has not been called
    """
    if _redis_manager is None:
        raise RuntimeError("Redis not initialized. Call init_redis() first.")
    return _redis_manager.client


def get_redis_repository(key_prefix: str = "") -> RedisRepository:
    return RedisRepository(get_redis_client(), key_prefix)


def redis_health_check() -> Optional[bool]:
    """Ping result for the shared connection, None when Redis is not in use."""
    if _redis_manager is None:
        return None
    return _redis_manager.health_check()
