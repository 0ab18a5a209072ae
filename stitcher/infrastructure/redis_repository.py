"""
Redis Repository Base Class

JSON documents, key scans and per-key locks on top of a redis-py client.
Connection failures are logged and reported as a miss, so callers only
ever see ``False`` / ``None`` from a Redis outage, never an exception.
Locking is the one exception: failing to take a lock raises ``LockError``.
"""

import json
import logging
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Optional, Union

import redis
from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import LockError, RedisError

logger = logging.getLogger(__name__)

RawValue = Union[bytes, str, None]


def _decode_json(key: str, raw: RawValue) -> Optional[Dict[str, Any]]:
    if raw is None:
        return None
    if isinstance(raw, bytes):
        raw = raw.decode("utf-8")
    try:
        return json.loads(raw)
    except json.JSONDecodeError as e:
        logger.error(f"Invalid JSON stored under key {key}: {e}")
        return None


class RedisRepository:
    """Key/value access to Redis with an optional key namespace."""

    def __init__(self, redis_client: redis.Redis, key_prefix: str = ""):
        self.redis = redis_client
        self.key_prefix = key_prefix

    def _make_key(self, key: str) -> str:
        return f"{self.key_prefix}:{key}" if self.key_prefix else key

    def _strip_prefix(self, redis_key: Union[bytes, str]) -> str:
        if isinstance(redis_key, bytes):
            redis_key = redis_key.decode("utf-8")
        return redis_key[len(self.key_prefix) + 1:] if self.key_prefix else redis_key

    def set_json(self, key: str, data: Dict[str, Any], ttl: Optional[int] = None) -> bool:
        """Store ``data`` as JSON, expiring after ``ttl`` seconds when given."""
        try:
            payload = json.dumps(data)
            if ttl:
                return bool(self.redis.setex(self._make_key(key), ttl, payload))
            return bool(self.redis.set(self._make_key(key), payload))
        except (RedisConnectionError, TypeError) as e:
            logger.error(f"Error setting JSON data for key {key}: {e}")
            return False

    def get_json(self, key: str) -> Optional[Dict[str, Any]]:
        try:
            raw = self.redis.get(self._make_key(key))
        except RedisConnectionError as e:
            logger.error(f"Error getting JSON data for key {key}: {e}")
            return None
        return _decode_json(key, raw)

    def get_many_json(self, keys: List[str]) -> List[Optional[Dict[str, Any]]]:
        """One MGET for all ``keys``; None where a key is missing or unreadable."""
        if not keys:
            return []
        try:
            raw_values = self.redis.mget([self._make_key(k) for k in keys])
        except RedisConnectionError as e:
            logger.error(f"Error fetching {len(keys)} keys: {e}")
            return [None] * len(keys)
        return [_decode_json(key, raw) for key, raw in zip(keys, raw_values)]

    def delete(self, key: str) -> bool:
        try:
            return self.redis.delete(self._make_key(key)) > 0
        except RedisConnectionError as e:
            logger.error(f"Error deleting key {key}: {e}")
            return False

    def exists(self, key: str) -> bool:
        try:
            return self.redis.exists(self._make_key(key)) > 0
        except RedisConnectionError as e:
            logger.error(f"Error checking existence of key {key}: {e}")
            return False

    def scan_keys(self, pattern: str, count: int = 500) -> Iterator[str]:
        """Yield unprefixed keys matching ``pattern`` using SCAN."""
        try:
            for redis_key in self.redis.scan_iter(match=self._make_key(pattern), count=count):
                yield self._strip_prefix(redis_key)
        except RedisConnectionError as e:
            logger.error(f"Error scanning keys by pattern {pattern}: {e}")

    @contextmanager
    def distributed_lock(self, lock_name: str, timeout: int = 10, blocking_timeout: int = 5):
        """
        Hold the Redis lock ``lock:<lock_name>`` for the duration of the block.

        The lock expires on its own after ``timeout`` seconds, so a crashed
        holder cannot block a job forever.

        Raises:
            LockError: If the lock is not acquired within ``blocking_timeout``
        """
        lock = self.redis.lock(
            self._make_key(f"lock:{lock_name}"),
            timeout=timeout,
            blocking_timeout=blocking_timeout,
        )
        if not lock.acquire(blocking=True, blocking_timeout=blocking_timeout):
            raise LockError(f"Could not acquire lock: {lock_name}")

        try:
            yield lock
        finally:
            try:
                lock.release()
            except LockError:
                logger.warning(f"Lock {lock_name} expired before release")


class RedisConnectionManager:
    """Owns the connection pool shared by every repository of the process."""

    def __init__(
        self,
        host: str = "localhost",
        port: int = 6379,
        db: int = 0,
        password: Optional[str] = None,
        max_connections: int = 20,
    ):
        self.connection_pool = redis.ConnectionPool(
            host=host,
            port=port,
            db=db,
            password=password,
            max_connections=max_connections,
            retry_on_timeout=True,
            socket_keepalive=True,
        )
        self.client = redis.Redis(connection_pool=self.connection_pool)

    def health_check(self) -> bool:
        try:
            return bool(self.client.ping())
        except RedisError:
            return False

    def close(self) -> None:
        self.connection_pool.disconnect()
