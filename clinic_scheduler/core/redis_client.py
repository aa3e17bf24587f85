"""Redis client configuration and utilities."""

import redis
import structlog

from clinic_scheduler.config import settings

logger = structlog.get_logger(__name__)

# Global Redis client instance
_redis_client: redis.Redis | None = None


def get_redis_client() -> redis.Redis:
    """
    Get or create Redis client instance.

    Returns:
        Redis client instance
    """
    global _redis_client

    if _redis_client is None:
        _redis_client = redis.Redis(
            host=settings.redis_host,
            port=settings.redis_port,
            username=settings.redis_username,
            password=settings.redis_password,
            decode_responses=settings.redis_decode_responses,
            socket_connect_timeout=5,
            socket_keepalive=True,
            health_check_interval=30,
        )

    return _redis_client


async def check_redis_connection() -> bool:
    """
    Check if Redis connection is healthy.

    Returns:
        True if connection is healthy, False otherwise
    """
    try:
        client = get_redis_client()
        client.ping()
        return True
    except Exception:
        return False


def close_redis_connection() -> None:
    """Close Redis connection."""
    global _redis_client

    if _redis_client is not None:
        _redis_client.close()
        _redis_client = None


class SweepLock:
    """Non-blocking Redis lock so only one worker runs a sweep at a time."""

    def __init__(self, redis_client: redis.Redis, name: str, timeout: int):
        """Initialize lock with Redis client, key name and expiry in seconds."""
        self.redis = redis_client
        self.name = name
        self.timeout = timeout
        self._lock = None

    def acquire(self) -> bool:
        """
        Try to take the lock without waiting.

        Returns:
            True if the lock was acquired, False if another worker holds it
            or Redis is unreachable
        """
        try:
            self._lock = self.redis.lock(self.name, timeout=self.timeout, blocking=False)
            return bool(self._lock.acquire(blocking=False))
        except redis.RedisError as e:
            logger.warning("sweep_lock_unavailable", lock=self.name, error=str(e))
            self._lock = None
            return False

    def release(self) -> None:
        """Release the lock if this worker holds it."""
        if self._lock is None:
            return
        try:
            self._lock.release()
        except redis.RedisError as e:
            # Expired locks raise LockNotOwnedError, a RedisError subclass
            logger.warning("sweep_lock_release_failed", lock=self.name, error=str(e))
        finally:
            self._lock = None
