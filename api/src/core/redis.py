"""Redis connection management and rate limiting.

Redis is optional: the application runs without it and rate limits fail open.
"""

import redis.asyncio as redis

from src.config.settings import Settings
from src.core.logging import get_logger


logger = get_logger(__name__)


async def create_redis_client(settings: Settings) -> redis.Redis:
    """Create a Redis client and verify the connection.

    Raises:
        redis.ConnectionError: If Redis cannot be reached.
    """
    client = redis.from_url(
        settings.redis_url,
        max_connections=settings.redis_max_connections,
        socket_timeout=settings.redis_socket_timeout,
        socket_connect_timeout=settings.redis_socket_connect_timeout,
        retry_on_timeout=settings.redis_retry_on_timeout,
        health_check_interval=settings.redis_health_check_interval,
        decode_responses=True,
    )
    try:
        await client.ping()
    except redis.ConnectionError as e:
        logger.warning("redis_connection_failed", error=str(e))
        await client.aclose()
        raise
    logger.info("redis_connected", url=settings.redis_url)
    return client


async def close_redis_client(client: redis.Redis | None) -> None:
    """Close a Redis client if one was created."""
    if client is not None:
        await client.aclose()
        logger.info("redis_disconnected")


class RateLimiter:
    """Fixed-window counter backed by Redis SET NX EX + INCR."""

    def __init__(
        self,
        redis_client: redis.Redis | None,
        prefix: str,
        limit: int,
        window_seconds: int = 60,
    ) -> None:
        self.redis = redis_client
        self.prefix = prefix
        self.limit = limit
        self.window_seconds = window_seconds

    async def hit(self, identifier: str) -> bool:
        """Count one attempt for ``identifier``.

        Returns:
            True if the attempt is within the limit. Always True when Redis
            is unavailable.
        """
        if self.redis is None:
            return True

        key = f"ratelimit:{self.prefix}:{identifier}"
        # The window TTL is set in the same transaction that creates the key
        pipe = self.redis.pipeline(transaction=True)
        pipe.set(key, 0, ex=self.window_seconds, nx=True)
        pipe.incr(key)
        try:
            _, current = await pipe.execute()
        except redis.RedisError as e:
            logger.warning("rate_limit_check_failed", prefix=self.prefix, error=str(e))
            return True

        if current > self.limit:
            logger.warning(
                "rate_limit_exceeded",
                prefix=self.prefix,
                identifier=identifier,
                attempts=current,
            )
            return False
        return True
