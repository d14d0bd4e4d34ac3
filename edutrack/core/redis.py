# ruff: noqa: PLW0603
"""Redis client lifecycle.

Only the redis lock backend needs a connection; with the default in-process
backend nothing here is called.
"""

import redis.asyncio as redis

from edutrack.config import Settings, get_settings
from edutrack.core.logging import get_logger


logger = get_logger(__name__)

# Set by init_redis, cleared by shutdown_redis
_redis_client: redis.Redis | None = None


async def init_redis(settings: Settings | None = None) -> redis.Redis:
    """Connect and ping; the client is kept for get_redis().

    Raises:
        redis.ConnectionError: Server unreachable (the pool is closed first).
    """
    global _redis_client

    settings = settings or get_settings()

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
        logger.warning("redis_connection_failed", url=settings.redis_url, error=str(e))
        await client.aclose()
        raise

    logger.info("redis_connected", url=settings.redis_url)
    _redis_client = client
    return client


async def shutdown_redis() -> None:
    """Close the client opened by init_redis, if any."""
    global _redis_client

    if _redis_client:
        await _redis_client.aclose()
        logger.info("redis_disconnected")
        _redis_client = None


def get_redis() -> redis.Redis | None:
    """Client opened by init_redis, or None."""
    return _redis_client
