"""Redis client setup and store error translation."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from redis.asyncio import ConnectionPool, Redis
from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import RedisError
from redis.exceptions import TimeoutError as RedisTimeoutError
from tenacity import (
    AsyncRetrying,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from poker_engine.config import Settings
from poker_engine.utils.errors import StoreUnavailableError

logger = logging.getLogger(__name__)

# Retry configuration for the startup connection
CONNECT_MIN_WAIT = 1  # seconds
CONNECT_MAX_WAIT = 10  # seconds


async def init_redis(settings: Settings) -> Redis:
    """Create a pooled Redis client and verify it answers PING.

    Connection and timeout errors are retried with exponential backoff up to
    ``settings.redis_connect_retries`` attempts; after that the store is
    reported unavailable, which is fatal at startup.
    """
    pool = ConnectionPool.from_url(
        settings.redis_url,
        max_connections=settings.redis_max_connections,
        socket_timeout=settings.redis_socket_timeout,
        socket_connect_timeout=settings.redis_socket_connect_timeout,
        retry_on_timeout=True,
        health_check_interval=settings.redis_health_check_interval,
        encoding="utf-8",
        decode_responses=True,
    )
    client = Redis(connection_pool=pool)

    try:
        async for attempt in AsyncRetrying(
            stop=stop_after_attempt(settings.redis_connect_retries),
            wait=wait_exponential(multiplier=1, min=CONNECT_MIN_WAIT, max=CONNECT_MAX_WAIT),
            retry=retry_if_exception_type((RedisConnectionError, RedisTimeoutError)),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True,
        ):
            with attempt:
                await client.ping()
    except RedisError as e:
        await close_redis(client)
        raise StoreUnavailableError("connect", str(e)) from e

    return client


async def close_redis(client: Redis) -> None:
    """Close the client and its connection pool."""
    await client.aclose()
    await client.connection_pool.disconnect()


async def ping(client: Redis) -> None:
    """Raise StoreUnavailableError unless the store answers PING."""
    async with store_errors("ping"):
        await client.ping()


@asynccontextmanager
async def store_errors(operation: str) -> AsyncIterator[None]:
    """Re-raise any Redis error inside the block as StoreUnavailableError.

    Usage:
        async with store_errors("draw_one"):
            card = await self.redis.rpop(key)
    """
    try:
        yield
    except RedisError as e:
        raise StoreUnavailableError(operation, str(e)) from e
