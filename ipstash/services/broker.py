"""Redis broker connection lifecycle."""

import logging
from contextlib import contextmanager
from typing import Generator

import redis

from ipstash.errors import ConfigInvalidError


logger = logging.getLogger(__name__)


@contextmanager
def open_redis(url: str, timeout: float = 5) -> Generator[redis.Redis, None, None]:
    """Context manager for a Redis client opened once per run.

    Args:
        url: Redis connection URL (redis://, rediss:// or unix://).
        timeout: Socket connect and read timeout in seconds.

    Yields:
        redis.Redis: Client with string decoding enabled.

    Raises:
        ConfigInvalidError: If redis-py rejects the URL.
    """
    try:
        client = redis.Redis.from_url(
            url,
            socket_timeout=timeout,
            socket_connect_timeout=timeout,
            decode_responses=True,
        )
    except ValueError as e:
        raise ConfigInvalidError("REDIS_URL", f"Invalid Redis URL: {e}") from e

    try:
        yield client
    finally:
        client.close()
        logger.debug("Redis connection closed")
