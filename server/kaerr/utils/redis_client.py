"""Redis connection helpers."""

from __future__ import annotations

import logging
import time

from redis import Redis
from redis.exceptions import RedisError

logger = logging.getLogger(__name__)


def create_redis_client(
    url: str | None,
    *,
    max_retries: int = 3,
    retry_interval_s: float = 0.5,
) -> Redis | None:
    """Connect to Redis, or return ``None`` when it is not configured or reachable.

    Callers treat ``None`` as "run with in-memory state".
    """

    if not url:
        logger.info("REDIS_URL not set; using in-memory services")
        return None

    client = Redis.from_url(url, decode_responses=False)
    for attempt in range(1, max_retries + 1):
        try:
            client.ping()
        except RedisError as exc:
            logger.warning(
                "Redis connection attempt %s/%s failed: %s", attempt, max_retries, exc
            )
            if attempt < max_retries:
                time.sleep(retry_interval_s)
        else:
            logger.info("Connected to Redis at %s", url)
            return client

    logger.warning("Redis unavailable at %s; continuing with in-memory services", url)
    client.close()
    return None


def close_redis_client(client: Redis | None) -> None:
    if client is None:
        return
    try:
        client.close()
    except (RedisError, OSError):
        logger.debug("Failed to close Redis client", exc_info=True)
