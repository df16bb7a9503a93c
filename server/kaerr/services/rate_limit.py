"""Per-client rate limiting for scoring endpoints."""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from typing import Callable

from fastapi import HTTPException
from redis import Redis
from redis.exceptions import RedisError

logger = logging.getLogger(__name__)

WINDOW_SECONDS = 60


@dataclass
class _Window:
    index: int
    count: int = 0


class RateLimiter:
    """Fixed one-minute window limiter.

    Counts are shared through Redis when a client is given. The first Redis
    error switches the limiter to process-local counting for the rest of its
    lifetime.
    """

    def __init__(
        self,
        limit_per_minute: int,
        *,
        time_func: Callable[[], float] | None = None,
        redis_client: Redis | None = None,
        key_prefix: str = "kaerr-rate-limit",
    ) -> None:
        self._limit = limit_per_minute
        self._time = time_func or time.time
        self._lock = threading.Lock()
        self._windows: dict[str, _Window] = {}
        self._redis = redis_client
        self._prefix = key_prefix

    def _reject(self) -> None:
        raise HTTPException(status_code=429, detail="rate limit exceeded")

    def _count_shared(self, key: str) -> int | None:
        if self._redis is None:
            return None
        redis_key = f"{self._prefix}:{key}"
        try:
            count = int(self._redis.incr(redis_key))
            if count == 1:
                self._redis.expire(redis_key, WINDOW_SECONDS)
        except RedisError as exc:
            logger.warning("Redis rate limiter failed; falling back to local rate limiting", exc_info=exc)
            self._redis = None
            return None
        return count

    def _count_local(self, key: str) -> int:
        index = int(self._time() // WINDOW_SECONDS)
        with self._lock:
            window = self._windows.get(key)
            if window is None or window.index != index:
                window = self._windows[key] = _Window(index)
            window.count += 1
            return window.count

    def check(self, key: str) -> None:
        if self._limit <= 0:
            return
        count = self._count_shared(key)
        if count is None:
            count = self._count_local(key)
        if count > self._limit:
            self._reject()
