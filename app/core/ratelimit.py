"""
Sliding-window rate limiting on the shared Redis store.

Each key owns a sorted set of request timestamps. Admission trims entries
older than the window, adds the current request and counts, all inside one
MULTI/EXEC. A rejected request is removed again so it does not extend the
caller's penalty.
"""
from __future__ import annotations

import logging
import math
import time
import uuid
from dataclasses import dataclass
from typing import Callable

import redis

from app.core.errors import RateLimitError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RateLimitDecision:
    allowed: bool
    retry_after_seconds: int = 0
    remaining: int = 0


class SlidingWindowRateLimiter:
    def __init__(
        self,
        client: redis.Redis,
        name: str,
        limit: int,
        window_seconds: int,
        fail_open: bool = True,
        clock: Callable[[], float] = time.time,
    ):
        if limit < 1 or window_seconds < 1:
            raise ValueError("limit and window_seconds must be positive")
        self._r = client
        self.name = name
        self.limit = limit
        self.window_seconds = window_seconds
        self.fail_open = fail_open
        self._clock = clock

    def _key(self, key: str) -> str:
        return f"ratelimit:{self.name}:{key}"

    def admit(self, key: str) -> RateLimitDecision:
        now = self._clock()
        window_start = now - self.window_seconds
        redis_key = self._key(key)
        member = f"{now:.6f}:{uuid.uuid4().hex}"

        try:
            pipe = self._r.pipeline(transaction=True)
            pipe.zremrangebyscore(redis_key, 0, window_start)
            pipe.zadd(redis_key, {member: now})
            pipe.zcard(redis_key)
            pipe.expire(redis_key, self.window_seconds + 1)
            _, _, count, _ = pipe.execute()

            if count <= self.limit:
                return RateLimitDecision(True, 0, self.limit - count)

            self._r.zrem(redis_key, member)
            oldest = self._r.zrange(redis_key, 0, 0, withscores=True)
            if oldest:
                retry_after = math.ceil(oldest[0][1] + self.window_seconds - now)
            else:
                retry_after = self.window_seconds
            return RateLimitDecision(False, max(1, retry_after), 0)
        except redis.RedisError as e:
            if self.fail_open:
                logger.warning(
                    f"Rate limiter store unavailable, admitting request: {str(e)}",
                    extra={"limiter": self.name}
                )
                return RateLimitDecision(True, 0, 0)
            logger.error(
                f"Rate limiter store unavailable, rejecting request: {str(e)}",
                extra={"limiter": self.name}
            )
            return RateLimitDecision(False, self.window_seconds, 0)

    def enforce(self, key: str) -> RateLimitDecision:
        """admit() that raises RateLimitError on rejection"""
        decision = self.admit(key)
        if not decision.allowed:
            raise RateLimitError(decision.retry_after_seconds)
        return decision
