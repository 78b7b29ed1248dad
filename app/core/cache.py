"""
Aggregate cache on the shared Redis store.

Entries live under ``<namespace>:<generation>:<key>``. ``invalidate_all``
bumps the generation counter instead of deleting keys, so a rollup computed
before a write can never be served after it, even when its ``put`` lands
after the invalidation. Old generations age out through their TTL.
"""
from __future__ import annotations

import json
import logging
from datetime import datetime
from typing import Any, Callable, Optional

import redis

from .config import RedisConfig, settings

logger = logging.getLogger(__name__)

OPEN_RANGE = "open"


def create_redis_client(config: Optional[RedisConfig] = None) -> redis.Redis:
    """Build the process-wide Redis handle shared by the cache and rate limiters"""
    config = config or RedisConfig()
    return redis.Redis.from_url(config.URL, **config.get_connection_settings())


def range_key(start: Optional[datetime], end: Optional[datetime]) -> str:
    """Deterministic cache key for a (start, end) time range"""
    def _fmt(value: Optional[datetime]) -> str:
        return value.isoformat() if value is not None else OPEN_RANGE
    return f"range:{_fmt(start)}:{_fmt(end)}"


class AnalyticsCache:
    def __init__(
        self,
        client: redis.Redis,
        ttl_seconds: int = settings.CACHE_TTL,
        namespace: str = settings.CACHE_NAMESPACE,
    ):
        self._r = client
        self.ttl_seconds = int(ttl_seconds)
        self.namespace = namespace

    @property
    def generation_key(self) -> str:
        return f"{self.namespace}:generation"

    def generation(self) -> Optional[int]:
        """Current generation, or None when the store is unreachable"""
        try:
            raw = self._r.get(self.generation_key)
            return int(raw) if raw is not None else 0
        except redis.RedisError as e:
            logger.warning(f"Cache generation read failed: {str(e)}")
            return None

    def _entry_key(self, generation: int, key: str) -> str:
        return f"{self.namespace}:{generation}:{key}"

    def get(self, key: str) -> Any:
        generation = self.generation()
        if generation is None:
            return None
        try:
            s = self._r.get(self._entry_key(generation, key))
            if s is None:
                return None
            return json.loads(s)
        except (redis.RedisError, ValueError) as e:
            # a failed read is a miss
            logger.warning(f"Cache read error: {str(e)}")
            return None

    def put(self, key: str, value: Any, ttl: Optional[int] = None, generation: Optional[int] = None) -> bool:
        if generation is None:
            generation = self.generation()
            if generation is None:
                return False
        try:
            s = json.dumps(value, default=str)
            self._r.setex(self._entry_key(generation, key), int(max(1, ttl or self.ttl_seconds)), s)
            return True
        except (redis.RedisError, TypeError) as e:
            logger.warning(f"Cache write error: {str(e)}")
            return False

    def invalidate_all(self) -> bool:
        try:
            self._r.incr(self.generation_key)
            return True
        except redis.RedisError as e:
            # entries still expire after ttl_seconds
            logger.error(f"Cache invalidation error: {str(e)}")
            return False

    def get_or_set(self, key: str, loader: Callable[[], Any], ttl: Optional[int] = None) -> Any:
        """Read-through helper. The generation is captured before loading."""
        generation = self.generation()
        if generation is not None:
            try:
                s = self._r.get(self._entry_key(generation, key))
                if s is not None:
                    return json.loads(s)
            except (redis.RedisError, ValueError) as e:
                logger.warning(f"Cache read error: {str(e)}")
        result = loader()
        if result is not None and generation is not None:
            self.put(key, result, ttl=ttl, generation=generation)
        return result
