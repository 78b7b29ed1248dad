"""
Process-wide service wiring.

Every shared handle (Mongo client, Redis client, model client, worker pool)
is created here once and injected into repositories and services, so tests
can swap any of them for an in-memory substitute.
"""
import logging
from typing import Optional

import redis
from pymongo import MongoClient

from app.core.cache import AnalyticsCache, create_redis_client
from app.core.config import MongoConfig, Settings, settings as default_settings
from app.core.database import DatabaseManager
from app.core.llm import ModelClient
from app.core.ratelimit import SlidingWindowRateLimiter
from app.repositories.embeddings import EmbeddingRepository
from app.repositories.events import EventRepository
from app.repositories.indexes import ensure_indexes
from app.repositories.users import UserRepository
from app.services.analytics import AnalyticsService
from app.services.embeddings import EmbeddingQueue, EmbeddingService
from app.services.ingest import IngestService
from app.services.insights import InsightService
from app.services.privacy import PrivacyService

logger = logging.getLogger(__name__)


class ServiceContainer:
    def __init__(
        self,
        db_manager: DatabaseManager,
        redis_client: redis.Redis,
        model: ModelClient,
        settings: Settings = default_settings,
    ):
        self.settings = settings
        self.db_manager = db_manager
        self.redis = redis_client
        self.model = model

        # Repositories
        self.events = EventRepository(db_manager)
        self.index = EmbeddingRepository(db_manager, scan_limit=settings.SIMILARITY_SCAN_LIMIT)
        self.users = UserRepository(db_manager)

        # Shared-store components
        self.cache = AnalyticsCache(redis_client, ttl_seconds=settings.CACHE_TTL, namespace=settings.CACHE_NAMESPACE)
        self.ingest_limiter = SlidingWindowRateLimiter(
            redis_client, "ingest",
            limit=settings.INGEST_RATE_LIMIT,
            window_seconds=settings.INGEST_RATE_WINDOW_SECONDS,
            fail_open=settings.RATE_LIMIT_FAIL_OPEN,
        )
        self.read_limiter = SlidingWindowRateLimiter(
            redis_client, "read",
            limit=settings.READ_RATE_LIMIT,
            window_seconds=settings.READ_RATE_WINDOW_SECONDS,
            fail_open=settings.RATE_LIMIT_FAIL_OPEN,
        )

        # Services
        self.embeddings = EmbeddingService(self.events, self.index, model)
        self.embedding_queue = EmbeddingQueue(
            self.embeddings,
            max_workers=settings.EMBEDDING_WORKERS,
            max_backlog=settings.EMBEDDING_MAX_BACKLOG,
        )
        self.ingest = IngestService(self.events, self.cache, self.embedding_queue)
        self.analytics = AnalyticsService(self.events, self.cache)
        self.insights = InsightService(
            self.events, self.index, model, self.embedding_queue,
            context_limit=settings.CHAT_CONTEXT_LIMIT,
            max_question_length=settings.CHAT_QUESTION_MAX_LENGTH,
        )
        self.privacy = PrivacyService(self.events, self.cache)

    def ensure_indexes(self):
        ensure_indexes(self.db_manager)

    def close(self):
        self.embedding_queue.shutdown(wait_for_jobs=True)
        self.model.close()
        self.db_manager.close()
        self.redis.close()


def build_container(
    mongo_client: Optional[MongoClient] = None,
    redis_client: Optional[redis.Redis] = None,
    model: Optional[ModelClient] = None,
    settings: Settings = default_settings,
    mongo_config: Optional[MongoConfig] = None,
) -> ServiceContainer:
    """Wire the default production container; any handle may be injected"""
    return ServiceContainer(
        db_manager=DatabaseManager(client=mongo_client, config=mongo_config),
        redis_client=redis_client if redis_client is not None else create_redis_client(),
        model=model if model is not None else ModelClient(),
        settings=settings,
    )
