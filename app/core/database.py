"""
MongoDB Database Manager
Provides centralized database connection and collection access
"""
import logging
from typing import Optional

from pymongo import MongoClient
from pymongo.collection import Collection
from pymongo.database import Database

from app.core.config import MongoConfig

logger = logging.getLogger(__name__)


class DatabaseManager:
    """Centralized database connection management.

    The client can be injected (tests pass a ``mongomock.MongoClient``); when
    omitted a pooled ``MongoClient`` is created lazily from ``MongoConfig``.
    """

    def __init__(self, client: Optional[MongoClient] = None, config: Optional[MongoConfig] = None):
        self.config = config or MongoConfig()
        self._client: Optional[MongoClient] = client
        self._db: Optional[Database] = None

    @property
    def client(self) -> MongoClient:
        """Get MongoDB client with connection pooling"""
        if self._client is None:
            self._client = MongoClient(**self.config.get_connection_settings())
            logger.info("MongoDB client created for %s", self.config.DB)
        return self._client

    @property
    def db(self) -> Database:
        """Get database instance"""
        if self._db is None:
            self._db = self.client[self.config.DB]
        return self._db

    @property
    def use_transactions(self) -> bool:
        return self.config.USE_TRANSACTIONS

    def get_collection(self, name: str) -> Collection:
        """Get collection by name from config"""
        collection_name = self.config.COLLECTIONS.get(name)
        if not collection_name:
            raise ValueError(f"Collection {name} not found in config")
        return self.db[collection_name]

    def ping(self) -> bool:
        """Round-trip to the server; False when unreachable"""
        try:
            self.client.server_info()
            return True
        except Exception as e:
            logger.warning(f"MongoDB ping failed: {str(e)}")
            return False

    def close(self):
        """Close database connection"""
        if self._client:
            self._client.close()
            self._client = None
            self._db = None
