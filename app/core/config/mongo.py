"""
MongoDB Configuration
"""
from typing import Dict, Union
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class MongoConfig(BaseSettings):
    """MongoDB connection and collection configuration"""

    model_config = SettingsConfigDict(env_prefix="MONGO_", extra="ignore")

    # Connection Settings
    URI: str = Field(
        "mongodb://localhost:27017",
        description="MongoDB connection URI"
    )
    DB: str = Field("collector", description="MongoDB database name")

    # Pool Settings
    MIN_POOL_SIZE: int = Field(1, ge=0, description="Minimum connection pool size")
    MAX_POOL_SIZE: int = Field(100, ge=1, description="Maximum connection pool size")
    MAX_IDLE_TIME_MS: int = Field(
        60000, ge=1000,
        description="Maximum connection idle time (ms)"
    )

    # Timeouts
    SERVER_SELECTION_TIMEOUT_MS: int = Field(5000, ge=100, description="Fail fast if unreachable")
    SOCKET_TIMEOUT_MS: int = Field(10000, ge=100, description="Per-operation socket timeout")

    USE_TRANSACTIONS: bool = Field(
        True,
        description="Run erasure inside a multi-document transaction (needs a replica set)"
    )

    # Collection Names
    COLLECTIONS: Dict[str, str] = Field(
        default={
            "pages": "pages",
            "events": "events",
            "embeddings": "event_embeddings",
            "users": "users",
            "sessions": "sessions",
        },
        description="MongoDB collection names"
    )

    def get_connection_settings(self) -> Dict[str, Union[str, int]]:
        """Get MongoDB connection settings"""
        return {
            "host": self.URI,
            "minPoolSize": self.MIN_POOL_SIZE,
            "maxPoolSize": self.MAX_POOL_SIZE,
            "maxIdleTimeMS": self.MAX_IDLE_TIME_MS,
            "serverSelectionTimeoutMS": self.SERVER_SELECTION_TIMEOUT_MS,
            "socketTimeoutMS": self.SOCKET_TIMEOUT_MS,
            "retryWrites": True,
        }
