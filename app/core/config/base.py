"""
Base configuration settings for the application
"""
from typing import List, Optional
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import field_validator, Field


class Settings(BaseSettings):
    """Base settings with common functionality and validation"""

    model_config = SettingsConfigDict(
        case_sensitive=True,
        env_file=".env",
        env_file_encoding="utf-8",
        str_strip_whitespace=True,
        validate_default=True,
        env_prefix="COLLECTOR_",
        validate_assignment=True,
        extra="ignore",
    )

    # API Settings
    API_V1_STR: str = Field("/api/v1", description="API version prefix")
    PROJECT_NAME: str = Field("Consent Analytics Collector", description="Project name")
    VERSION: str = Field("1.0.0", description="API version")
    DESCRIPTION: str = Field(
        "Privacy-preserving analytics collector with semantic insights",
        description="API description"
    )
    DEBUG: bool = Field(False, description="Debug mode")

    # CORS Settings
    CORS_ORIGINS: List[str] = Field(
        default=["http://localhost:3000"],
        description="Allowed CORS origins"
    )

    # Rate limiting
    INGEST_RATE_LIMIT: int = Field(60, ge=1, description="Tracking requests per window")
    INGEST_RATE_WINDOW_SECONDS: int = Field(60, ge=1, description="Tracking window length")
    READ_RATE_LIMIT: int = Field(100, ge=1, description="Read API requests per window")
    READ_RATE_WINDOW_SECONDS: int = Field(60, ge=1, description="Read API window length")
    RATE_LIMIT_FAIL_OPEN: bool = Field(
        True,
        description="Admit requests when the counter store is unreachable"
    )

    # Aggregation cache
    CACHE_TTL: int = Field(300, ge=1, description="Aggregate cache TTL in seconds")
    CACHE_NAMESPACE: str = Field("analytics", description="Key prefix for cached aggregates")

    # Event store
    QUERY_EVENT_LIMIT: int = Field(1000, ge=1, le=1000, description="Max events per aggregate query")
    RECENT_EVENTS_LIMIT: int = Field(50, ge=1, description="Events returned in recentEvents")
    MAX_METADATA_BYTES: int = Field(4096, ge=2, description="Max serialized metadata size")

    # Embeddings
    EMBEDDING_WORKERS: int = Field(2, ge=1, description="Embedding worker threads")
    EMBEDDING_MAX_BACKLOG: int = Field(100, ge=1, description="Max queued embedding jobs")
    EMBEDDING_DRAIN_BATCH: int = Field(10, ge=1, description="Events drained per triggering request")
    SIMILARITY_SCAN_LIMIT: int = Field(5000, ge=1, description="Max embeddings scanned per query")

    # Chat
    CHAT_CONTEXT_LIMIT: int = Field(20, ge=1, description="Max context items per answer")
    CHAT_QUESTION_MAX_LENGTH: int = Field(500, ge=1, description="Max question length")

    # Roles
    ADMIN_ROLE: str = Field("admin", description="Role allowed to erase visitor data")

    # Logging Settings
    LOG_LEVEL: Optional[str] = Field(
        None,
        description="Overrides LOG_LEVEL from the logging config when set"
    )
    LOG_TO_FILE: bool = Field(False, description="Enable file logging")

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, v):
        if v is None:
            return v
        allowed = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v.upper() not in allowed:
            raise ValueError(f"Log level must be one of {allowed}")
        return v.upper()


# Create global settings instance
settings = Settings()
