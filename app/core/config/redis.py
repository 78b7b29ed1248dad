"""
Redis Configuration
Shared fast key-value store for rate limiter counters and the aggregate cache
"""
from typing import Dict, Union
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class RedisConfig(BaseSettings):
    """Redis connection configuration"""

    model_config = SettingsConfigDict(env_prefix="REDIS_", extra="ignore")

    URL: str = Field("redis://localhost:6379/0", description="Redis connection URL")
    SOCKET_TIMEOUT: float = Field(2.0, gt=0, description="Socket timeout in seconds")
    CONNECT_TIMEOUT: float = Field(2.0, gt=0, description="Connect timeout in seconds")

    def get_connection_settings(self) -> Dict[str, Union[str, float, bool]]:
        return {
            "socket_timeout": self.SOCKET_TIMEOUT,
            "socket_connect_timeout": self.CONNECT_TIMEOUT,
            "decode_responses": True,
        }
