"""
Model API Configuration
"""
from typing import Optional
from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class LLMConfig(BaseSettings):
    """Embedding and chat model settings (OpenAI-compatible API)"""

    model_config = SettingsConfigDict(env_prefix="LLM_", extra="ignore")

    API_KEY: SecretStr = Field("", description="Model provider API key")
    BASE_URL: str = Field(
        "https://api.openai.com/v1",
        description="OpenAI-compatible API base URL"
    )
    EMBEDDING_MODEL: str = Field("text-embedding-ada-002", description="Embedding model")
    EMBEDDING_DIMENSIONS: int = Field(1536, ge=1, description="Embedding vector length")
    CHAT_MODEL: str = Field("gpt-4o-mini", description="Answer generation model")
    TIMEOUT: float = Field(30.0, gt=0, description="Model API timeout in seconds")
    MAX_RETRIES: int = Field(2, ge=0, description="Retries for transient model errors")
    SYSTEM_PROMPT: Optional[str] = Field(
        None,
        description="Override for the analytics assistant system prompt"
    )
