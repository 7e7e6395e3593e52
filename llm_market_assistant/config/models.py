"""Configuration models for LLM Market Assistant using Pydantic."""
from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field


def _default_store_path() -> str:
    return str(Path.home() / ".llm_market_assistant" / "chats.json")


class ApiConfig(BaseModel):
    """Market data endpoints and credentials configuration."""

    model_config = ConfigDict(extra="forbid")

    coingecko_api_key: str | None = None
    coingecko_base_url: str | None = Field(
        default=None,
        description="Override for the CoinGecko base URL (default depends on the key tier)"
    )

    cryptopanic_api_key: str | None = None
    cryptopanic_base_url: str = "https://cryptopanic.com/api/v1"


class LlmConfig(BaseModel):
    """Completion endpoint and retry configuration."""

    model_config = ConfigDict(extra="forbid")

    api_key: str | None = None
    api_base: str = "https://api.deepseek.com/v1"
    api_key_prefix: str = Field(
        default="sk-",
        description="Expected credential prefix (empty disables the check)"
    )
    model: str = Field(
        default="deepseek-chat",
        description="Model identifier sent with every request"
    )

    temperature: float = Field(
        default=0.7,
        ge=0.0,
        le=2.0,
        description="Sampling temperature for LLM"
    )
    max_tokens: int = Field(
        default=2000,
        ge=1,
        description="Maximum output tokens"
    )
    timeout_seconds: float = Field(
        default=60.0,
        gt=0,
        description="Request timeout in seconds"
    )

    max_attempts: int = Field(
        default=3,
        ge=1,
        description="Total attempts per completion"
    )
    base_delay_seconds: float = Field(
        default=1.0,
        ge=0.0,
        description="Backoff delay after the first failed attempt"
    )
    max_delay_seconds: float = Field(
        default=5.0,
        ge=0.0,
        description="Upper bound for any backoff delay"
    )


class MarketConfig(BaseModel):
    """Market data gathering configuration."""

    model_config = ConfigDict(extra="forbid")

    branch_timeout_seconds: float = Field(
        default=5.0,
        gt=0,
        description="Maximum wait for each market data branch"
    )
    source_timeout_seconds: float = Field(
        default=5.0,
        gt=0,
        description="HTTP timeout for each market data request"
    )
    top_articles: int = Field(
        default=5,
        ge=0,
        description="Number of ranked news articles included in the prompt"
    )
    history_days: int = Field(
        default=30,
        ge=1,
        le=365,
        description="Days of daily price history fetched for /analyze requests"
    )


class StorageConfig(BaseModel):
    """Conversation store configuration."""

    model_config = ConfigDict(extra="forbid")

    chat_store_path: str = Field(
        default_factory=_default_store_path,
        description="JSON file holding persisted chats"
    )


class AppConfig(BaseModel):
    """Root application configuration containing all sub-configs."""

    model_config = ConfigDict(extra="forbid")

    api: ApiConfig = Field(default_factory=ApiConfig)
    llm: LlmConfig = Field(default_factory=LlmConfig)
    market: MarketConfig = Field(default_factory=MarketConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)
