"""Configuration management for LLM Market Assistant."""

from llm_market_assistant.config.models import (
    ApiConfig,
    AppConfig,
    LlmConfig,
    MarketConfig,
    StorageConfig,
)
from llm_market_assistant.config.service import (
    get_config_path,
    load_config,
    save_config,
)

__all__ = [
    "ApiConfig",
    "AppConfig",
    "LlmConfig",
    "MarketConfig",
    "StorageConfig",
    "get_config_path",
    "load_config",
    "save_config",
]
