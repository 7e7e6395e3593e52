"""Configuration service for loading and saving AppConfig."""
from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any, Dict

from pydantic import ValidationError

from llm_market_assistant.config.models import (
    ApiConfig,
    AppConfig,
    LlmConfig,
    MarketConfig,
    StorageConfig,
)

logger = logging.getLogger(__name__)

CONFIG_PATH_ENV = "LLM_MARKET_CONFIG"


def get_config_path() -> Path:
    """Get path to the configuration file.

    Returns:
        Path from LLM_MARKET_CONFIG, or ~/.llm_market_assistant/config.json
    """
    override = os.getenv(CONFIG_PATH_ENV)
    if override:
        return Path(override)
    return Path.home() / ".llm_market_assistant" / "config.json"


def _env(name: str, default: str | None = None) -> str | None:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    return value.strip()


def _load_from_env() -> AppConfig:
    """Load configuration from environment variables.

    Used when no config file exists. Unset variables keep the model defaults.

    Returns:
        AppConfig populated from environment variables
    """
    llm_defaults = LlmConfig()
    market_defaults = MarketConfig()

    api_config = ApiConfig(
        coingecko_api_key=_env("COINGECKO_API_KEY"),
        coingecko_base_url=_env("COINGECKO_BASE_URL"),
        cryptopanic_api_key=_env("CRYPTOPANIC_API_KEY"),
        cryptopanic_base_url=_env("CRYPTOPANIC_BASE_URL", ApiConfig().cryptopanic_base_url),
    )

    llm_config = LlmConfig(
        api_key=_env("DEEPSEEK_API_KEY"),
        api_base=_env("DEEPSEEK_BASE_URL", llm_defaults.api_base),
        model=_env("LLM_MODEL", llm_defaults.model),
        temperature=float(_env("LLM_TEMPERATURE", str(llm_defaults.temperature))),
        max_tokens=int(_env("LLM_MAX_TOKENS", str(llm_defaults.max_tokens))),
        timeout_seconds=float(_env("LLM_TIMEOUT_SECONDS", str(llm_defaults.timeout_seconds))),
        max_attempts=int(_env("LLM_MAX_ATTEMPTS", str(llm_defaults.max_attempts))),
    )

    market_config = MarketConfig(
        branch_timeout_seconds=float(
            _env("MARKET_BRANCH_TIMEOUT", str(market_defaults.branch_timeout_seconds))
        ),
    )

    store_path = _env("CHAT_STORE_PATH")
    storage_config = StorageConfig(chat_store_path=store_path) if store_path else StorageConfig()

    return AppConfig(
        api=api_config,
        llm=llm_config,
        market=market_config,
        storage=storage_config,
    )


def load_config(config_path: Path | None = None) -> AppConfig:
    """Load application configuration.

    Loading priority:
    1. If the config file exists, load from file
    2. Otherwise, build from environment variables

    Args:
        config_path: Explicit config file (default: get_config_path())

    Returns:
        AppConfig instance

    Raises:
        ValueError: If the config file is invalid JSON or doesn't match the schema
    """
    path = config_path or get_config_path()

    if path.exists():
        try:
            logger.info("Loading configuration from %s", path)
            with open(path, encoding="utf-8") as f:
                data: Dict[str, Any] = json.load(f)
            return AppConfig(**data)
        except (json.JSONDecodeError, ValidationError) as exc:
            logger.error("Failed to parse config file %s: %s", path, exc)
            raise ValueError(f"Invalid configuration file: {exc}") from exc

    logger.info("No config file found, building configuration from environment variables")
    return _load_from_env()


def save_config(app_config: AppConfig, config_path: Path | None = None) -> Path:
    """Save configuration to file.

    Args:
        app_config: AppConfig instance to save
        config_path: Destination (default: get_config_path())

    Returns:
        Path the configuration was written to
    """
    path = config_path or get_config_path()
    path.parent.mkdir(parents=True, exist_ok=True)

    data = app_config.model_dump(mode="json")
    with open(path, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=2, ensure_ascii=False)

    logger.info("Configuration saved to %s", path)
    return path
