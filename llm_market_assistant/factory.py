"""Construct the assistant and its collaborators from configuration."""

from __future__ import annotations

import logging
from typing import Optional

import requests

from llm_market_assistant.config.models import AppConfig
from llm_market_assistant.core.assistant import MarketAssistant
from llm_market_assistant.core.market_data import MarketDataAggregator
from llm_market_assistant.core.sentiment import SentimentSource
from llm_market_assistant.core.symbols import SymbolExtractor, SymbolRegistry
from llm_market_assistant.data.coingecko_client import (
    CoinGeckoClient,
    CoinGeckoHistorySource,
    CoinGeckoPriceSource,
)
from llm_market_assistant.data.cryptopanic_client import CryptoPanicClient
from llm_market_assistant.data.technicals import PlaceholderIndicatorSource
from llm_market_assistant.infra.llm_infra import BackoffPolicy, ChatCompletionClient
from llm_market_assistant.storage.chat_store import ChatStore

logger = logging.getLogger(__name__)


def build_completion_client(config: AppConfig, session: Optional[requests.Session] = None) -> ChatCompletionClient:
    llm = config.llm
    if llm.api_key:
        logger.info("Completion client configured with API key %s...", llm.api_key.strip()[:5])
    else:
        logger.warning("No completion API key configured; replies will report a configuration error")
    return ChatCompletionClient(
        api_key=llm.api_key,
        base_url=llm.api_base,
        timeout=llm.timeout_seconds,
        backoff=BackoffPolicy(
            max_attempts=llm.max_attempts,
            base_delay=llm.base_delay_seconds,
            max_delay=llm.max_delay_seconds,
        ),
        session=session,
        key_prefix=llm.api_key_prefix,
    )


def build_assistant(config: AppConfig, session: Optional[requests.Session] = None) -> MarketAssistant:
    """Wire registry, sources, aggregator and completion client into a MarketAssistant.

    Args:
        config: Application configuration
        session: Optional shared HTTP session for every outbound call

    Returns:
        Ready-to-use MarketAssistant
    """
    market = config.market
    coingecko = CoinGeckoClient(
        api_key=config.api.coingecko_api_key,
        base_url=config.api.coingecko_base_url,
        timeout=market.source_timeout_seconds,
        session=session,
    )
    cryptopanic = CryptoPanicClient(
        api_key=config.api.cryptopanic_api_key,
        base_url=config.api.cryptopanic_base_url,
        timeout=market.source_timeout_seconds,
        session=session,
    )

    registry = SymbolRegistry(coingecko.fetch_coin_list)
    aggregator = MarketDataAggregator(
        price_source=CoinGeckoPriceSource(coingecko, registry),
        indicator_source=PlaceholderIndicatorSource(),
        sentiment_source=SentimentSource(cryptopanic, top_n=market.top_articles),
        branch_timeout=market.branch_timeout_seconds,
        history_source=CoinGeckoHistorySource(coingecko, registry, days=market.history_days),
    )

    return MarketAssistant(
        extractor=SymbolExtractor(registry),
        aggregator=aggregator,
        completion_client=build_completion_client(config, session),
        model=config.llm.model,
        temperature=config.llm.temperature,
        max_tokens=config.llm.max_tokens,
    )


def build_chat_store(config: AppConfig) -> ChatStore:
    return ChatStore(config.storage.chat_store_path)
