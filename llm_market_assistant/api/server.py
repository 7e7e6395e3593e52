"""FastAPI server for the LLM Market Assistant."""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import FastAPI
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from llm_market_assistant import __version__
from llm_market_assistant.api.api_routes import router
from llm_market_assistant.api.rate_limiter import limiter
from llm_market_assistant.config.models import AppConfig
from llm_market_assistant.config.service import load_config
from llm_market_assistant.core.assistant import MarketAssistant
from llm_market_assistant.factory import build_assistant, build_chat_store
from llm_market_assistant.storage.chat_store import ChatStore

logger = logging.getLogger(__name__)


def create_app(
    config: Optional[AppConfig] = None,
    assistant: Optional[MarketAssistant] = None,
    chat_store: Optional[ChatStore] = None,
) -> FastAPI:
    """Create the API application.

    Args:
        config: Application configuration (default: load_config())
        assistant: Pre-built assistant (default: built from config)
        chat_store: Pre-built chat store (default: built from config)

    Returns:
        Configured FastAPI app
    """
    if assistant is None or chat_store is None:
        config = config or load_config()
    app = FastAPI(
        title="LLM Market Assistant API",
        version=__version__,
        description="Chat API for LLM-backed crypto market analysis",
    )
    app.state.assistant = assistant or build_assistant(config)
    app.state.chat_store = chat_store or build_chat_store(config)

    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
    app.include_router(router)

    logger.info("API application created (store: %s)", app.state.chat_store.path)
    return app
