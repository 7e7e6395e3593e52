"""Shared HTTP failure classification for market data sources."""

from __future__ import annotations

import logging

import requests

from llm_market_assistant.core.errors import (
    MarketDataError,
    SourceRateLimitError,
    UnsupportedSymbolError,
)

logger = logging.getLogger(__name__)

# Transport failures worth retrying inside a source adapter
TRANSIENT_ERRORS = (requests.exceptions.ConnectionError, requests.exceptions.Timeout)


def raise_for_source_status(response: requests.Response, source: str, symbol: str | None = None) -> None:
    """Raise a classified MarketDataError for non-2xx responses.

    429 maps to rate-limited, 400/404 to unsupported symbol (when a symbol was
    requested), anything else to unknown.
    """
    status = response.status_code
    if 200 <= status < 300:
        return

    logger.error("%s returned HTTP %s%s", source, status, f" for {symbol}" if symbol else "")
    if status == 429:
        raise SourceRateLimitError(f"{source} rate limit exceeded. Please try again in a minute.")
    if status in (400, 404) and symbol:
        raise UnsupportedSymbolError(
            symbol,
            f"Invalid request for {symbol}. The cryptocurrency might not be supported by {source}.",
        )
    raise MarketDataError(f"{source} request failed with HTTP {status}")
