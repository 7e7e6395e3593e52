"""Pytest fixtures shared across the suite."""

from __future__ import annotations

import json
from typing import Any, Dict, List, Optional
from unittest.mock import Mock

import pytest

from llm_market_assistant.core.errors import MarketDataError
from llm_market_assistant.core.models import (
    AssetSnapshot,
    BollingerBands,
    ExtendedMarketData,
    MacdValues,
    TechnicalIndicators,
)
from llm_market_assistant.core.sentiment import aggregate_sentiment
from llm_market_assistant.infra.llm_infra.types import CompletionRequest, CompletionResult

VALID_KEY = "sk-test-1234567890"


def make_response(
    status: int = 200,
    body: Any = None,
    content_type: str = "application/json",
    raw: Optional[bytes] = None,
) -> Mock:
    """Build a fake requests.Response."""
    response = Mock()
    response.status_code = status
    response.headers = {"Content-Type": content_type} if content_type else {}
    if raw is not None:
        response.content = raw
    elif body is None:
        response.content = b""
    elif isinstance(body, str):
        response.content = body.encode("utf-8")
    else:
        response.content = json.dumps(body).encode("utf-8")
    response.json.side_effect = lambda: json.loads(response.content.decode("utf-8"))
    return response


def completion_body(content: str) -> Dict[str, Any]:
    return {
        "id": "chatcmpl-1",
        "object": "chat.completion",
        "choices": [{"index": 0, "message": {"role": "assistant", "content": content}}],
    }


class RecordingSleep:
    """Async sleep replacement that records requested delays."""

    def __init__(self) -> None:
        self.delays: List[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


class StaticSource:
    """Market data source returning a fixed value or raising a fixed error."""

    def __init__(self, value: Any = None, error: Optional[Exception] = None) -> None:
        self.value = value
        self.error = error
        self.calls: List[str] = []

    def fetch(self, symbol: str) -> Any:
        self.calls.append(symbol)
        if self.error is not None:
            raise self.error
        return self.value


class FakeCompletionClient:
    """Completion provider returning a canned result and recording requests."""

    def __init__(self, result: Optional[CompletionResult] = None, error: Optional[Exception] = None) -> None:
        self.result = result or CompletionResult(text="  Hello  ", attempts=1)
        self.error = error
        self.requests: List[CompletionRequest] = []

    async def complete(self, request: CompletionRequest, cancel_token=None) -> CompletionResult:
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        return self.result


@pytest.fixture
def btc_snapshot() -> AssetSnapshot:
    return AssetSnapshot(
        symbol="BTC",
        name="Bitcoin",
        price=45230.5,
        change_24h=2.3456,
        volume_24h=28_500_000_000,
        market_cap=890_000_000_000,
        extended=ExtendedMarketData(
            ath_price=69045.0,
            ath_date="2021-11-10T14:24:11.849Z",
            atl_price=67.81,
            atl_date="2013-07-06T00:00:00.000Z",
            circulating_supply=19_600_000,
            total_supply=21_000_000,
            max_supply=21_000_000,
        ),
    )


@pytest.fixture
def placeholder_indicators() -> TechnicalIndicators:
    return TechnicalIndicators(
        rsi=50.0,
        macd=MacdValues(value=0.0, signal=0.0, histogram=0.0),
        bollinger_bands=BollingerBands(upper=0.0, middle=0.0, lower=0.0),
        placeholder=True,
    )


@pytest.fixture
def sample_posts() -> List[Dict[str, Any]]:
    return [
        {
            "title": "ETF inflows hit record",
            "url": "https://example.com/a",
            "source": {"title": "CoinDesk"},
            "published_at": "2025-01-15T09:15:00Z",
            "votes": {"positive": 5, "negative": 1, "important": 2, "liked": 1},
        },
        {
            "title": "Exchange hack drains hot wallet",
            "url": "https://example.com/b",
            "source": {"title": "The Block"},
            "published_at": "2025-01-15T08:00:00Z",
            "votes": {"positive": 0, "negative": 3},
        },
        {
            "title": "Network upgrade scheduled",
            "url": "https://example.com/c",
            "source": {"title": "Decrypt"},
            "published_at": "2025-01-15T07:00:00Z",
            "votes": {"positive": 2, "negative": 2},
        },
    ]


@pytest.fixture
def btc_sentiment(sample_posts):
    return aggregate_sentiment("BTC", sample_posts)


@pytest.fixture
def failing_source() -> StaticSource:
    return StaticSource(error=MarketDataError("boom"))
