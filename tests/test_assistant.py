"""Tests for the market assistant response pipeline."""

import asyncio
from unittest.mock import AsyncMock, Mock

from conftest import FakeCompletionClient
from llm_market_assistant.core.assistant import (
    FALLBACK_MESSAGES,
    GENERIC_APOLOGY,
    MarketAssistant,
)
from llm_market_assistant.core.cancellation import CancellationToken
from llm_market_assistant.core.errors import (
    AllSourcesFailedError,
    AuthError,
    CompletionCancelledError,
    ConfigError,
    FailureKind,
    MarketDataError,
    NetworkError,
    ServerRejectionError,
    SourceRateLimitError,
    UnsupportedSymbolError,
)
from llm_market_assistant.core.models import DataSection, MarketContext
from llm_market_assistant.core.prompts import ANALYZE_USAGE_MESSAGE
from llm_market_assistant.infra.llm_infra.types import CompletionResult


def make_assistant(client=None, symbol="BTC", context=None, gather_error=None):
    extractor = Mock()
    extractor.extract = AsyncMock(return_value=symbol)
    aggregator = Mock()
    aggregator.gather = AsyncMock(return_value=context, side_effect=gather_error)
    client = client or FakeCompletionClient()
    assistant = MarketAssistant(extractor, aggregator, client, model="deepseek-chat")
    return assistant, extractor, aggregator, client


def price_only_context(snapshot):
    return MarketContext(
        symbol=snapshot.symbol,
        price=DataSection.available(snapshot),
        technicals=DataSection.unavailable(MarketDataError("no candles")),
        sentiment=DataSection.unavailable(MarketDataError("no news")),
    )


class TestHandleTurn:
    def test_reply_is_trimmed_and_distinct(self, btc_snapshot):
        assistant, _, _, client = make_assistant(context=price_only_context(btc_snapshot))

        turn = asyncio.run(assistant.handle_turn("how is btc?"))

        assert turn.user_message.role == "user"
        assert turn.user_message.content == "how is btc?"
        assert turn.assistant_message.role == "assistant"
        assert turn.assistant_message.content == "Hello"
        assert turn.assistant_message.id != turn.user_message.id
        assert int(turn.assistant_message.id) > int(turn.user_message.id)
        assert turn.assistant_message.timestamp >= turn.user_message.timestamp
        assert len(client.requests) == 1

    def test_free_text_skips_history(self, btc_snapshot):
        assistant, _, aggregator, _ = make_assistant(context=price_only_context(btc_snapshot))

        asyncio.run(assistant.respond("how is btc?"))

        aggregator.gather.assert_awaited_once_with("BTC", include_history=False)

    def test_bare_analyze_makes_no_calls(self):
        assistant, extractor, aggregator, client = make_assistant()

        reply = asyncio.run(assistant.respond("/analyze"))

        assert reply.content == ANALYZE_USAGE_MESSAGE
        extractor.extract.assert_not_called()
        aggregator.gather.assert_not_called()
        assert client.requests == []

    def test_analyze_uses_explicit_symbol(self, btc_snapshot):
        assistant, extractor, aggregator, client = make_assistant(context=price_only_context(btc_snapshot))

        asyncio.run(assistant.respond("/analyze btc"))

        extractor.extract.assert_not_called()
        aggregator.gather.assert_awaited_once_with("BTC", include_history=True)
        user_turn = client.requests[0].messages[1].content
        assert "detailed analysis for BTC" in user_turn
        assert "Price Information:" in user_turn

    def test_no_symbol_sends_raw_text(self):
        assistant, _, aggregator, client = make_assistant(symbol=None)

        asyncio.run(assistant.respond("tell me a joke"))

        aggregator.gather.assert_not_called()
        assert client.requests[0].messages[1].content == "tell me a joke"

    def test_all_sources_failed_falls_back_to_raw_text(self):
        error = AllSourcesFailedError("BTC", {"price": MarketDataError("down")})
        assistant, _, _, client = make_assistant(gather_error=error)

        reply = asyncio.run(assistant.respond("is btc a buy?"))

        assert reply.content == "Hello"
        assert client.requests[0].messages[1].content == "is btc a buy?"

    def test_unsupported_symbol_on_analyze(self):
        error = AllSourcesFailedError(
            "ZZZ",
            {"price": UnsupportedSymbolError("ZZZ"), "sentiment": MarketDataError("no news")},
        )
        assistant, _, _, client = make_assistant(gather_error=error)

        reply = asyncio.run(assistant.respond("/analyze zzz"))

        assert "ZZZ" in reply.content
        assert client.requests == []

    def test_rate_limited_registry_is_not_unsupported(self):
        error = AllSourcesFailedError(
            "ZZZ",
            {"price": SourceRateLimitError("Symbol registry unavailable: HTTP 429")},
        )
        assistant, _, _, client = make_assistant(gather_error=error)

        reply = asyncio.run(assistant.respond("/analyze zzz"))

        assert reply.content == "Hello"
        assert len(client.requests) == 1


class TestFallbacks:
    def test_network_failure(self):
        client = FakeCompletionClient(CompletionResult(error=NetworkError("down"), attempts=3))
        assistant, *_ = make_assistant(client=client, symbol=None)

        assert asyncio.run(assistant.respond("hi")).content == GENERIC_APOLOGY

    def test_auth_failure(self):
        client = FakeCompletionClient(CompletionResult(error=AuthError("bad key", status_code=401), attempts=1))
        assistant, *_ = make_assistant(client=client, symbol=None)

        assert asyncio.run(assistant.respond("hi")).content == FALLBACK_MESSAGES[FailureKind.AUTH]

    def test_server_rejection_message(self):
        client = FakeCompletionClient(CompletionResult(error=ServerRejectionError("quota exceeded"), attempts=1))
        assistant, *_ = make_assistant(client=client, symbol=None)

        reply = asyncio.run(assistant.respond("hi"))

        assert reply.content == "I encountered an error: quota exceeded. Please try again."

    def test_config_error(self):
        client = FakeCompletionClient(error=ConfigError("API key is missing"))
        assistant, *_ = make_assistant(client=client, symbol=None)

        assert asyncio.run(assistant.respond("hi")).content == FALLBACK_MESSAGES[FailureKind.CONFIG]

    def test_unexpected_error_still_replies(self):
        client = FakeCompletionClient(error=RuntimeError("boom"))
        assistant, *_ = make_assistant(client=client, symbol=None)

        reply = asyncio.run(assistant.respond("hi"))

        assert reply.role == "assistant"
        assert reply.content == FALLBACK_MESSAGES[FailureKind.UNKNOWN]

    def test_cancelled_result(self):
        client = FakeCompletionClient(CompletionResult(error=CompletionCancelledError("stop"), attempts=1))
        assistant, *_ = make_assistant(client=client, symbol=None)

        assert asyncio.run(assistant.respond("hi")).content == "The request was cancelled."

    def test_cancelled_before_start(self):
        assistant, extractor, _, client = make_assistant()

        async def run():
            token = CancellationToken()
            token.cancel()
            return await assistant.respond("how is btc?", token)

        reply = asyncio.run(run())

        assert reply.content == "The request was cancelled."
        assert client.requests == []
