"""Response assembly: symbol resolution, market context, one completion, one reply."""

from __future__ import annotations

import logging
from typing import Dict, Optional

from llm_market_assistant.core.cancellation import CancellationToken, run_cancellable
from llm_market_assistant.core.errors import (
    AllSourcesFailedError,
    CompletionCancelledError,
    ConfigError,
    FailureKind,
    SourceFailure,
)
from llm_market_assistant.core.market_data import MarketDataAggregator
from llm_market_assistant.core.models import ChatMessage, ConversationTurn, MarketContext
from llm_market_assistant.core.prompts import ANALYZE_USAGE_MESSAGE, compose_request, parse_command
from llm_market_assistant.core.symbols import SymbolExtractor
from llm_market_assistant.infra.llm_infra.types import CompletionProvider, CompletionResult

logger = logging.getLogger(__name__)

GENERIC_APOLOGY = "I apologize, but I was unable to generate a response at this time. Please try again."

FALLBACK_MESSAGES: Dict[FailureKind, str] = {
    FailureKind.CONFIG: "The AI service is not configured correctly. Please check the API key configuration.",
    FailureKind.AUTH: "Authentication error. Please check the API key configuration.",
    FailureKind.RATE_LIMIT: "Rate limit exceeded. Please try again in a moment.",
    FailureKind.VALIDATION: "I received an invalid response format. Please try your request again.",
    FailureKind.NETWORK: GENERIC_APOLOGY,
    FailureKind.CANCELLED: "The request was cancelled.",
    FailureKind.UNKNOWN: "I apologize, but I encountered an error while analyzing the market data. Please try again.",
}

UNSUPPORTED_SYMBOL_MESSAGE = (
    "I couldn't find market data for {symbol}. Please check the symbol and try again, "
    "for example: /analyze BTC"
)


def fallback_message(result: CompletionResult) -> str:
    """Fixed user-facing text for a failed completion."""
    error = result.error
    if error is None:
        return GENERIC_APOLOGY
    if error.kind is FailureKind.SERVER_REJECTION:
        return f"I encountered an error: {error.message or 'Unknown error'}. Please try again."
    return FALLBACK_MESSAGES.get(error.kind, GENERIC_APOLOGY)


class MarketAssistant:
    """Turns one user message into exactly one assistant message.

    Market data is gathered for the resolved symbol, the prompt is composed
    from whatever data arrived, and the completion client is invoked at most
    once. Every failure ends in a well-formed assistant message.
    """

    def __init__(
        self,
        extractor: SymbolExtractor,
        aggregator: MarketDataAggregator,
        completion_client: CompletionProvider,
        model: str,
        temperature: float = 0.7,
        max_tokens: int = 2000,
    ) -> None:
        self.extractor = extractor
        self.aggregator = aggregator
        self.completion_client = completion_client
        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens

    async def handle_turn(self, text: str, cancel_token: Optional[CancellationToken] = None) -> ConversationTurn:
        """Create the user message for ``text`` and the reply to it."""
        user_message = ChatMessage.create("user", text)
        assistant_message = await self.respond(text, cancel_token)
        return ConversationTurn(user_message=user_message, assistant_message=assistant_message)

    async def respond(self, text: str, cancel_token: Optional[CancellationToken] = None) -> ChatMessage:
        """Generate the assistant reply for ``text``. Never raises."""
        try:
            content = await self._generate(text, cancel_token)
        except CompletionCancelledError:
            logger.info("Request cancelled before completion")
            content = FALLBACK_MESSAGES[FailureKind.CANCELLED]
        except Exception:
            logger.exception("Unexpected error while generating response")
            content = FALLBACK_MESSAGES[FailureKind.UNKNOWN]
        return ChatMessage.create("assistant", content)

    async def _generate(self, text: str, cancel_token: Optional[CancellationToken]) -> str:
        command = parse_command(text)
        if command.needs_symbol:
            return ANALYZE_USAGE_MESSAGE

        symbol = command.symbol
        if symbol is None:
            symbol = await run_cancellable(self.extractor.extract(command.text), cancel_token)
            logger.info("Extracted symbol: %s", symbol)

        context: Optional[MarketContext] = None
        price_error = None
        if symbol is not None:
            try:
                context = await run_cancellable(
                    self.aggregator.gather(symbol, include_history=command.analyze), cancel_token
                )
                price_error = context.price.error
            except AllSourcesFailedError as exc:
                logger.warning("%s; continuing without market context", exc)
                price_error = exc.errors.get("price")

        # An explicit analyze request for an unknown symbol ends here
        if command.analyze and price_error is not None and price_error.kind is SourceFailure.UNSUPPORTED_SYMBOL:
            return UNSUPPORTED_SYMBOL_MESSAGE.format(symbol=symbol)

        request = compose_request(
            command,
            context,
            symbol,
            model=self.model,
            temperature=self.temperature,
            max_tokens=self.max_tokens,
        )

        try:
            result = await self.completion_client.complete(request, cancel_token)
        except ConfigError as exc:
            logger.error("Completion client misconfigured: %s", exc)
            return FALLBACK_MESSAGES[FailureKind.CONFIG]

        if result.ok and result.text:
            return result.text.strip()

        logger.error(
            "Completion failed after %d attempt(s): %s",
            result.attempts,
            result.failure_kind.value if result.failure_kind else "unknown",
        )
        return fallback_message(result)
