"""Concurrent market data gathering with per-branch failure isolation."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Optional, Protocol, TypeVar

from llm_market_assistant.core.errors import AllSourcesFailedError, MarketDataError, SourceFailure
from llm_market_assistant.core.models import (
    AssetSnapshot,
    DataSection,
    MarketContext,
    PriceHistory,
    SentimentSnapshot,
    TechnicalIndicators,
)

logger = logging.getLogger(__name__)

T = TypeVar("T", covariant=True)

DEFAULT_BRANCH_TIMEOUT = 5.0


class MarketDataSource(Protocol[T]):
    """Blocking source returning one typed value per symbol."""

    def fetch(self, symbol: str) -> T:
        ...


class MarketDataAggregator:
    """Fans out price, indicator and sentiment fetches and joins the settled results.

    Each branch runs in a worker thread bounded by ``branch_timeout``. A failing
    branch becomes an unavailable section instead of an exception and never
    cancels the other branches. Retrying is left to the source adapters. The
    price history branch runs only when requested.
    """

    def __init__(
        self,
        price_source: MarketDataSource[AssetSnapshot],
        indicator_source: MarketDataSource[TechnicalIndicators],
        sentiment_source: MarketDataSource[SentimentSnapshot],
        branch_timeout: float = DEFAULT_BRANCH_TIMEOUT,
        history_source: Optional[MarketDataSource[PriceHistory]] = None,
    ) -> None:
        self.price_source = price_source
        self.indicator_source = indicator_source
        self.sentiment_source = sentiment_source
        self.history_source = history_source
        self.branch_timeout = branch_timeout

    async def gather(self, symbol: str, include_history: bool = False) -> MarketContext:
        """Fetch every section for ``symbol``.

        Args:
            symbol: Asset symbol.
            include_history: Also fetch the price history branch, when a
                history source is configured.

        Returns:
            MarketContext where each section is available or carries its error.

        Raises:
            AllSourcesFailedError: If no branch succeeded.
        """
        branches = [
            self._branch("price", self.price_source, symbol),
            self._branch("technicals", self.indicator_source, symbol),
            self._branch("sentiment", self.sentiment_source, symbol),
        ]
        if include_history and self.history_source is not None:
            branches.append(self._branch("history", self.history_source, symbol))

        price, technicals, sentiment, *rest = await asyncio.gather(*branches)
        context = MarketContext(
            symbol=symbol,
            price=price,
            technicals=technicals,
            sentiment=sentiment,
            history=rest[0] if rest else None,
        )

        missing = context.missing_sections
        if not context.has_data:
            errors = {name: section.error for name, section in context.sections().items() if section.error}
            raise AllSourcesFailedError(symbol, errors)
        if missing:
            logger.warning("Partial market data for %s: missing %s", symbol, ", ".join(missing))
        return context

    async def _branch(self, name: str, source: MarketDataSource[Any], symbol: str) -> DataSection[Any]:
        try:
            value = await asyncio.wait_for(asyncio.to_thread(source.fetch, symbol), self.branch_timeout)
        except asyncio.TimeoutError:
            logger.warning("%s branch timed out after %.1fs for %s", name, self.branch_timeout, symbol)
            return DataSection.unavailable(
                MarketDataError(f"{name} source timed out", SourceFailure.TIMEOUT)
            )
        except MarketDataError as exc:
            logger.warning("%s branch failed for %s (%s): %s", name, symbol, exc.kind.value, exc.message)
            return DataSection.unavailable(exc)
        except Exception as exc:
            logger.error("%s branch raised unexpected %s for %s: %s", name, type(exc).__name__, symbol, exc)
            return DataSection.unavailable(MarketDataError(f"{name} source failed: {exc}"))

        if value is None:
            return DataSection.unavailable(MarketDataError(f"{name} source returned no data"))
        return DataSection.available(value)
