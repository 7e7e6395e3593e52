"""Domain records shared by the market assistant pipeline."""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Generic, List, Literal, Optional, Tuple, TypeVar

from llm_market_assistant.core.errors import MarketDataError

SentimentLabel = Literal["positive", "negative", "neutral"]
MessageRole = Literal["user", "assistant"]
CompletionRole = Literal["system", "user", "assistant"]

T = TypeVar("T")


# ============================================================================
# Market data
# ============================================================================


@dataclass(frozen=True, slots=True)
class ExtendedMarketData:
    """Historical milestones and supply figures for an asset."""

    ath_price: Optional[float] = None
    ath_date: Optional[str] = None
    atl_price: Optional[float] = None
    atl_date: Optional[str] = None
    circulating_supply: Optional[float] = None
    total_supply: Optional[float] = None
    max_supply: Optional[float] = None


@dataclass(frozen=True, slots=True)
class AssetSnapshot:
    """Point-in-time price data for one asset.

    Attributes:
        symbol: Ticker symbol (e.g., "BTC")
        name: Display name (e.g., "Bitcoin")
        price: Current price in USD
        change_24h: 24h price change in percent
        volume_24h: 24h traded volume in USD
        market_cap: Market capitalisation in USD
        extended: Optional milestones and supply block
    """

    symbol: str
    name: str
    price: float
    change_24h: Optional[float]
    volume_24h: Optional[float]
    market_cap: Optional[float]
    extended: Optional[ExtendedMarketData] = None


@dataclass(frozen=True, slots=True)
class MacdValues:
    value: float
    signal: float
    histogram: float


@dataclass(frozen=True, slots=True)
class BollingerBands:
    upper: float
    middle: float
    lower: float


@dataclass(frozen=True, slots=True)
class TechnicalIndicators:
    """Indicator block; ``placeholder`` marks values not computed from data."""

    rsi: float
    macd: MacdValues
    bollinger_bands: BollingerBands
    placeholder: bool = False


@dataclass(frozen=True, slots=True)
class NewsArticle:
    title: str
    url: str
    source: str
    published_at: Optional[str]
    votes: Dict[str, int]
    sentiment: SentimentLabel

    @property
    def total_votes(self) -> int:
        return sum(self.votes.values())


@dataclass(frozen=True, slots=True)
class SentimentSnapshot:
    """Aggregated news sentiment for one symbol."""

    symbol: str
    overall: SentimentLabel
    positive_count: int
    negative_count: int
    neutral_count: int
    total_articles: int
    articles: Tuple[NewsArticle, ...]
    updated_at: datetime
    social: Optional[SentimentLabel] = None
    fear_greed_index: Optional[int] = None


@dataclass(frozen=True, slots=True)
class PriceHistory:
    """Daily USD price and volume series, as ``(timestamp_ms, value)`` points."""

    symbol: str
    days: int
    prices: Tuple[Tuple[int, float], ...]
    total_volumes: Tuple[Tuple[int, float], ...] = ()

    @property
    def price_range(self) -> Optional[Tuple[float, float]]:
        return _value_range(self.prices)

    @property
    def volume_range(self) -> Optional[Tuple[float, float]]:
        return _value_range(self.total_volumes)


def _value_range(points: Tuple[Tuple[int, float], ...]) -> Optional[Tuple[float, float]]:
    if not points:
        return None
    values = [value for _, value in points]
    return min(values), max(values)


@dataclass(frozen=True, slots=True)
class DataSection(Generic[T]):
    """Either an available value or the classified reason it is unavailable."""

    value: Optional[T] = None
    error: Optional[MarketDataError] = None

    @classmethod
    def available(cls, value: T) -> "DataSection[T]":
        return cls(value=value)

    @classmethod
    def unavailable(cls, error: MarketDataError) -> "DataSection[T]":
        return cls(error=error)

    @property
    def is_available(self) -> bool:
        return self.error is None and self.value is not None


@dataclass(frozen=True, slots=True)
class MarketContext:
    """Settled results of every market data branch for a symbol.

    ``history`` is None when price history was not requested.
    """

    symbol: str
    price: DataSection[AssetSnapshot]
    technicals: DataSection[TechnicalIndicators]
    sentiment: DataSection[SentimentSnapshot]
    history: Optional[DataSection[PriceHistory]] = None

    def sections(self) -> Dict[str, DataSection[Any]]:
        sections: Dict[str, DataSection[Any]] = {
            "price": self.price,
            "technicals": self.technicals,
            "sentiment": self.sentiment,
        }
        if self.history is not None:
            sections["history"] = self.history
        return sections

    @property
    def missing_sections(self) -> List[str]:
        return [name for name, section in self.sections().items() if not section.is_available]

    @property
    def has_data(self) -> bool:
        return len(self.missing_sections) < len(self.sections())


# ============================================================================
# Chat messages
# ============================================================================

_id_lock = threading.Lock()
_last_id = 0


def _next_message_id() -> str:
    """Return a unique id that sorts in creation order within the process."""
    global _last_id
    with _id_lock:
        candidate = time.time_ns()
        if candidate <= _last_id:
            candidate = _last_id + 1
        _last_id = candidate
    return str(candidate)


@dataclass(frozen=True, slots=True)
class ChatMessage:
    """One message of a conversation.

    Attributes:
        id: Unique, creation-ordered identifier
        role: "user" or "assistant"
        content: Message text
        timestamp: Creation time in epoch milliseconds
    """

    id: str
    role: MessageRole
    content: str
    timestamp: int

    @classmethod
    def create(cls, role: MessageRole, content: str) -> "ChatMessage":
        message_id = _next_message_id()
        return cls(id=message_id, role=role, content=content, timestamp=int(message_id) // 1_000_000)

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "role": self.role, "content": self.content, "timestamp": self.timestamp}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ChatMessage":
        return cls(
            id=str(data["id"]),
            role=data["role"],
            content=data["content"],
            timestamp=int(data["timestamp"]),
        )


@dataclass(slots=True)
class Chat:
    """A conversation owned by the chat store."""

    id: str
    title: str
    created_at: int
    messages: List[ChatMessage] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "created_at": self.created_at,
            "messages": [message.to_dict() for message in self.messages],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Chat":
        return cls(
            id=str(data["id"]),
            title=data.get("title", "New Chat"),
            created_at=int(data["created_at"]),
            messages=[ChatMessage.from_dict(item) for item in data.get("messages", [])],
        )


@dataclass(frozen=True, slots=True)
class ConversationTurn:
    """The user message and the reply produced for it."""

    user_message: ChatMessage
    assistant_message: ChatMessage
