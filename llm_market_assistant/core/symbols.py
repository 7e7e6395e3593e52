"""Asset symbol registry and extraction from free-form user text."""

from __future__ import annotations

import asyncio
import logging
import re
import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict, List, Mapping, Optional

from llm_market_assistant.core.errors import MarketDataError

logger = logging.getLogger(__name__)

_NON_ALPHA = re.compile(r"[^A-Z]")


@dataclass(frozen=True, slots=True)
class CoinInfo:
    """Identifier and display name of a listed asset."""

    id: str
    name: str


# Checked before the full registry so the common case needs no network call.
COMMON_SYMBOLS: Dict[str, CoinInfo] = {
    "BTC": CoinInfo("bitcoin", "Bitcoin"),
    "ETH": CoinInfo("ethereum", "Ethereum"),
    "SOL": CoinInfo("solana", "Solana"),
    "DOGE": CoinInfo("dogecoin", "Dogecoin"),
    "ADA": CoinInfo("cardano", "Cardano"),
    "DOT": CoinInfo("polkadot", "Polkadot"),
    "LINK": CoinInfo("chainlink", "Chainlink"),
    "XRP": CoinInfo("ripple", "XRP"),
    "MATIC": CoinInfo("matic-network", "Polygon"),
    "AVAX": CoinInfo("avalanche-2", "Avalanche"),
    "BNB": CoinInfo("binancecoin", "BNB"),
    "USDT": CoinInfo("tether", "Tether"),
    "USDC": CoinInfo("usd-coin", "USDC"),
}


class SymbolRegistry:
    """Two-tier symbol registry: static common table, then a lazily loaded full list.

    The full list is fetched at most once per registry. It is built privately
    and published with a single reference assignment under a lock, so readers
    observe either "not loaded" or the complete map. A failed load leaves the
    registry unloaded and keeps the classified failure; ``resolve`` raises it
    until ``failure_cooldown`` seconds have passed and a reload is attempted.
    """

    def __init__(
        self,
        coin_list_loader: Callable[[], Mapping[str, CoinInfo]],
        common_symbols: Optional[Mapping[str, CoinInfo]] = None,
        failure_cooldown: float = 60.0,
    ) -> None:
        self._loader = coin_list_loader
        self._common = dict(COMMON_SYMBOLS if common_symbols is None else common_symbols)
        self._coins: Optional[Mapping[str, CoinInfo]] = None
        self._lock = threading.Lock()
        self._failure_cooldown = failure_cooldown
        self._failed_at: Optional[float] = None
        self._load_error: Optional[MarketDataError] = None

    @property
    def is_loaded(self) -> bool:
        return self._coins is not None

    def resolve(self, symbol: str) -> Optional[CoinInfo]:
        """Blocking lookup; loads the full list on first use of an uncommon symbol.

        Returns:
            CoinInfo, or None if the loaded registry has no such symbol.

        Raises:
            MarketDataError: If the full list could not be loaded, classified
                like the loader's failure.
        """
        upper = symbol.upper()
        common = self._common.get(upper)
        if common is not None:
            return common
        return self._ensure_loaded().get(upper)

    async def lookup(self, symbol: str) -> Optional[CoinInfo]:
        """Resolve ``symbol`` without blocking the event loop.

        An unavailable registry counts as "not found".
        """
        common = self._common.get(symbol.upper())
        if common is not None:
            return common
        coins = self._coins
        if coins is not None:
            return coins.get(symbol.upper())
        try:
            return await asyncio.to_thread(self.resolve, symbol)
        except MarketDataError as exc:
            logger.debug("Registry unavailable while looking up %s: %s", symbol, exc.message)
            return None

    def _ensure_loaded(self) -> Mapping[str, CoinInfo]:
        if self._coins is not None:
            return self._coins
        with self._lock:
            if self._coins is not None:
                return self._coins
            if self._failed_at is not None and time.monotonic() - self._failed_at < self._failure_cooldown:
                raise self._unavailable()
            try:
                loaded = dict(self._loader())
            except MarketDataError as exc:
                logger.error("Failed to load symbol registry (%s): %s", exc.kind.value, exc.message)
                self._record_failure(exc)
                raise self._unavailable() from exc
            except Exception as exc:
                logger.error("Failed to load symbol registry: %s", exc)
                self._record_failure(MarketDataError(str(exc)))
                raise self._unavailable() from exc
            self._coins = loaded
            self._load_error = None
            logger.info("Symbol registry initialized with %d coins", len(loaded))
            return loaded

    def _record_failure(self, error: MarketDataError) -> None:
        self._failed_at = time.monotonic()
        self._load_error = error

    def _unavailable(self) -> MarketDataError:
        # Fresh instance per raise; the stored one is shared across threads
        error = self._load_error or MarketDataError("Symbol registry is not loaded")
        return MarketDataError(f"Symbol registry unavailable: {error.message}", error.kind)


def tokenize(text: str) -> List[str]:
    """Split text into uppercase alphabetic tokens, preserving word order."""
    tokens = (_NON_ALPHA.sub("", word) for word in text.upper().split())
    return [token for token in tokens if token]


class SymbolExtractor:
    """Finds the first recognised asset symbol in user text."""

    def __init__(self, registry: SymbolRegistry) -> None:
        self.registry = registry

    async def extract(self, text: str) -> Optional[str]:
        """Return the first token (left to right) known to the registry, or None."""
        for token in tokenize(text):
            if await self.registry.lookup(token) is not None:
                logger.debug("Extracted symbol %s", token)
                return token
        return None
