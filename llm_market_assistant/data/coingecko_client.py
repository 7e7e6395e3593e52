"""CoinGecko market data adapter."""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Tuple

import requests
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from llm_market_assistant.core.errors import MarketDataError, UnsupportedSymbolError
from llm_market_assistant.core.models import AssetSnapshot, ExtendedMarketData, PriceHistory
from llm_market_assistant.core.symbols import CoinInfo, SymbolRegistry
from llm_market_assistant.data.http_errors import TRANSIENT_ERRORS, raise_for_source_status

logger = logging.getLogger(__name__)

COINGECKO_BASE_URL = "https://api.coingecko.com/api/v3"
COINGECKO_PRO_BASE_URL = "https://pro-api.coingecko.com/api/v3"
DEFAULT_TIMEOUT = 5.0
DEFAULT_HISTORY_DAYS = 30
FREE_TIER_MAX_HISTORY_DAYS = 90


def _safe_float(value: Any) -> Optional[float]:
    """Convert value to float when possible."""

    try:
        if value is None:
            return None
        return float(value)
    except (TypeError, ValueError):
        return None


def _usd(block: Any) -> Any:
    return block.get("usd") if isinstance(block, dict) else None


class CoinGeckoClient:
    """Thin client for the CoinGecko REST API (free or pro tier)."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: float = DEFAULT_TIMEOUT,
        session: Optional[requests.Session] = None,
    ) -> None:
        """Initialize CoinGecko client.

        Args:
            api_key: Pro API key; the free tier is used when empty.
            base_url: Override for the API base URL.
            timeout: Request timeout in seconds.
            session: HTTP session to use.
        """
        self.api_key = api_key or None
        default_url = COINGECKO_PRO_BASE_URL if self.api_key else COINGECKO_BASE_URL
        self.base_url = (base_url or default_url).rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()
        logger.debug("Using CoinGecko %s", "Pro API" if self.api_key else "Free API")

    @retry(
        stop=stop_after_attempt(2),
        wait=wait_exponential(multiplier=0.5, min=0.5, max=2),
        retry=retry_if_exception_type(TRANSIENT_ERRORS),
        reraise=True,
    )
    def _get(self, path: str, params: Optional[Dict[str, Any]] = None) -> requests.Response:
        headers = {"Accept": "application/json"}
        if self.api_key:
            headers["x-cg-pro-api-key"] = self.api_key
        return self.session.get(
            f"{self.base_url}{path}",
            params=params,
            headers=headers,
            timeout=self.timeout,
        )

    def _get_json(self, path: str, params: Optional[Dict[str, Any]] = None, symbol: Optional[str] = None) -> Any:
        try:
            response = self._get(path, params)
        except requests.RequestException as exc:
            raise MarketDataError(f"CoinGecko request failed: {exc}") from exc
        raise_for_source_status(response, "CoinGecko", symbol)
        try:
            return response.json()
        except ValueError as exc:
            raise MarketDataError(f"Invalid JSON from CoinGecko: {exc}") from exc

    def fetch_coin_list(self) -> Dict[str, CoinInfo]:
        """Fetch every listed coin keyed by uppercase symbol."""
        data = self._get_json("/coins/list", {"include_platform": "false"})
        if not isinstance(data, list):
            raise MarketDataError("Unexpected coin list format from CoinGecko")

        coins: Dict[str, CoinInfo] = {}
        for item in data:
            if not isinstance(item, dict) or not item.get("symbol") or not item.get("id"):
                continue
            coins[str(item["symbol"]).upper()] = CoinInfo(id=str(item["id"]), name=str(item.get("name") or item["id"]))
        logger.info("Fetched %d coins from CoinGecko", len(coins))
        return coins

    def fetch_asset_snapshot(self, symbol: str, coin: CoinInfo) -> AssetSnapshot:
        """Fetch the current price snapshot for ``coin``.

        Raises:
            UnsupportedSymbolError: If CoinGecko does not know the coin.
            SourceRateLimitError: On HTTP 429.
            MarketDataError: On any other failure or missing market data.
        """
        data = self._get_json(
            f"/coins/{coin.id}",
            {
                "localization": "false",
                "tickers": "false",
                "community_data": "false",
                "developer_data": "false",
                "sparkline": "false",
            },
            symbol=symbol,
        )
        market = data.get("market_data") if isinstance(data, dict) else None
        if not isinstance(market, dict):
            raise MarketDataError(f"No price data available for {symbol}")

        price = _safe_float(_usd(market.get("current_price")))
        if price is None:
            raise MarketDataError(f"No USD price available for {symbol}")

        extended = ExtendedMarketData(
            ath_price=_safe_float(_usd(market.get("ath"))),
            ath_date=_usd(market.get("ath_date")),
            atl_price=_safe_float(_usd(market.get("atl"))),
            atl_date=_usd(market.get("atl_date")),
            circulating_supply=_safe_float(market.get("circulating_supply")),
            total_supply=_safe_float(market.get("total_supply")),
            max_supply=_safe_float(market.get("max_supply")),
        )

        return AssetSnapshot(
            symbol=symbol.upper(),
            name=data.get("name") or coin.name,
            price=price,
            change_24h=_safe_float(market.get("price_change_percentage_24h")),
            volume_24h=_safe_float(_usd(market.get("total_volume"))),
            market_cap=_safe_float(_usd(market.get("market_cap"))),
            extended=extended,
        )

    def fetch_market_chart(self, symbol: str, coin: CoinInfo, days: int = DEFAULT_HISTORY_DAYS) -> PriceHistory:
        """Fetch daily USD prices and volumes for the last ``days`` days.

        Raises:
            MarketDataError: If the free tier is asked for more than 90 days,
                the request fails or the chart has no prices.
        """
        if days < 1:
            raise ValueError(f"days must be >= 1, got {days}")
        if not self.api_key and days > FREE_TIER_MAX_HISTORY_DAYS:
            raise MarketDataError(
                f"Free tier is limited to {FREE_TIER_MAX_HISTORY_DAYS} days of historical data"
            )

        data = self._get_json(
            f"/coins/{coin.id}/market_chart",
            {"vs_currency": "usd", "days": days, "interval": "daily"},
            symbol=symbol,
        )
        if not isinstance(data, dict):
            raise MarketDataError(f"Unexpected market chart format for {symbol}")

        prices = _chart_points(data.get("prices"))
        if not prices:
            raise MarketDataError(f"No price history available for {symbol}")

        return PriceHistory(
            symbol=symbol.upper(),
            days=days,
            prices=prices,
            total_volumes=_chart_points(data.get("total_volumes")),
        )


def _chart_points(raw: Any) -> Tuple[Tuple[int, float], ...]:
    """Keep well-formed ``[timestamp_ms, value]`` pairs from a chart series."""
    if not isinstance(raw, list):
        return ()
    points = []
    for item in raw:
        if not isinstance(item, (list, tuple)) or len(item) < 2:
            continue
        value = _safe_float(item[1])
        if value is None:
            continue
        points.append((int(item[0]), value))
    return tuple(points)


def _resolve_coin(registry: SymbolRegistry, symbol: str) -> CoinInfo:
    """Resolve ``symbol``; a registry load failure keeps its own classification."""
    coin = registry.resolve(symbol)
    if coin is None:
        raise UnsupportedSymbolError(symbol)
    return coin


class CoinGeckoPriceSource:
    """Price branch: resolves the symbol through the registry, then queries CoinGecko."""

    def __init__(self, client: CoinGeckoClient, registry: SymbolRegistry) -> None:
        self.client = client
        self.registry = registry

    def fetch(self, symbol: str) -> AssetSnapshot:
        return self.client.fetch_asset_snapshot(symbol, _resolve_coin(self.registry, symbol))


class CoinGeckoHistorySource:
    """History branch: daily price and volume series for the analysis window."""

    def __init__(self, client: CoinGeckoClient, registry: SymbolRegistry, days: int = DEFAULT_HISTORY_DAYS) -> None:
        self.client = client
        self.registry = registry
        self.days = days

    def fetch(self, symbol: str) -> PriceHistory:
        return self.client.fetch_market_chart(symbol, _resolve_coin(self.registry, symbol), self.days)
