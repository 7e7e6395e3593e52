"""Market data source adapters."""

from llm_market_assistant.data.coingecko_client import CoinGeckoClient, CoinGeckoHistorySource, CoinGeckoPriceSource
from llm_market_assistant.data.cryptopanic_client import CryptoPanicClient
from llm_market_assistant.data.technicals import PlaceholderIndicatorSource

__all__ = [
    "CoinGeckoClient",
    "CoinGeckoHistorySource",
    "CoinGeckoPriceSource",
    "CryptoPanicClient",
    "PlaceholderIndicatorSource",
]
