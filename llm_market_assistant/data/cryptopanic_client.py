"""CryptoPanic news adapter."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import requests
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from llm_market_assistant.core.errors import MarketDataError
from llm_market_assistant.data.http_errors import TRANSIENT_ERRORS, raise_for_source_status

logger = logging.getLogger(__name__)

CRYPTOPANIC_BASE_URL = "https://cryptopanic.com/api/v1"
DEFAULT_TIMEOUT = 5.0


class CryptoPanicClient:
    """Fetches news posts with community vote tallies from CryptoPanic."""

    def __init__(
        self,
        api_key: Optional[str],
        base_url: str = CRYPTOPANIC_BASE_URL,
        timeout: float = DEFAULT_TIMEOUT,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.api_key = api_key or None
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()

    @retry(
        stop=stop_after_attempt(2),
        wait=wait_exponential(multiplier=0.5, min=0.5, max=2),
        retry=retry_if_exception_type(TRANSIENT_ERRORS),
        reraise=True,
    )
    def _get(self, params: Dict[str, Any]) -> requests.Response:
        return self.session.get(
            f"{self.base_url}/posts/",
            params=params,
            headers={"Accept": "application/json"},
            timeout=self.timeout,
        )

    def fetch_posts(self, currency: str) -> List[Dict[str, Any]]:
        """Fetch recent posts mentioning ``currency``.

        Raises:
            MarketDataError: If the key is missing or the request fails.
        """
        if not self.api_key:
            raise MarketDataError("CryptoPanic API key is missing")

        params = {
            "auth_token": self.api_key,
            "currencies": currency.upper(),
            "public": "true",
        }
        try:
            response = self._get(params)
        except requests.RequestException as exc:
            raise MarketDataError(f"CryptoPanic request failed: {exc}") from exc

        raise_for_source_status(response, "CryptoPanic")
        try:
            payload = response.json()
        except ValueError as exc:
            raise MarketDataError(f"Invalid JSON from CryptoPanic: {exc}") from exc

        results = payload.get("results") if isinstance(payload, dict) else None
        if not isinstance(results, list):
            raise MarketDataError("Unexpected CryptoPanic response format: missing 'results'")

        logger.debug("Fetched %d CryptoPanic posts for %s", len(results), currency)
        return [item for item in results if isinstance(item, dict)]
