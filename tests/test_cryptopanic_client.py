"""Tests for the CryptoPanic adapter."""

from unittest.mock import Mock

import pytest

from conftest import make_response
from llm_market_assistant.core.errors import MarketDataError, SourceRateLimitError
from llm_market_assistant.data.cryptopanic_client import CryptoPanicClient


def make_client(responses, api_key="cp-key"):
    session = Mock()
    session.get.side_effect = responses
    return CryptoPanicClient(api_key=api_key, session=session), session


class TestCryptoPanicClient:
    def test_fetch_posts(self, sample_posts):
        client, session = make_client([make_response(body={"results": sample_posts + ["junk"]})])

        posts = client.fetch_posts("btc")

        assert posts == sample_posts
        args, kwargs = session.get.call_args
        assert args[0] == "https://cryptopanic.com/api/v1/posts/"
        assert kwargs["params"] == {"auth_token": "cp-key", "currencies": "BTC", "public": "true"}

    def test_missing_key(self):
        client, session = make_client([], api_key=None)

        with pytest.raises(MarketDataError, match="key is missing"):
            client.fetch_posts("BTC")
        session.get.assert_not_called()

    def test_rate_limited(self):
        client, _ = make_client([make_response(status=429, body={})])
        with pytest.raises(SourceRateLimitError):
            client.fetch_posts("BTC")

    def test_missing_results(self):
        client, _ = make_client([make_response(body={"detail": "nope"})])
        with pytest.raises(MarketDataError, match="results"):
            client.fetch_posts("BTC")

    def test_invalid_json(self):
        client, _ = make_client([make_response(body="<html>")])
        with pytest.raises(MarketDataError, match="Invalid JSON"):
            client.fetch_posts("BTC")
