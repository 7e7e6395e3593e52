"""Tests for news sentiment aggregation."""

from datetime import datetime, timezone
from unittest.mock import Mock

import pytest

from llm_market_assistant.core.errors import MarketDataError
from llm_market_assistant.core.sentiment import (
    SentimentSource,
    aggregate_sentiment,
    classify_votes,
    parse_article,
)


class TestClassifyVotes:
    @pytest.mark.parametrize(
        "votes, expected",
        [
            ({"positive": 5, "negative": 1}, "positive"),
            ({"positive": 0, "negative": 3}, "negative"),
            ({"positive": 2, "negative": 2}, "neutral"),
            ({}, "neutral"),
            ({"positive": "n/a", "negative": None}, "neutral"),
        ],
    )
    def test_labels(self, votes, expected):
        assert classify_votes(votes) == expected


class TestParseArticle:
    def test_source_title_preferred(self, sample_posts):
        article = parse_article(sample_posts[0])
        assert article.source == "CoinDesk"
        assert article.sentiment == "positive"
        assert article.total_votes == 9

    def test_source_falls_back_to_domain(self):
        article = parse_article({"title": "t", "domain": "example.com", "votes": {}})
        assert article.source == "example.com"

    def test_source_default(self):
        article = parse_article({"title": "t"})
        assert article.source == "CryptoPanic"
        assert article.votes == {}


class TestAggregateSentiment:
    def test_counts_and_overall(self, sample_posts):
        snapshot = aggregate_sentiment("btc", sample_posts)

        assert snapshot.symbol == "BTC"
        assert snapshot.positive_count == 1
        assert snapshot.negative_count == 1
        assert snapshot.neutral_count == 1
        assert snapshot.total_articles == 3
        assert snapshot.overall == "neutral"

    def test_positive_majority(self, sample_posts):
        posts = sample_posts + [{"title": "Rally", "votes": {"positive": 4}}]
        assert aggregate_sentiment("BTC", posts).overall == "positive"

    def test_neutral_articles_never_win(self):
        posts = [
            {"title": "a", "votes": {"positive": 1, "negative": 1}},
            {"title": "b", "votes": {}},
            {"title": "c", "votes": {"negative": 2}},
        ]
        assert aggregate_sentiment("ETH", posts).overall == "negative"

    def test_ranking_by_total_votes(self, sample_posts):
        snapshot = aggregate_sentiment("BTC", sample_posts, top_n=2)

        assert [a.title for a in snapshot.articles] == [
            "ETF inflows hit record",
            "Network upgrade scheduled",
        ]

    def test_ranking_is_stable_for_ties(self):
        posts = [{"title": name, "votes": {"positive": 1}} for name in ("first", "second", "third")]
        snapshot = aggregate_sentiment("BTC", posts)
        assert [a.title for a in snapshot.articles] == ["first", "second", "third"]

    def test_timestamp(self, sample_posts):
        now = datetime(2025, 1, 15, 10, 30, tzinfo=timezone.utc)
        assert aggregate_sentiment("BTC", sample_posts, now=now).updated_at == now

    def test_optional_signals_unset(self, sample_posts):
        snapshot = aggregate_sentiment("BTC", sample_posts)
        assert snapshot.social is None
        assert snapshot.fear_greed_index is None


class TestSentimentSource:
    def test_fetch_aggregates_posts(self, sample_posts):
        client = Mock()
        client.fetch_posts.return_value = sample_posts

        snapshot = SentimentSource(client, top_n=1).fetch("BTC")

        client.fetch_posts.assert_called_once_with("BTC")
        assert len(snapshot.articles) == 1

    def test_no_posts_is_failure(self):
        client = Mock()
        client.fetch_posts.return_value = []

        with pytest.raises(MarketDataError):
            SentimentSource(client).fetch("BTC")
