"""News sentiment aggregation from CryptoPanic vote tallies."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional

from llm_market_assistant.core.errors import MarketDataError
from llm_market_assistant.core.models import NewsArticle, SentimentLabel, SentimentSnapshot

logger = logging.getLogger(__name__)

DEFAULT_TOP_ARTICLES = 5


def _vote_count(votes: Dict[str, Any], key: str) -> int:
    try:
        return int(votes.get(key) or 0)
    except (TypeError, ValueError):
        return 0


def _normalize_votes(votes: Any) -> Dict[str, int]:
    """Keep every vote category as an int; non-numeric tallies count as zero."""
    if not isinstance(votes, dict):
        return {}
    return {str(key): _vote_count(votes, key) for key in votes}


def classify_votes(votes: Dict[str, Any]) -> SentimentLabel:
    """Label one article by comparing positive and negative votes."""
    positive = _vote_count(votes, "positive")
    negative = _vote_count(votes, "negative")
    if positive > negative:
        return "positive"
    if positive < negative:
        return "negative"
    return "neutral"


def parse_article(post: Dict[str, Any]) -> NewsArticle:
    """Convert a raw CryptoPanic post into a NewsArticle."""
    votes = _normalize_votes(post.get("votes"))
    source = post.get("source") or {}
    source_title = source.get("title") if isinstance(source, dict) else None
    return NewsArticle(
        title=post.get("title") or "",
        url=post.get("url") or "",
        source=source_title or post.get("domain") or "CryptoPanic",
        published_at=post.get("published_at") or post.get("created_at"),
        votes=votes,
        sentiment=classify_votes(votes),
    )


def aggregate_sentiment(
    symbol: str,
    posts: Iterable[Dict[str, Any]],
    top_n: int = DEFAULT_TOP_ARTICLES,
    now: Optional[datetime] = None,
) -> SentimentSnapshot:
    """Aggregate article votes into an overall sentiment.

    The overall label compares the number of positive and negative articles;
    neutral articles never win and a tie resolves to neutral. Articles are
    ranked by the sum of every vote category, highest first.

    Args:
        symbol: Asset symbol the posts refer to
        posts: Raw CryptoPanic posts
        top_n: Number of ranked articles to keep
        now: Aggregation timestamp (default: current UTC time)

    Returns:
        SentimentSnapshot with counts and ranked top articles
    """
    articles: List[NewsArticle] = [parse_article(post) for post in posts]

    positive = sum(1 for a in articles if a.sentiment == "positive")
    negative = sum(1 for a in articles if a.sentiment == "negative")
    neutral = len(articles) - positive - negative

    overall: SentimentLabel
    if positive > negative:
        overall = "positive"
    elif negative > positive:
        overall = "negative"
    else:
        overall = "neutral"

    ranked = sorted(articles, key=lambda a: a.total_votes, reverse=True)[:top_n]

    return SentimentSnapshot(
        symbol=symbol.upper(),
        overall=overall,
        positive_count=positive,
        negative_count=negative,
        neutral_count=neutral,
        total_articles=len(articles),
        articles=tuple(ranked),
        updated_at=now or datetime.now(timezone.utc),
    )


class SentimentSource:
    """Sentiment branch backed by a news client returning raw posts."""

    def __init__(self, news_client: Any, top_n: int = DEFAULT_TOP_ARTICLES) -> None:
        self.news_client = news_client
        self.top_n = top_n

    def fetch(self, symbol: str) -> SentimentSnapshot:
        """Fetch posts for ``symbol`` and aggregate them.

        Raises:
            MarketDataError: If the news source fails or returns no articles.
        """
        posts = self.news_client.fetch_posts(symbol)
        if not posts:
            raise MarketDataError(f"No news articles available for {symbol}")
        snapshot = aggregate_sentiment(symbol, posts, top_n=self.top_n)
        logger.debug(
            "Sentiment for %s: %s (%d+/%d-/%d=)",
            symbol,
            snapshot.overall,
            snapshot.positive_count,
            snapshot.negative_count,
            snapshot.neutral_count,
        )
        return snapshot
