"""
Shared fixtures for Newswire tests.
"""
import asyncio
from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional
from unittest.mock import AsyncMock, MagicMock

import pytest

from newswire.news.aggregator import NewsAggregator
from newswire.news.base import Article, NewsCollector
from newswire.news.cache import NewsCache

BASE_TIME = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


class FakeClock:
    """Manually advanced time source for cache tests."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeCollector(NewsCollector):
    """Collector returning canned articles per query."""

    def __init__(
        self,
        name: str,
        articles_by_query: Optional[Dict[str, List[Article]]] = None,
        default: Optional[List[Article]] = None,
        error: Optional[Exception] = None,
        delay: float = 0.0,
        api_key: Optional[str] = "test-key",
    ):
        super().__init__(api_key=api_key)
        self.source_name = name
        self.articles_by_query = articles_by_query or {}
        self.default = default or []
        self.error = error
        self.delay = delay
        self.calls = []

    async def _fetch(self, query, category):
        self.calls.append((query, category))
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return list(self.articles_by_query.get(query, self.default))


def make_article(
    n,
    hours_ago: Optional[float] = 1,
    title: Optional[str] = None,
    description: str = "",
    source: str = "Test Wire",
) -> Article:
    """Build an article whose URL is derived from n."""
    return Article(
        title=title or f"Article {n}",
        description=description,
        url=f"https://news.example.com/{n}",
        source=source,
        published_at=None if hours_ago is None else BASE_TIME - timedelta(hours=hours_ago),
    )


def mock_session(status=200, payload=None, json_error=None, get_error=None, headers=None):
    """aiohttp session mock whose get() yields a single response."""
    response = MagicMock()
    response.status = status
    response.headers = headers or {}
    response.json = AsyncMock(return_value=payload, side_effect=json_error)
    response.text = AsyncMock(return_value="upstream error body")

    session = MagicMock()
    if get_error is not None:
        session.get.side_effect = get_error
    else:
        session.get.return_value.__aenter__.return_value = response
        session.get.return_value.__aexit__.return_value = False
    session.close = AsyncMock()
    return session


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def cache(clock):
    return NewsCache(ttl_seconds=900, clock=clock)


@pytest.fixture
def make_aggregator(cache):
    def _make(collectors, **config):
        return NewsAggregator(config=config, collectors=collectors, cache=cache)
    return _make
