"""
News aggregator that combines multiple news sources.
"""
import asyncio
from typing import Dict, Iterable, List, Optional, Sequence, Type

import aiohttp

from newswire.news.base import (
    DEFAULT_HEADERS,
    GENERAL_TOPIC,
    Article,
    NewsCollector,
    iter_unique,
)
from newswire.news.cache import DEFAULT_TTL_SECONDS, NewsCache, cache_key
from newswire.news.gnews import GNewsCollector
from newswire.news.newsapi_ai import NewsApiAiCollector
from newswire.news.newsapi_org import NewsApiOrgCollector
from newswire.news.newscatcher import NewsCatcherCollector
from newswire.news.search import build_search_view, filter_by_keyword
from newswire.utils.logger import get_logger, news_log

logger = get_logger(__name__)

MAX_ARTICLES = 100
DEFAULT_FETCH_TIMEOUT = 20.0

# Config source name -> collector class
COLLECTOR_TYPES: Dict[str, Type[NewsCollector]] = {
    "newsapi_org": NewsApiOrgCollector,
    "newscatcher": NewsCatcherCollector,
    "gnews": GNewsCollector,
    "newsapi_ai": NewsApiAiCollector,
}


def _rank_key(article: Article):
    if article.published_at is None:
        return (1, 0.0)
    return (0, -article.published_at.timestamp())


def rank_articles(articles: Iterable[Article], limit: int = MAX_ARTICLES) -> List[Article]:
    """
    Sort newest first and truncate.

    Articles without a parsable timestamp go after all dated ones. The sort
    is stable, so ties keep their merge order.

    Args:
        articles: Articles to rank
        limit: Maximum number of articles to keep

    Returns:
        Ranked list of at most `limit` articles
    """
    return sorted(articles, key=_rank_key)[:limit]


def merge_results(results: Iterable[Sequence[Article]]) -> List[Article]:
    """
    Concatenate per-call results, keeping the first article seen per URL.

    Args:
        results: Article lists in merge order

    Returns:
        Deduplicated list
    """
    return list(iter_unique(
        article for result in results for article in result
    ))


class NewsAggregator:
    """
    Aggregates news from multiple sources.

    Handles parallel fetching, deduplication, ranking and caching.
    Collectors and cache can be injected; otherwise they are built from
    the news configuration on first use.
    """

    def __init__(
        self,
        config: Optional[dict] = None,
        collectors: Optional[Sequence[NewsCollector]] = None,
        cache: Optional[NewsCache] = None,
    ):
        """
        Initialize news aggregator.

        Args:
            config: News configuration dictionary
            collectors: Pre-built collectors. When omitted they are created
                from config["sources"] on first fetch.
            cache: Cache store. When omitted one is created from config["cache"].
        """
        self.config = config or {}
        self._session: Optional[aiohttp.ClientSession] = None
        self._collectors: List[NewsCollector] = list(collectors or [])
        self._from_config = collectors is None
        self._configured = not self._from_config

        if cache is None:
            cache_config = self.config.get("cache", {})
            cache = NewsCache(
                ttl_seconds=float(cache_config.get("ttl_seconds", DEFAULT_TTL_SECONDS))
            )
        self.cache = cache

        self.max_articles = int(self.config.get("max_articles", MAX_ARTICLES))
        self.fetch_timeout = float(self.config.get("fetch_timeout", DEFAULT_FETCH_TIMEOUT))
        self.failure_count = 0

    @property
    def collectors(self) -> List[NewsCollector]:
        return list(self._collectors)

    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create shared aiohttp session."""
        if self._session is None:
            self._session = aiohttp.ClientSession(headers=DEFAULT_HEADERS)
        return self._session

    async def _setup_collectors(self) -> None:
        """Setup news collectors based on configuration."""
        if self._configured:
            return
        self._configured = True

        sources_config = self.config.get("sources", [])
        request_timeout = float(self.config.get("request_timeout", 30))

        for source in sources_config:
            name = source.get("name", "")
            if not source.get("enabled", True):
                continue

            collector_cls = COLLECTOR_TYPES.get(name)
            if collector_cls is None:
                logger.warning(f"Unknown news source: {name}")
                continue

            api_key = source.get("api_key")
            if not api_key:
                logger.warning(f"{name} API key not configured, skipping")
                continue

            session = await self._get_session()
            self._collectors.append(
                collector_cls(api_key=api_key, session=session, timeout=request_timeout)
            )

        if not self._collectors:
            logger.warning(
                "No news API keys configured; configure at least one of "
                "NEWS_API_KEY, NEWSCATCHER_API_KEY, GNEWS_API_KEY or NEWSAPI_AI_KEY"
            )
        else:
            logger.info(f"Initialized {len(self._collectors)} news collectors")

    async def fetch_by_preferences(
        self,
        preferences: Optional[Iterable[str]] = None,
    ) -> List[Article]:
        """
        Get ranked articles for a preference set, using the cache when valid.

        Args:
            preferences: Topic strings; empty means general news

        Returns:
            Ranked list of at most `max_articles` articles (possibly empty)
        """
        preferences = list(preferences or [])
        key = cache_key(preferences)

        cached = self.cache.get(key)
        if cached is not None:
            logger.debug(f"Returning cached articles for {key!r}")
            return cached

        await self._setup_collectors()
        topics = self._topics_for(preferences)
        logger.info(
            f"Cache miss for {key!r} - fetching {len(topics)} topic(s) "
            f"from {len(self._collectors)} sources"
        )

        results = await self._collect_round(topics)
        articles = rank_articles(merge_results(results), self.max_articles)

        if articles:
            self.cache.set(key, articles)
        else:
            logger.warning(f"No articles from any source for {key!r}, not caching")

        news_log(f"Aggregated {len(articles)} articles for {key!r}")
        return articles

    async def search_by_keyword(self, keyword: str) -> List[Article]:
        """
        Search cached articles by keyword.

        If nothing is cached, general news is fetched once to populate the
        cache and the search runs again. There is no further retry.

        Args:
            keyword: Search term (case-insensitive substring)

        Returns:
            Ranked list of matching articles
        """
        view = build_search_view(self.cache.all_valid_entries())
        if not view:
            logger.info("Cache empty - fetching general news before searching")
            await self.fetch_by_preferences([])
            view = build_search_view(self.cache.all_valid_entries())

        matches = filter_by_keyword(view, keyword)
        logger.debug(f"Search {keyword!r}: {len(matches)} of {len(view)} cached articles")
        return rank_articles(matches, self.max_articles)

    def _topics_for(self, preferences: List[str]) -> List[str]:
        """Distinct topics in first-seen order; general news when empty."""
        if not preferences:
            return [GENERAL_TOPIC]
        return list(dict.fromkeys(preferences))

    async def _collect_round(self, topics: List[str]) -> List[List[Article]]:
        """
        Fetch every (collector, topic) pair concurrently.

        Results come back collector-major, then topic order. Failed or
        timed-out calls are logged and contribute nothing.
        """
        calls = [
            (collector, topic)
            for collector in self._collectors
            for topic in topics
        ]
        results = await asyncio.gather(
            *(self._collect_from_source(collector, topic) for collector, topic in calls),
            return_exceptions=True,
        )

        collected: List[List[Article]] = []
        for (collector, topic), result in zip(calls, results):
            if isinstance(result, BaseException):
                self.failure_count += 1
                if isinstance(result, asyncio.TimeoutError):
                    logger.warning(
                        f"{collector.source_name} timed out after {self.fetch_timeout}s "
                        f"for topic {topic!r}"
                    )
                else:
                    logger.error(
                        f"Collection error from {collector.source_name} "
                        f"for topic {topic!r}: {result!r}"
                    )
                continue
            collected.append(result)
        return collected

    async def _collect_from_source(
        self,
        collector: NewsCollector,
        topic: str,
    ) -> List[Article]:
        """
        Collect news from a single source, bounded by the fetch timeout.

        Args:
            collector: News collector instance
            topic: Logical topic

        Returns:
            List of Article objects
        """
        return await asyncio.wait_for(
            collector.fetch_topic(topic),
            timeout=self.fetch_timeout,
        )

    def get_status(self) -> dict:
        """Get aggregator status."""
        return {
            "collectors": [c.get_status() for c in self._collectors],
            "failure_count": self.failure_count,
            "max_articles": self.max_articles,
            "fetch_timeout": self.fetch_timeout,
            "cache": self.cache.get_status(),
        }

    async def close(self) -> None:
        """Close all collectors and session."""
        for collector in self._collectors:
            try:
                await collector.close()
            except Exception as e:
                logger.warning(f"Failed to close {collector.source_name}: {e}")

        if self._session:
            await self._session.close()
            self._session = None

        # Injected collectors are kept; config-built ones are rebuilt on next use
        if self._from_config:
            self._collectors = []
            self._configured = False
