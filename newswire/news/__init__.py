"""
News collection module.

Provides adapters for several news APIs, an aggregator that merges
them with deduplication and ranking, and the TTL cache behind it.
"""
from newswire.news.aggregator import NewsAggregator, merge_results, rank_articles
from newswire.news.base import Article, NewsCollector, parse_published_at
from newswire.news.cache import CacheEntry, NewsCache, cache_key
from newswire.news.gnews import GNewsCollector
from newswire.news.newsapi_ai import NewsApiAiCollector
from newswire.news.newsapi_org import NewsApiOrgCollector
from newswire.news.newscatcher import NewsCatcherCollector
from newswire.news.search import build_search_view, filter_by_keyword

__all__ = [
    "Article",
    "NewsCollector",
    "NewsAggregator",
    "NewsCache",
    "CacheEntry",
    "cache_key",
    "parse_published_at",
    "merge_results",
    "rank_articles",
    "build_search_view",
    "filter_by_keyword",
    "NewsApiOrgCollector",
    "NewsCatcherCollector",
    "GNewsCollector",
    "NewsApiAiCollector",
]
