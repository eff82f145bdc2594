"""
Keyword search over the articles currently held in the cache.

The view is rebuilt from the live cache entries on every call and is
never stored, so it always reflects the latest sweep.
"""
from typing import Iterable, List

from newswire.news.base import Article, iter_unique
from newswire.news.cache import CacheEntry


def build_search_view(entries: Iterable[CacheEntry]) -> List[Article]:
    """
    Flatten cache entries into one URL-deduplicated list (first seen wins).

    Args:
        entries: Valid cache entries, in cache order

    Returns:
        List of unique articles
    """
    return list(iter_unique(
        article for entry in entries for article in entry.articles
    ))


def filter_by_keyword(articles: Iterable[Article], keyword: str) -> List[Article]:
    """
    Keep articles whose title, description or source contains keyword.

    Args:
        articles: Candidate articles
        keyword: Search term, matched case-insensitively

    Returns:
        Matching articles in input order
    """
    return [article for article in articles if article.matches(keyword)]
