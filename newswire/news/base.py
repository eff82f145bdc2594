"""
Base classes and data models for news collection.
"""
import asyncio
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple

import aiohttp

from newswire.utils.exceptions import (
    APIError,
    AuthenticationError,
    NewsCollectionError,
    NewsParsingError,
    RateLimitError,
)
from newswire.utils.logger import get_logger, news_log

logger = get_logger(__name__)

GENERAL_TOPIC = "general"

# Logical topic -> provider category. Anything else is sent as free text.
CATEGORY_MAP: Dict[str, str] = {
    "technology": "technology",
    "business": "business",
    "health": "health",
    "science": "science",
    "sports": "sports",
    "entertainment": "entertainment",
    "general": "general",
}

DEFAULT_HEADERS = {
    "User-Agent": "newswire/0.1 (+https://github.com/newswire/newswire)",
    "Accept": "application/json",
}

_DATE_FORMATS = (
    "%Y-%m-%d %H:%M:%S",
    "%Y-%m-%d %H:%M",
    "%Y-%m-%d",
)


def parse_published_at(value: Any) -> Optional[datetime]:
    """
    Parse an upstream publication timestamp into an aware UTC datetime.

    Args:
        value: Raw timestamp (ISO-8601 string, datetime or None)

    Returns:
        datetime in UTC, or None if the value cannot be parsed
    """
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str) and value.strip():
        date_str = value.strip()
        parsed = None
        try:
            parsed = datetime.fromisoformat(date_str.replace("Z", "+00:00"))
        except ValueError:
            for fmt in _DATE_FORMATS:
                try:
                    parsed = datetime.strptime(date_str, fmt)
                    break
                except ValueError:
                    continue
        if parsed is None:
            return None
    else:
        return None

    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


@dataclass(frozen=True)
class Article:
    """Represents a normalized news article."""
    title: str                                # Article title
    description: str                          # Summary/description, may be empty
    url: str                                  # Canonical URL (identity key)
    source: str                               # Source name as reported upstream
    published_at: Optional[datetime] = None   # None when upstream value is unparsable
    image_url: Optional[str] = None           # Lead image if available

    def __hash__(self) -> int:
        """Hash based on URL for deduplication."""
        return hash(self.url)

    def __eq__(self, other) -> bool:
        """Equality based on URL."""
        if not isinstance(other, Article):
            return False
        return self.url == other.url

    def matches(self, keyword: str) -> bool:
        """Case-insensitive substring match on title, description or source."""
        needle = keyword.lower()
        return any(
            needle in (text or "").lower()
            for text in (self.title, self.description, self.source)
        )

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "title": self.title,
            "description": self.description,
            "url": self.url,
            "image_url": self.image_url,
            "published_at": self.published_at.isoformat() if self.published_at else None,
            "source": self.source,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Article":
        """Create from dictionary."""
        data = data.copy()
        data["description"] = data.get("description") or ""
        data["source"] = data.get("source") or ""
        data["published_at"] = parse_published_at(data.get("published_at"))
        return cls(**data)


class NewsCollector(ABC):
    """
    Abstract base class for news provider adapters.

    Subclasses implement `_fetch` against one upstream API and raise
    NewsCollectionError / APIError / NewsParsingError on failure.
    `fetch` absorbs every failure and returns an empty list instead, so
    one broken provider never affects the others.
    """

    source_name: str = "unknown"
    category_map: Dict[str, str] = CATEGORY_MAP
    page_size: int = 20

    def __init__(
        self,
        api_key: Optional[str] = None,
        session: Optional[aiohttp.ClientSession] = None,
        timeout: float = 30,
    ):
        """
        Initialize collector.

        Args:
            api_key: Provider credential. Without one the collector is disabled.
            session: Optional shared aiohttp session
            timeout: Request timeout in seconds
        """
        self.api_key = api_key or None
        self.timeout = timeout
        self._session = session
        self._owns_session = session is None
        self.failure_count = 0
        self.last_error: Optional[str] = None

    @property
    def enabled(self) -> bool:
        """True when a credential is configured."""
        return bool(self.api_key)

    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create aiohttp session."""
        if self._session is None:
            self._session = aiohttp.ClientSession(headers=DEFAULT_HEADERS)
            self._owns_session = True
        return self._session

    async def close(self) -> None:
        """Close the session if we own it."""
        if self._owns_session and self._session:
            await self._session.close()
            self._session = None

    def resolve_topic(self, topic: str) -> Tuple[Optional[str], str]:
        """
        Map a logical topic to this provider's vocabulary.

        Args:
            topic: User preference such as "technology" or "electric cars"

        Returns:
            (category, query) - category is None for unmapped topics, which
            are passed through as free-text queries.
        """
        category = self.category_map.get(topic.lower())
        return category, category or topic

    async def fetch_topic(self, topic: str) -> List[Article]:
        """Fetch articles for a logical topic."""
        category, query = self.resolve_topic(topic)
        return await self.fetch(query, category)

    async def fetch(self, query: str, category: Optional[str] = None) -> List[Article]:
        """
        Fetch articles from the provider.

        Args:
            query: Free-text query
            category: Provider-native category, if the topic mapped to one

        Returns:
            List of Article objects; empty on any failure
        """
        if not self.enabled:
            logger.warning(f"{self.source_name} API key not configured, skipping")
            return []

        try:
            articles = await self._fetch(query, category)
        except (NewsCollectionError, APIError, NewsParsingError) as e:
            self._record_failure(e)
            logger.warning(f"Failed to collect from {self.source_name}: {e}")
            return []
        except asyncio.CancelledError:
            raise
        except Exception as e:
            self._record_failure(e)
            logger.error(f"Unexpected error from {self.source_name}: {e}")
            return []

        news_log(
            f"Source {self.source_name}: {len(articles)} articles "
            f"(query={query!r}, category={category!r})"
        )
        return articles

    @abstractmethod
    async def _fetch(self, query: str, category: Optional[str]) -> List[Article]:
        """
        Perform one upstream request and normalize the payload.

        Args:
            query: Free-text query
            category: Provider-native category or None

        Returns:
            List of Article objects
        """
        pass

    async def _get_json(
        self,
        url: str,
        params: Dict[str, str],
        headers: Optional[Dict[str, str]] = None,
    ) -> dict:
        """
        Issue a GET request and decode the JSON body.

        Raises:
            AuthenticationError: on HTTP 401/403
            RateLimitError: on HTTP 429
            APIError: on any other non-200 status
            NewsCollectionError: on transport errors or timeouts
            NewsParsingError: when the body is not a JSON object
        """
        session = await self._get_session()

        try:
            async with session.get(
                url,
                params=params,
                headers=headers,
                timeout=aiohttp.ClientTimeout(total=self.timeout),
            ) as response:
                if response.status in (401, 403):
                    raise AuthenticationError(
                        f"{self.source_name} rejected credentials: HTTP {response.status}",
                        status_code=response.status,
                    )
                if response.status == 429:
                    retry_after = response.headers.get("Retry-After")
                    raise RateLimitError(
                        f"{self.source_name} rate limit exceeded",
                        retry_after=int(retry_after) if retry_after and retry_after.isdigit() else None,
                        status_code=response.status,
                    )
                if response.status != 200:
                    body = await response.text()
                    raise APIError(
                        f"{self.source_name} API error: HTTP {response.status}",
                        status_code=response.status,
                        response_body=body[:500],
                    )

                try:
                    data = await response.json(content_type=None)
                except ValueError as e:
                    raise NewsParsingError(
                        f"{self.source_name} returned invalid JSON",
                        cause=e,
                    )

        except aiohttp.ClientError as e:
            raise NewsCollectionError(
                f"Network error fetching {self.source_name}: {e}",
                provider=self.source_name,
                cause=e,
            )
        except asyncio.TimeoutError as e:
            raise NewsCollectionError(
                f"Timed out fetching {self.source_name}",
                provider=self.source_name,
                cause=e,
            )

        if not isinstance(data, dict):
            raise NewsParsingError(
                f"{self.source_name} returned unexpected payload type: {type(data).__name__}"
            )
        if data.get("status") == "error":
            raise APIError(
                f"{self.source_name} API error: {data.get('message', 'Unknown error')}",
                response_body=str(data.get("code", "")),
            )
        return data

    def _parse_items(
        self,
        items: Any,
        parser: Callable[[dict], Optional[Article]],
    ) -> List[Article]:
        """
        Parse a list of upstream items, dropping the ones that do not parse.

        Args:
            items: Raw "articles" value from the payload
            parser: Callable turning one item into an Article (or None)

        Returns:
            List of valid Article objects
        """
        if items is None:
            return []
        if not isinstance(items, list):
            raise NewsParsingError(
                f"{self.source_name} payload has no article list",
                details={"type": type(items).__name__},
            )

        articles = []
        for item in items:
            if not isinstance(item, dict):
                continue
            try:
                article = parser(item)
            except (KeyError, TypeError, AttributeError) as e:
                logger.debug(f"Error parsing {self.source_name} item: {e}")
                continue
            if article and self.is_valid_article(article):
                articles.append(article)
        return articles

    def _record_failure(self, error: Exception) -> None:
        self.failure_count += 1
        self.last_error = str(error)

    def is_valid_article(self, article: Article) -> bool:
        """
        Validate an article.

        Args:
            article: Article to validate

        Returns:
            True if article is valid
        """
        if not article.title or not article.title.strip():
            return False
        if not article.url:
            return False
        return True

    def _create_article(
        self,
        title: Optional[str],
        description: Optional[str],
        url: Optional[str],
        published_at: Any,
        source: Optional[str],
        image_url: Optional[str] = None,
    ) -> Article:
        """
        Helper to create a normalized Article.

        Args:
            title: Article title
            description: Article description (None becomes "")
            url: Article URL
            published_at: Raw publication timestamp
            source: Source name reported by the provider
            image_url: Optional image URL

        Returns:
            Article instance
        """
        return Article(
            title=(title or "").strip(),
            description=(description or "").strip(),
            url=(url or "").strip(),
            source=(source or self.source_name).strip(),
            published_at=parse_published_at(published_at),
            image_url=image_url or None,
        )

    def get_status(self) -> dict:
        """Get collector status."""
        return {
            "source": self.source_name,
            "enabled": self.enabled,
            "failure_count": self.failure_count,
            "last_error": self.last_error,
        }


def iter_unique(articles: Iterable[Article]) -> Iterable[Article]:
    """Yield articles whose URL has not been seen yet (first one wins)."""
    seen_urls = set()
    for article in articles:
        if article.url in seen_urls:
            continue
        seen_urls.add(article.url)
        yield article
