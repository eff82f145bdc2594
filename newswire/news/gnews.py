"""
GNews API client.
Searches news through gnews.io.
"""
from typing import List, Optional

from newswire.news.base import Article, NewsCollector
from newswire.utils.logger import get_logger

logger = get_logger(__name__)


class GNewsCollector(NewsCollector):
    """GNews search collector. The credential travels as the `token` query parameter."""

    source_name = "gnews"
    API_URL = "https://gnews.io/api/v4/search"

    async def _fetch(self, query: str, category: Optional[str]) -> List[Article]:
        params = {
            "q": query,
            "token": self.api_key,
            "lang": "en",
            "max": str(self.page_size),
        }
        if category:
            params["topic"] = category

        data = await self._get_json(self.API_URL, params=params)
        articles = self._parse_items(data.get("articles"), self._parse_item)
        logger.debug(f"GNews: parsed {len(articles)} articles")
        return articles

    def _parse_item(self, item: dict) -> Article:
        source = item.get("source") or {}
        return self._create_article(
            title=item.get("title"),
            description=item.get("description"),
            url=item.get("url"),
            published_at=item.get("publishedAt"),
            source=source.get("name"),
            image_url=item.get("image"),
        )
