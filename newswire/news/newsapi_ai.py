"""
NewsAPI.ai (Event Registry) client.
"""
from typing import List, Optional

from newswire.news.base import Article, NewsCollector
from newswire.utils.logger import get_logger

logger = get_logger(__name__)


class NewsApiAiCollector(NewsCollector):
    """NewsAPI.ai article search. The credential travels as the `apiKey` query parameter."""

    source_name = "newsapi.ai"
    API_URL = "https://newsapi.ai/api/v1/article/getArticles"

    async def _fetch(self, query: str, category: Optional[str]) -> List[Article]:
        params = {
            "q": query,
            "apiKey": self.api_key,
            "language": "en",
            "pageSize": str(self.page_size),
        }
        if category:
            params["category"] = category

        data = await self._get_json(self.API_URL, params=params)

        # A missing or non-list "articles" field means no results here
        items = data.get("articles")
        if not isinstance(items, list):
            return []

        articles = self._parse_items(items, self._parse_item)
        logger.debug(f"NewsAPI.ai: parsed {len(articles)} articles")
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
