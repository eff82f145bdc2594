"""
NewsCatcher API client.
Searches news through api.newscatcher.com.
"""
from typing import List, Optional

from newswire.news.base import Article, NewsCollector
from newswire.utils.logger import get_logger

logger = get_logger(__name__)


class NewsCatcherCollector(NewsCollector):
    """
    NewsCatcher search collector.

    NewsCatcher has no category filter, so mapped and unmapped topics
    are both sent as the free-text `q` parameter.
    Authenticates with the `x-api-key` header.
    """

    source_name = "newscatcher"
    API_URL = "https://api.newscatcher.com/v1/search"

    async def _fetch(self, query: str, category: Optional[str]) -> List[Article]:
        params = {
            "q": query,
            "lang": "en",
            "sort_by": "relevancy",
            "page_size": str(self.page_size),
        }

        data = await self._get_json(
            self.API_URL,
            params=params,
            headers={"x-api-key": self.api_key},
        )
        articles = self._parse_items(data.get("articles"), self._parse_item)
        logger.debug(f"NewsCatcher: parsed {len(articles)} articles")
        return articles

    def _parse_item(self, item: dict) -> Article:
        return self._create_article(
            title=item.get("title"),
            description=item.get("summary") or item.get("excerpt"),
            url=item.get("link"),
            published_at=item.get("published_date"),
            source=item.get("clean_url") or "Unknown",
            image_url=item.get("media"),
        )
