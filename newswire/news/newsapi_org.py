"""
NewsAPI.org client.
Collects top headlines from newsapi.org.
"""
from typing import List, Optional

from newswire.news.base import Article, NewsCollector
from newswire.utils.logger import get_logger

logger = get_logger(__name__)


class NewsApiOrgCollector(NewsCollector):
    """
    NewsAPI.org top-headlines collector.

    Headlines are filtered by category when the topic maps to one;
    otherwise the topic is sent as the `q` search term.
    Authenticates with the `X-Api-Key` header.
    """

    source_name = "newsapi.org"
    API_URL = "https://newsapi.org/v2/top-headlines"

    def __init__(self, *args, country: str = "us", **kwargs):
        super().__init__(*args, **kwargs)
        self.country = country

    async def _fetch(self, query: str, category: Optional[str]) -> List[Article]:
        params = {
            "country": self.country,
            "pageSize": str(self.page_size),
        }
        if category:
            params["category"] = category
        else:
            params["q"] = query

        data = await self._get_json(
            self.API_URL,
            params=params,
            headers={"X-Api-Key": self.api_key},
        )
        articles = self._parse_items(data.get("articles"), self._parse_item)
        logger.debug(f"NewsAPI.org: parsed {len(articles)} articles")
        return articles

    def _parse_item(self, item: dict) -> Article:
        source = item.get("source") or {}
        return self._create_article(
            title=item.get("title"),
            description=item.get("description"),
            url=item.get("url"),
            published_at=item.get("publishedAt"),
            source=source.get("name"),
            image_url=item.get("urlToImage"),
        )
