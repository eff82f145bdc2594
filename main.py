#!/usr/bin/env python3
"""
Newswire - Main Entry Point

A news aggregation service that:
1. Fetches articles from several third-party news APIs in parallel
2. Deduplicates by URL and ranks newest first
3. Caches results per preference set for a short TTL
4. Keeps common preference sets warm with a background refresh
"""
import argparse
import asyncio
import json
import signal
import sys
from typing import List, Optional

from config.settings import Settings
from newswire.news.aggregator import NewsAggregator
from newswire.news.base import Article
from newswire.news.cache import NewsCache
from newswire.scheduler.scheduler import CacheRefreshScheduler
from newswire.utils.exceptions import ConfigurationError
from newswire.utils.logger import get_logger, setup_logger

logger = get_logger(__name__)


class NewswireService:
    """
    Service orchestrator.

    Wires settings, cache, aggregator and refresh scheduler together.
    """

    def __init__(self, settings: Optional[Settings] = None):
        """
        Initialize Newswire service.

        Args:
            settings: Loaded settings; read from config/ when omitted
        """
        self.settings = settings or Settings()
        self._running = False

        self.cache = NewsCache(ttl_seconds=self.settings.cache_ttl_seconds)
        self.aggregator = NewsAggregator(
            config=self.settings.news_config,
            cache=self.cache,
        )

        scheduler_config = self.settings.scheduler_config
        self.scheduler = CacheRefreshScheduler(
            aggregator=self.aggregator,
            interval_minutes=self.settings.refresh_interval_minutes,
            common_preferences=scheduler_config.get("common_preferences"),
            timezone=scheduler_config.get("timezone", "UTC"),
        )

        if not self.settings.configured_sources:
            logger.warning(
                "No news API keys configured - please configure at least one of: "
                "NEWS_API_KEY, NEWSCATCHER_API_KEY, GNEWS_API_KEY, or NEWSAPI_AI_KEY"
            )

        logger.info(
            f"Newswire initialized (sources={self.settings.configured_sources}, "
            f"ttl={self.cache.ttl:.0f}s)"
        )

    async def get_news(self, preferences: List[str]) -> List[Article]:
        return await self.aggregator.fetch_by_preferences(preferences)

    async def search(self, keyword: str) -> List[Article]:
        return await self.aggregator.search_by_keyword(keyword)

    async def start(self) -> None:
        """Start the refresh scheduler and run until stopped."""
        self._running = True
        self.scheduler.start()
        logger.info("Newswire started")

        try:
            while self._running:
                await asyncio.sleep(1)
        except asyncio.CancelledError:
            pass
        finally:
            await self.stop()

    async def stop(self) -> None:
        """Stop the scheduler and release HTTP sessions."""
        self._running = False
        self.scheduler.stop()
        await self.aggregator.close()
        logger.info("Newswire stopped")

    async def run_once(self, preferences: List[str]) -> List[Article]:
        try:
            return await self.get_news(preferences)
        finally:
            await self.aggregator.close()

    async def run_search(self, keyword: str) -> List[Article]:
        try:
            return await self.search(keyword)
        finally:
            await self.aggregator.close()


def setup_signal_handlers(service: NewswireService):
    """Setup signal handlers for graceful shutdown."""

    def signal_handler(sig, frame):
        logger.info(f"Received signal {sig}, shutting down...")
        service._running = False

    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)


def print_articles(articles: List[Article], as_json: bool = False) -> None:
    if as_json:
        print(json.dumps([a.to_dict() for a in articles], indent=2, ensure_ascii=False))
        return

    print(f"\n{len(articles)} articles")
    print("=" * 60)
    for article in articles:
        published = article.published_at.strftime("%Y-%m-%d %H:%M") if article.published_at else "unknown"
        print(f"[{published}] {article.title}")
        print(f"    {article.source} - {article.url}")


def parse_preferences(raw: str) -> List[str]:
    return [p.strip() for p in raw.split(",") if p.strip()]


def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Newswire - multi-provider news aggregation with caching"
    )
    parser.add_argument(
        "--mode",
        choices=["daemon", "once", "search", "status"],
        default="daemon",
        help="Run mode: daemon (continuous refresh), once (single fetch), "
             "search (keyword search), status (show configuration)",
    )
    parser.add_argument(
        "--preferences",
        default="",
        help="Comma-separated topics for --mode once (empty = general news)",
    )
    parser.add_argument(
        "--keyword",
        help="Search keyword for --mode search",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Print articles as JSON",
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: from config)",
    )

    args = parser.parse_args()

    try:
        settings = Settings()
    except ConfigurationError as e:
        setup_logger(log_level="ERROR")
        logger.error(f"Failed to load configuration: {e}")
        sys.exit(1)

    setup_logger(
        log_level=args.log_level or settings.log_level,
        log_dir=settings.log_dir,
        app_name=settings.app_name,
    )

    service = NewswireService(settings)

    if args.mode == "daemon":
        logger.info("Starting in daemon mode...")
        setup_signal_handlers(service)
        asyncio.run(service.start())

    elif args.mode == "once":
        preferences = parse_preferences(args.preferences)
        articles = asyncio.run(service.run_once(preferences))
        print_articles(articles, as_json=args.json)

    elif args.mode == "search":
        if not args.keyword:
            parser.error("--keyword is required for --mode search")
        articles = asyncio.run(service.run_search(args.keyword))
        print_articles(articles, as_json=args.json)

    elif args.mode == "status":
        print("\nNewswire Status")
        print("=" * 40)
        print(f"Environment: {settings.env}")
        print(f"Configured sources: {', '.join(settings.configured_sources) or 'none'}")
        print(f"Cache TTL: {settings.cache_ttl_seconds:.0f}s")

        status = service.scheduler.get_status()
        print(f"\nRefresh interval: {status['interval_minutes']} minutes")
        print("Refreshed keys:")
        for key in status["keys"]:
            print(f"  {key}")


if __name__ == "__main__":
    main()
