"""
Unit tests for NewsAggregator.
"""
import asyncio
import dataclasses
import random

import pytest

from newswire.news.aggregator import NewsAggregator, merge_results, rank_articles
from newswire.news.cache import cache_key
from newswire.news.gnews import GNewsCollector
from newswire.news.newsapi_org import NewsApiOrgCollector
from newswire.utils.exceptions import NewsCollectionError
from tests.conftest import FakeCollector, make_article


class ExplodingCollector(FakeCollector):
    """Collector that breaks its own no-raise contract."""

    async def fetch_topic(self, topic):
        self.calls.append((topic, None))
        raise RuntimeError("boom")


class TestRanking:
    def test_newest_first(self):
        articles = [make_article("a", hours_ago=1), make_article("c", hours_ago=3), make_article("b", hours_ago=2)]

        ranked = rank_articles(articles)

        assert [a.url for a in ranked] == [
            make_article("a").url,
            make_article("b").url,
            make_article("c").url,
        ]

    def test_unparsable_timestamps_sort_last_in_stable_order(self):
        undated_1 = make_article("u1", hours_ago=None)
        undated_2 = make_article("u2", hours_ago=None)
        dated = make_article("d", hours_ago=100)

        ranked = rank_articles([undated_1, dated, undated_2])

        assert ranked == [dated, undated_1, undated_2]

    def test_ties_keep_input_order(self):
        first, second = make_article(1, hours_ago=5), make_article(2, hours_ago=5)

        assert rank_articles([first, second]) == [first, second]
        assert rank_articles([second, first]) == [second, first]

    def test_truncates(self):
        articles = [make_article(i, hours_ago=i) for i in range(10)]

        assert len(rank_articles(articles, limit=3)) == 3


class TestMerge:
    def test_first_occurrence_wins(self):
        original = make_article(1, title="Original")
        copy = make_article(1, title="Copy")

        merged = merge_results([[original], [copy, make_article(2)]])

        assert merged[0].title == "Original"
        assert len(merged) == 2

    def test_merging_with_itself_is_idempotent(self):
        articles = [make_article(i) for i in range(5)]

        merged = merge_results([articles + articles])

        assert [a.url for a in merged] == [a.url for a in articles]


class TestFetchByPreferences:
    @pytest.mark.asyncio
    async def test_empty_preferences_query_general_on_every_adapter(self, make_aggregator):
        shared = make_article("shared", hours_ago=1)
        first = FakeCollector("first", default=[shared, make_article("x", hours_ago=2)])
        second = FakeCollector("second", default=[make_article("shared", title="Dup"), make_article("y", hours_ago=3)])
        aggregator = make_aggregator([first, second])

        result = await aggregator.fetch_by_preferences([])

        assert first.calls == [("general", "general")]
        assert second.calls == [("general", "general")]
        assert [a.url for a in result] == [
            shared.url,
            make_article("x").url,
            make_article("y").url,
        ]
        assert result[0].title == "Article shared"

    @pytest.mark.asyncio
    async def test_one_call_per_preference_per_adapter(self, make_aggregator):
        collectors = [FakeCollector(f"c{i}") for i in range(3)]
        aggregator = make_aggregator(collectors)

        await aggregator.fetch_by_preferences(["technology", "space travel"])

        for collector in collectors:
            assert sorted(collector.calls, key=str) == sorted(
                [("technology", "technology"), ("space travel", None)], key=str
            )

    @pytest.mark.asyncio
    async def test_duplicate_preferences_fetch_once(self, make_aggregator):
        collector = FakeCollector("c")
        aggregator = make_aggregator([collector])

        await aggregator.fetch_by_preferences(["health", "health"])

        assert collector.calls == [("health", "health")]

    @pytest.mark.asyncio
    async def test_cache_hit_makes_no_upstream_calls(self, make_aggregator):
        collector = FakeCollector("c", default=[make_article(1)])
        aggregator = make_aggregator([collector])

        first = await aggregator.fetch_by_preferences(["sports", "business"])
        second = await aggregator.fetch_by_preferences(["business", "sports"])

        assert len(collector.calls) == 2
        assert [a.url for a in second] == [a.url for a in first]

    @pytest.mark.asyncio
    async def test_returned_articles_cannot_rewrite_cached_snapshot(self, make_aggregator):
        collector = FakeCollector("c", default=[make_article(1, title="Original")])
        aggregator = make_aggregator([collector])

        first = await aggregator.fetch_by_preferences(["technology"])
        with pytest.raises(dataclasses.FrozenInstanceError):
            first[0].title = "Edited"
        second = await aggregator.fetch_by_preferences(["technology"])

        assert second[0].title == "Original"

    @pytest.mark.asyncio
    async def test_expired_entry_is_refetched(self, make_aggregator, clock):
        collector = FakeCollector("c", default=[make_article(1)])
        aggregator = make_aggregator([collector])

        await aggregator.fetch_by_preferences(["science"])
        clock.advance(900)
        await aggregator.fetch_by_preferences(["science"])

        assert len(collector.calls) == 2

    @pytest.mark.asyncio
    async def test_writes_one_entry_under_original_preference_key(self, make_aggregator, cache):
        collector = FakeCollector("c", articles_by_query={
            "technology": [make_article(1)],
            "health": [make_article(2)],
        })
        aggregator = make_aggregator([collector])

        result = await aggregator.fetch_by_preferences(["technology", "health"])

        assert cache.keys() == [cache_key(["health", "technology"])]
        assert [a.url for a in cache.get("health,technology")] == [a.url for a in result]

    @pytest.mark.asyncio
    async def test_truncates_to_100_most_recent(self, make_aggregator):
        articles = [make_article(i, hours_ago=i) for i in range(150)]
        random.Random(7).shuffle(articles)
        aggregator = make_aggregator([FakeCollector("c", default=articles)])

        result = await aggregator.fetch_by_preferences(["general"])

        assert len(result) == 100
        assert [a.url for a in result] == [make_article(i).url for i in range(100)]

    @pytest.mark.asyncio
    async def test_merge_is_adapter_major_then_preference(self, make_aggregator):
        first = FakeCollector("first", articles_by_query={
            "x": [make_article("first-x", hours_ago=1)],
            "y": [make_article("first-y", hours_ago=1)],
        })
        second = FakeCollector("second", articles_by_query={
            "x": [make_article("second-x", hours_ago=1)],
            "y": [make_article("second-y", hours_ago=1)],
        })
        aggregator = make_aggregator([first, second])

        result = await aggregator.fetch_by_preferences(["x", "y"])

        assert [a.url for a in result] == [
            make_article("first-x").url,
            make_article("first-y").url,
            make_article("second-x").url,
            make_article("second-y").url,
        ]

    @pytest.mark.asyncio
    async def test_all_adapters_failing_returns_empty_and_caches_nothing(self, make_aggregator, cache):
        collectors = [
            FakeCollector("a", error=NewsCollectionError("down")),
            FakeCollector("b", error=RuntimeError("bad payload")),
        ]
        aggregator = make_aggregator(collectors)

        result = await aggregator.fetch_by_preferences(["technology"])

        assert result == []
        assert cache.get("technology") is None
        assert len(cache) == 0

    @pytest.mark.asyncio
    async def test_failing_adapter_does_not_affect_others(self, make_aggregator):
        good = FakeCollector("good", default=[make_article(1)])
        aggregator = make_aggregator([
            ExplodingCollector("bad"),
            FakeCollector("down", error=NewsCollectionError("down")),
            good,
        ])

        result = await aggregator.fetch_by_preferences([])

        assert [a.url for a in result] == [make_article(1).url]
        assert aggregator.failure_count == 1

    @pytest.mark.asyncio
    async def test_slow_adapter_is_bounded_by_timeout(self, make_aggregator):
        slow = FakeCollector("slow", default=[make_article("slow")], delay=5)
        fast = FakeCollector("fast", default=[make_article("fast")])
        aggregator = make_aggregator([slow, fast], fetch_timeout=0.05)

        result = await asyncio.wait_for(aggregator.fetch_by_preferences([]), timeout=2)

        assert [a.url for a in result] == [make_article("fast").url]
        assert aggregator.failure_count == 1

    @pytest.mark.asyncio
    async def test_no_collectors_returns_empty(self, make_aggregator):
        aggregator = make_aggregator([])

        assert await aggregator.fetch_by_preferences(["technology"]) == []

    @pytest.mark.asyncio
    async def test_max_articles_from_config(self, make_aggregator):
        articles = [make_article(i, hours_ago=i) for i in range(20)]
        aggregator = make_aggregator([FakeCollector("c", default=articles)], max_articles=5)

        assert len(await aggregator.fetch_by_preferences([])) == 5


class TestSearchByKeyword:
    @pytest.mark.asyncio
    async def test_empty_cache_triggers_one_general_fetch(self, make_aggregator):
        collector = FakeCollector("c", default=[
            make_article(1, title="Health budget approved", hours_ago=3),
            make_article(2, title="Election night", hours_ago=1),
            make_article(3, description="hospital HEALTH data", hours_ago=2),
        ])
        aggregator = make_aggregator([collector])

        result = await aggregator.search_by_keyword("health")

        assert collector.calls == [("general", "general")]
        assert [a.url for a in result] == [make_article(3).url, make_article(1).url]

    @pytest.mark.asyncio
    async def test_no_infinite_retry_when_fetch_yields_nothing(self, make_aggregator):
        collector = FakeCollector("c", default=[])
        aggregator = make_aggregator([collector])

        result = await aggregator.search_by_keyword("health")

        assert result == []
        assert len(collector.calls) == 1

    @pytest.mark.asyncio
    async def test_searches_across_all_valid_entries(self, make_aggregator, cache):
        cache.set("technology", [make_article(1, title="AI chips", hours_ago=2)])
        cache.set("business", [
            make_article(1, title="AI chips (dup)", hours_ago=2),
            make_article(2, source="AI Weekly", hours_ago=1),
        ])
        collector = FakeCollector("c")
        aggregator = make_aggregator([collector])

        result = await aggregator.search_by_keyword("ai")

        assert collector.calls == []
        assert [a.url for a in result] == [make_article(2).url, make_article(1).url]
        assert result[1].title == "AI chips"

    @pytest.mark.asyncio
    async def test_expired_entries_are_not_searched(self, make_aggregator, cache, clock):
        cache.set("technology", [make_article(1, title="Old robot story")])
        clock.advance(900)
        collector = FakeCollector("c", default=[make_article(2, title="Fresh robot story")])
        aggregator = make_aggregator([collector])

        result = await aggregator.search_by_keyword("robot")

        assert [a.url for a in result] == [make_article(2).url]


class TestFromConfig:
    @pytest.mark.asyncio
    async def test_builds_only_configured_sources(self):
        aggregator = NewsAggregator(config={
            "sources": [
                {"name": "newsapi_org", "api_key": "org-key"},
                {"name": "newscatcher", "api_key": ""},
                {"name": "gnews", "api_key": "gn-token", "enabled": False},
                {"name": "newsapi_ai"},
                {"name": "unknown_wire", "api_key": "x"},
            ],
            "cache": {"ttl_seconds": "60"},
        })
        try:
            await aggregator._setup_collectors()

            assert [type(c) for c in aggregator.collectors] == [NewsApiOrgCollector]
            assert aggregator.cache.ttl == 60
        finally:
            await aggregator.close()

    @pytest.mark.asyncio
    async def test_collectors_share_one_session(self):
        aggregator = NewsAggregator(config={"sources": [
            {"name": "newsapi_org", "api_key": "a"},
            {"name": "gnews", "api_key": "b"},
        ]})
        try:
            await aggregator._setup_collectors()
            org, gnews = aggregator.collectors

            assert isinstance(gnews, GNewsCollector)
            assert org._session is gnews._session is aggregator._session
        finally:
            await aggregator.close()

        assert aggregator._session is None

    @pytest.mark.asyncio
    async def test_no_keys_returns_empty_list(self):
        aggregator = NewsAggregator(config={"sources": [{"name": "gnews"}]})

        assert await aggregator.fetch_by_preferences(["technology"]) == []
        assert aggregator.get_status()["collectors"] == []
