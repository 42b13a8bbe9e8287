"""Unit tests for digest assembly."""

import asyncio
import threading
from datetime import UTC, datetime, timedelta
from unittest.mock import Mock

import pytest
import requests

from news_digest_bot.config import DigestConfig
from news_digest_bot.digest import DigestFetcher, rank_articles, topic_quota
from news_digest_bot.models import Article

BASE_TIME = datetime(2024, 1, 1, 12, 0, tzinfo=UTC)


def make_articles(topic: str, count: int, offset_minutes: int = 0) -> list[Article]:
    return [
        Article(
            topic=topic,
            heading=f"{topic} headline {i}",
            url=f"https://news.example.com/{topic.lower()}/{i}",
            published_at=BASE_TIME - timedelta(minutes=offset_minutes + i * 10),
        )
        for i in range(count)
    ]


class TestTopicQuotaUnit:
    """Unit tests for the per-topic quota."""

    @pytest.mark.parametrize(
        "topic_count,expected", [(1, 8), (2, 4), (3, 3), (5, 2), (8, 1)]
    )
    def test_quota(self, topic_count, expected):
        assert topic_quota(topic_count) == expected

    def test_quota_requires_topics(self):
        with pytest.raises(ValueError):
            topic_quota(0)


class TestRankArticlesUnit:
    """Unit tests for ranking."""

    def test_newest_first_and_capped(self):
        articles = make_articles("Sports", 5) + make_articles("Health", 6, offset_minutes=5)

        ranked = rank_articles(articles, 8)

        assert len(ranked) == 8
        times = [a.published_at for a in ranked]
        assert times == sorted(times, reverse=True)

    def test_ties_keep_merge_order(self):
        first = Article("Sports", "A", "https://a", BASE_TIME)
        second = Article("Health", "B", "https://b", BASE_TIME)

        assert rank_articles([first, second]) == [first, second]
        assert rank_articles([second, first]) == [second, first]


class TestDigestFetcherUnit:
    """Unit tests for DigestFetcher."""

    def test_single_topic_requests_eight(self):
        processor = Mock()
        processor.fetch_topic.return_value = make_articles("Crypto", 8)
        fetcher = DigestFetcher(processor)

        digest = asyncio.run(fetcher.fetch(["Crypto"]))

        processor.fetch_topic.assert_called_once_with("Crypto", 8)
        assert len(digest) == 8
        assert [a.published_at for a in digest] == sorted(
            (a.published_at for a in digest), reverse=True
        )

    def test_quota_passed_to_each_topic(self):
        processor = Mock()
        processor.fetch_topic.side_effect = lambda topic, limit: make_articles(topic, limit)
        fetcher = DigestFetcher(processor)

        digest = asyncio.run(fetcher.fetch(["Technology", "Sports", "Health"]))

        limits = {c.args[0]: c.args[1] for c in processor.fetch_topic.call_args_list}
        assert limits == {"Technology": 3, "Sports": 3, "Health": 3}
        # 9 collected, 8 kept
        assert len(digest) == 8

    def test_failing_topic_is_isolated(self):
        def fetch_topic(topic, limit):
            if topic == "Sports":
                raise requests.Timeout("feed timed out")
            return make_articles(topic, limit)

        processor = Mock()
        processor.fetch_topic.side_effect = fetch_topic
        fetcher = DigestFetcher(processor)

        digest = asyncio.run(fetcher.fetch(["Sports", "Technology"]))

        assert len(digest) == 4
        assert {a.topic for a in digest} == {"Technology"}

    def test_all_topics_failing_returns_empty(self):
        processor = Mock()
        processor.fetch_topic.side_effect = ValueError("malformed feed")
        fetcher = DigestFetcher(processor)

        assert asyncio.run(fetcher.fetch(["Sports", "Crypto"])) == []

    def test_overlong_topic_result_trimmed_to_quota(self):
        processor = Mock()
        processor.fetch_topic.side_effect = lambda topic, limit: make_articles(topic, 20)
        fetcher = DigestFetcher(processor)

        digest = asyncio.run(fetcher.fetch(["Sports", "Health"]))

        assert sum(1 for a in digest if a.topic == "Sports") == 4
        assert sum(1 for a in digest if a.topic == "Health") == 4

    def test_custom_digest_size(self):
        processor = Mock()
        processor.fetch_topic.side_effect = lambda topic, limit: make_articles(topic, limit)
        fetcher = DigestFetcher(processor, DigestConfig(max_articles=3))

        digest = asyncio.run(fetcher.fetch(["Sports", "Health"]))

        assert len(digest) == 3
        processor.fetch_topic.assert_any_call("Sports", 2)

    def test_topics_are_fetched_concurrently(self):
        topics = ["World News", "Technology", "Sports"]
        # Each fetch waits for every other topic; a sequential run breaks the barrier
        barrier = threading.Barrier(len(topics), timeout=5)

        def fetch_topic(topic, limit):
            barrier.wait()
            return make_articles(topic, limit)

        processor = Mock()
        processor.fetch_topic.side_effect = fetch_topic
        fetcher = DigestFetcher(processor)

        digest = asyncio.run(fetcher.fetch(topics))

        assert not barrier.broken
        assert {a.topic for a in digest} == set(topics)
        assert len(digest) == 8
