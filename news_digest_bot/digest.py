"""Digest assembly: per-topic fan-out, merge, rank and truncate."""

import asyncio
import math
from collections.abc import Awaitable, Callable

from .config import DigestConfig
from .logging_config import create_execution_logger
from .models import Article
from .rss import FeedProcessor


def topic_quota(topic_count: int, max_articles: int = 8) -> int:
    """Articles requested per topic so every topic can fill its share."""
    if topic_count < 1:
        raise ValueError("At least one topic is required")
    return math.ceil(max_articles / topic_count)


def rank_articles(articles: list[Article], max_articles: int = 8) -> list[Article]:
    """Newest first, capped at ``max_articles``.

    ``sorted`` is stable, so equal timestamps keep their merge order.
    """
    ranked = sorted(articles, key=lambda a: a.published_at, reverse=True)
    return ranked[:max_articles]


async def gather_outcomes(
    topics: list[str], fetch_one: Callable[[str], Awaitable[list[Article]]]
) -> list[list[Article] | BaseException]:
    """Run ``fetch_one`` for every topic concurrently.

    Each slot of the result is either that topic's article list or the
    exception it raised, in topic order.
    """
    return await asyncio.gather(
        *(fetch_one(topic) for topic in topics), return_exceptions=True
    )


class DigestFetcher:
    """Builds the ranked article list for a set of topics."""

    def __init__(
        self,
        processor: FeedProcessor | None = None,
        config: DigestConfig | None = None,
        execution_id: str | None = None,
    ):
        """Initialize DigestFetcher.

        Args:
            processor: Feed processor used for each topic request
            config: Digest size configuration
            execution_id: Execution ID for logging context
        """
        self.processor = processor or FeedProcessor(execution_id=execution_id)
        self.config = config or DigestConfig()
        self.logger = create_execution_logger("digest_fetcher", execution_id)

    async def fetch(self, topics: list[str]) -> list[Article]:
        """Fetch, merge and rank articles for ``topics``.

        A topic whose request fails contributes no articles; the failure is
        logged and never reaches the caller.

        Args:
            topics: Non-empty list of topic labels

        Returns:
            At most ``max_articles`` articles, newest first. May be empty.
        """
        max_articles = self.config.max_articles
        quota = topic_quota(len(topics), max_articles)
        self.logger.log_execution_start(topics=list(topics), quota=quota)

        async def fetch_one(topic: str) -> list[Article]:
            # requests is blocking; one worker thread per topic keeps a slow
            # topic from holding up the others
            return await asyncio.to_thread(self.processor.fetch_topic, topic, quota)

        outcomes = await gather_outcomes(topics, fetch_one)

        merged: list[Article] = []
        failed = 0
        for topic, outcome in zip(topics, outcomes):
            if isinstance(outcome, BaseException):
                failed += 1
                self.logger.error(
                    f"Error fetching {topic}: {outcome}",
                    topic=topic,
                    error=str(outcome),
                )
                continue
            merged.extend(outcome[:quota])

        digest = rank_articles(merged, max_articles)

        self.logger.log_execution_end(
            success=failed == 0,
            metrics={
                "topics": len(topics),
                "topics_failed": failed,
                "articles_found": len(merged),
                "articles_kept": len(digest),
            },
        )
        return digest
