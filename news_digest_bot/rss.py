"""Topic search feed processing for News Digest Bot."""

import threading
from datetime import UTC, datetime
from urllib.parse import quote, urlparse

import feedparser
import requests
from bs4 import BeautifulSoup
from dateutil import parser as date_parser

from .config import FeedConfig
from .logging_config import create_execution_logger
from .models import Article


class FeedProcessor:
    """Downloads a topic's search feed and normalizes its entries."""

    def __init__(self, config: FeedConfig | None = None, execution_id: str | None = None):
        """Initialize FeedProcessor with configuration.

        Args:
            config: Search feed endpoint and HTTP timeout
            execution_id: Execution ID for logging context
        """
        self.config = config or FeedConfig()
        self.logger = create_execution_logger("feed_processor", execution_id)
        self._local = threading.local()

        self.logger.info("FeedProcessor initialized", timeout=self.config.timeout)

    @property
    def session(self) -> requests.Session:
        """HTTP session owned by the calling thread.

        Topics are fetched from worker threads and requests.Session is not
        safe to share between them.
        """
        session = getattr(self._local, "session", None)
        if session is None:
            session = requests.Session()
            session.headers.update(
                {"User-Agent": "News-Digest-Bot/1.0 (Telegram topic digest)"}
            )
            self._local.session = session
        return session

    def build_query_url(self, topic: str) -> str:
        """Build the search feed URL for a topic, URL-escaping the label."""
        return (
            f"{self.config.base_url}?q={quote(topic, safe='')}"
            f"&hl={self.config.language}&gl={self.config.country}"
            f"&ceid={self.config.edition}"
        )

    def fetch_topic(self, topic: str, limit: int) -> list[Article]:
        """Fetch the first ``limit`` entries of a topic's search feed.

        Args:
            topic: Topic label used as the search query
            limit: Maximum number of articles to return

        Returns:
            Articles in feed order

        Raises:
            ValueError: If the feed URL is not HTTPS
            requests.RequestException: If the feed download fails
        """
        feed_url = self.build_query_url(topic)
        self.logger.info("Fetching topic feed", topic=topic, feed_url=feed_url)

        parsed_url = urlparse(feed_url)
        if parsed_url.scheme != "https":
            error_msg = f"Feed URL must use HTTPS protocol: {feed_url}"
            self.logger.error(error_msg, topic=topic, scheme=parsed_url.scheme)
            raise ValueError(error_msg)

        try:
            response = self.session.get(feed_url, timeout=self.config.timeout)
            response.raise_for_status()
        except requests.RequestException as e:
            self.logger.error(
                f"Failed to download feed for {topic}: {e}",
                topic=topic,
                error=str(e),
            )
            raise

        feed = feedparser.parse(response.content)

        if feed.bozo and hasattr(feed, "bozo_exception"):
            self.logger.warning(
                f"Feed parsing warning for {topic}: {feed.bozo_exception}",
                topic=topic,
                bozo_exception=str(feed.bozo_exception),
            )

        articles = []
        for entry in feed.entries[:limit]:
            try:
                articles.append(self.normalize_item(entry, topic))
            except Exception as e:
                self.logger.warning(
                    f"Failed to normalize entry for {topic}: {e}",
                    topic=topic,
                    error=str(e),
                )
                continue

        self.logger.log_topic_fetch(topic, len(articles))
        return articles

    def normalize_item(self, raw_item, topic: str) -> Article:
        """Normalize a raw feed entry into an Article.

        Args:
            raw_item: Raw feed entry from feedparser
            topic: Topic the entry was fetched for

        Returns:
            Normalized Article object
        """
        heading = self.clean_html_content(getattr(raw_item, "title", "") or "")
        if not heading:
            heading = "No Title"

        url = getattr(raw_item, "link", "") or ""

        return Article(
            topic=topic,
            heading=heading,
            url=url,
            published_at=self.parse_published(getattr(raw_item, "published", None)),
        )

    def parse_published(self, published_str: str | None) -> datetime:
        """Parse a feed date into a timezone-aware datetime.

        Missing or unparseable dates sort as the oldest possible entry.
        """
        if not published_str:
            return datetime.min.replace(tzinfo=UTC)

        try:
            published = date_parser.parse(published_str)
        except (ValueError, TypeError, OverflowError):
            return datetime.min.replace(tzinfo=UTC)

        if published.tzinfo is None:
            published = published.replace(tzinfo=UTC)
        return published

    def clean_html_content(self, content: str) -> str:
        """Remove HTML tags from content and normalize whitespace.

        Args:
            content: Raw content that may contain HTML

        Returns:
            Clean text content without HTML tags
        """
        if not content:
            return ""

        if "<" not in content and ">" not in content:
            return " ".join(content.split())

        soup = BeautifulSoup(content, "html.parser")

        for script in soup(["script", "style"]):
            script.decompose()

        text = soup.get_text(separator=" ")

        # Stray brackets survive get_text()
        text = text.replace("<", "").replace(">", "")

        return " ".join(text.split())
