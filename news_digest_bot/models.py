"""Data models for News Digest Bot."""

from dataclasses import dataclass
from datetime import datetime

# Declared order is the menu order
AVAILABLE_TOPICS: tuple[str, ...] = (
    "Technology",
    "Business",
    "Sports",
    "Health",
    "Science",
    "Entertainment",
    "Crypto",
    "World News",
)


@dataclass
class Article:
    """Represents a single headline fetched for a topic."""

    topic: str
    heading: str
    url: str
    published_at: datetime
