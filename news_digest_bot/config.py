"""Configuration management for News Digest Bot."""

import os
from dataclasses import dataclass
from datetime import tzinfo
from zoneinfo import ZoneInfo


@dataclass
class TelegramConfig:
    """Configuration for Telegram Bot API."""

    bot_token: str
    parse_mode: str = "HTML"
    disable_web_page_preview: bool = False


@dataclass
class FeedConfig:
    """Configuration for the news search feed."""

    base_url: str = "https://news.google.com/rss/search"
    language: str = "en-IN"
    country: str = "IN"
    edition: str = "IN:en"
    timeout: int = 30


@dataclass
class DigestConfig:
    """Configuration for digest assembly."""

    max_articles: int = 8


@dataclass
class ScheduleConfig:
    """Configuration for the daily delivery."""

    timezone: str = "Asia/Kolkata"
    hour: int = 9
    minute: int = 0

    @property
    def cron_expression(self) -> str:
        return f"{self.minute} {self.hour} * * *"

    @property
    def tzinfo(self) -> tzinfo:
        return ZoneInfo(self.timezone)

    @property
    def display_time(self) -> str:
        """Human readable delivery time, e.g. ``9:00 AM``."""
        hour = self.hour % 12 or 12
        suffix = "AM" if self.hour < 12 else "PM"
        return f"{hour}:{self.minute:02d} {suffix}"


@dataclass
class HealthConfig:
    """Configuration for the liveness endpoint."""

    host: str = "0.0.0.0"
    port: int = 3000
    message: str = "Bot is running!"


class Config:
    """Main configuration manager."""

    def __init__(self):
        """Initialize configuration from environment variables."""
        self.bot_token = os.getenv("BOT_TOKEN", "")
        self.telegram_secret_name = os.getenv("TELEGRAM_SECRET_NAME", "")
        self.aws_region = os.getenv(
            "CURRENT_AWS_REGION", os.getenv("AWS_DEFAULT_REGION", "us-east-1")
        )
        self.log_level = os.getenv("LOG_LEVEL", "INFO")

        port = os.getenv("PORT", "3000")
        try:
            self.port = int(port)
        except ValueError:
            raise ValueError(f"PORT must be an integer, got: {port!r}")

    def get_telegram_config(self) -> TelegramConfig:
        """Get Telegram configuration.

        The token may be empty here; it is resolved from Secrets Manager at
        startup when only ``TELEGRAM_SECRET_NAME`` is set.
        """
        return TelegramConfig(bot_token=self.bot_token)

    def get_feed_config(self) -> FeedConfig:
        """Get feed configuration."""
        return FeedConfig()

    def get_digest_config(self) -> DigestConfig:
        """Get digest configuration."""
        return DigestConfig()

    def get_schedule_config(self) -> ScheduleConfig:
        """Get schedule configuration."""
        return ScheduleConfig()

    def get_health_config(self) -> HealthConfig:
        """Get liveness endpoint configuration."""
        return HealthConfig(port=self.port)
