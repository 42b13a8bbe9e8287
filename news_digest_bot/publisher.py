"""Digest rendering, topic menu and delivery for News Digest Bot."""

from telegram import Bot, InlineKeyboardButton, InlineKeyboardMarkup, LinkPreviewOptions

from .config import ScheduleConfig, TelegramConfig
from .digest import DigestFetcher
from .logging_config import create_execution_logger
from .models import AVAILABLE_TOPICS, Article
from .store import PreferenceStore, UserId

TOGGLE_PREFIX = "toggle:"
COMMIT_ACTION = "commit"

SELECTED_MARKER = "✅"
COMMIT_LABEL = "🚀 Done & Fetch News"

NO_NEWS_MESSAGE = "⚠️ No news found right now."
NO_PREFERENCES_MESSAGE = "⚠️ Use /update to set up your topics."
FETCHING_MESSAGE = "🔍 Fetching latest headlines..."


def escape_html(text: str) -> str:
    """
    Escape HTML characters in text for Telegram HTML parsing.

    Args:
        text: Text to escape

    Returns:
        HTML-escaped text
    """
    if not text:
        return ""

    text = text.replace("&", "&amp;")
    text = text.replace("<", "&lt;")
    text = text.replace(">", "&gt;")
    text = text.replace('"', "&quot;")
    text = text.replace("'", "&#x27;")

    return text


def render_digest(
    articles: list[Article],
    topics: list[str],
    schedule: ScheduleConfig | None = None,
) -> str:
    """
    Format a digest for Telegram with HTML parsing.

    Args:
        articles: Ranked articles, newest first
        topics: The user's topics in selection order
        schedule: Daily delivery settings used for the footer

    Returns:
        Formatted HTML message, or the fixed no-news notice for an empty digest
    """
    if not articles:
        return NO_NEWS_MESSAGE

    schedule = schedule or ScheduleConfig()

    message = "☕ <b>Your Daily Digest</b>\n"
    message += f"<i>Topics: {escape_html(', '.join(topics))}</i>\n\n"

    for article in articles:
        message += f"🔹 <b>{escape_html(article.heading)}</b>\n"
        message += f'<a href="{escape_html(article.url)}">Read more</a>\n\n'

    message += f"📅 <i>You will receive this daily at {schedule.display_time}.</i>"
    return message


def build_topic_keyboard(selected: set[str]) -> InlineKeyboardMarkup:
    """Topic menu: two toggles per row in declared order, then the commit button."""
    buttons = [
        InlineKeyboardButton(
            f"{SELECTED_MARKER} {topic}" if topic in selected else topic,
            callback_data=f"{TOGGLE_PREFIX}{topic}",
        )
        for topic in AVAILABLE_TOPICS
    ]
    rows = [buttons[i : i + 2] for i in range(0, len(buttons), 2)]
    rows.append([InlineKeyboardButton(COMMIT_LABEL, callback_data=COMMIT_ACTION)])
    return InlineKeyboardMarkup(rows)


class DigestPublisher:
    """Runs the send pipeline: preferences, fetch, render, deliver."""

    def __init__(
        self,
        preferences: PreferenceStore,
        fetcher: DigestFetcher,
        config: TelegramConfig,
        schedule: ScheduleConfig | None = None,
        execution_id: str | None = None,
    ):
        """Initialize the publisher with its collaborators."""
        self.preferences = preferences
        self.fetcher = fetcher
        self.config = config
        self.schedule = schedule or ScheduleConfig()
        self.logger = create_execution_logger("publisher", execution_id)

        self.logger.info(
            "DigestPublisher initialized",
            parse_mode=config.parse_mode,
            schedule=self.schedule.cron_expression,
        )

    async def send_digest(self, bot: Bot, user_id: UserId) -> bool:
        """
        Send the current digest to a user.

        Users without preferences get a setup hint instead; no fetch is made.
        Delivery errors propagate to the caller.

        Args:
            bot: Bot used for outbound messages
            user_id: Chat to deliver to

        Returns:
            True if a digest (possibly the no-news notice) was sent
        """
        topics = self.preferences.get(user_id)
        if not topics:
            await bot.send_message(chat_id=user_id, text=NO_PREFERENCES_MESSAGE)
            self.logger.log_delivery(user_id, "setup_hint")
            return False

        await bot.send_message(chat_id=user_id, text=FETCHING_MESSAGE)

        articles = await self.fetcher.fetch(topics)
        message = render_digest(articles, topics, self.schedule)

        await bot.send_message(
            chat_id=user_id,
            text=message,
            parse_mode=self.config.parse_mode,
            link_preview_options=LinkPreviewOptions(
                is_disabled=self.config.disable_web_page_preview
            ),
        )
        self.logger.log_delivery(user_id, "digest")
        return True
