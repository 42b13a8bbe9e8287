"""Command and button handlers for News Digest Bot."""

import re

from telegram import Update
from telegram.error import TelegramError
from telegram.ext import Application, CallbackQueryHandler, CommandHandler, ContextTypes

from .logging_config import create_execution_logger
from .models import AVAILABLE_TOPICS
from .publisher import COMMIT_ACTION, TOGGLE_PREFIX, DigestPublisher, build_topic_keyboard
from .store import PreferenceStore, SelectionSession

MENU_TITLE = "⚙️ Configure Your Feed"
COMMITTED_MESSAGE = "✅ Preferences Updated!"
EMPTY_SELECTION_NOTICE = "Select at least one!"
UNKNOWN_TOPIC_NOTICE = "Unknown topic."


class BotHandlers:
    """Per-user menu flow: open a session, toggle topics, commit, send.

    Sessions are keyed by chat id. Button presses for a user without a
    session are tolerated: a toggle starts from an empty selection and a
    commit is rejected like an empty one.
    """

    def __init__(
        self,
        preferences: PreferenceStore,
        sessions: SelectionSession,
        publisher: DigestPublisher,
        execution_id: str | None = None,
    ):
        self.preferences = preferences
        self.sessions = sessions
        self.publisher = publisher
        self.logger = create_execution_logger("handlers", execution_id)

    def register(self, application: Application) -> None:
        """Attach every handler to the application."""
        application.add_handler(CommandHandler("start", self.show_menu))
        application.add_handler(CommandHandler(["update", "reconfigure"], self.show_menu))
        application.add_handler(CommandHandler("digest", self.send_now))
        application.add_handler(
            CallbackQueryHandler(self.toggle, pattern=f"^{re.escape(TOGGLE_PREFIX)}")
        )
        application.add_handler(
            CallbackQueryHandler(self.commit, pattern=f"^{re.escape(COMMIT_ACTION)}$")
        )
        application.add_error_handler(self.on_error)

    async def show_menu(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        """Entry command: seed a session from saved topics and show the menu."""
        chat_id = update.effective_chat.id
        selected = self.sessions.open(chat_id, self.preferences.get(chat_id) or [])
        self.logger.info("Showing topic menu", user_id=chat_id, topics=sorted(selected))
        await update.effective_message.reply_text(
            MENU_TITLE, reply_markup=build_topic_keyboard(selected)
        )

    async def toggle(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        """Flip one topic and redraw the menu in place."""
        query = update.callback_query
        chat_id = update.effective_chat.id
        topic = query.data[len(TOGGLE_PREFIX) :]

        if topic not in AVAILABLE_TOPICS:
            self.logger.warning("Ignoring unknown topic", user_id=chat_id, topic=topic)
            await query.answer(UNKNOWN_TOPIC_NOTICE)
            return

        selected = self.sessions.toggle(chat_id, topic)
        try:
            await query.edit_message_reply_markup(reply_markup=build_topic_keyboard(selected))
        except TelegramError as e:
            # Stale message or network failure; the selection itself is already stored
            self.logger.debug(
                f"Menu update skipped: {e}", user_id=chat_id, topic=topic, error=str(e)
            )
        await query.answer()

    async def commit(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        """Save the selection, confirm, and send the first digest."""
        query = update.callback_query
        chat_id = update.effective_chat.id

        topics = self.sessions.commit(chat_id, AVAILABLE_TOPICS)
        if topics is None:
            await query.answer(EMPTY_SELECTION_NOTICE)
            return

        await query.answer()
        try:
            await query.edit_message_text(COMMITTED_MESSAGE)
        except TelegramError as e:
            # Preferences are saved; the first digest still goes out
            self.logger.debug(
                f"Confirmation update skipped: {e}", user_id=chat_id, error=str(e)
            )
        await self.publisher.send_digest(context.bot, chat_id)

    async def send_now(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        """Send the digest on demand."""
        await self.publisher.send_digest(context.bot, update.effective_chat.id)

    async def on_error(self, update: object, context: ContextTypes.DEFAULT_TYPE) -> None:
        """Log exceptions raised by any handler; the bot keeps polling."""
        user_id = None
        if isinstance(update, Update) and update.effective_chat:
            user_id = update.effective_chat.id
        self.logger.error(
            f"Unhandled error while processing update: {context.error}",
            user_id=user_id,
            error=str(context.error),
            exc_info=context.error,
        )
