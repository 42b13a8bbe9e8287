"""Entry point for News Digest Bot."""

import json
from datetime import UTC, datetime

import boto3
from botocore.exceptions import ClientError
from telegram import BotCommand, Update
from telegram.ext import Application

from .config import Config
from .digest import DigestFetcher
from .handlers import BotHandlers
from .health import start_health_server
from .logging_config import create_execution_logger, setup_structured_logging
from .publisher import DigestPublisher
from .rss import FeedProcessor
from .scheduler import schedule_daily_digest
from .store import PreferenceStore, SelectionSession

BOT_COMMANDS = [
    BotCommand("start", "Restart bot"),
    BotCommand("update", "Change topics"),
    BotCommand("digest", "Send my digest now"),
]


def get_telegram_token(secret_name: str, aws_region: str, execution_id: str) -> str:
    """
    Retrieve the Telegram bot token from AWS Secrets Manager.

    Supports both plain string and JSON secret formats. The token itself is
    never logged.

    Args:
        secret_name: Name of the secret in Secrets Manager
        aws_region: AWS region for Secrets Manager client
        execution_id: Execution ID for logging context

    Returns:
        Telegram bot token

    Raises:
        RuntimeError: If the secret cannot be retrieved or has no usable value
        ValueError: If secret name or region is empty
    """
    secrets_logger = create_execution_logger("secrets_manager", execution_id)

    if not secret_name or not secret_name.strip():
        raise ValueError("Secret name cannot be empty")

    if not aws_region or not aws_region.strip():
        raise ValueError("AWS region cannot be empty")

    try:
        secrets_logger.info(f"Retrieving Telegram token from Secrets Manager: {secret_name}")
        secrets_client = boto3.client("secretsmanager", region_name=aws_region)
        response = secrets_client.get_secret_value(SecretId=secret_name)

        secret_value = response.get("SecretString")
        if not secret_value or not secret_value.strip():
            raise ValueError(f"Secret {secret_name} contains empty value")

        try:
            secret_data = json.loads(secret_value)
        except json.JSONDecodeError:
            secrets_logger.info("Retrieved token from plain text secret")
            return secret_value.strip()

        if not isinstance(secret_data, dict):
            raise ValueError(f"JSON secret {secret_name} must be an object")

        for key in ["token", "bot_token", "telegram_token", "telegram_bot_token"]:
            value = secret_data.get(key)
            if isinstance(value, str) and value.strip():
                secrets_logger.info("Retrieved token from JSON secret")
                return value.strip()

        raise ValueError(f"No token field found in JSON secret {secret_name}")

    except ClientError as e:
        error_code = e.response.get("Error", {}).get("Code", "Unknown")
        secrets_logger.error(
            f"AWS Secrets Manager error retrieving {secret_name}: {error_code}"
        )
        raise RuntimeError(f"Failed to retrieve secret {secret_name}") from e
    except ValueError as e:
        secrets_logger.error(f"Invalid secret format for {secret_name}: {e}")
        raise RuntimeError(f"Invalid secret format for {secret_name}") from e


def resolve_bot_token(config: Config, execution_id: str) -> str:
    """Token from BOT_TOKEN, falling back to Secrets Manager."""
    if config.bot_token.strip():
        return config.bot_token.strip()

    if config.telegram_secret_name:
        return get_telegram_token(
            config.telegram_secret_name, config.aws_region, execution_id
        )

    raise ValueError("Telegram bot token is not configured (set BOT_TOKEN)")


async def register_commands(application: Application) -> None:
    await application.bot.set_my_commands(BOT_COMMANDS)


def build_application(config: Config, execution_id: str) -> Application:
    """Wire stores, fetcher, publisher, handlers and the daily job together."""
    telegram_config = config.get_telegram_config()
    telegram_config.bot_token = resolve_bot_token(config, execution_id)

    preferences = PreferenceStore()
    sessions = SelectionSession(preferences, execution_id=execution_id)
    fetcher = DigestFetcher(
        FeedProcessor(config.get_feed_config(), execution_id=execution_id),
        config.get_digest_config(),
        execution_id=execution_id,
    )
    schedule = config.get_schedule_config()
    publisher = DigestPublisher(
        preferences, fetcher, telegram_config, schedule, execution_id=execution_id
    )

    application = (
        Application.builder()
        .token(telegram_config.bot_token)
        .post_init(register_commands)
        .build()
    )
    BotHandlers(preferences, sessions, publisher, execution_id=execution_id).register(
        application
    )
    schedule_daily_digest(application, preferences, publisher, schedule)
    return application


def main() -> None:
    config = Config()
    setup_structured_logging(config.log_level)

    execution_id = f"bot_{datetime.now(UTC).strftime('%Y%m%d_%H%M%S_%f')}"
    main_logger = create_execution_logger("main", execution_id)
    main_logger.log_execution_start()

    start_health_server(config.get_health_config(), execution_id)
    application = build_application(config, execution_id)

    main_logger.info("🤖 Bot is running (Headlines Only Mode)...")
    # run_polling stops cleanly on SIGINT/SIGTERM
    application.run_polling(allowed_updates=Update.ALL_TYPES)
    main_logger.log_execution_end(success=True)


if __name__ == "__main__":
    main()
