"""Daily digest delivery for every configured user."""

from datetime import UTC, datetime, time

from telegram import Bot
from telegram.ext import Application, ContextTypes, Job

from .config import ScheduleConfig
from .logging_config import create_execution_logger
from .publisher import DigestPublisher
from .store import PreferenceStore

JOB_NAME = "daily_digest"


async def run_daily_digest(
    bot: Bot, preferences: PreferenceStore, publisher: DigestPublisher
) -> dict:
    """
    Send the digest to every user with saved preferences, one at a time.

    A failure for one user is logged and the remaining users are still
    served.

    Returns:
        Metrics for the run
    """
    execution_id = f"daily_{datetime.now(UTC).strftime('%Y%m%d_%H%M%S_%f')}"
    logger = create_execution_logger("scheduler", execution_id)

    user_ids = preferences.user_ids()
    logger.log_execution_start(user_count=len(user_ids))

    metrics = {"users": len(user_ids), "digests_sent": 0, "errors": []}

    for user_id in user_ids:
        try:
            if await publisher.send_digest(bot, user_id):
                metrics["digests_sent"] += 1
        except Exception as e:
            error_msg = f"Failed to send daily digest to {user_id}: {e}"
            logger.error(error_msg, user_id=user_id, error=str(e))
            metrics["errors"].append(error_msg)
            continue

    logger.log_metrics(metrics)
    logger.log_execution_end(success=not metrics["errors"])
    return metrics


def schedule_daily_digest(
    application: Application,
    preferences: PreferenceStore,
    publisher: DigestPublisher,
    schedule: ScheduleConfig,
) -> Job:
    """Register the daily job on the application's job queue.

    Missed runs (process down at trigger time) are not caught up.
    """

    async def daily_digest_job(context: ContextTypes.DEFAULT_TYPE) -> None:
        await run_daily_digest(context.bot, preferences, publisher)

    return application.job_queue.run_daily(
        daily_digest_job,
        time=time(hour=schedule.hour, minute=schedule.minute, tzinfo=schedule.tzinfo),
        name=JOB_NAME,
    )
