"""Daily reminder job, meant to be run hourly from cron.

    python -m progress_bot.reminders
"""

from __future__ import annotations

import asyncio
import logging
import os
from datetime import datetime, timezone
from typing import List, Optional
from zoneinfo import ZoneInfo

import httpx

from .config import Settings, load_settings
from .handle import resolve_bot_token
from .messages import REMINDER_TEXT
from .slack_client import SlackApiError, SlackClient
from .store import RecordStore, build_store

logger = logging.getLogger(__name__)


async def send_reminders(
    settings: Settings,
    store: RecordStore,
    client: SlackClient,
    now: Optional[datetime] = None,
) -> List[str]:
    """Notify users whose reminder hour is now; returns who was notified."""

    local_now = (now or datetime.now(timezone.utc)).astimezone(ZoneInfo(settings.reminder_timezone))
    notified: List[str] = []
    for user in store.users_due_for_reminder(local_now.hour, local_now.date()):
        token = resolve_bot_token(store, settings, user.team_id)
        if not token:
            logger.warning("No bot token for team %s, skipping %s", user.team_id, user.username)
            continue
        try:
            await client.post_message(
                token, user.username, text=REMINDER_TEXT.format(username=user.username)
            )
        except (SlackApiError, httpx.HTTPError) as exc:
            logger.error("Failed to remind %s: %s", user.username, exc)
            continue
        user.last_notified = local_now
        store.update_user(user)
        notified.append(user.username)
    logger.info("Sent %s reminders", len(notified))
    return notified


async def _main(settings: Settings) -> None:
    client = SlackClient()
    try:
        await send_reminders(settings, build_store(settings), client)
    finally:
        await client.close()


def run() -> None:
    logging.basicConfig(
        level=os.getenv("LOG_LEVEL", "INFO").upper(), handlers=[logging.StreamHandler()]
    )
    settings = load_settings(os.getenv("PROGRESS_BOT_ENV"))
    asyncio.run(_main(settings))


__all__ = ["run", "send_reminders"]


if __name__ == "__main__":  # pragma: no cover
    run()
