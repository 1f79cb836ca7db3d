"""Configuration helpers for the progress bot."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

STORE_BACKENDS = ("sqlite", "memory")


@dataclass(slots=True)
class Settings:
    """Runtime configuration values loaded from environment variables."""

    database_path: Path
    slack_bot_token: Optional[str] = None
    slack_client_id: Optional[str] = None
    slack_client_secret: Optional[str] = None
    store_backend: str = "sqlite"
    reminder_timezone: str = "UTC"
    oauth_success_url: str = "https://progress.bot/success"
    oauth_error_url: str = "https://progress.bot/error"


def load_settings(env_file: str | None = None) -> Settings:
    """Load settings from the environment, optionally from a specific file."""

    if env_file:
        load_dotenv(env_file)
    else:
        load_dotenv()

    db_path = Path(os.getenv("DATABASE_PATH", "progress_bot.db")).expanduser()

    bot_token = os.getenv("SLACK_BOT_TOKEN") or None
    client_id = os.getenv("SLACK_CLIENT_ID") or None
    client_secret = os.getenv("SLACK_CLIENT_SECRET") or None
    backend = os.getenv("STORE_BACKEND", "sqlite").lower()

    if not bot_token and not (client_id and client_secret):
        raise RuntimeError(
            "SLACK_BOT_TOKEN or SLACK_CLIENT_ID/SLACK_CLIENT_SECRET must be configured"
        )
    if backend not in STORE_BACKENDS:
        raise RuntimeError(f"STORE_BACKEND must be one of: {', '.join(STORE_BACKENDS)}")

    return Settings(
        database_path=db_path,
        slack_bot_token=bot_token,
        slack_client_id=client_id,
        slack_client_secret=client_secret,
        store_backend=backend,
        reminder_timezone=os.getenv("REMINDER_TIMEZONE", "UTC"),
        oauth_success_url=os.getenv("OAUTH_SUCCESS_URL", "https://progress.bot/success"),
        oauth_error_url=os.getenv("OAUTH_ERROR_URL", "https://progress.bot/error"),
    )


__all__ = ["Settings", "load_settings", "STORE_BACKENDS"]
