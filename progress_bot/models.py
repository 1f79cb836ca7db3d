"""Dataclasses representing progress bot domain models."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, time


@dataclass(slots=True)
class User:
    username: str
    team_id: str
    real_name: str = ""
    avatar_url: str = ""
    channel: str | None = None
    reminder: time | None = None
    last_notified: datetime | None = None


@dataclass(slots=True)
class Standup:
    """One user's check-in for one UTC calendar day."""

    username: str
    team_id: str
    date: date
    id: int | None = None
    local_date: datetime | None = None
    intro_message_ts: str | None = None
    prev_day: str | None = None
    day: str | None = None
    blocker: str | None = None
    prev_day_message_ts: str | None = None
    day_message_ts: str | None = None
    blocker_message_ts: str | None = None
    message_ts: str | None = None
    channel: str | None = None
    done: set[int] = field(default_factory=set)

    @property
    def echoed(self) -> bool:
        return self.channel is not None and self.message_ts is not None


@dataclass(slots=True)
class Task:
    content: str
    done: bool
    prefix: str
    standup_id: int | None

    def __str__(self) -> str:
        if self.done:
            return f"{self.prefix} ~{self.content}~ :white_check_mark:"
        return f"{self.prefix} {self.content}"


@dataclass(slots=True)
class Team:
    team_id: str
    team_name: str
    access_token: str
    bot_user_id: str
    bot_access_token: str


__all__ = ["User", "Standup", "Task", "Team"]
