"""Record store contract and an in-memory implementation.

Core modules depend on ``RecordStore`` only; ``Database`` (SQLite) and
``MemoryStore`` are interchangeable.
"""

from __future__ import annotations

import copy
import threading
from datetime import date, datetime
from itertools import count
from typing import Dict, List, Optional, Protocol

from .config import Settings
from .db import Database
from .models import Standup, Team, User


class RecordStore(Protocol):
    """Persistence interface used by the orchestrator and the reminder job."""

    def get_user(self, username: str) -> Optional[User]: ...

    def create_user(self, user: User) -> User: ...

    def update_user(self, user: User) -> None: ...

    def users_due_for_reminder(self, hour: int, day: date) -> List[User]: ...

    def get_today(self, username: str, day: date) -> Optional[Standup]: ...

    def get_latest(self, username: str) -> Optional[Standup]: ...

    def get_latest_before(self, username: str, standup: Standup) -> Optional[Standup]: ...

    def get_standup(self, standup_id: int) -> Optional[Standup]: ...

    def create_standup(
        self, username: str, team_id: str, day: date, local_date: Optional[datetime] = None
    ) -> Standup: ...

    def update_standup(self, standup: Standup) -> None: ...

    def set_standup_message(self, standup_id: int, message_ts: str, channel: str) -> None: ...

    def delete_today(self, username: str, day: date) -> None: ...

    def upsert_team(self, team: Team) -> None: ...

    def get_team(self, team_id: str) -> Optional[Team]: ...


class MemoryStore:
    """Process-local store; one lock per collection, never held across I/O."""

    def __init__(self) -> None:
        self._users: Dict[str, User] = {}
        self._standups: Dict[int, Standup] = {}
        self._teams: Dict[str, Team] = {}
        self._users_lock = threading.Lock()
        self._standups_lock = threading.Lock()
        self._teams_lock = threading.Lock()
        self._ids = count(1)

    # region Users
    def get_user(self, username: str) -> Optional[User]:
        with self._users_lock:
            user = self._users.get(username)
            return copy.deepcopy(user) if user else None

    def create_user(self, user: User) -> User:
        with self._users_lock:
            existing = self._users.get(user.username)
            if existing is None:
                self._users[user.username] = copy.deepcopy(user)
                existing = self._users[user.username]
            return copy.deepcopy(existing)

    def update_user(self, user: User) -> None:
        with self._users_lock:
            if user.username not in self._users:
                raise KeyError(f"unknown user {user.username}")
            self._users[user.username] = copy.deepcopy(user)

    def users_due_for_reminder(self, hour: int, day: date) -> List[User]:
        with self._users_lock:
            return [
                copy.deepcopy(user)
                for user in self._users.values()
                if user.reminder is not None
                and user.reminder.hour == hour
                and (user.last_notified is None or user.last_notified.date() != day)
            ]

    # endregion

    # region Standups
    def _for_user(self, username: str) -> List[Standup]:
        return [s for s in self._standups.values() if s.username == username]

    def get_today(self, username: str, day: date) -> Optional[Standup]:
        with self._standups_lock:
            for standup in self._for_user(username):
                if standup.date == day:
                    return copy.deepcopy(standup)
            return None

    def get_latest(self, username: str) -> Optional[Standup]:
        with self._standups_lock:
            standups = self._for_user(username)
            if not standups:
                return None
            return copy.deepcopy(max(standups, key=lambda s: (s.date, s.id)))

    def get_latest_before(self, username: str, standup: Standup) -> Optional[Standup]:
        with self._standups_lock:
            earlier = [s for s in self._for_user(username) if s.date < standup.date]
            if not earlier:
                return None
            return copy.deepcopy(max(earlier, key=lambda s: (s.date, s.id)))

    def get_standup(self, standup_id: int) -> Optional[Standup]:
        with self._standups_lock:
            standup = self._standups.get(standup_id)
            return copy.deepcopy(standup) if standup else None

    def create_standup(
        self, username: str, team_id: str, day: date, local_date: Optional[datetime] = None
    ) -> Standup:
        with self._standups_lock:
            for existing in self._for_user(username):
                if existing.date == day:
                    return copy.deepcopy(existing)
            standup = Standup(
                id=next(self._ids),
                username=username,
                team_id=team_id,
                date=day,
                local_date=local_date,
            )
            self._standups[standup.id] = standup
            return copy.deepcopy(standup)

    def update_standup(self, standup: Standup) -> None:
        with self._standups_lock:
            current = self._standups.get(standup.id)
            if current is None:
                raise KeyError(f"unknown standup {standup.id}")
            updated = copy.deepcopy(standup)
            updated.message_ts, updated.channel = current.message_ts, current.channel
            self._standups[standup.id] = updated

    def set_standup_message(self, standup_id: int, message_ts: str, channel: str) -> None:
        with self._standups_lock:
            standup = self._standups.get(standup_id)
            if standup is not None:
                standup.message_ts = message_ts
                standup.channel = channel

    def delete_today(self, username: str, day: date) -> None:
        with self._standups_lock:
            for standup in self._for_user(username):
                if standup.date == day:
                    del self._standups[standup.id]

    # endregion

    # region Teams
    def upsert_team(self, team: Team) -> None:
        with self._teams_lock:
            self._teams[team.team_id] = copy.deepcopy(team)

    def get_team(self, team_id: str) -> Optional[Team]:
        with self._teams_lock:
            team = self._teams.get(team_id)
            return copy.deepcopy(team) if team else None

    # endregion


def build_store(settings: Settings) -> RecordStore:
    if settings.store_backend == "memory":
        return MemoryStore()
    return Database(settings.database_path)


__all__ = ["MemoryStore", "RecordStore", "build_store"]
