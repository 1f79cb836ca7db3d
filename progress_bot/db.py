"""SQLite persistence layer for the progress bot."""

from __future__ import annotations

import json
import sqlite3
from contextlib import contextmanager
from datetime import date, datetime, time
from pathlib import Path
from typing import Iterator, List, Optional

from .models import Standup, Team, User

Connection = sqlite3.Connection
Row = sqlite3.Row


class Database:
    """Lightweight wrapper around SQLite operations; implements ``RecordStore``."""

    def __init__(self, path: Path) -> None:
        self._path = path
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._initialize()

    @contextmanager
    def connect(self) -> Iterator[Connection]:
        conn = sqlite3.connect(self._path)
        conn.row_factory = sqlite3.Row
        try:
            yield conn
        finally:
            conn.close()

    def _initialize(self) -> None:
        with self.connect() as conn:
            cursor = conn.cursor()
            cursor.execute(
                """
                CREATE TABLE IF NOT EXISTS users (
                    username TEXT PRIMARY KEY,
                    team_id TEXT NOT NULL,
                    real_name TEXT NOT NULL DEFAULT '',
                    avatar_url TEXT NOT NULL DEFAULT '',
                    channel TEXT,
                    reminder TEXT,
                    last_notified TEXT
                )
                """
            )
            cursor.execute(
                """
                CREATE TABLE IF NOT EXISTS standups (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    username TEXT NOT NULL,
                    team_id TEXT NOT NULL,
                    date TEXT NOT NULL,
                    local_date TEXT,
                    intro_message_ts TEXT,
                    prev_day TEXT,
                    day TEXT,
                    blocker TEXT,
                    prev_day_message_ts TEXT,
                    day_message_ts TEXT,
                    blocker_message_ts TEXT,
                    message_ts TEXT,
                    channel TEXT,
                    done TEXT NOT NULL DEFAULT '[]',
                    UNIQUE(username, date),
                    FOREIGN KEY(username) REFERENCES users(username)
                )
                """
            )
            cursor.execute(
                """
                CREATE TABLE IF NOT EXISTS teams (
                    team_id TEXT PRIMARY KEY,
                    team_name TEXT NOT NULL,
                    access_token TEXT NOT NULL,
                    bot_user_id TEXT NOT NULL,
                    bot_access_token TEXT NOT NULL
                )
                """
            )
            conn.commit()

    # region Row mapping
    @staticmethod
    def _row_to_user(row: Row) -> User:
        return User(
            username=row["username"],
            team_id=row["team_id"],
            real_name=row["real_name"],
            avatar_url=row["avatar_url"],
            channel=row["channel"],
            reminder=time.fromisoformat(row["reminder"]) if row["reminder"] else None,
            last_notified=(
                datetime.fromisoformat(row["last_notified"]) if row["last_notified"] else None
            ),
        )

    @staticmethod
    def _user_params(user: User) -> dict:
        return {
            "username": user.username,
            "team_id": user.team_id,
            "real_name": user.real_name,
            "avatar_url": user.avatar_url,
            "channel": user.channel,
            "reminder": user.reminder.strftime("%H:%M") if user.reminder else None,
            "last_notified": user.last_notified.isoformat() if user.last_notified else None,
        }

    @staticmethod
    def _row_to_standup(row: Row) -> Standup:
        return Standup(
            id=row["id"],
            username=row["username"],
            team_id=row["team_id"],
            date=date.fromisoformat(row["date"]),
            local_date=datetime.fromisoformat(row["local_date"]) if row["local_date"] else None,
            intro_message_ts=row["intro_message_ts"],
            prev_day=row["prev_day"],
            day=row["day"],
            blocker=row["blocker"],
            prev_day_message_ts=row["prev_day_message_ts"],
            day_message_ts=row["day_message_ts"],
            blocker_message_ts=row["blocker_message_ts"],
            message_ts=row["message_ts"],
            channel=row["channel"],
            done=set(json.loads(row["done"] or "[]")),
        )

    # endregion

    # region Users
    def get_user(self, username: str) -> Optional[User]:
        with self.connect() as conn:
            row = conn.execute("SELECT * FROM users WHERE username = ?", (username,)).fetchone()
            return self._row_to_user(row) if row else None

    def create_user(self, user: User) -> User:
        with self.connect() as conn:
            conn.execute(
                """
                INSERT INTO users
                    (username, team_id, real_name, avatar_url, channel, reminder, last_notified)
                VALUES
                    (:username, :team_id, :real_name, :avatar_url, :channel, :reminder, :last_notified)
                ON CONFLICT(username) DO NOTHING
                """,
                self._user_params(user),
            )
            conn.commit()
            row = conn.execute(
                "SELECT * FROM users WHERE username = ?", (user.username,)
            ).fetchone()
            return self._row_to_user(row)

    def update_user(self, user: User) -> None:
        with self.connect() as conn:
            conn.execute(
                """
                UPDATE users SET
                    team_id = :team_id,
                    real_name = :real_name,
                    avatar_url = :avatar_url,
                    channel = :channel,
                    reminder = :reminder,
                    last_notified = :last_notified
                WHERE username = :username
                """,
                self._user_params(user),
            )
            conn.commit()

    def users_due_for_reminder(self, hour: int, day: date) -> List[User]:
        with self.connect() as conn:
            cursor = conn.execute(
                """
                SELECT * FROM users
                WHERE reminder IS NOT NULL
                  AND CAST(substr(reminder, 1, 2) AS INTEGER) = ?
                  AND (last_notified IS NULL OR substr(last_notified, 1, 10) != ?)
                ORDER BY username
                """,
                (hour, day.isoformat()),
            )
            return [self._row_to_user(row) for row in cursor.fetchall()]

    # endregion

    # region Standups
    def get_today(self, username: str, day: date) -> Optional[Standup]:
        with self.connect() as conn:
            row = conn.execute(
                "SELECT * FROM standups WHERE username = ? AND date = ?",
                (username, day.isoformat()),
            ).fetchone()
            return self._row_to_standup(row) if row else None

    def get_latest(self, username: str) -> Optional[Standup]:
        with self.connect() as conn:
            row = conn.execute(
                "SELECT * FROM standups WHERE username = ? ORDER BY date DESC, id DESC LIMIT 1",
                (username,),
            ).fetchone()
            return self._row_to_standup(row) if row else None

    def get_latest_before(self, username: str, standup: Standup) -> Optional[Standup]:
        with self.connect() as conn:
            row = conn.execute(
                """
                SELECT * FROM standups
                WHERE username = ? AND date < ?
                ORDER BY date DESC, id DESC
                LIMIT 1
                """,
                (username, standup.date.isoformat()),
            ).fetchone()
            return self._row_to_standup(row) if row else None

    def get_standup(self, standup_id: int) -> Optional[Standup]:
        with self.connect() as conn:
            row = conn.execute("SELECT * FROM standups WHERE id = ?", (standup_id,)).fetchone()
            return self._row_to_standup(row) if row else None

    def create_standup(
        self, username: str, team_id: str, day: date, local_date: Optional[datetime] = None
    ) -> Standup:
        with self.connect() as conn:
            conn.execute(
                """
                INSERT INTO standups (username, team_id, date, local_date)
                VALUES (?, ?, ?, ?)
                ON CONFLICT(username, date) DO NOTHING
                """,
                (
                    username,
                    team_id,
                    day.isoformat(),
                    local_date.isoformat() if local_date else None,
                ),
            )
            conn.commit()
            row = conn.execute(
                "SELECT * FROM standups WHERE username = ? AND date = ?",
                (username, day.isoformat()),
            ).fetchone()
            return self._row_to_standup(row)

    def update_standup(self, standup: Standup) -> None:
        # message_ts and channel belong to set_standup_message
        with self.connect() as conn:
            conn.execute(
                """
                UPDATE standups SET
                    intro_message_ts = :intro_message_ts,
                    prev_day = :prev_day,
                    day = :day,
                    blocker = :blocker,
                    prev_day_message_ts = :prev_day_message_ts,
                    day_message_ts = :day_message_ts,
                    blocker_message_ts = :blocker_message_ts,
                    done = :done
                WHERE id = :id
                """,
                {
                    "id": standup.id,
                    "intro_message_ts": standup.intro_message_ts,
                    "prev_day": standup.prev_day,
                    "day": standup.day,
                    "blocker": standup.blocker,
                    "prev_day_message_ts": standup.prev_day_message_ts,
                    "day_message_ts": standup.day_message_ts,
                    "blocker_message_ts": standup.blocker_message_ts,
                    "done": json.dumps(sorted(standup.done)),
                },
            )
            conn.commit()

    def set_standup_message(self, standup_id: int, message_ts: str, channel: str) -> None:
        with self.connect() as conn:
            conn.execute(
                "UPDATE standups SET message_ts = ?, channel = ? WHERE id = ?",
                (message_ts, channel, standup_id),
            )
            conn.commit()

    def delete_today(self, username: str, day: date) -> None:
        with self.connect() as conn:
            conn.execute(
                "DELETE FROM standups WHERE username = ? AND date = ?",
                (username, day.isoformat()),
            )
            conn.commit()

    # endregion

    # region Teams
    def upsert_team(self, team: Team) -> None:
        with self.connect() as conn:
            conn.execute(
                """
                INSERT INTO teams (team_id, team_name, access_token, bot_user_id, bot_access_token)
                VALUES (:team_id, :team_name, :access_token, :bot_user_id, :bot_access_token)
                ON CONFLICT(team_id) DO UPDATE SET
                    team_name=excluded.team_name,
                    access_token=excluded.access_token,
                    bot_user_id=excluded.bot_user_id,
                    bot_access_token=excluded.bot_access_token
                """,
                {
                    "team_id": team.team_id,
                    "team_name": team.team_name,
                    "access_token": team.access_token,
                    "bot_user_id": team.bot_user_id,
                    "bot_access_token": team.bot_access_token,
                },
            )
            conn.commit()

    def get_team(self, team_id: str) -> Optional[Team]:
        with self.connect() as conn:
            row = conn.execute("SELECT * FROM teams WHERE team_id = ?", (team_id,)).fetchone()
            if not row:
                return None
            return Team(
                team_id=row["team_id"],
                team_name=row["team_name"],
                access_token=row["access_token"],
                bot_user_id=row["bot_user_id"],
                bot_access_token=row["bot_access_token"],
            )

    # endregion


__all__ = ["Database"]
