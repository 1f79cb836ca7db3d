"""Contract tests run against both RecordStore implementations (memory and SQLite)."""

import threading
from datetime import date, datetime, time, timezone

import pytest

from progress_bot.config import Settings
from progress_bot.db import Database
from progress_bot.models import Team, User
from progress_bot.store import MemoryStore, build_store

TODAY = date(2026, 3, 10)


class TestUsers:
    def test_create_and_get(self, store):
        created = store.create_user(User(username="U1", team_id="T1", real_name="Rui"))
        assert created.username == "U1"
        assert store.get_user("U1").real_name == "Rui"
        assert store.get_user("U2") is None

    def test_create_is_idempotent(self, store):
        store.create_user(User(username="U1", team_id="T1", real_name="Rui"))
        again = store.create_user(User(username="U1", team_id="T1", real_name="Other"))
        assert again.real_name == "Rui"

    def test_update_round_trips_config(self, store):
        user = store.create_user(User(username="U1", team_id="T1"))
        user.channel = "C1"
        user.reminder = time(9)
        store.update_user(user)
        loaded = store.get_user("U1")
        assert loaded.channel == "C1"
        assert loaded.reminder == time(9)

    def test_users_due_for_reminder(self, store):
        store.create_user(User(username="U1", team_id="T1", reminder=time(9)))
        store.create_user(User(username="U2", team_id="T1", reminder=time(10)))
        store.create_user(User(username="U3", team_id="T1"))
        notified = store.create_user(User(username="U4", team_id="T1", reminder=time(9)))
        notified.last_notified = datetime(2026, 3, 10, 9, 1, tzinfo=timezone.utc)
        store.update_user(notified)
        yesterday = store.create_user(User(username="U5", team_id="T1", reminder=time(9)))
        yesterday.last_notified = datetime(2026, 3, 9, 9, 1, tzinfo=timezone.utc)
        store.update_user(yesterday)

        due = store.users_due_for_reminder(9, TODAY)
        assert sorted(u.username for u in due) == ["U1", "U5"]


class TestStandups:
    def test_one_standup_per_user_and_day(self, store):
        first = store.create_standup("U1", "T1", TODAY)
        second = store.create_standup("U1", "T1", TODAY)
        assert first.id == second.id
        assert store.get_today("U1", TODAY).id == first.id

    def test_get_today_ignores_other_days_and_users(self, store):
        store.create_standup("U1", "T1", date(2026, 3, 9))
        store.create_standup("U2", "T1", TODAY)
        assert store.get_today("U1", TODAY) is None

    def test_update_persists_fields_and_done(self, store):
        standup = store.create_standup("U1", "T1", TODAY, datetime(2026, 3, 10, 9, 30))
        standup.prev_day = ""
        standup.day = "a\nb"
        standup.intro_message_ts = "0.5"
        standup.day_message_ts = "2.2"
        standup.done = {2}
        store.update_standup(standup)

        loaded = store.get_standup(standup.id)
        assert loaded.prev_day == ""
        assert loaded.day == "a\nb"
        assert loaded.day_message_ts == "2.2"
        assert loaded.intro_message_ts == "0.5"
        assert loaded.done == {2}
        assert loaded.blocker is None
        assert loaded.local_date == datetime(2026, 3, 10, 9, 30)

    def test_returned_records_are_detached(self, store):
        standup = store.create_standup("U1", "T1", TODAY)
        standup.day = "not saved"
        assert store.get_today("U1", TODAY).day is None

    def test_latest_and_latest_before(self, store):
        old = store.create_standup("U1", "T1", date(2026, 3, 1))
        mid = store.create_standup("U1", "T1", date(2026, 3, 6))
        today = store.create_standup("U1", "T1", TODAY)
        store.create_standup("U2", "T1", date(2026, 3, 8))

        assert store.get_latest("U1").id == today.id
        assert store.get_latest_before("U1", today).id == mid.id
        assert store.get_latest_before("U1", mid).id == old.id
        assert store.get_latest_before("U1", old) is None
        assert store.get_latest("U9") is None

    def test_echo_columns_are_only_written_by_set_standup_message(self, store):
        standup = store.create_standup("U1", "T1", TODAY)
        stale = store.get_standup(standup.id)
        store.set_standup_message(standup.id, "55.5", "C1")

        stale.blocker = "none"
        store.update_standup(stale)

        loaded = store.get_standup(standup.id)
        assert (loaded.message_ts, loaded.channel) == ("55.5", "C1")
        assert loaded.blocker == "none"
        assert loaded.echoed

    def test_delete_today_only_removes_today(self, store):
        store.create_standup("U1", "T1", date(2026, 3, 9))
        store.create_standup("U1", "T1", TODAY)
        store.create_standup("U2", "T1", TODAY)

        store.delete_today("U1", TODAY)

        assert store.get_today("U1", TODAY) is None
        assert store.get_today("U1", date(2026, 3, 9)) is not None
        assert store.get_today("U2", TODAY) is not None


class TestTeams:
    def test_upsert_and_get(self, store):
        store.upsert_team(Team("T1", "Acme", "xoxp-1", "B1", "xoxb-1"))
        store.upsert_team(Team("T1", "Acme Inc", "xoxp-2", "B1", "xoxb-2"))
        team = store.get_team("T1")
        assert team.team_name == "Acme Inc"
        assert team.bot_access_token == "xoxb-2"
        assert store.get_team("T2") is None


def test_memory_store_parallel_creates_keep_one_row_per_day():
    store = MemoryStore()
    ids = []

    def worker():
        ids.append(store.create_standup("U1", "T1", TODAY).id)

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert len(set(ids)) == 1


@pytest.mark.parametrize("backend, expected", [("memory", MemoryStore), ("sqlite", Database)])
def test_build_store_picks_backend(tmp_path, backend, expected):
    settings = Settings(database_path=tmp_path / "x.db", slack_bot_token="t", store_backend=backend)
    assert isinstance(build_store(settings), expected)
