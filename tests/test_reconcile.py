"""Tests for progress_bot.reconcile — mapping message edits to standup fields."""

from datetime import date

from progress_bot.models import Standup
from progress_bot.reconcile import apply_edit, match_field
from progress_bot.standup import StandupState, get_state


def _complete():
    return Standup(
        username="U1",
        team_id="T1",
        date=date(2026, 3, 10),
        id=1,
        prev_day="old prev",
        day="old day",
        blocker="old blocker",
        prev_day_message_ts="1.1",
        day_message_ts="2.2",
        blocker_message_ts="3.3",
    )


def test_edit_overwrites_matching_field():
    standup = _complete()
    assert apply_edit(standup, "2.2", "new day", "2.2") is StandupState.TODAY
    assert standup.day == "new day"
    assert standup.prev_day == "old prev"
    assert standup.blocker == "old blocker"


def test_edit_updates_message_ts():
    standup = _complete()
    apply_edit(standup, "3.3", "blocked on review", "3.9")
    assert standup.blocker == "blocked on review"
    assert standup.blocker_message_ts == "3.9"


def test_precedence_prefers_prev_day_on_duplicate_timestamps():
    standup = _complete()
    standup.day_message_ts = "1.1"
    assert apply_edit(standup, "1.1", "edited", "1.1") is StandupState.PREV_DAY
    assert standup.prev_day == "edited"
    assert standup.day == "old day"


def test_unknown_timestamp_changes_nothing():
    standup = _complete()
    assert apply_edit(standup, "9.9", "whatever", "9.9") is None
    assert standup == _complete()


def test_missing_timestamp_never_matches_unset_fields():
    standup = Standup(username="U1", team_id="T1", date=date(2026, 3, 10))
    assert match_field(standup, None) is None
    assert match_field(standup, "") is None


def test_edit_does_not_move_the_conversation():
    standup = _complete()
    standup.blocker = None
    standup.blocker_message_ts = None
    apply_edit(standup, "1.1", "no", "1.1")
    # edited text is stored verbatim and the state stays put
    assert standup.prev_day == "no"
    assert get_state(standup) is StandupState.BLOCKER
