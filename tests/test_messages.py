"""Tests for progress_bot.messages payload helpers."""

from datetime import datetime

from progress_bot import handle, messages, reminders
from progress_bot.messages import config_confirmation, format_date

NOW = datetime(2026, 3, 10, 9, 30)


def test_copy_used_elsewhere_is_exported():
    used = {
        name
        for module in (handle, reminders)
        for name in vars(module)
        if name.isupper() and getattr(messages, name, None) is getattr(module, name)
    }
    assert {"NO_STANDUP_TODAY", "EDIT_APPLIED", "TASK_ADDED", "REMINDER_TEXT"} <= used
    assert used <= set(messages.__all__)
    assert all(hasattr(messages, name) for name in messages.__all__)


class TestFormatDate:
    def test_recent_days(self):
        assert format_date(datetime(2026, 3, 10, 8, 0), NOW) == "Today, around 08am"
        assert format_date(datetime(2026, 3, 9, 14, 0), NOW) == "Yesterday, around 02pm"

    def test_same_and_previous_week(self):
        # NOW is a Tuesday
        assert format_date(datetime(2026, 3, 6, 9, 0), NOW) == "Last Friday, around 09am"
        later = datetime(2026, 3, 13, 9, 0)
        assert format_date(datetime(2026, 3, 10, 9, 0), later) == "This Tuesday, around 09am"

    def test_older_dates_are_spelled_out(self):
        assert format_date(datetime(2026, 2, 20, 9, 0), NOW) == "Friday, 20 February 2026, around 09am"


def test_config_confirmation_without_settings():
    assert config_confirmation(None, None) == "Will not remind you or post your standups anywhere else!"
