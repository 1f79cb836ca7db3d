"""Conversational state machine for a single day's standup.

The state is never stored: it is recomputed from which of ``prev_day``,
``day`` and ``blocker`` have been filled in, so the persisted record and
the conversation can never disagree.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional

from .models import Standup

SKIP_TOKENS = frozenset({"no", "nop", "nope", "-", "*", ""})

DONE_FOR_TODAY = "You're done for today, off to work you go now! :nerd_face:"


class StandupState(str, Enum):
    PREV_DAY = "prev_day"
    TODAY = "day"
    BLOCKER = "blocker"
    COMPLETE = "complete"


def get_state(standup: Standup) -> StandupState:
    if standup.prev_day is None:
        return StandupState.PREV_DAY
    if standup.day is None:
        return StandupState.TODAY
    if standup.blocker is None:
        return StandupState.BLOCKER
    return StandupState.COMPLETE


def normalize_prev_day(text: str) -> str:
    """Map "nothing to report" answers to an explicit empty string."""

    if text.strip().lower() in SKIP_TOKENS:
        return ""
    return text


def add_content(standup: Standup, text: str, message_ts: Optional[str]) -> Optional[StandupState]:
    """Store ``text`` in the field the standup is currently waiting for.

    Returns the state whose field was filled, or ``None`` when the standup
    was already complete and nothing changed.
    """

    state = get_state(standup)
    if state is StandupState.PREV_DAY:
        standup.prev_day = normalize_prev_day(text)
        standup.prev_day_message_ts = message_ts
    elif state is StandupState.TODAY:
        standup.day = text
        standup.day_message_ts = message_ts
    elif state is StandupState.BLOCKER:
        standup.blocker = text
        standup.blocker_message_ts = message_ts
    else:
        return None
    return state


def already_recorded(standup: Standup, message_ts: Optional[str]) -> bool:
    """Whether ``message_ts`` opened or answered this standup already."""

    if not message_ts:
        return False
    return message_ts in (
        standup.intro_message_ts,
        standup.prev_day_message_ts,
        standup.day_message_ts,
        standup.blocker_message_ts,
    )


def get_copy(standup: Standup, channel: Optional[str] = None) -> str:
    """Return the prompt to show for the standup's current state."""

    state = get_state(standup)
    if state is StandupState.PREV_DAY:
        return ":one: Firstly how did *yesterday* go? In one line, what were you able to achieve?"
    if state is StandupState.TODAY:
        return ":two: What are you going to be focusing on *today*?"
    if state is StandupState.BLOCKER:
        return ":three: Any blockers impacting your work?"

    extra = f"Additionally, I've shared the standup notes to <#{channel}>." if channel else ""
    return (
        f":white_check_mark: *All done here!* {extra}\n\n"
        "Thank you, have a great day and talk to you tomorrow."
    )


__all__ = [
    "DONE_FOR_TODAY",
    "SKIP_TOKENS",
    "StandupState",
    "add_content",
    "already_recorded",
    "get_copy",
    "get_state",
    "normalize_prev_day",
]
