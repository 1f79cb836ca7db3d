"""Closed sets of inbound Slack payload kinds the bot understands."""

from __future__ import annotations

from enum import Enum
from typing import Any, Mapping, Optional


class EventKind(str, Enum):
    MESSAGE = "message"
    MESSAGE_CHANGED = "message_changed"
    APP_MENTION = "app_mention"
    APP_HOME_OPENED = "app_home_opened"

    @classmethod
    def classify(cls, event: Mapping[str, Any]) -> Optional["EventKind"]:
        event_type = event.get("type")
        if event_type == "message":
            subtype = event.get("subtype")
            if subtype is None:
                return cls.MESSAGE
            if subtype == "message_changed":
                return cls.MESSAGE_CHANGED
            return None
        if event_type == "app_mention":
            return cls.APP_MENTION
        if event_type == "app_home_opened":
            return cls.APP_HOME_OPENED
        return None


def is_bot_event(event: Mapping[str, Any]) -> bool:
    """Best-effort check for messages the bot sent itself.

    Slack does not tell us our own bot id here, so anything carrying a
    ``bot_id`` is treated as coming from a bot.
    """

    if event.get("bot_id") or event.get("subtype") == "bot_message":
        return True
    message = event.get("message") or {}
    return bool(message.get("bot_id"))


class InteractionKind(str, Enum):
    DIALOG_SUBMISSION = "dialog_submission"
    BLOCK_ACTIONS = "block_actions"

    @classmethod
    def parse(cls, value: Optional[str]) -> Optional["InteractionKind"]:
        try:
            return cls(value)
        except ValueError:
            return None


class TaskAction(str, Enum):
    SET_DONE = "set-task-done"
    SET_NOT_DONE = "set-task-not-done"

    @classmethod
    def parse(cls, value: Optional[str]) -> Optional["TaskAction"]:
        try:
            return cls(value)
        except ValueError:
            return None


class Command(str, Enum):
    REMOVE = "remove"
    TODAY = "today"
    DONE = "done"
    UNDO = "undo"
    ADD = "add"
    HELP = "help"
    CONFIG = "show-config"


__all__ = ["Command", "EventKind", "InteractionKind", "TaskAction", "is_bot_event"]
