"""Slack message payloads: intro blocks, channel echo, dialogs and help."""

from __future__ import annotations

from datetime import datetime, time
from typing import Any, Dict, List, Optional

from .events import TaskAction
from .models import Standup, User
from .standup import get_copy
from .tasks import derive_tasks

NO_STANDUP_TODAY = (
    "Couldn't find todays standup, sorry. "
    "Mention @progress or send me a message to start the standup flow."
)
NOTHING_TO_REMOVE = ":warning: Couldn't find your standup for today, so nothing to do here."
REMOVED_TODAY = ":shrug: Just forgot all about today's standup, feel free to try again."
EDIT_ONLY_TODAY = ":warning: Sorry but you can only really edit today's standup."
EDIT_NO_STANDUP = (
    ":warning: Sorry but you can only really edit today's standup. "
    "(and you haven't created one yet! Ready to do that?)"
)
EDIT_UNKNOWN_USER = "Very weird error, couldn't find your user, sorry."
EDIT_APPLIED = ":white_check_mark: Standup updated, thanks!"
MENTION_NO_STANDUP = "I'm here! Ready for your standup today?"
HOME_FIRST_VISIT = (
    "Hey there and welcome to @progress! Let me know if this is a good time for your standup today.\n"
    "If you want more information about how this works, `/progress-help` is a good place to start."
)
HOME_NO_STANDUP_TODAY = "Hey there! Is this a good time for your standup today?"
TASK_ADDED = ":white_check_mark: Task added."
TASK_LIST_HINT = "Mark tasks as done with `/d task_number`, undo with `/u task_number`."
REMINDER_TEXT = "Hey <@{username}>, is this a good time for your standup today? :)"

ECHO_PRETEXT = ":newspaper: Here's the latest:"
EMPTY_ANSWER = "- _Empty_"

REMINDER_HOURS = tuple(range(7, 14))

HELP_TEXT = """Hi, I'm the @progress bot and I'm here to help you with your daily standups and task management!

:one: *Standups*
You can mention me (@progress) from a channel or send me a private message at any time to start your daily standup. If you want to post your standups in a channel or set a daily reminder, run `/progress-config`. Create multiple tasks with Slack's multiline messages, by using _shift+enter_.
If you got something wrong you can either edit the messages you sent me or type `/progress-forget` which will delete your standup for the day and allow you to try again.

:two: *Tasks*
Check what you have in store for the day, after completing your standup, by typing `/td` (`/progress-today`). From here, you can mark tasks as completed with `/d task_id` (`/progress-done`) or undo them with `/ud` (`/progress-undo`). Forgot something? Add it with `/progress-add`.

Enjoy! :pray:"""


def _section(text: str, accessory: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    block: Dict[str, Any] = {"type": "section", "text": {"type": "mrkdwn", "text": text}}
    if accessory is not None:
        block["accessory"] = accessory
    return block


def format_date(when: datetime, now: datetime) -> str:
    """Describe when a past standup happened, relative to ``now``."""

    around = f"around {when.strftime('%I%p').lower()}"
    days_ago = now.toordinal() - when.toordinal()
    if days_ago == 0:
        return f"Today, {around}"
    if days_ago == 1:
        return f"Yesterday, {around}"
    if days_ago < 7:
        if now.weekday() > when.weekday():
            return f"This {when.strftime('%A')}, {around}"
        return f"Last {when.strftime('%A')}, {around}"
    return f"{when.strftime('%A, %d %B %Y')}, {around}"


def _task_block(index: int, standup: Standup, content: str, done: bool) -> Dict[str, Any]:
    value = f"{index}-{standup.id}"
    if done:
        return _section(
            f":white_check_mark: {content}",
            {
                "type": "button",
                "text": {"type": "plain_text", "text": "Mark as not done"},
                "value": value,
                "action_id": TaskAction.SET_NOT_DONE.value,
            },
        )
    return _section(
        content,
        {
            "type": "button",
            "text": {"type": "plain_text", "text": "Mark as done"},
            "style": "primary",
            "value": value,
            "action_id": TaskAction.SET_DONE.value,
        },
    )


def intro_blocks(
    latest: Optional[Standup],
    today: Standup,
    channel: Optional[str],
    now: datetime,
) -> List[Dict[str, Any]]:
    """Blocks greeting the user on their first message of the day."""

    greet = "*:wave: Thanks for checking in today.*"
    if latest is None:
        intro = "This is your first time using _@progress_, welcome! We'll make this super quick for you."
        return [_section(f"{greet}\n{intro}\n\n{get_copy(today, channel)}")]

    when = latest.local_date or datetime.combine(latest.date, time.min)
    blocks: List[Dict[str, Any]] = [
        _section(f"{greet}\nHere's what you were busy with last time we met:\n"),
        _section(f"*:calendar:  {format_date(when, now)}*"),
        {"type": "divider"},
    ]
    tasks = derive_tasks(latest)
    if tasks:
        for index, task in enumerate(tasks, start=1):
            blocks.append(_task_block(index, latest, task.content, task.done))
    else:
        blocks.append(_section(f"> {EMPTY_ANSWER}"))
    blocks.append({"type": "divider"})
    blocks.append(_section(get_copy(today, channel)))
    return blocks


def standup_attachments(
    standup: Standup, user: User, completed_last: str, ts: int
) -> List[Dict[str, Any]]:
    """Attachment used both when echoing a standup and when refreshing it."""

    yesterday = "\n".join(part for part in (completed_last, standup.prev_day) if part)
    return [
        {
            "pretext": ECHO_PRETEXT,
            "author_name": user.real_name,
            "author_icon": user.avatar_url,
            "footer": "@progress",
            "ts": ts,
            "fields": [
                {"title": "Yesterday:", "value": yesterday or EMPTY_ANSWER, "short": False},
                {"title": "Today:", "value": standup.day or EMPTY_ANSWER, "short": False},
                {"title": "Blockers:", "value": standup.blocker or EMPTY_ANSWER, "short": False},
            ],
        }
    ]


def config_dialog(user: Optional[User]) -> Dict[str, Any]:
    channel = user.channel if user and user.channel else ""
    reminder = str(user.reminder.hour) if user and user.reminder else ""
    return {
        "callback_id": "progress-config",
        "title": "Configure @progress",
        "submit_label": "Save",
        "notify_on_cancel": False,
        "elements": [
            {
                "type": "select",
                "optional": True,
                "label": "Channel to notify",
                "name": "channel",
                "data_source": "conversations",
                "value": channel,
            },
            {
                "type": "select",
                "optional": True,
                "label": "Reminder",
                "name": "reminder",
                "value": reminder,
                "options": [{"label": f"{hour:02d}:00", "value": str(hour)} for hour in REMINDER_HOURS],
            },
        ],
    }


def config_confirmation(reminder: Optional[str], channel: Optional[str]) -> str:
    if reminder is None and channel is None:
        return "Will not remind you or post your standups anywhere else!"
    if reminder is None:
        return f"Will post your standups in <#{channel}>."
    if channel is None:
        return f"Will remind you daily at {reminder}."
    return f"Will post your standups in <#{channel}> and remind you daily at {reminder}."


__all__ = [
    "ECHO_PRETEXT",
    "EDIT_APPLIED",
    "EDIT_NO_STANDUP",
    "EDIT_ONLY_TODAY",
    "EDIT_UNKNOWN_USER",
    "EMPTY_ANSWER",
    "HELP_TEXT",
    "HOME_FIRST_VISIT",
    "HOME_NO_STANDUP_TODAY",
    "MENTION_NO_STANDUP",
    "NOTHING_TO_REMOVE",
    "NO_STANDUP_TODAY",
    "REMINDER_HOURS",
    "REMINDER_TEXT",
    "REMOVED_TODAY",
    "TASK_ADDED",
    "TASK_LIST_HINT",
    "config_confirmation",
    "config_dialog",
    "format_date",
    "intro_blocks",
    "standup_attachments",
]
