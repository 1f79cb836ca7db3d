"""Dialogue orchestration: turns Slack events and commands into standup updates."""

from __future__ import annotations

import logging
from datetime import date, datetime, time, timezone
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple
from zoneinfo import ZoneInfo

import httpx

from .config import Settings
from .delivery import Outbox
from .events import Command, EventKind, InteractionKind, TaskAction, is_bot_event
from .messages import (
    EDIT_APPLIED,
    EDIT_NO_STANDUP,
    EDIT_ONLY_TODAY,
    EDIT_UNKNOWN_USER,
    HELP_TEXT,
    HOME_FIRST_VISIT,
    HOME_NO_STANDUP_TODAY,
    MENTION_NO_STANDUP,
    NO_STANDUP_TODAY,
    NOTHING_TO_REMOVE,
    REMOVED_TODAY,
    TASK_ADDED,
    TASK_LIST_HINT,
    config_confirmation,
    config_dialog,
    intro_blocks,
    standup_attachments,
)
from .models import Standup, User
from .reconcile import apply_edit
from .slack_client import SlackApiError, SlackClient
from .standup import (
    DONE_FOR_TODAY,
    StandupState,
    add_content,
    already_recorded,
    get_copy,
    get_state,
)
from .store import RecordStore
from .tasks import (
    append_task,
    completed_tasks_copy,
    derive_tasks,
    mark_done,
    mark_undone,
    print_tasks,
    summary_header,
    task_in_range,
)

logger = logging.getLogger(__name__)

Reply = Tuple[Dict[str, Any], str]


def resolve_bot_token(store: RecordStore, settings: Settings, team_id: Optional[str]) -> Optional[str]:
    """Bot token for a workspace, falling back to the configured single-team token."""

    team = store.get_team(team_id) if team_id else None
    if team is not None and team.bot_access_token:
        return team.bot_access_token
    return settings.slack_bot_token


def parse_task_index(args: Optional[str]) -> Optional[int]:
    try:
        return int((args or "").strip())
    except ValueError:
        return None


def parse_reminder_hour(value: Any) -> Optional[int]:
    """Hour of day picked in the config dialog, or ``None`` if it isn't one."""

    text = str(value).strip()
    if not (text.isascii() and text.isdigit()):
        return None
    hour = int(text)
    return hour if hour <= 23 else None


class StandupBot:
    """High-level service wiring the state machine to storage and Slack."""

    def __init__(
        self,
        settings: Settings,
        store: RecordStore,
        client: SlackClient,
        outbox: Outbox,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self.settings = settings
        self.store = store
        self.client = client
        self.outbox = outbox
        self.clock = clock or (lambda: datetime.now(timezone.utc))
        self.timezone = ZoneInfo(settings.reminder_timezone)

    # region Helpers
    def today(self) -> date:
        return self.clock().astimezone(timezone.utc).date()

    def local_now(self) -> datetime:
        return self.clock().astimezone(self.timezone).replace(tzinfo=None)

    def resolve_bot_token(self, team_id: Optional[str]) -> Optional[str]:
        return resolve_bot_token(self.store, self.settings, team_id)

    async def resolve_user(self, username: str, team_id: str) -> User:
        user = self.store.get_user(username)
        if user is not None:
            return user

        user = User(username=username, team_id=team_id)
        token = self.resolve_bot_token(team_id)
        if token:
            try:
                profile = await self.client.users_info(token, username)
                user.real_name = profile.real_name
                user.avatar_url = profile.avatar_url
            except (SlackApiError, httpx.HTTPError) as exc:
                logger.warning("Could not look up profile for %s: %s", username, exc)
        logger.info("Creating user %s for team %s", username, team_id)
        return self.store.create_user(user)

    # endregion

    # region Events
    def handle_challenge(self, challenge: str) -> str:
        return challenge

    async def handle_event(self, event: Mapping[str, Any], team_id: str) -> Optional[Reply]:
        """Return the reply payload and the user to send it to, if any."""

        if is_bot_event(event):
            return None
        kind = EventKind.classify(event)
        if kind is None:
            return None
        if kind is EventKind.MESSAGE_CHANGED:
            return self._react_message_edit(event)
        if not event.get("user"):
            return None
        if kind is EventKind.MESSAGE:
            return await self._react(event, team_id)
        if kind is EventKind.APP_MENTION:
            return await self._react_notification(event, team_id)
        return await self._react_app_home_open(event, team_id)

    async def _react(self, event: Mapping[str, Any], team_id: str) -> Optional[Reply]:
        user = await self.resolve_user(event["user"], team_id)
        standup = self.store.get_today(user.username, self.today())

        if standup is None:
            return {"blocks": self.intro_copy(user, event.get("ts"))}, user.username

        # Slack redelivers events it thinks went unacknowledged
        if already_recorded(standup, event.get("ts")):
            logger.info("Ignoring redelivered message %s from %s", event.get("ts"), user.username)
            return None

        if get_state(standup) is StandupState.COMPLETE:
            return {"text": DONE_FOR_TODAY}, user.username

        filled = add_content(standup, event.get("text", ""), event.get("ts"))
        self.store.update_standup(standup)
        if filled is StandupState.BLOCKER and user.channel:
            self.share_standup(user, standup)
        return {"text": get_copy(standup, user.channel)}, user.username

    def _react_message_edit(self, event: Mapping[str, Any]) -> Optional[Reply]:
        previous = event.get("previous_message") or {}
        message = event.get("message") or {}
        username = previous.get("user") or message.get("user")
        if not username:
            return None

        user = self.store.get_user(username)
        if user is None:
            return {"text": EDIT_UNKNOWN_USER}, username

        standup = self.store.get_today(username, self.today())
        if standup is None:
            return {"text": EDIT_NO_STANDUP}, username

        edited = apply_edit(standup, previous.get("ts"), message.get("text", ""), message.get("ts"))
        if edited is None:
            return {"text": EDIT_ONLY_TODAY}, username

        self.store.update_standup(standup)
        if standup.echoed:
            self.refresh_channel_message(user, standup)
        return {"text": EDIT_APPLIED}, username

    async def _react_notification(self, event: Mapping[str, Any], team_id: str) -> Reply:
        user = await self.resolve_user(event["user"], team_id)
        standup = self.store.get_today(user.username, self.today())
        if standup is None:
            copy = MENTION_NO_STANDUP
        elif get_state(standup) is StandupState.COMPLETE:
            copy = DONE_FOR_TODAY
        else:
            copy = get_copy(standup, user.channel)
        return {"text": copy}, user.username

    async def _react_app_home_open(self, event: Mapping[str, Any], team_id: str) -> Optional[Reply]:
        user = await self.resolve_user(event["user"], team_id)
        if self.store.get_latest(user.username) is None:
            return {"text": HOME_FIRST_VISIT}, user.username
        if self.store.get_today(user.username, self.today()) is None and user.reminder is None:
            return {"text": HOME_NO_STANDUP_TODAY}, user.username
        return None

    def intro_copy(self, user: User, message_ts: Optional[str] = None) -> List[Dict[str, Any]]:
        """Intro blocks for today's standup, creating the record if needed.

        ``message_ts`` is the message that opened the day; it is remembered
        so a redelivery of it is not taken as the first answer.
        """

        today = self.store.get_today(user.username, self.today())
        if today is None:
            latest = self.store.get_latest(user.username)
            today = self.store.create_standup(
                user.username, user.team_id, self.today(), self.local_now()
            )
            if message_ts and today.intro_message_ts is None:
                today.intro_message_ts = message_ts
                self.store.update_standup(today)
            logger.info("Created standup %s for %s", today.id, user.username)
        else:
            latest = self.store.get_latest_before(user.username, today)
        return intro_blocks(latest, today, user.channel, self.local_now())

    # endregion

    # region Channel echo
    def _echo_attachments(self, user: User, standup_id: int) -> Optional[List[Dict[str, Any]]]:
        standup = self.store.get_standup(standup_id)
        if standup is None or get_state(standup) is not StandupState.COMPLETE:
            return None
        previous = self.store.get_latest_before(user.username, standup)
        return standup_attachments(
            standup, user, completed_tasks_copy(previous), int(self.clock().timestamp())
        )

    def share_standup(self, user: User, standup: Standup) -> None:
        """Queue posting a completed standup to the user's channel."""

        token = self.resolve_bot_token(user.team_id)
        if not token or not user.channel:
            logger.warning("Not sharing standup %s: no bot token or channel", standup.id)
            return
        channel = user.channel
        standup_id = standup.id

        async def job() -> None:
            attachments = self._echo_attachments(user, standup_id)
            if attachments is None:
                return
            ack = await self.client.post_message(token, channel, attachments=attachments)
            self.store.set_standup_message(standup_id, ack.ts, ack.channel)
            logger.info("Shared standup %s to %s", standup_id, ack.channel)

        self.outbox.submit(f"share-standup-{standup_id}", job)

    def refresh_channel_message(self, user: User, standup: Standup) -> None:
        """Queue updating an already echoed standup in place."""

        token = self.resolve_bot_token(user.team_id)
        if not token or not standup.echoed:
            return
        channel, message_ts = standup.channel, standup.message_ts
        standup_id = standup.id

        async def job() -> None:
            attachments = self._echo_attachments(user, standup_id)
            if attachments is None:
                return
            await self.client.update_message(token, channel, message_ts, attachments=attachments)

        self.outbox.submit(f"refresh-standup-{standup_id}", job)

    # endregion

    # region Configuration and interactions
    async def handle_config_submission(self, config: Mapping[str, Any]) -> str:
        user = await self.resolve_user(config["user"]["id"], config["team"]["id"])
        submission = config.get("submission") or {}
        channel = submission.get("channel") or None
        reminder = submission.get("reminder") or None

        reminder_hour = parse_reminder_hour(reminder) if reminder else None
        if reminder and reminder_hour is None:
            return ":warning: Couldn't understand that reminder time, please pick one from the list."

        user.channel = channel
        user.reminder = time(hour=reminder_hour) if reminder_hour is not None else None
        self.store.update_user(user)
        return config_confirmation(
            f"{reminder_hour:02d}:00" if reminder_hour is not None else None, channel
        )

    async def handle_interaction(self, payload: Mapping[str, Any]) -> None:
        kind = InteractionKind.parse(payload.get("type"))
        if kind is InteractionKind.DIALOG_SUBMISSION:
            text = await self.handle_config_submission(payload)
            response_url = payload.get("response_url")
            if response_url:
                self.outbox.submit(
                    "config-response", lambda: self.client.send_response(response_url, text)
                )
        elif kind is InteractionKind.BLOCK_ACTIONS:
            self._handle_block_actions(payload)
        else:
            logger.debug("Ignoring interaction of type %s", payload.get("type"))

    def _handle_block_actions(self, payload: Mapping[str, Any]) -> None:
        actions = payload.get("actions") or []
        if not actions:
            return
        action = actions[0]
        task_action = TaskAction.parse(action.get("action_id"))
        if task_action is None:
            return
        try:
            index, standup_id = (int(part) for part in action.get("value", "").split("-", 1))
        except ValueError:
            logger.warning("Malformed task action value %r", action.get("value"))
            return

        if task_action is TaskAction.SET_DONE:
            self.set_task_done(index, standup_id)
        else:
            self.set_task_not_done(index, standup_id)

        user = self.store.get_user((payload.get("user") or {}).get("id", ""))
        message_ts = (payload.get("message") or {}).get("ts")
        channel = (payload.get("channel") or {}).get("id")
        token = self.resolve_bot_token((payload.get("team") or {}).get("id"))
        if user is None or not message_ts or not channel or not token:
            return
        blocks = self.intro_copy(user)
        self.outbox.submit(
            "refresh-intro",
            lambda: self.client.update_message(token, channel, message_ts, blocks=blocks),
        )

    # endregion

    # region Commands
    async def handle_command(
        self,
        command: Command,
        args: Optional[str],
        user_id: str,
        team_id: str,
        trigger_id: Optional[str] = None,
    ) -> str:
        if command is Command.REMOVE:
            return self.remove_today(user_id, team_id)
        if command is Command.TODAY:
            return await self.todays_tasks(user_id, team_id)
        if command is Command.DONE:
            return self._toggle_command(args, user_id, done=True)
        if command is Command.UNDO:
            return self._toggle_command(args, user_id, done=False)
        if command is Command.ADD:
            return self.add_task(args, user_id)
        if command is Command.CONFIG:
            self.show_config(user_id, team_id, trigger_id)
            return ""
        return HELP_TEXT

    def remove_today(self, user_id: str, team_id: str) -> str:
        day = self.today()
        standup = self.store.get_today(user_id, day)
        if standup is None:
            return NOTHING_TO_REMOVE

        if standup.echoed:
            token = self.resolve_bot_token(team_id)
            channel, message_ts = standup.channel, standup.message_ts
            if token:
                self.outbox.submit(
                    f"delete-standup-{standup.id}",
                    lambda: self.client.delete_message(token, channel, message_ts),
                )
        self.store.delete_today(user_id, day)
        logger.info("Removed today's standup for %s", user_id)
        return REMOVED_TODAY

    async def todays_tasks(self, user_id: str, team_id: str) -> str:
        user = await self.resolve_user(user_id, team_id)
        standup = self.store.get_today(user_id, self.today())
        if standup is None:
            return NO_STANDUP_TODAY
        if standup.day is None:
            return (
                "You still haven't told me what you'll be doing today! "
                f"Please finish your standup first.\n{get_copy(standup, user.channel)}"
            )
        tasks = derive_tasks(standup)
        return f"{summary_header(user.real_name, tasks)}\n{print_tasks(tasks)}\n\n{TASK_LIST_HINT}"

    def _toggle_command(self, args: Optional[str], user_id: str, done: bool) -> str:
        verb = "done" if done else "not done"
        if not args or not args.strip():
            return (
                f":warning: You need to specify the task number to set as {verb}. "
                "Run `/progress-today` to get the list of tasks."
            )
        index = parse_task_index(args)
        if index is None:
            return (
                f":warning: Please include the task number to set as {verb}. "
                "Run `/progress-today` to get the list of tasks."
            )
        standup = self.store.get_today(user_id, self.today())
        if standup is None:
            return NO_STANDUP_TODAY
        if done:
            return self.set_task_done(index, standup.id)
        return self.set_task_not_done(index, standup.id)

    def set_task_done(self, index: int, standup_id: int) -> str:
        standup = self.store.get_standup(standup_id)
        if standup is None:
            return NO_STANDUP_TODAY
        if not task_in_range(standup, index):
            return f":warning: There's no task {index}. Run `/progress-today` to get the list of tasks."
        if not mark_done(standup, index):
            return f"Task {index} was already done!"
        self.store.update_standup(standup)
        return f"Got it, marked task {index} as *done*. Here's today: \n{print_tasks(derive_tasks(standup))}"

    def set_task_not_done(self, index: int, standup_id: int) -> str:
        standup = self.store.get_standup(standup_id)
        if standup is None:
            return NO_STANDUP_TODAY
        if not task_in_range(standup, index):
            return f":warning: There's no task {index}. Run `/progress-today` to get the list of tasks."
        if not mark_undone(standup, index):
            return f"Task {index} was not marked as done yet."
        self.store.update_standup(standup)
        return f"Got it, marked task {index} as *not done*. Here's today: \n{print_tasks(derive_tasks(standup))}"

    def add_task(self, text: Optional[str], user_id: str) -> str:
        if not text or not text.strip():
            return ":warning: You have to include the task to add."
        standup = self.store.get_today(user_id, self.today())
        if standup is None:
            return NO_STANDUP_TODAY

        append_task(standup, text.strip())
        self.store.update_standup(standup)
        user = self.store.get_user(user_id)
        if user is not None and standup.echoed:
            self.refresh_channel_message(user, standup)
        return TASK_ADDED

    def show_config(self, user_id: str, team_id: str, trigger_id: Optional[str]) -> None:
        token = self.resolve_bot_token(team_id)
        if not token or not trigger_id:
            logger.warning("Cannot open config dialog for %s: missing token or trigger", user_id)
            return
        dialog = config_dialog(self.store.get_user(user_id))
        self.outbox.submit("config-dialog", lambda: self.client.open_dialog(token, trigger_id, dialog))

    # endregion


__all__ = ["Reply", "StandupBot", "parse_reminder_hour", "parse_task_index", "resolve_bot_token"]
