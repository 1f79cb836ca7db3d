"""HTTP client for interacting with the Slack Web API."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional

import httpx

SLACK_API_BASE = "https://slack.com/api"


class SlackApiError(RuntimeError):
    """Raised when Slack returns an error response."""

    def __init__(self, method: str, error: str) -> None:
        super().__init__(f"Slack API error for {method}: {error}")
        self.method = method
        self.error = error


@dataclass(slots=True)
class MessageAck:
    channel: str
    ts: str


@dataclass(slots=True)
class UserProfile:
    real_name: str
    avatar_url: str


@dataclass(slots=True)
class OAuthResult:
    team_id: str
    team_name: str
    access_token: str
    bot_user_id: str
    bot_access_token: str


class SlackClient:
    """Async wrapper around the Slack Web API endpoints used by the bot.

    Tokens are passed per call since every installed workspace has its own
    bot token.
    """

    def __init__(self, timeout: float = 10.0, transport: Optional[httpx.AsyncBaseTransport] = None) -> None:
        self._client = httpx.AsyncClient(
            base_url=SLACK_API_BASE,
            timeout=timeout,
            transport=transport,
        )

    async def close(self) -> None:
        await self._client.aclose()

    @staticmethod
    def _check(method: str, response: httpx.Response) -> Dict[str, Any]:
        response.raise_for_status()
        data = response.json()
        if not data.get("ok"):
            raise SlackApiError(method, data.get("error", "unknown_error"))
        return data

    async def _post(self, method: str, token: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        response = await self._client.post(
            method,
            json=payload,
            headers={"Authorization": f"Bearer {token}"},
        )
        return self._check(method, response)

    async def post_message(
        self,
        token: str,
        channel: str,
        *,
        text: Optional[str] = None,
        blocks: Optional[list] = None,
        attachments: Optional[list] = None,
    ) -> MessageAck:
        payload: Dict[str, Any] = {"channel": channel, "as_user": True}
        if text is not None:
            payload["text"] = text
        if blocks is not None:
            payload["blocks"] = blocks
        if attachments is not None:
            payload["attachments"] = attachments
        data = await self._post("chat.postMessage", token, payload)
        return MessageAck(channel=data.get("channel", channel), ts=data["ts"])

    async def update_message(
        self,
        token: str,
        channel: str,
        ts: str,
        *,
        text: Optional[str] = None,
        blocks: Optional[list] = None,
        attachments: Optional[list] = None,
    ) -> MessageAck:
        payload: Dict[str, Any] = {"channel": channel, "ts": ts, "as_user": True}
        if text is not None:
            payload["text"] = text
        if blocks is not None:
            payload["blocks"] = blocks
        if attachments is not None:
            payload["attachments"] = attachments
        data = await self._post("chat.update", token, payload)
        return MessageAck(channel=data.get("channel", channel), ts=data.get("ts", ts))

    async def delete_message(self, token: str, channel: str, ts: str) -> None:
        await self._post("chat.delete", token, {"channel": channel, "ts": ts})

    async def open_dialog(self, token: str, trigger_id: str, dialog: Dict[str, Any]) -> None:
        await self._post("dialog.open", token, {"trigger_id": trigger_id, "dialog": dialog})

    async def users_info(self, token: str, user_id: str) -> UserProfile:
        method = "users.info"
        response = await self._client.get(
            method,
            params={"user": user_id},
            headers={"Authorization": f"Bearer {token}"},
        )
        data = self._check(method, response)
        profile = data.get("user", {}).get("profile", {})
        return UserProfile(
            real_name=profile.get("real_name") or data.get("user", {}).get("name") or user_id,
            avatar_url=profile.get("image_48", ""),
        )

    async def send_response(self, response_url: str, text: str) -> None:
        """Reply to a slash command or dialog through its ``response_url``."""

        response = await self._client.post(
            response_url,
            json={"text": text, "response_type": "ephemeral"},
        )
        response.raise_for_status()

    async def oauth_access(self, client_id: str, client_secret: str, code: str) -> OAuthResult:
        method = "oauth.access"
        response = await self._client.post(
            method,
            data={"code": code},
            auth=(client_id, client_secret),
        )
        data = self._check(method, response)
        bot = data.get("bot", {})
        return OAuthResult(
            team_id=data["team_id"],
            team_name=data.get("team_name", ""),
            access_token=data.get("access_token", ""),
            bot_user_id=bot.get("bot_user_id", ""),
            bot_access_token=bot.get("bot_access_token", ""),
        )


__all__ = ["MessageAck", "OAuthResult", "SlackApiError", "SlackClient", "UserProfile"]
