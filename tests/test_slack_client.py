"""Tests for progress_bot.slack_client using httpx.MockTransport."""

import json

import httpx
import pytest

from progress_bot.slack_client import SlackApiError, SlackClient


def _client(handler):
    return SlackClient(transport=httpx.MockTransport(handler))


class TestSlackClient:
    @pytest.mark.asyncio
    async def test_post_message_sends_bearer_token_and_payload(self):
        seen = {}

        def handler(request):
            seen["url"] = str(request.url)
            seen["auth"] = request.headers["Authorization"]
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={"ok": True, "channel": "C1", "ts": "123.456"})

        client = _client(handler)
        ack = await client.post_message("xoxb-1", "C1", text="hello")
        await client.close()

        assert seen["url"] == "https://slack.com/api/chat.postMessage"
        assert seen["auth"] == "Bearer xoxb-1"
        assert seen["body"] == {"channel": "C1", "as_user": True, "text": "hello"}
        assert (ack.channel, ack.ts) == ("C1", "123.456")

    @pytest.mark.asyncio
    async def test_update_message_keeps_timestamp(self):
        def handler(request):
            body = json.loads(request.content)
            assert body["ts"] == "9.9"
            assert body["attachments"] == [{"text": "x"}]
            return httpx.Response(200, json={"ok": True, "channel": "C1"})

        client = _client(handler)
        ack = await client.update_message("t", "C1", "9.9", attachments=[{"text": "x"}])
        await client.close()
        assert ack.ts == "9.9"

    @pytest.mark.asyncio
    async def test_error_response_raises(self):
        def handler(request):
            return httpx.Response(200, json={"ok": False, "error": "channel_not_found"})

        client = _client(handler)
        with pytest.raises(SlackApiError) as excinfo:
            await client.delete_message("t", "C404", "1.1")
        await client.close()

        assert excinfo.value.method == "chat.delete"
        assert excinfo.value.error == "channel_not_found"

    @pytest.mark.asyncio
    async def test_users_info_reads_profile(self):
        def handler(request):
            assert request.url.params["user"] == "U1"
            return httpx.Response(
                200,
                json={
                    "ok": True,
                    "user": {"name": "rui", "profile": {"real_name": "Rui Ramos", "image_48": "https://img"}},
                },
            )

        client = _client(handler)
        profile = await client.users_info("t", "U1")
        await client.close()
        assert (profile.real_name, profile.avatar_url) == ("Rui Ramos", "https://img")

    @pytest.mark.asyncio
    async def test_oauth_access_uses_basic_auth(self):
        def handler(request):
            assert request.headers["Authorization"].startswith("Basic ")
            return httpx.Response(
                200,
                json={
                    "ok": True,
                    "team_id": "T1",
                    "team_name": "Acme",
                    "access_token": "xoxp-1",
                    "bot": {"bot_user_id": "B1", "bot_access_token": "xoxb-1"},
                },
            )

        client = _client(handler)
        result = await client.oauth_access("cid", "secret", "code")
        await client.close()
        assert result.team_id == "T1"
        assert result.bot_access_token == "xoxb-1"

    @pytest.mark.asyncio
    async def test_send_response_posts_to_response_url(self):
        seen = {}

        def handler(request):
            seen["url"] = str(request.url)
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, text="ok")

        client = _client(handler)
        await client.send_response("https://hooks.slack.test/r/1", "saved")
        await client.close()

        assert seen["url"] == "https://hooks.slack.test/r/1"
        assert seen["body"] == {"text": "saved", "response_type": "ephemeral"}
