"""Tests for the read-only MCP tools."""

from datetime import datetime, timezone

import pytest

from progress_bot import mcp_server


@pytest.fixture
def mcp_store(memory_store, monkeypatch):
    monkeypatch.setattr(mcp_server, "_store", memory_store)
    return memory_store


@pytest.mark.asyncio
async def test_today_standup_and_tasks(mcp_store):
    standup = mcp_store.create_standup("U1", "T1", datetime.now(timezone.utc).date())
    standup.prev_day, standup.day, standup.done = "", "a\nb", {2}
    mcp_store.update_standup(standup)

    result = await mcp_server.get_today_standup("U1")
    assert result["standup"]["state"] == "blocker"
    assert result["standup"]["done"] == [2]

    tasks = await mcp_server.get_today_tasks("U1")
    assert tasks["tasks"] == [
        {"number": 1, "content": "a", "done": False},
        {"number": 2, "content": "b", "done": True},
    ]


@pytest.mark.asyncio
async def test_unknown_user(mcp_store):
    assert (await mcp_server.get_today_standup("U9"))["standup"] is None
    assert (await mcp_server.get_today_tasks("U9"))["tasks"] == []
    assert (await mcp_server.get_latest_standup("U9")) == {"standup": None}
