"""MCP server exposing read-only standup tools."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, Optional

from mcp.server.fastmcp import FastMCP

from .config import load_settings
from .models import Standup
from .standup import get_state
from .store import build_store
from .tasks import derive_tasks

mcp = FastMCP("progress-bot")

_settings = load_settings()
_store = build_store(_settings)


def _standup_dict(standup: Optional[Standup]) -> Optional[Dict[str, Any]]:
    if standup is None:
        return None
    return {
        "id": standup.id,
        "user_id": standup.username,
        "date": standup.date.isoformat(),
        "state": get_state(standup).value,
        "prev_day": standup.prev_day,
        "day": standup.day,
        "blocker": standup.blocker,
        "channel": standup.channel,
        "done": sorted(standup.done),
    }


@mcp.tool()
async def get_today_standup(user_id: str) -> dict:
    """Return a user's standup for the current UTC day, if any."""

    day = datetime.now(timezone.utc).date()
    return {"date": day.isoformat(), "standup": _standup_dict(_store.get_today(user_id, day))}


@mcp.tool()
async def get_today_tasks(user_id: str) -> dict:
    """Return the task list derived from today's standup."""

    day = datetime.now(timezone.utc).date()
    standup = _store.get_today(user_id, day)
    tasks = derive_tasks(standup) if standup else []
    return {
        "date": day.isoformat(),
        "tasks": [
            {"number": index, "content": task.content, "done": task.done}
            for index, task in enumerate(tasks, start=1)
        ],
    }


@mcp.tool()
async def get_latest_standup(user_id: str) -> dict:
    """Return the most recent standup a user has recorded."""

    return {"standup": _standup_dict(_store.get_latest(user_id))}


__all__ = ["mcp", "get_today_standup", "get_today_tasks", "get_latest_standup"]
