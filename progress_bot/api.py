"""FastAPI application exposing the Slack-facing endpoints."""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, Optional

from fastapi import Body, FastAPI, Form, HTTPException, status
from fastapi.responses import PlainTextResponse, RedirectResponse, Response

from .config import Settings, load_settings
from .delivery import Outbox
from .events import Command
from .handle import StandupBot
from .models import Team
from .slack_client import SlackApiError, SlackClient
from .store import RecordStore, build_store

logger = logging.getLogger(__name__)


def create_app(
    settings: Optional[Settings] = None,
    store: Optional[RecordStore] = None,
    slack_client: Optional[SlackClient] = None,
    outbox: Optional[Outbox] = None,
) -> FastAPI:
    settings = settings or load_settings()
    store = store or build_store(settings)
    slack_client = slack_client or SlackClient()
    outbox = outbox or Outbox()
    bot = StandupBot(settings, store, slack_client, outbox)

    app = FastAPI(title="Progress Bot", version="1.0.0")
    app.state.bot = bot

    @app.on_event("startup")
    async def startup_event() -> None:  # pragma: no cover - io bound
        outbox.start()

    @app.on_event("shutdown")
    async def shutdown_event() -> None:  # pragma: no cover - io bound
        await outbox.stop()
        await slack_client.close()

    @app.get("/", response_class=PlainTextResponse)
    async def index() -> str:
        return "Hello, world!"

    @app.get("/healthz")
    async def healthcheck() -> dict[str, str]:
        return {"status": "ok"}

    async def receive_event(payload: Dict[str, Any] = Body(...)) -> Response:
        challenge = payload.get("challenge")
        if challenge:
            return PlainTextResponse(bot.handle_challenge(challenge))

        event = payload.get("event")
        if not isinstance(event, dict):
            return PlainTextResponse("no idea")

        team_id = payload.get("team_id") or event.get("team") or ""
        result = await bot.handle_event(event, team_id)
        if result is not None:
            reply, destination = result
            token = bot.resolve_bot_token(team_id)
            if token:
                outbox.submit(
                    f"reply-{destination}",
                    lambda: slack_client.post_message(
                        token,
                        destination,
                        text=reply.get("text"),
                        blocks=reply.get("blocks"),
                    ),
                )
            else:
                logger.warning("No bot token for team %s, dropping reply", team_id)
        return PlainTextResponse("")

    app.post("/")(receive_event)
    app.post("/events")(receive_event)

    @app.post("/config")
    async def post_config(payload: str = Form(...)) -> dict[str, Any]:
        try:
            interaction = json.loads(payload)
        except ValueError as exc:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="payload must be JSON") from exc
        await bot.handle_interaction(interaction)
        return {}

    def command_endpoint(command: Command):
        async def endpoint(
            user_id: str = Form(...),
            team_id: str = Form(""),
            text: Optional[str] = Form(None),
            trigger_id: Optional[str] = Form(None),
        ) -> Response:
            reply = await bot.handle_command(command, text, user_id, team_id, trigger_id=trigger_id)
            if not reply:
                return Response(status_code=status.HTTP_200_OK)
            return Response(
                content=json.dumps({"text": reply}),
                media_type="application/json",
            )

        endpoint.__name__ = f"command_{command.name.lower()}"
        return endpoint

    for command in Command:
        app.post(f"/{command.value}")(command_endpoint(command))

    @app.get("/oauth")
    async def oauth(code: Optional[str] = None, error: Optional[str] = None) -> RedirectResponse:
        if error or not code:
            logger.warning("OAuth flow failed: %s", error)
            return RedirectResponse(settings.oauth_error_url)
        if not (settings.slack_client_id and settings.slack_client_secret):
            logger.error("OAuth attempted without SLACK_CLIENT_ID/SLACK_CLIENT_SECRET")
            return RedirectResponse(settings.oauth_error_url)
        try:
            result = await slack_client.oauth_access(
                settings.slack_client_id, settings.slack_client_secret, code
            )
        except SlackApiError as exc:
            logger.error("OAuth exchange failed: %s", exc)
            return RedirectResponse(settings.oauth_error_url)
        store.upsert_team(
            Team(
                team_id=result.team_id,
                team_name=result.team_name,
                access_token=result.access_token,
                bot_user_id=result.bot_user_id,
                bot_access_token=result.bot_access_token,
            )
        )
        logger.info("Installed for team %s (%s)", result.team_name, result.team_id)
        return RedirectResponse(settings.oauth_success_url)

    return app


__all__ = ["create_app"]
