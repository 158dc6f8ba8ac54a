"""Webex Webhook Routes.

Webex POSTs here when someone writes in the bound room. Human messages are
reshaped into webex ChatTurns and broadcast to every open WebSocket; messages
from bot accounts are dropped so the relay never re-ingests its own mirror
posts. The endpoint always answers 200 so Webex considers the event delivered.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import TYPE_CHECKING, Any

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from netops.chat.models import ChatTurn, Sender, display_time

if TYPE_CHECKING:
    from netops.transport.registry import ConnectionRegistry

logger = logging.getLogger(__name__)

DEFAULT_WEBEX_TEXT = "New message from Webex"


def _parse_created(created: Any) -> str:
    if isinstance(created, str) and created:
        try:
            moment = datetime.fromisoformat(created.replace("Z", "+00:00"))
            return display_time(moment.astimezone())
        except ValueError:
            logger.debug(f"Unparseable Webex timestamp: {created!r}")
    return display_time()


def is_bot_sender(email: str, bot_domain: str) -> bool:
    """True when the address belongs to the bot domain or one of its subdomains."""
    domain = email.rsplit("@", 1)[-1].lower()
    bot_domain = bot_domain.lstrip("@").lower()
    return domain == bot_domain or domain.endswith("." + bot_domain)


def build_webex_turn(body: Any, bot_domain: str) -> ChatTurn | None:
    """Turn a Webex event into a ChatTurn, or None if it should be ignored."""
    if not isinstance(body, dict):
        return None
    data = body.get("data")
    if not isinstance(data, dict):
        return None

    sender_email = data.get("personEmail")
    if not isinstance(sender_email, str) or not sender_email:
        return None
    if is_bot_sender(sender_email, bot_domain):
        return None

    # Relays sometimes flatten the text to the top level.
    text = body.get("text") or data.get("text") or DEFAULT_WEBEX_TEXT
    turn_id = data.get("id")
    return ChatTurn.create(
        Sender.WEBEX,
        str(text),
        prefix="webex",
        id=turn_id if isinstance(turn_id, str) and turn_id else None,
        timestamp=_parse_created(data.get("created")),
    )


def create_router(registry: "ConnectionRegistry", bot_domain: str) -> APIRouter:
    """Create the router for inbound Webex events."""
    router = APIRouter(tags=["webex"])

    @router.post("/webex-webhook")
    async def webex_webhook(request: Request) -> JSONResponse:
        try:
            body = await request.json()
        except ValueError:
            logger.debug("Webex webhook body is not JSON; ignoring")
            body = None

        turn = build_webex_turn(body, bot_domain)
        if turn is not None:
            sender = body["data"]["personEmail"]
            delivered = await registry.broadcast(turn.to_dict())
            logger.info(f"Webex message from {sender} broadcast to {delivered} client(s)")

        return JSONResponse({"status": "ok"}, status_code=200)

    return router
