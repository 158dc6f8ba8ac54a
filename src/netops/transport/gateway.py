"""
Connection Gateway — one WebSocket per client, one turn at a time.

For every inbound userMessage frame the gateway:
  1. tells the client the AI is thinking
  2. builds the prompt and gets the reply (ReplyService never raises)
  3. sends the assistant turn back to the originating socket
  4. mirrors plain replies to Webex in the background, if configured
  5. dispatches any embedded action and reports the outcome

Frames on one socket are handled sequentially; sockets are independent.
Only the originating socket sees a turn's messages. Broadcast is reserved
for the webhook ingress.
"""

from __future__ import annotations

import logging

from fastapi import WebSocket, WebSocketDisconnect

from netops.actions.directive import extract, has_directive
from netops.chat.models import (
    ChatTurn,
    ConversationContext,
    Sender,
    parse_turn_request,
    system_notice,
)
from netops.core.errors import ProtocolError
from netops.core.logging import TurnTimer
from netops.llm.formatter import build_request
from netops.services.notification_service import NotificationDispatcher
from netops.services.reply_service import ReplyService
from netops.services.webex_mirror import WebexMirror
from netops.transport.registry import ConnectionRegistry

logger = logging.getLogger(__name__)

AI_THINKING = "AI_THINKING"
GENERIC_ERROR = "An error occurred on the server."


def _frame_text(raw: str | bytes) -> str:
    """Binary frames carry the same JSON as text frames, UTF-8 encoded."""
    if isinstance(raw, str):
        return raw
    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError as e:
        raise ProtocolError(f"binary frame is not UTF-8: {e.reason}") from e


class ConnectionGateway:
    """Owns the per-connection lifecycle and sequences each turn."""

    def __init__(
        self,
        registry: ConnectionRegistry,
        reply_service: ReplyService,
        dispatcher: NotificationDispatcher,
        mirror: WebexMirror,
    ):
        self.registry = registry
        self._reply_service = reply_service
        self._dispatcher = dispatcher
        self._mirror = mirror

    async def handle_connection(self, ws: WebSocket) -> None:
        """Entry point for FastAPI's /ws route."""
        # Registered before accept; broadcasts skip sockets that are not CONNECTED yet.
        session_id = self.registry.add(ws)

        try:
            await ws.accept()
            logger.info("WS connected", extra={"session_id": session_id})
            while True:
                message = await ws.receive()
                if message["type"] == "websocket.disconnect":
                    raise WebSocketDisconnect(message.get("code", 1000), message.get("reason"))
                raw = message.get("text")
                if raw is None:
                    raw = message.get("bytes") or b""
                logger.debug(f"← WS IN ({session_id}): {raw[:200]!r}")
                await self.handle_message(ws, raw, session_id=session_id)
        except WebSocketDisconnect:
            logger.info("WS disconnected", extra={"session_id": session_id})
        except Exception as e:
            logger.error(f"WS error: {e}", exc_info=True)
        finally:
            self.registry.remove(session_id)

    async def handle_message(
        self, ws: WebSocket, raw: str | bytes, session_id: str = ""
    ) -> None:
        try:
            context = parse_turn_request(_frame_text(raw))
        except ProtocolError as e:
            logger.warning(
                f"Rejected inbound frame: {e}", extra={"session_id": session_id}
            )
            await self.registry.send(ws, system_notice(GENERIC_ERROR))
            return

        try:
            await self.process_turn(ws, context, session_id=session_id)
        except Exception as e:
            logger.error(f"Error processing message: {e}", exc_info=True)
            await self.registry.send(ws, system_notice(GENERIC_ERROR))

    async def process_turn(
        self, ws: WebSocket, context: ConversationContext, session_id: str = ""
    ) -> None:
        network_config = context.network_config
        timer = TurnTimer()
        logger.info(
            f"Received message from client: {context.text[:100]!r}",
            extra={"session_id": session_id, "user_id": network_config.user_id},
        )

        await self.registry.send(ws, system_notice(AI_THINKING))

        system_instruction, turns = build_request(
            context.history, context.devices, network_config
        )
        reply_text = await self._reply_service.generate(system_instruction, turns)
        timer.mark("ai")

        reply = ChatTurn.create(
            Sender.AI,
            reply_text,
            prefix="ai",
            user_id=network_config.user_id,
            network_id=network_config.id,
        )
        await self.registry.send(ws, reply.to_dict())

        # Action markup is never mirrored; the room only sees conversational text.
        if network_config.can_mirror and not has_directive(reply_text):
            self._mirror.mirror_in_background(
                network_config.webex_bot_token,
                network_config.webex_space_id,
                reply_text,
            )

        directive = extract(reply_text)
        outcome = await self._dispatcher.dispatch(directive, network_config)
        if outcome is not None:
            await self.registry.send(ws, system_notice(outcome.notice))
        timer.mark("dispatch")

        logger.info(
            f"Turn complete ({timer.summary()})",
            extra={
                "session_id": session_id,
                "duration_ms": round(timer.total() * 1000),
            },
        )
