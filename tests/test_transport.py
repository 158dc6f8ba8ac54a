"""Tests for the transport layer — ConnectionRegistry and ConnectionGateway."""

from __future__ import annotations

import asyncio
import json
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest
from starlette.websockets import WebSocketState

from netops.services.notification_service import NotificationDispatcher
from netops.services.reply_service import FALLBACK_REPLY, ReplyService
from netops.services.webex_mirror import WebexMirror
from netops.transport.gateway import AI_THINKING, GENERIC_ERROR, ConnectionGateway
from netops.transport.registry import ConnectionRegistry, send_json
from tests.conftest import (
    FakeProvider,
    FakeWebSocket,
    RecordingTransport,
    turn,
    user_message,
)

NOTIFY_WEBEX = (
    '<execute_action>{"action":"send_notification",'
    '"payload":{"platform":"webex","message":"hi"}}</execute_action>'
)


def _gateway(provider: FakeProvider, recorder: RecordingTransport | None = None):
    recorder = recorder or RecordingTransport()
    http = httpx.AsyncClient(transport=httpx.MockTransport(recorder))
    registry = ConnectionRegistry(send_timeout=1.0)
    mirror = WebexMirror(http, api_base="https://webexapis.com/v1")
    gateway = ConnectionGateway(
        registry=registry,
        reply_service=ReplyService(provider),
        dispatcher=NotificationDispatcher(http),
        mirror=mirror,
    )
    return gateway, mirror, recorder


# ── ConnectionRegistry ───────────────────────────────────────────


class TestConnectionRegistry:
    def test_add_and_remove(self):
        registry = ConnectionRegistry()
        sid = registry.add(FakeWebSocket())
        assert sid in registry
        assert len(registry) == 1
        registry.remove(sid)
        assert len(registry) == 0

    def test_remove_unknown_is_noop(self):
        ConnectionRegistry().remove("missing")

    def test_session_ids_unique(self):
        registry = ConnectionRegistry()
        ids = {registry.add(FakeWebSocket()) for _ in range(20)}
        assert len(ids) == 20

    @pytest.mark.asyncio
    async def test_broadcast_reaches_every_connection(self):
        registry = ConnectionRegistry()
        a, b = FakeWebSocket(), FakeWebSocket()
        registry.add(a)
        registry.add(b)

        delivered = await registry.broadcast({"sender": "webex", "text": "hi"})

        assert delivered == 2
        assert a.sent == b.sent == [{"sender": "webex", "text": "hi"}]

    @pytest.mark.asyncio
    async def test_broadcast_skips_closed_sockets(self):
        registry = ConnectionRegistry()
        open_ws, closed_ws = FakeWebSocket(), FakeWebSocket()
        closed_ws.client_state = WebSocketState.DISCONNECTED
        registry.add(open_ws)
        registry.add(closed_ws)

        assert await registry.broadcast({"text": "x"}) == 1
        assert closed_ws.sent == []

    @pytest.mark.asyncio
    async def test_broadcast_to_empty_registry(self):
        assert await ConnectionRegistry().broadcast({"text": "x"}) == 0

    @pytest.mark.asyncio
    async def test_close_all(self):
        registry = ConnectionRegistry()
        ws = FakeWebSocket()
        registry.add(ws)
        await registry.close_all()
        assert len(registry) == 0
        assert ws.client_state == WebSocketState.DISCONNECTED


class TestSendJson:
    @pytest.mark.asyncio
    async def test_send_error_is_swallowed(self):
        ws = FakeWebSocket()
        ws.send_text = AsyncMock(side_effect=RuntimeError("socket gone"))
        assert await send_json(ws, {"a": 1}, timeout=1.0) is False

    @pytest.mark.asyncio
    async def test_send_timeout(self):
        ws = FakeWebSocket()

        async def _stall(text):
            await asyncio.sleep(1)

        ws.send_text = _stall
        assert await send_json(ws, {"a": 1}, timeout=0.01) is False


# ── ConnectionGateway ────────────────────────────────────────────


class TestGatewayTurns:
    @pytest.mark.asyncio
    async def test_plain_reply(self, fake_ws):
        provider = FakeProvider("Hi! How can I help with your network?")
        gateway, _, recorder = _gateway(provider)

        await gateway.handle_message(fake_ws, user_message())

        assert fake_ws.sent[0] == {"sender": "system", "text": AI_THINKING}
        reply = fake_ws.sent[1]
        assert reply["sender"] == "ai"
        assert reply["text"] == "Hi! How can I help with your network?"
        assert reply["id"].startswith("ai-")
        assert reply["userId"] == 1
        assert len(fake_ws.sent) == 2  # no dispatch notice
        assert recorder.requests == []

    @pytest.mark.asyncio
    async def test_provider_receives_history(self, fake_ws):
        provider = FakeProvider("ok")
        gateway, _, _ = _gateway(provider)
        history = [
            turn("ai-intro-1", "ai", "Welcome"),
            turn("u-1", "user", "hello"),
            turn("ai-1", "ai", "hi"),
            turn("u-2", "user", "show devices"),
        ]
        devices = [{"serial": "Q2-AAA", "name": "core", "model": "MS225", "networkId": "N1"}]

        await gateway.handle_message(fake_ws, user_message(history=history, devices=devices))

        system, turns = provider.calls[0]
        assert "Q2-AAA" in system
        assert turns == [
            {"role": "user", "content": "hello"},
            {"role": "assistant", "content": "hi"},
            {"role": "user", "content": "show devices"},
        ]

    @pytest.mark.asyncio
    async def test_ai_failure_still_sends_fallback_reply(self, fake_ws):
        gateway, _, _ = _gateway(FakeProvider(TimeoutError("slow")))

        await gateway.handle_message(fake_ws, user_message())

        assert fake_ws.sent[1]["sender"] == "ai"
        assert fake_ws.sent[1]["text"] == FALLBACK_REPLY

    @pytest.mark.asyncio
    async def test_notification_success_notice(self, fake_ws):
        gateway, _, recorder = _gateway(FakeProvider(NOTIFY_WEBEX))
        cfg = {"userId": 1, "webexWebhookUrl": "https://webex.test/hook"}

        await gateway.handle_message(fake_ws, user_message(network_config=cfg))

        assert [m["sender"] for m in fake_ws.sent] == ["system", "ai", "system"]
        assert fake_ws.sent[2]["text"] == "✅ Success! Notification sent to Webex."
        assert recorder.bodies() == [{"markdown": "hi"}]

    @pytest.mark.asyncio
    async def test_notification_without_webhook(self, fake_ws):
        gateway, _, recorder = _gateway(FakeProvider(NOTIFY_WEBEX))

        await gateway.handle_message(fake_ws, user_message(network_config={"userId": 1}))

        assert fake_ws.sent[-1] == {
            "sender": "system",
            "text": "❌ Error! No webhook URL is configured for Webex.",
        }
        assert recorder.requests == []

    @pytest.mark.asyncio
    async def test_invalid_directive_reports_failure(self, fake_ws):
        gateway, _, _ = _gateway(FakeProvider("<execute_action>{oops</execute_action>"))

        await gateway.handle_message(fake_ws, user_message())

        assert len(fake_ws.sent) == 3
        assert fake_ws.sent[2]["text"].startswith("Failed to execute backend action:")

    @pytest.mark.asyncio
    async def test_frontend_action_has_no_notice(self, fake_ws):
        reply = '<execute_action>{"action":"update_switch_port","payload":{"vlan":100}}</execute_action>'
        gateway, _, _ = _gateway(FakeProvider(reply))

        await gateway.handle_message(fake_ws, user_message())

        assert len(fake_ws.sent) == 2
        assert fake_ws.sent[1]["text"] == reply


class TestGatewayMirror:
    MIRROR_CFG = {"userId": 1, "webexBotToken": "bot-token", "webexSpaceId": "room-1"}

    @pytest.mark.asyncio
    async def test_plain_reply_is_mirrored(self, fake_ws):
        gateway, mirror, recorder = _gateway(FakeProvider("All good."))

        await gateway.handle_message(fake_ws, user_message(network_config=self.MIRROR_CFG))
        await mirror.drain()

        assert str(recorder.requests[0].url) == "https://webexapis.com/v1/messages"
        assert recorder.bodies() == [{"roomId": "room-1", "markdown": "All good."}]

    @pytest.mark.asyncio
    async def test_action_reply_is_not_mirrored(self, fake_ws):
        gateway, mirror, recorder = _gateway(FakeProvider(NOTIFY_WEBEX))

        await gateway.handle_message(fake_ws, user_message(network_config=self.MIRROR_CFG))
        await mirror.drain()

        assert recorder.requests == []

    @pytest.mark.asyncio
    async def test_malformed_action_not_mirrored(self, fake_ws):
        gateway, mirror, recorder = _gateway(FakeProvider("<execute_action>{oops</execute_action>"))

        await gateway.handle_message(fake_ws, user_message(network_config=self.MIRROR_CFG))
        await mirror.drain()

        assert recorder.requests == []
        assert fake_ws.sent[-1]["text"].startswith("Failed to execute backend action")

    @pytest.mark.asyncio
    async def test_not_mirrored_without_space(self, fake_ws):
        gateway, mirror, recorder = _gateway(FakeProvider("All good."))

        await gateway.handle_message(
            fake_ws, user_message(network_config={"webexBotToken": "bot-token"})
        )
        await mirror.drain()

        assert recorder.requests == []

    @pytest.mark.asyncio
    async def test_mirror_failure_is_invisible(self, fake_ws):
        recorder = RecordingTransport(lambda r: httpx.Response(500, text="webex down"))
        gateway, mirror, _ = _gateway(FakeProvider("All good."), recorder)

        await gateway.handle_message(fake_ws, user_message(network_config=self.MIRROR_CFG))
        await mirror.drain()

        assert [m["sender"] for m in fake_ws.sent] == ["system", "ai"]


class TestGatewayErrors:
    @pytest.mark.asyncio
    async def test_malformed_frame_gets_generic_notice(self, fake_ws):
        provider = FakeProvider("unused")
        gateway, _, _ = _gateway(provider)

        await gateway.handle_message(fake_ws, "{not json")

        assert fake_ws.sent == [{"sender": "system", "text": GENERIC_ERROR}]
        assert provider.calls == []

    @pytest.mark.asyncio
    async def test_unknown_type_gets_generic_notice(self, fake_ws):
        gateway, _, _ = _gateway(FakeProvider())
        await gateway.handle_message(fake_ws, json.dumps({"type": "ping"}))
        assert fake_ws.sent == [{"sender": "system", "text": GENERIC_ERROR}]

    @pytest.mark.asyncio
    async def test_unexpected_error_gets_generic_notice(self, fake_ws):
        gateway, _, _ = _gateway(FakeProvider())
        with patch(
            "netops.transport.gateway.build_request", MagicMock(side_effect=KeyError("x"))
        ):
            await gateway.handle_message(fake_ws, user_message())

        assert fake_ws.sent[-1] == {"sender": "system", "text": GENERIC_ERROR}

    @pytest.mark.asyncio
    async def test_connection_survives_bad_frame(self):
        provider = FakeProvider("second reply")
        gateway, _, _ = _gateway(provider)
        ws = FakeWebSocket(inbound=["garbage", user_message()])

        await gateway.handle_connection(ws)

        assert ws.accepted
        assert ws.sent[0]["text"] == GENERIC_ERROR
        assert ws.sent[-1]["text"] == "second reply"
        assert len(gateway.registry) == 0

    @pytest.mark.asyncio
    async def test_connection_survives_binary_garbage(self):
        provider = FakeProvider("after binary")
        gateway, _, _ = _gateway(provider)
        ws = FakeWebSocket(inbound=[b"\xff\xfe\x00garbage", user_message()])

        await gateway.handle_connection(ws)

        assert ws.sent[0] == {"sender": "system", "text": GENERIC_ERROR}
        assert ws.sent[-1]["text"] == "after binary"
        assert len(provider.calls) == 1

    @pytest.mark.asyncio
    async def test_binary_frame_with_json_is_a_turn(self):
        provider = FakeProvider("from bytes")
        gateway, _, _ = _gateway(provider)
        ws = FakeWebSocket(inbound=[user_message().encode("utf-8")])

        await gateway.handle_connection(ws)

        assert ws.sent[0]["text"] == AI_THINKING
        assert ws.sent[1]["sender"] == "ai"
        assert ws.sent[1]["text"] == "from bytes"


class TestGatewayLifecycle:
    @pytest.mark.asyncio
    async def test_registered_while_open_and_removed_on_close(self):
        gateway, _, _ = _gateway(FakeProvider())
        seen: list[int] = []

        async def _record(ws, raw, session_id=""):
            seen.append(len(gateway.registry))

        gateway.handle_message = _record  # type: ignore
        await gateway.handle_connection(FakeWebSocket(inbound=["x"]))

        assert seen == [1]
        assert len(gateway.registry) == 0

    @pytest.mark.asyncio
    async def test_repeated_turns_are_independent(self, fake_ws):
        provider = FakeProvider("first", "second")
        gateway, _, _ = _gateway(provider)

        await gateway.handle_message(fake_ws, user_message())
        await gateway.handle_message(fake_ws, user_message())

        replies = [m for m in fake_ws.sent if m["sender"] == "ai"]
        assert [r["text"] for r in replies] == ["first", "second"]
        assert replies[0]["id"] != replies[1]["id"]
        assert len(provider.calls) == 2
        assert provider.calls[0] == provider.calls[1]
