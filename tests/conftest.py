"""
Shared fixtures for relay tests.

Provides an in-memory WebSocket, a scripted LLM provider, and an httpx
client backed by MockTransport — no network, no real AI.
"""

from __future__ import annotations

import json
from typing import Any, Callable

import httpx
import pytest
from starlette.websockets import WebSocketState

from netops.providers.base import LLMProvider


class FakeWebSocket:
    """Records outbound frames; replays scripted inbound frames."""

    def __init__(self, inbound: list[str | bytes] | None = None):
        self.client_state = WebSocketState.CONNECTED
        self.sent: list[dict] = []
        self.accepted = False
        self._inbound = list(inbound or [])

    async def accept(self):
        self.accepted = True

    async def send_text(self, text: str):
        self.sent.append(json.loads(text))

    async def receive(self) -> dict:
        if not self._inbound:
            self.client_state = WebSocketState.DISCONNECTED
            return {"type": "websocket.disconnect", "code": 1000}
        frame = self._inbound.pop(0)
        if isinstance(frame, bytes):
            return {"type": "websocket.receive", "bytes": frame}
        return {"type": "websocket.receive", "text": frame}

    async def close(self):
        self.client_state = WebSocketState.DISCONNECTED


class FakeProvider(LLMProvider):
    """LLM provider that returns scripted replies and records every call."""

    def __init__(self, *replies: str | Exception):
        self.replies = list(replies) or ["Hello from the AI."]
        self.calls: list[tuple[str, list[dict]]] = []
        self.started = False

    async def start(self) -> None:
        self.started = True

    async def stop(self) -> None:
        self.started = False

    async def generate(self, system_instruction: str, turns: list[dict]) -> str:
        self.calls.append((system_instruction, turns))
        reply = self.replies.pop(0) if len(self.replies) > 1 else self.replies[0]
        if isinstance(reply, Exception):
            raise reply
        return reply


class RecordingTransport:
    """httpx MockTransport handler that records requests."""

    def __init__(self, responder: Callable[[httpx.Request], httpx.Response] | None = None):
        self.requests: list[httpx.Request] = []
        self._responder = responder or (lambda request: httpx.Response(200, json={}))

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self._responder(request)

    def bodies(self) -> list[Any]:
        return [json.loads(r.content) for r in self.requests]


def turn(turn_id: str, sender: str, text: str) -> dict:
    return {"id": turn_id, "sender": sender, "text": text, "timestamp": "10:00:00 AM"}


def user_message(
    history: list[dict] | None = None,
    devices: list[dict] | None = None,
    network_config: dict | None = None,
) -> str:
    history = history if history is not None else [turn("u-1", "user", "hello")]
    return json.dumps(
        {
            "type": "userMessage",
            "payload": {
                "text": history[-1]["text"] if history else "",
                "chatHistory": history,
                "devices": devices or [],
                "networkConfig": network_config
                if network_config is not None
                else {"userId": 1, "name": "HQ", "apiKey": "k", "orgId": "o"},
            },
        }
    )


@pytest.fixture
def fake_ws():
    return FakeWebSocket()


@pytest.fixture
def recorder():
    return RecordingTransport()


@pytest.fixture
def mock_http(recorder):
    return httpx.AsyncClient(transport=httpx.MockTransport(recorder))
