"""
Connection Registry — the set of live WebSocket connections.

Mutated only when a connection opens or closes; broadcast iterates over a
snapshot so a disconnect mid-broadcast is harmless. Everything runs on one
event loop, so no lock is needed.
"""

from __future__ import annotations

import asyncio
import json
import logging
import uuid
from typing import Any, Iterator

from fastapi import WebSocket

logger = logging.getLogger(__name__)


async def send_json(ws: WebSocket, payload: dict[str, Any], timeout: float) -> bool:
    """Send one JSON frame with timeout protection.

    Returns False (and drops the frame) if the socket is gone or stalled.
    """
    try:
        if ws.client_state.name != "CONNECTED":
            return False

        text = json.dumps(payload)
        logger.debug(f"→ WS OUT: {text[:200]}")
        await asyncio.wait_for(ws.send_text(text), timeout=timeout)
        return True
    except asyncio.TimeoutError:
        logger.warning("WebSocket send timeout")
    except Exception as e:
        logger.debug(f"WebSocket send skipped: {e}")
    return False


class ConnectionRegistry:
    """Live connections keyed by a short session id."""

    def __init__(self, send_timeout: float = 5.0):
        self._connections: dict[str, WebSocket] = {}
        self._send_timeout = send_timeout

    def add(self, ws: WebSocket) -> str:
        session_id = uuid.uuid4().hex[:8]
        self._connections[session_id] = ws
        return session_id

    def remove(self, session_id: str) -> None:
        self._connections.pop(session_id, None)

    def __len__(self) -> int:
        return len(self._connections)

    def __contains__(self, session_id: object) -> bool:
        return session_id in self._connections

    def __iter__(self) -> Iterator[WebSocket]:
        return iter(list(self._connections.values()))

    async def send(self, ws: WebSocket, payload: dict[str, Any]) -> bool:
        return await send_json(ws, payload, self._send_timeout)

    async def broadcast(self, payload: dict[str, Any]) -> int:
        """Send to every open connection. Returns how many frames went out."""
        delivered = 0
        for ws in self:
            if await self.send(ws, payload):
                delivered += 1
        return delivered

    async def close_all(self) -> None:
        for ws in self:
            try:
                await ws.close()
            except Exception as e:
                logger.debug(f"Close skipped: {e}")
        self._connections.clear()

    def __repr__(self) -> str:
        return f"<ConnectionRegistry(connections={len(self._connections)})>"
