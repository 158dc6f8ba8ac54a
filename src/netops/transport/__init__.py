"""
NetOps Transport Layer

- ConnectionRegistry: the live WebSocket set (add / remove / broadcast)
- ConnectionGateway: per-connection receive loop and turn sequencing

Usage:
    registry = ConnectionRegistry(send_timeout=5.0)
    gateway = ConnectionGateway(registry, reply_service, dispatcher, mirror)

    @app.websocket("/ws")
    async def ws_endpoint(ws: WebSocket):
        await gateway.handle_connection(ws)
"""

from netops.transport.gateway import AI_THINKING, GENERIC_ERROR, ConnectionGateway
from netops.transport.registry import ConnectionRegistry, send_json

__all__ = [
    "AI_THINKING",
    "GENERIC_ERROR",
    "ConnectionGateway",
    "ConnectionRegistry",
    "send_json",
]
