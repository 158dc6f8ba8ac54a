"""
NetOps Relay — AI chat relay for Meraki network operations.

Routes:
  /ws             — WebSocket turn protocol (userMessage in, turns/notices out)
  /webex-webhook  — inbound Webex events, broadcast to every WebSocket
  /health         — liveness + connection count

Run: uvicorn netops.main:app --host 0.0.0.0 --port 3001
  or: python -m netops
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI, WebSocket
from fastapi.middleware.cors import CORSMiddleware

import netops.core.config as config_module
from netops.core.errors import ConfigurationError
from netops.core.logging import setup_logging
from netops.http.webhooks import create_router
from netops.providers import LLMProvider, get_llm_provider
from netops.services.notification_service import NotificationDispatcher
from netops.services.reply_service import ReplyService
from netops.services.webex_mirror import WebexMirror
from netops.transport.gateway import ConnectionGateway
from netops.transport.registry import ConnectionRegistry

setup_logging()
logger = logging.getLogger("netops")


def create_app(
    llm_provider: LLMProvider | None = None,
    http_client: httpx.AsyncClient | None = None,
) -> FastAPI:
    """Wire the relay together.

    Passing a provider or HTTP client skips building them from config (tests
    inject fakes this way). Without an injected provider the AI credential is
    mandatory and startup fails if it is missing.
    """
    cfg = config_module.config
    owns_http = http_client is None
    http = http_client or httpx.AsyncClient(timeout=cfg.webex.http_timeout)
    require_credential = llm_provider is None
    provider = llm_provider or get_llm_provider()

    registry = ConnectionRegistry(send_timeout=cfg.server.ws_send_timeout)
    mirror = WebexMirror(http, api_base=cfg.webex.api_base)
    gateway = ConnectionGateway(
        registry=registry,
        reply_service=ReplyService(provider),
        dispatcher=NotificationDispatcher(http),
        mirror=mirror,
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if require_credential and not config_module.config.llm.api_key:
            raise ConfigurationError(
                "AI credential not set (NETOPS_LLM_API_KEY / GEMINI_API_KEY / API_KEY)."
            )
        await provider.start()
        logger.info(
            "NetOps relay ready (model=%s, port=%s)",
            config_module.config.llm.model,
            config_module.config.server.port,
        )
        try:
            yield
        finally:
            await registry.close_all()
            await mirror.drain()
            await provider.stop()
            if owns_http:
                await http.aclose()

    app = FastAPI(title="NetOps Relay", version="0.1.0", lifespan=lifespan)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(cfg.server.cors_origins),
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.state.registry = registry
    app.state.gateway = gateway

    app.include_router(create_router(registry, bot_domain=cfg.webex.bot_domain))

    @app.get("/health")
    async def health():
        return {
            "status": "ok",
            "connections": len(registry),
            "llm": await provider.health_check(),
        }

    @app.websocket("/ws")
    async def websocket_endpoint(ws: WebSocket):
        await gateway.handle_connection(ws)

    return app


app = create_app()
