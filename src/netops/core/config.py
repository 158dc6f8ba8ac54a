"""
NetOps Configuration — single source of truth for all settings.

Reads from environment variables with sensible defaults.
No config files, no YAML. Just env vars (and an optional .env).
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field

from dotenv import load_dotenv

load_dotenv()

# Gemini exposes an OpenAI-compatible surface, so the OpenAI SDK talks to it directly.
GEMINI_OPENAI_BASE_URL = "https://generativelanguage.googleapis.com/v1beta/openai/"


def _first_env(*names: str, default: str = "") -> str:
    for name in names:
        value = os.getenv(name)
        if value:
            return value
    return default


@dataclass(frozen=True)
class LLMConfig:
    """Language model provider settings."""

    provider: str = "openai"
    api_key: str = ""
    model: str = "gemini-2.5-flash"
    base_url: str = GEMINI_OPENAI_BASE_URL
    timeout: float = 60.0

    @classmethod
    def from_env(cls) -> LLMConfig:
        return cls(
            provider=os.getenv("NETOPS_LLM_PROVIDER", "openai"),
            api_key=_first_env("NETOPS_LLM_API_KEY", "GEMINI_API_KEY", "API_KEY"),
            model=os.getenv("NETOPS_LLM_MODEL", "gemini-2.5-flash"),
            base_url=os.getenv("NETOPS_LLM_BASE_URL", GEMINI_OPENAI_BASE_URL),
            timeout=float(os.getenv("NETOPS_LLM_TIMEOUT", "60.0")),
        )


@dataclass(frozen=True)
class WebexConfig:
    """Webex messaging API and webhook settings."""

    api_base: str = "https://webexapis.com/v1"
    bot_domain: str = "webex.bot"
    http_timeout: float = 10.0

    @classmethod
    def from_env(cls) -> WebexConfig:
        return cls(
            api_base=os.getenv("NETOPS_WEBEX_API_BASE", "https://webexapis.com/v1"),
            bot_domain=os.getenv("NETOPS_WEBEX_BOT_DOMAIN", "webex.bot"),
            http_timeout=float(os.getenv("NETOPS_HTTP_TIMEOUT", "10.0")),
        )


@dataclass(frozen=True)
class ServerConfig:
    """Server settings."""

    host: str = "0.0.0.0"
    port: int = 3001
    ws_send_timeout: float = 5.0
    cors_origins: tuple[str, ...] = ("*",)

    @classmethod
    def from_env(cls) -> ServerConfig:
        origins = os.getenv("NETOPS_CORS_ORIGINS", "*")
        return cls(
            host=os.getenv("NETOPS_HOST", "0.0.0.0"),
            port=int(_first_env("PORT", "NETOPS_PORT", default="3001")),
            ws_send_timeout=float(os.getenv("NETOPS_WS_SEND_TIMEOUT", "5.0")),
            cors_origins=tuple(o.strip() for o in origins.split(",") if o.strip()),
        )


@dataclass(frozen=True)
class NetOpsConfig:
    """Root configuration."""

    llm: LLMConfig = field(default_factory=LLMConfig)
    webex: WebexConfig = field(default_factory=WebexConfig)
    server: ServerConfig = field(default_factory=ServerConfig)

    @classmethod
    def from_env(cls) -> NetOpsConfig:
        return cls(
            llm=LLMConfig.from_env(),
            webex=WebexConfig.from_env(),
            server=ServerConfig.from_env(),
        )


# Singleton: import this wherever you need config
config = NetOpsConfig.from_env()


def reload_config() -> NetOpsConfig:
    """Re-read the environment and replace the module-level singleton."""
    global config
    config = NetOpsConfig.from_env()
    return config
