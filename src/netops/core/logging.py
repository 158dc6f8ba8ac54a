"""
NetOps Logging — colorized for dev, JSON for production.

- Color formatter for terminals (auto-detects TTY)
- JSON structured formatter (NETOPS_LOG_FORMAT=json)
- Quiets chatty third-party loggers (httpx, httpcore, openai, uvicorn.access)
- TurnTimer for per-turn stage latency (AI -> reply -> dispatch)

Structured extra fields (logger.info(..., extra={...})):
    session_id, user_id, network_id, platform, status, duration_ms
"""

from __future__ import annotations

import json
import logging
import os
import sys
import time
from datetime import datetime, timezone

COLORS = {
    "DEBUG": "\033[36m",
    "INFO": "\033[32m",
    "WARNING": "\033[33m",
    "ERROR": "\033[31m",
    "CRITICAL": "\033[1;31m",
    "RESET": "\033[0m",
    "DIM": "\033[2m",
}

_STRUCTURED_FIELDS = (
    "session_id",
    "user_id",
    "network_id",
    "platform",
    "status",
    "duration_ms",
)

_NOISY_LOGGERS = (
    "httpx",
    "httpcore",
    "httpcore.http11",
    "httpcore.connection",
    "openai",
    "openai._base_client",
    "websockets",
    "uvicorn.access",
)


class ColorFormatter(logging.Formatter):
    """Colorized log formatter for terminal output."""

    def __init__(self, use_color: bool = True):
        super().__init__(
            fmt="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
            datefmt="%H:%M:%S",
        )
        self.use_color = use_color

    def format(self, record: logging.LogRecord) -> str:
        if not self.use_color:
            return super().format(record)

        orig_levelname = record.levelname
        orig_name = record.name
        record.levelname = (
            f"{COLORS.get(record.levelname, '')}{record.levelname}{COLORS['RESET']}"
        )
        record.name = f"{COLORS['DIM']}{record.name}{COLORS['RESET']}"
        try:
            return super().format(record)
        finally:
            record.levelname = orig_levelname
            record.name = orig_name


class StructuredFormatter(logging.Formatter):
    """One JSON object per line, with structured extras at the top level."""

    def format(self, record: logging.LogRecord) -> str:
        entry: dict = {
            "ts": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        for key in _STRUCTURED_FIELDS:
            if hasattr(record, key):
                entry[key] = getattr(record, key)
        if record.exc_info:
            entry["exc"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


class TurnTimer:
    """Stage timings for a single turn.

    Usage:
        timer = TurnTimer()
        ...  # call the AI
        timer.mark("ai")
        ...  # dispatch
        timer.mark("dispatch")
        timer.summary()  # -> "ai: 1.2s | dispatch: 0.3s | total: 1.5s"
    """

    def __init__(self):
        self._start = time.monotonic()
        self._marks: list[tuple[str, float]] = []

    def mark(self, stage: str) -> None:
        self._marks.append((stage, time.monotonic()))

    def elapsed(self, stage: str) -> float | None:
        """Time between the previous mark (or start) and the named stage."""
        prev = self._start
        for name, ts in self._marks:
            if name == stage:
                return ts - prev
            prev = ts
        return None

    def total(self) -> float:
        return time.monotonic() - self._start

    def summary(self) -> str:
        parts = []
        prev = self._start
        for name, ts in self._marks:
            parts.append(f"{name}: {ts - prev:.1f}s")
            prev = ts
        parts.append(f"total: {self.total():.1f}s")
        return " | ".join(parts)


def _should_use_color() -> bool:
    env_val = os.getenv("NETOPS_LOG_COLOR", "auto").lower()
    if env_val == "true":
        return True
    if env_val == "false":
        return False
    return hasattr(sys.stdout, "isatty") and sys.stdout.isatty()


def setup_logging() -> None:
    """Configure root logging once at startup.

    Env vars:
        NETOPS_LOG_LEVEL  — DEBUG / INFO / WARNING / ERROR (default: INFO)
        NETOPS_LOG_COLOR  — true / false / auto (default: auto)
        NETOPS_LOG_FORMAT — text / json (default: text)
    """
    level_name = os.getenv("NETOPS_LOG_LEVEL", "INFO").upper()
    level = getattr(logging, level_name, logging.INFO)
    log_format = os.getenv("NETOPS_LOG_FORMAT", "text").lower()

    root = logging.getLogger()
    root.setLevel(level)
    root.handlers.clear()

    if log_format == "json":
        formatter: logging.Formatter = StructuredFormatter()
    else:
        formatter = ColorFormatter(use_color=_should_use_color())

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    handler.setFormatter(formatter)
    root.addHandler(handler)

    for noisy_logger in _NOISY_LOGGERS:
        logging.getLogger(noisy_logger).setLevel(logging.WARNING)
    logging.getLogger("uvicorn.error").setLevel(level)

    logging.getLogger("netops").debug(
        "Logging configured (level=%s, format=%s)", level_name, log_format
    )
