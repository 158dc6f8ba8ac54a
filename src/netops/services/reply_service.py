"""
Reply Service — user-facing response generation.

Wraps one LLMProvider call per turn. Provider failures never reach the
gateway: they are logged and replaced with a fixed apology, so every turn
still produces an assistant message.
"""

from __future__ import annotations

import logging
import time
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from netops.providers.base import LLMProvider

logger = logging.getLogger(__name__)

FALLBACK_REPLY = "There was an issue communicating with the AI. Please try again."


class ReplyService:
    """Generates the assistant's reply text for a turn."""

    def __init__(self, provider: "LLMProvider") -> None:
        self._provider = provider

    async def generate(
        self, system_instruction: str, turns: list[dict[str, str]]
    ) -> str:
        started = time.monotonic()
        try:
            text = await self._provider.generate(system_instruction, turns)
        except Exception as e:
            logger.error(f"LLM call failed: {e}", exc_info=True)
            return FALLBACK_REPLY

        logger.info(
            "LLM reply generated",
            extra={"duration_ms": round((time.monotonic() - started) * 1000)},
        )
        return text
