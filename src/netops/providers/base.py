"""
Provider base class — the boundary to the text-generation service.

Implementations turn (system instruction, ordered turns) into reply text.
They raise on failure; degrading to an apology is the ReplyService's job.
"""

from __future__ import annotations

from abc import ABC, abstractmethod


class LLMProvider(ABC):
    """Language model provider interface."""

    @abstractmethod
    async def start(self) -> None:
        ...

    @abstractmethod
    async def stop(self) -> None:
        ...

    @abstractmethod
    async def generate(
        self,
        system_instruction: str,
        turns: list[dict[str, str]],
    ) -> str:
        """Return the full generated text for one request."""
        ...

    async def health_check(self) -> dict:
        return {"provider": self.__class__.__name__, "status": "unknown"}
