"""
OpenAI-compatible LLM Provider.

Talks to any chat-completions endpoint through the OpenAI SDK. The default
base_url is Gemini's OpenAI-compatible surface, so the stock deployment runs
gemini-2.5-flash without a second SDK.
"""

from __future__ import annotations

import logging

from openai import AsyncOpenAI

import netops.core.config as config_module
from netops.providers.base import LLMProvider

logger = logging.getLogger(__name__)


class OpenAILLMProvider(LLMProvider):
    def __init__(self):
        self.client: AsyncOpenAI | None = None

    async def start(self) -> None:
        if self.client:
            return

        llm = config_module.config.llm
        client_kwargs: dict = {"api_key": llm.api_key, "timeout": llm.timeout}
        if llm.base_url:
            client_kwargs["base_url"] = llm.base_url
        self.client = AsyncOpenAI(**client_kwargs)
        logger.info(f"LLM ready (model={llm.model}, base_url={llm.base_url})")

    async def stop(self) -> None:
        if self.client:
            await self.client.close()
        self.client = None

    async def generate(
        self,
        system_instruction: str,
        turns: list[dict[str, str]],
    ) -> str:
        if not self.client:
            raise RuntimeError("LLM provider not started")

        messages = [{"role": "system", "content": system_instruction}, *turns]
        response = await self.client.chat.completions.create(
            model=config_module.config.llm.model,
            messages=messages,
        )

        if not response.choices:
            raise ValueError("LLM response has no choices")
        text = response.choices[0].message.content
        if not text:
            raise ValueError("LLM response has no text")
        return text

    async def health_check(self) -> dict:
        return {
            "provider": "openai",
            "model": config_module.config.llm.model,
            "status": "ready" if self.client else "not_started",
        }
