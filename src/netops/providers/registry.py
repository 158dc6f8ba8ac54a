"""
Provider Registry — pick the LLM provider by config.

Add a new provider? Just add an elif.
"""

from __future__ import annotations

import netops.core.config as config_module
from netops.providers.base import LLMProvider


def get_llm_provider() -> LLMProvider:
    provider = config_module.config.llm.provider.lower()
    if provider == "openai":
        from netops.providers.openai_llm import OpenAILLMProvider

        return OpenAILLMProvider()
    raise ValueError(f"Unknown LLM provider: {provider}")
