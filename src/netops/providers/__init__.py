"""
NetOps Providers — the text-generation boundary.

LLMProvider defines the contract; concrete implementations live alongside.
Swap providers by changing NETOPS_LLM_PROVIDER.
"""

from netops.providers.base import LLMProvider
from netops.providers.registry import get_llm_provider

__all__ = [
    "LLMProvider",
    "get_llm_provider",
]
