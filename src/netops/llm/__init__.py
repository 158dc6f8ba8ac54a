"""
LLM Package — prompt construction for the NetOps assistant.

The formatter is provider-agnostic: turns are plain {"role", "content"}
dicts and the system instruction travels separately.
"""

from netops.llm.formatter import (
    build_request,
    build_system_instruction,
    format_history,
)

__all__ = [
    "build_request",
    "build_system_instruction",
    "format_history",
]
