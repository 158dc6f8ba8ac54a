"""
Action directives embedded in AI replies.

The assistant requests work by wrapping a JSON object in
<execute_action>...</execute_action>. extract() isolates the first such
block and decodes it into one of three variants:

    NoDirective            — no markup in the reply
    ParsedDirective        — markup with a valid {"action": ..., "payload": {...}}
    DirectiveParseError    — markup present but the JSON is unusable

extract() never raises; a bad payload is a value the dispatcher reports.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass, field
from typing import Any, Union

DIRECTIVE_PATTERN = re.compile(r"<execute_action>([\s\S]*?)</execute_action>")

SEND_NOTIFICATION = "send_notification"
UPDATE_SWITCH_PORT = "update_switch_port"


@dataclass(frozen=True)
class NoDirective:
    pass


@dataclass(frozen=True)
class ParsedDirective:
    action: str
    payload: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class DirectiveParseError:
    reason: str


DirectiveResult = Union[NoDirective, ParsedDirective, DirectiveParseError]


def has_directive(text: str) -> bool:
    return DIRECTIVE_PATTERN.search(text) is not None


def extract(text: str) -> DirectiveResult:
    """Decode the first directive in ``text``; later ones are ignored."""
    match = DIRECTIVE_PATTERN.search(text)
    if match is None:
        return NoDirective()

    body = match.group(1).strip()
    if not body:
        return DirectiveParseError("action block is empty")

    try:
        decoded = json.loads(body)
    except json.JSONDecodeError as e:
        return DirectiveParseError(f"invalid action JSON: {e.msg}")

    if not isinstance(decoded, dict):
        return DirectiveParseError("action block must be a JSON object")

    action = decoded.get("action")
    if not isinstance(action, str) or not action:
        return DirectiveParseError("action block has no 'action' name")

    payload = decoded.get("payload", {})
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        return DirectiveParseError("action 'payload' must be a JSON object")

    return ParsedDirective(action=action, payload=payload)
