"""
Conversation Formatter — chat history in, provider request out.

Pure functions, no I/O:
1. build_system_instruction: device inventory + configured channels + the
   action template the assistant uses to request work
2. format_history: drop notices, external-channel turns and intro messages
3. build_request: prior context plus the triggering message, verbatim, last
"""

from __future__ import annotations

import json
from typing import Sequence

from netops.chat.models import ChatTurn, Device, NetworkConfiguration, Sender

INTRO_ID_PREFIX = "ai-intro-"

_EXCLUDED_SENDERS = frozenset({Sender.SYSTEM, Sender.WEBEX})

ACTION_TEMPLATE = """When a user wants to perform an action, guide them to provide all necessary information.

**ACTION: Update Switch Port (Handled by Frontend)**
If the user confirms, respond with a JSON object in <execute_action> tags. The frontend will execute this.
Example: <execute_action>{"action": "update_switch_port", "payload": { "serial": "SERIAL", "portId": "ID", "type": "access", "vlan": 100 }}</execute_action>

**ACTION: Send Notification (Handled by Backend)**
If the user confirms, respond with a JSON object in <execute_action> tags. The backend will execute this.
Example: <execute_action>{"action": "send_notification", "payload": { "platform": "webex", "message": "This is a test." }}</execute_action>

Summarize the action and ask for confirmation before generating the <execute_action> tag. Do not add any other text with the action tag."""


def build_system_instruction(
    devices: Sequence[Device], network_config: NetworkConfiguration
) -> str:
    """Assemble the system instruction. Same inputs, same string."""
    if devices:
        inventory = json.dumps(
            [{"serial": d.serial, "name": d.name, "model": d.model} for d in devices],
            indent=2,
        )
        device_list = f"Here is the list of Meraki devices discovered: {inventory}"
    else:
        device_list = "No Meraki devices have been loaded."

    platforms = [p.display_name for p in network_config.configured_platforms]
    if platforms:
        notification_info = f"You can send notifications to: {', '.join(platforms)}."
    else:
        notification_info = "Notification capabilities are not configured."

    return (
        "You are NetOps AI. Your primary goal is to help users manage their "
        "Meraki network devices.\n"
        f"{device_list}\n"
        f"{notification_info}\n\n"
        f"{ACTION_TEMPLATE}"
    )


def _is_context_turn(turn: ChatTurn) -> bool:
    return turn.sender not in _EXCLUDED_SENDERS and not turn.id.startswith(
        INTRO_ID_PREFIX
    )


def format_history(history: Sequence[ChatTurn]) -> list[dict[str, str]]:
    """Map operator/assistant turns to provider messages, preserving order."""
    return [
        {
            "role": "user" if turn.sender is Sender.USER else "assistant",
            "content": turn.text,
        }
        for turn in history
        if _is_context_turn(turn)
    ]


def build_request(
    history: Sequence[ChatTurn],
    devices: Sequence[Device],
    network_config: NetworkConfiguration,
) -> tuple[str, list[dict[str, str]]]:
    """Return (system_instruction, ordered turns) for one AI call.

    The last history turn is always sent as the final user turn, even if
    format_history would have filtered it out.
    """
    if not history:
        raise ValueError("history must contain the triggering turn")

    turns = format_history(history[:-1])
    turns.append({"role": "user", "content": history[-1].text})
    return build_system_instruction(devices, network_config), turns
