"""Chat data model — turns, devices, network configuration, wire parsing."""

from netops.chat.models import (
    ChatTurn,
    ConversationContext,
    Device,
    NetworkConfiguration,
    Platform,
    Sender,
    parse_turn_request,
    system_notice,
)

__all__ = [
    "ChatTurn",
    "ConversationContext",
    "Device",
    "NetworkConfiguration",
    "Platform",
    "Sender",
    "parse_turn_request",
    "system_notice",
]
