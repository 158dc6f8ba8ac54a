"""
Chat data model — turns, devices, network configuration.

All wire payloads use camelCase keys (the browser client's shape); the
dataclasses here use snake_case. ``from_dict`` / ``to_dict`` are the only
places that know about the wire spelling.
"""

from __future__ import annotations

import json
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any

from netops.core.errors import ProtocolError

USER_MESSAGE = "userMessage"


class Sender(str, Enum):
    """Origin of a chat turn."""

    USER = "user"
    AI = "ai"
    SYSTEM = "system"
    WEBEX = "webex"


class Platform(str, Enum):
    """Notification channels reachable through webhooks."""

    WEBEX = "webex"
    TEAMS = "teams"

    @property
    def display_name(self) -> str:
        return "Webex" if self is Platform.WEBEX else "Microsoft Teams"


def display_time(moment: datetime | None = None) -> str:
    """Render a local wall-clock time the way the client shows it (3:04:05 PM)."""
    moment = moment or datetime.now()
    return moment.strftime("%I:%M:%S %p").lstrip("0")


def new_turn_id(prefix: str) -> str:
    return f"{prefix}-{uuid.uuid4().hex[:12]}"


@dataclass(frozen=True)
class ChatTurn:
    """One message exchanged in a conversation."""

    id: str
    sender: Sender
    text: str
    timestamp: str = ""
    user_id: int | str | None = None
    network_id: int | str | None = None

    @classmethod
    def create(
        cls,
        sender: Sender,
        text: str,
        *,
        prefix: str,
        user_id: int | str | None = None,
        network_id: int | str | None = None,
        id: str | None = None,
        timestamp: str | None = None,
    ) -> ChatTurn:
        return cls(
            id=id or new_turn_id(prefix),
            sender=sender,
            text=text,
            timestamp=timestamp or display_time(),
            user_id=user_id,
            network_id=network_id,
        )

    @classmethod
    def from_dict(cls, data: Any) -> ChatTurn:
        if not isinstance(data, dict):
            raise ProtocolError("chat turn must be an object")
        turn_id = data.get("id")
        text = data.get("text")
        if not isinstance(turn_id, str) or not isinstance(text, str):
            raise ProtocolError("chat turn requires string 'id' and 'text'")
        try:
            sender = Sender(data.get("sender"))
        except ValueError:
            raise ProtocolError(f"unknown sender: {data.get('sender')!r}") from None
        return cls(
            id=turn_id,
            sender=sender,
            text=text,
            timestamp=str(data.get("timestamp", "")),
            user_id=data.get("userId"),
            network_id=data.get("networkId"),
        )

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {
            "id": self.id,
            "sender": self.sender.value,
            "text": self.text,
            "timestamp": self.timestamp,
        }
        if self.user_id is not None:
            out["userId"] = self.user_id
        if self.network_id is not None:
            out["networkId"] = self.network_id
        return out


@dataclass(frozen=True)
class Device:
    """A managed network device from the inventory."""

    serial: str
    name: str = ""
    model: str = ""
    network_id: str = ""

    @classmethod
    def from_dict(cls, data: Any) -> Device:
        if not isinstance(data, dict) or not isinstance(data.get("serial"), str):
            raise ProtocolError("device requires a string 'serial'")
        return cls(
            serial=data["serial"],
            name=str(data.get("name") or ""),
            model=str(data.get("model") or ""),
            network_id=str(data.get("networkId") or ""),
        )


@dataclass(frozen=True)
class NetworkConfiguration:
    """Per-session settings. Each channel field is independently optional."""

    user_id: int | str | None = None
    name: str = ""
    api_key: str = ""
    org_id: str = ""
    id: int | str | None = None
    webex_webhook_url: str | None = None
    teams_webhook_url: str | None = None
    webex_bot_token: str | None = None
    webex_space_id: str | None = None

    @classmethod
    def from_dict(cls, data: Any) -> NetworkConfiguration:
        if not isinstance(data, dict):
            raise ProtocolError("networkConfig must be an object")

        def _opt(key: str) -> str | None:
            # Empty strings come from blank form fields; treat them as unset.
            value = data.get(key)
            return value if isinstance(value, str) and value.strip() else None

        return cls(
            user_id=data.get("userId"),
            name=str(data.get("name") or ""),
            api_key=str(data.get("apiKey") or ""),
            org_id=str(data.get("orgId") or ""),
            id=data.get("id"),
            webex_webhook_url=_opt("webexWebhookUrl"),
            teams_webhook_url=_opt("teamsWebhookUrl"),
            webex_bot_token=_opt("webexBotToken"),
            webex_space_id=_opt("webexSpaceId"),
        )

    def webhook_url_for(self, platform: Platform) -> str | None:
        if platform is Platform.WEBEX:
            return self.webex_webhook_url
        return self.teams_webhook_url

    @property
    def configured_platforms(self) -> list[Platform]:
        return [p for p in Platform if self.webhook_url_for(p)]

    @property
    def can_mirror(self) -> bool:
        return bool(self.webex_bot_token and self.webex_space_id)


@dataclass(frozen=True)
class ConversationContext:
    """Everything the client sends with one turn request."""

    text: str
    history: list[ChatTurn] = field(default_factory=list)
    devices: list[Device] = field(default_factory=list)
    network_config: NetworkConfiguration = field(default_factory=NetworkConfiguration)


def parse_turn_request(raw: str | bytes) -> ConversationContext:
    """Decode an inbound ``userMessage`` frame.

    Raises:
        ProtocolError: on bad JSON, an unknown message type, or a payload
            missing any ConversationContext field.
    """
    try:
        msg = json.loads(raw)
    except (TypeError, ValueError) as e:
        raise ProtocolError(f"invalid JSON: {e}") from e

    if not isinstance(msg, dict) or msg.get("type") != USER_MESSAGE:
        raise ProtocolError("unsupported message type")

    payload = msg.get("payload")
    if not isinstance(payload, dict):
        raise ProtocolError("payload must be an object")

    history = payload.get("chatHistory")
    devices = payload.get("devices")
    if not isinstance(history, list) or not history:
        raise ProtocolError("chatHistory must be a non-empty list")
    if not isinstance(devices, list):
        raise ProtocolError("devices must be a list")
    if "networkConfig" not in payload:
        raise ProtocolError("networkConfig is required")

    return ConversationContext(
        text=str(payload.get("text") or ""),
        history=[ChatTurn.from_dict(item) for item in history],
        devices=[Device.from_dict(item) for item in devices],
        network_config=NetworkConfiguration.from_dict(payload["networkConfig"]),
    )


def system_notice(text: str) -> dict[str, str]:
    """Wire shape of a progress or error notice."""
    return {"sender": Sender.SYSTEM.value, "text": text}
