"""
Notification Service — executes backend actions requested by the assistant.

Handles the send_notification directive:
- resolve the channel webhook from the session's NetworkConfiguration
- POST a platform-shaped body (Webex: markdown, Teams: text)
- report a DispatchOutcome the gateway turns into a system notice

Other directive kinds (e.g. update_switch_port) are executed by the frontend
and produce no outcome here. Nothing is retried.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Union

import httpx

from netops.actions.directive import (
    SEND_NOTIFICATION,
    UPDATE_SWITCH_PORT,
    DirectiveParseError,
    DirectiveResult,
    ParsedDirective,
)
from netops.chat.models import NetworkConfiguration, Platform

logger = logging.getLogger(__name__)

ACTION_FAILED_PREFIX = "Failed to execute backend action"


@dataclass(frozen=True)
class DispatchSuccess:
    platform: Platform

    @property
    def notice(self) -> str:
        return f"✅ Success! Notification sent to {self.platform.display_name}."


@dataclass(frozen=True)
class DispatchFailure:
    reason: str

    @property
    def notice(self) -> str:
        return self.reason


DispatchOutcome = Union[DispatchSuccess, DispatchFailure]


def _action_failed(detail: str) -> DispatchFailure:
    return DispatchFailure(f"{ACTION_FAILED_PREFIX}: {detail}")


def build_notification_body(platform: Platform, message: str) -> dict[str, str]:
    if platform is Platform.WEBEX:
        return {"markdown": message}
    return {"text": message}


class NotificationDispatcher:
    """Runs backend-executed directives against the configured webhooks."""

    def __init__(self, http: httpx.AsyncClient) -> None:
        self._http = http

    async def dispatch(
        self, result: DirectiveResult, network_config: NetworkConfiguration
    ) -> DispatchOutcome | None:
        """Execute a decoded directive.

        Returns None when there is nothing to report: no directive, or a
        directive kind the backend does not execute.
        """
        if isinstance(result, DirectiveParseError):
            logger.warning(f"Unparseable action directive: {result.reason}")
            return _action_failed(result.reason)

        if not isinstance(result, ParsedDirective):
            return None

        if result.action == UPDATE_SWITCH_PORT:
            logger.debug("update_switch_port is executed by the frontend")
            return None
        if result.action != SEND_NOTIFICATION:
            logger.debug(f"Directive '{result.action}' is not handled by the backend")
            return None

        return await self._send_notification(result, network_config)

    async def _send_notification(
        self, directive: ParsedDirective, network_config: NetworkConfiguration
    ) -> DispatchOutcome:
        raw_platform = directive.payload.get("platform")
        message = directive.payload.get("message")

        try:
            platform = Platform(raw_platform)
        except ValueError:
            return _action_failed(f"unsupported notification platform {raw_platform!r}")
        if not isinstance(message, str):
            return _action_failed("notification 'message' must be a string")

        webhook_url = network_config.webhook_url_for(platform)
        if not webhook_url:
            return DispatchFailure(
                f"❌ Error! No webhook URL is configured for {platform.display_name}."
            )

        try:
            response = await self._http.post(
                webhook_url, json=build_notification_body(platform, message)
            )
        except httpx.HTTPError as e:
            logger.error(
                f"Notification request to {platform.value} failed: {e}",
                extra={"platform": platform.value},
            )
            return _action_failed(
                f"Failed to send notification to {platform.value}. {str(e) or type(e).__name__}"
            )

        if not response.is_success:
            logger.warning(
                f"Notification rejected by {platform.value} ({response.status_code})",
                extra={"platform": platform.value, "status": response.status_code},
            )
            return _action_failed(
                f"Failed to send notification to {platform.value}. "
                f"Status: {response.status_code}. Details: {response.text}"
            )

        logger.info(
            f"Notification sent to {platform.value}",
            extra={"platform": platform.value, "status": response.status_code},
        )
        return DispatchSuccess(platform)
