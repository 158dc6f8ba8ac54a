"""
Services Package — the work done for each turn.

- ReplyService: assistant reply text (with fallback on provider failure)
- NotificationDispatcher: backend-executed actions (webhook notifications)
- WebexMirror: best-effort copy of replies into a Webex room
"""

from netops.services.notification_service import (
    DispatchFailure,
    DispatchOutcome,
    DispatchSuccess,
    NotificationDispatcher,
)
from netops.services.reply_service import FALLBACK_REPLY, ReplyService
from netops.services.webex_mirror import WebexMirror

__all__ = [
    "DispatchFailure",
    "DispatchOutcome",
    "DispatchSuccess",
    "FALLBACK_REPLY",
    "NotificationDispatcher",
    "ReplyService",
    "WebexMirror",
]
