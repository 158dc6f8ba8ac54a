"""
Webex Mirror — copy plain assistant replies into a Webex room.

Best effort only: failures are logged and dropped. The gateway schedules
mirror_in_background() and never awaits the outcome.
"""

from __future__ import annotations

import asyncio
import logging

import httpx

logger = logging.getLogger(__name__)


class WebexMirror:
    """Posts markdown messages through the Webex messages API."""

    def __init__(self, http: httpx.AsyncClient, api_base: str) -> None:
        self._http = http
        self._messages_url = f"{api_base.rstrip('/')}/messages"
        # Strong refs so pending tasks aren't garbage-collected mid-flight.
        self._tasks: set[asyncio.Task] = set()

    async def mirror(self, bot_token: str, room_id: str, message: str) -> None:
        try:
            response = await self._http.post(
                self._messages_url,
                headers={"Authorization": f"Bearer {bot_token}"},
                json={"roomId": room_id, "markdown": message},
            )
            if not response.is_success:
                logger.error(
                    f"Webex API error ({response.status_code}): {response.text[:300]}"
                )
                return
            logger.info("Message mirrored to Webex")
        except Exception as e:
            logger.error(f"Failed to mirror message to Webex: {e}", exc_info=True)

    def mirror_in_background(
        self, bot_token: str, room_id: str, message: str
    ) -> asyncio.Task:
        task = asyncio.create_task(self.mirror(bot_token, room_id, message))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def drain(self) -> None:
        """Wait for in-flight mirror posts (used on shutdown)."""
        if self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
