"""
Notification Service Client

Sends "new follower" notifications to the external notification service.
"""

from typing import Any, Dict

import aiohttp
from loguru import logger


class NotificationError(Exception):
    """The notification service rejected or failed a request."""

    def __init__(self, status: int, reason: str):
        self.status = status
        self.reason = reason
        super().__init__(f"Notification service returned HTTP {status} {reason}")


class NotificationClient:
    """Client for the notification service HTTP API."""

    NEW_FOLLOWER_PATH = "/notify/new-follower"
    NEW_FOLLOWER_TITLE = "You have a new follower!"

    def __init__(self, base_url: str, timeout_seconds: float = 5.0):
        """
        Initialize client.

        Args:
            base_url: Service base URL, e.g. "https://notify.example.com/api".
            timeout_seconds: Upper bound for one request, connect included.
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = aiohttp.ClientTimeout(total=timeout_seconds)

    @staticmethod
    def new_follower_payload(followed_id: int, follower_username: str) -> Dict[str, Any]:
        return {
            "followedId": followed_id,
            "title": NotificationClient.NEW_FOLLOWER_TITLE,
            "body": f"{follower_username} started following you.",
        }

    async def send_new_follower(self, followed_id: int, follower_username: str) -> None:
        """
        Tell `followed_id` that `follower_username` now follows them.

        Raises:
            NotificationError: On a non-2xx response.
            asyncio.TimeoutError: When the request exceeds the timeout.
            aiohttp.ClientError: On connection failures.
        """
        url = f"{self.base_url}{self.NEW_FOLLOWER_PATH}"
        payload = self.new_follower_payload(followed_id, follower_username)

        async with aiohttp.ClientSession(timeout=self.timeout) as session:
            async with session.post(url, json=payload) as resp:
                if resp.status >= 300:
                    raise NotificationError(resp.status, resp.reason or "")

        logger.info(f"New follower notification delivered to user {followed_id}")
