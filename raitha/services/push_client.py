"""HTTP client for the Expo push notification relay."""

import logging
from typing import Any

import httpx

from raitha.config import settings
from raitha.core.exceptions import PushDeliveryError

logger = logging.getLogger(__name__)


class PushClient:
    """Sends push notifications to Expo push tokens."""

    def __init__(self, url: str | None = None, client: httpx.AsyncClient | None = None):
        self.url = url or settings.EXPO_PUSH_URL
        self.client = client

    async def _post(self, payload: dict[str, Any]) -> httpx.Response:
        headers = {
            "Accept": "application/json",
            "Accept-Encoding": "gzip, deflate",
            "Content-Type": "application/json",
        }
        if self.client is not None:
            return await self.client.post(self.url, json=payload, headers=headers)
        async with httpx.AsyncClient(timeout=30.0) as client:
            return await client.post(self.url, json=payload, headers=headers)

    async def send(
        self,
        token: str,
        title: str,
        body: str,
        data: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """Send a single push notification.

        Raises:
            PushDeliveryError: On transport errors or when the relay reports errors
        """
        payload = {
            "to": token,
            "sound": "default",
            "title": title,
            "body": body,
            "data": {**(data or {}), "_displayInForeground": True},
        }

        try:
            response = await self._post(payload)
        except httpx.RequestError as e:
            raise PushDeliveryError(f"Connection error: {e}") from e

        if response.status_code >= 400:
            raise PushDeliveryError(f"Push relay returned {response.status_code}: {response.text}")

        result = response.json()
        errors = result.get("errors") or []
        if errors:
            raise PushDeliveryError(errors[0].get("message", "Unknown push error"))

        logger.debug(f"Push notification accepted for {token[:12]}...")
        return result
