"""
Webhook Client - Outbound calls to Home Assistant webhooks.

Home Assistant exposes automations as webhooks:

    POST {HOMEASSISTANT_URL}/webhook/{webhook_id}
    Content-Type: application/json

    {"area": "office", "turn": "off"}

A 2xx answer (JSON or empty) means the automation was triggered. Anything
else (timeout, refused connection, non-2xx) is a WebhookCallError.
"""

import logging
from typing import Any, Dict, Optional

import httpx

from homebot.core.config import settings

logger = logging.getLogger("homebot.services.webhooks")


class WebhookCallError(Exception):
    """A webhook could not be delivered or was rejected."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class WebhookClient:
    """
    Async client for Home Assistant webhooks.

    Usage:
        client = WebhookClient()
        body = await client.trigger("area_control", {"area": "office", "turn": "off"})
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        secret: Optional[str] = None,
        secret_header: Optional[str] = None,
        timeout: Optional[float] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        """
        Args:
            base_url: Home Assistant API URL (default: settings.HOMEASSISTANT_URL)
            secret: Shared secret sent with every call (default: settings.HOMEASSISTANT_TOKEN)
            secret_header: Header carrying the secret (default: settings.HOMEASSISTANT_SECRET_HEADER)
            timeout: Seconds per call (default: settings.WEBHOOK_TIMEOUT)
            client: Shared httpx client (a short-lived one is opened per call otherwise)
        """
        self.base_url = (base_url or settings.HOMEASSISTANT_URL).rstrip("/")
        self.secret = secret if secret is not None else settings.HOMEASSISTANT_TOKEN
        self.secret_header = secret_header or settings.HOMEASSISTANT_SECRET_HEADER
        self.timeout = timeout or settings.WEBHOOK_TIMEOUT
        self._client = client

    def url_for(self, external_id: str) -> str:
        return f"{self.base_url}/webhook/{external_id}"

    async def trigger(self, external_id: str, payload: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """
        POST the payload to a webhook.

        Returns:
            The decoded JSON body ({} for an empty body, {"text": ...} for plain text)

        Raises:
            WebhookCallError: timeout, connection failure or non-2xx status
        """
        url = self.url_for(external_id)
        headers = {"Content-Type": "application/json"}
        if self.secret:
            headers[self.secret_header] = self.secret

        logger.info(f"Calling webhook {external_id} with {payload}")

        try:
            response = await self._post(url, payload or {}, headers)
        except httpx.TimeoutException:
            raise WebhookCallError(f"Webhook {external_id} timed out after {self.timeout:.0f}s")
        except httpx.HTTPError as e:
            raise WebhookCallError(f"Could not reach Home Assistant: {e}")

        if not response.is_success:
            logger.warning(f"Webhook {external_id} returned HTTP {response.status_code}")
            raise WebhookCallError(
                f"Home Assistant answered HTTP {response.status_code}",
                status_code=response.status_code,
            )

        if not response.content.strip():
            return {}
        try:
            body = response.json()
        except ValueError:
            return {"text": response.text}
        return body if isinstance(body, dict) else {"data": body}

    async def _post(self, url: str, payload: Dict[str, Any], headers: Dict[str, str]) -> httpx.Response:
        if self._client is not None:
            return await self._client.post(url, json=payload, headers=headers, timeout=self.timeout)
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            return await client.post(url, json=payload, headers=headers)


# ---------------------------------------------------------------------------
# SINGLETON INSTANCE
# ---------------------------------------------------------------------------
webhook_client = WebhookClient()
