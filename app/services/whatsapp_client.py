"""HTTP client for the WhatsApp Cloud API."""

import logging
from typing import Any

import httpx

from app.config import settings
from app.core.phone import digits_only
from app.schemas.message import AudioContent, ImageContent, TextContent
from app.services.retry import RetryOutcome, call_with_retry

logger = logging.getLogger(__name__)


class WhatsAppSendError(Exception):
    """Raised when the Cloud API rejects a message or cannot be reached.

    ``status_code`` is the HTTP status of the response, or None for
    network errors.
    """

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class WhatsAppCloudClient:
    """HTTP client for sending messages from one WhatsApp Business phone number."""

    def __init__(
        self,
        phone_number_id: str,
        access_token: str,
        *,
        base_url: str | None = None,
        api_version: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.phone_number_id = phone_number_id
        self.access_token = access_token
        self.base_url = (base_url or settings.WHATSAPP_API_BASE_URL).rstrip("/")
        self.api_version = api_version or settings.WHATSAPP_API_VERSION
        self.timeout = timeout if timeout is not None else settings.WHATSAPP_API_TIMEOUT
        self.transport = transport

    @property
    def messages_url(self) -> str:
        return f"{self.base_url}/{self.api_version}/{self.phone_number_id}/messages"

    @staticmethod
    def build_payload(
        to: str, content: TextContent | ImageContent | AudioContent
    ) -> dict[str, Any]:
        """Build the Cloud API request body for one message."""
        payload: dict[str, Any] = {
            "messaging_product": "whatsapp",
            "recipient_type": "individual",
            "to": digits_only(to),
            "type": content.type,
        }

        if isinstance(content, TextContent):
            payload["text"] = {"body": content.body}
            return payload

        media: dict[str, Any] = {}
        if content.media_id:
            media["id"] = content.media_id
        else:
            media["link"] = content.link
        if isinstance(content, ImageContent) and content.caption:
            media["caption"] = content.caption
        payload[content.type] = media
        return payload

    async def _request(self, method: str, url: str, **kwargs) -> httpx.Response:
        """Make an HTTP request, turning transport failures into WhatsAppSendError."""
        headers = kwargs.pop("headers", {})
        headers["Authorization"] = f"Bearer {self.access_token}"

        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            try:
                return await client.request(method, url, headers=headers, **kwargs)
            except httpx.RequestError as e:
                logger.error(f"WhatsApp API connection error: {e}")
                raise WhatsAppSendError(f"Connection error: {e}") from e

    async def send_message(
        self, to: str, content: TextContent | ImageContent | AudioContent
    ) -> str:
        """Send one message and return the provider message id.

        Raises:
            WhatsAppSendError: On a non-2xx response or a network failure
        """
        payload = self.build_payload(to, content)
        logger.info(
            f"WhatsApp API request: POST {self.messages_url} "
            f"(type={content.type}, to=...{payload['to'][-4:]})"
        )

        response = await self._request("POST", self.messages_url, json=payload)
        logger.info(f"WhatsApp API response: {response.status_code}")

        try:
            data = response.json()
        except ValueError:
            data = None

        if response.status_code >= 400:
            message = _error_message(data, response)
            logger.error(f"WhatsApp API error: {response.status_code} - {message}")
            raise WhatsAppSendError(message, response.status_code)

        messages = data.get("messages") if isinstance(data, dict) else None
        if messages and isinstance(messages[0], dict) and messages[0].get("id"):
            return str(messages[0]["id"])
        return "unknown"

    async def send_with_retry(
        self,
        to: str,
        content: TextContent | ImageContent | AudioContent,
        *,
        max_attempts: int | None = None,
        base_delay_ms: int | None = None,
        sleep=None,
    ) -> RetryOutcome[str]:
        """Send a message through ``call_with_retry``."""
        kwargs = {}
        if sleep is not None:
            kwargs["sleep"] = sleep
        return await call_with_retry(
            lambda: self.send_message(to, content),
            max_attempts=max_attempts or settings.WHATSAPP_SEND_MAX_ATTEMPTS,
            base_delay_ms=(
                base_delay_ms
                if base_delay_ms is not None
                else settings.WHATSAPP_SEND_RETRY_BASE_DELAY_MS
            ),
            **kwargs,
        )


def _error_message(data: Any, response: httpx.Response) -> str:
    """Pick the most specific error text the response offers."""
    if isinstance(data, dict):
        error = data.get("error")
        if isinstance(error, dict) and error.get("message"):
            return str(error["message"])
    if response.text:
        return response.text
    return f"HTTP {response.status_code}"
