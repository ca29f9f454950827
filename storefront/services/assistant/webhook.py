"""
Webhook Assistant Service Implementation

Relays chat messages to the workflow-automation webhook.

Request (JSON POST):
    {"sessionId": "session_...", "message": "...", "timestamp": "2024-01-01T12:00:00+00:00"}

Response:
    JSON body whose ``data`` or ``message`` field is the reply text.
    A 2xx response without a non-empty string in either field gets a
    generic acknowledgement.
"""

import logging
from datetime import datetime, timezone
from typing import Optional

import httpx

from storefront.services.assistant.base import (
    AssistantReply,
    BaseAssistantService,
    CONNECTION_ERROR_REPLY,
    FALLBACK_REPLY,
)

logger = logging.getLogger(__name__)


class WebhookAssistantService(BaseAssistantService):
    """
    Assistant backed by an HTTP automation.

    Args:
        webhook_url: Automation endpoint
        timeout: Seconds before the call is abandoned
        transport: Optional httpx transport (tests pass a MockTransport)
    """

    def __init__(
        self,
        webhook_url: str,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        if not webhook_url:
            raise ValueError("ASSISTANT_WEBHOOK_URL not configured.")

        self.webhook_url = webhook_url
        self.timeout = timeout
        self.transport = transport
        logger.info(f"WebhookAssistantService initialized ({webhook_url})")

    @property
    def provider_name(self) -> str:
        return "webhook"

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self.timeout, transport=self.transport)

    @staticmethod
    def _extract_reply(response: httpx.Response) -> str:
        try:
            body = response.json()
        except ValueError:
            return FALLBACK_REPLY

        if not isinstance(body, dict):
            return FALLBACK_REPLY

        for field in ("data", "message"):
            value = body.get(field)
            if isinstance(value, str) and value:
                return value
        return FALLBACK_REPLY

    async def send_message(self, session_id: str, message: str) -> AssistantReply:
        start_time = datetime.now()
        payload = {
            "sessionId": session_id,
            "message": message,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }

        try:
            async with self._client() as client:
                response = await client.post(self.webhook_url, json=payload)
                response.raise_for_status()
        except httpx.HTTPError as e:
            elapsed = (datetime.now() - start_time).total_seconds() * 1000
            logger.error(f"Assistant webhook failed for {session_id}: {e}")
            return AssistantReply(
                success=False,
                content=CONNECTION_ERROR_REPLY,
                error_message=str(e),
                response_time_ms=elapsed,
            )

        elapsed = (datetime.now() - start_time).total_seconds() * 1000
        content = self._extract_reply(response)
        logger.debug(f"Assistant replied to {session_id} in {elapsed:.0f}ms")
        return AssistantReply(success=True, content=content, response_time_ms=elapsed)

    async def health_check(self) -> bool:
        # The automation has no ping endpoint; a configured URL is all we can check
        return bool(self.webhook_url)
