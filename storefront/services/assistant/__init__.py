"""
Assistant Service Factory

Usage:
    from storefront.services.assistant import get_assistant_service

    assistant = get_assistant_service()
    reply = await assistant.send_message(session.chat_session_id, "What's on the menu?")

Environment Switching:
    - ENV_MODE=development → MockAssistantService (no webhook calls)
    - ENV_MODE=staging/production → WebhookAssistantService
"""

import logging
from functools import lru_cache

from storefront.core.config import get_settings
from storefront.services.assistant.base import (
    AssistantReply,
    BaseAssistantService,
    CONNECTION_ERROR_REPLY,
    FALLBACK_REPLY,
)
from storefront.services.assistant.mock import MockAssistantService
from storefront.services.assistant.webhook import WebhookAssistantService

logger = logging.getLogger(__name__)


@lru_cache()
def get_assistant_service() -> BaseAssistantService:
    """
    Get the configured assistant service instance.

    Raises:
        ValueError: If real services are enabled but no webhook URL is set
    """
    settings = get_settings()

    if settings.is_development:
        logger.info("Assistant Service: Using MockAssistantService (development mode)")
        return MockAssistantService()
    else:
        logger.info(
            f"Assistant Service: Using WebhookAssistantService "
            f"({settings.env_mode.value} mode)"
        )
        return WebhookAssistantService(
            webhook_url=settings.assistant_webhook_url,
            timeout=settings.webhook_timeout_seconds,
        )


def reset_assistant_service() -> None:
    """Clear the cached assistant service instance."""
    get_assistant_service.cache_clear()
    logger.debug("Assistant service cache cleared")


def greeting_text() -> str:
    settings = get_settings()
    return settings.assistant_greeting.format(kitchen=settings.kitchen_name)


__all__ = [
    "get_assistant_service",
    "reset_assistant_service",
    "greeting_text",
    "AssistantReply",
    "BaseAssistantService",
    "MockAssistantService",
    "WebhookAssistantService",
    "CONNECTION_ERROR_REPLY",
    "FALLBACK_REPLY",
]
