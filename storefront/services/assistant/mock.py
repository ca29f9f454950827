"""
Mock Assistant Service Implementation

Answers chat messages locally without calling the automation webhook.
Used in development mode (ENV_MODE=development).

Behavior:
    - Keyword replies for menu, order and delivery questions
    - Echo-style fallback for anything else
    - Optional simulated latency
"""

import asyncio
import logging
import random

from storefront.services.assistant.base import AssistantReply, BaseAssistantService

logger = logging.getLogger(__name__)


class MockAssistantService(BaseAssistantService):
    """
    Canned-reply assistant.

    Example:
        >>> service = MockAssistantService()
        >>> reply = await service.send_message("session_1_abc", "show me the menu")
        >>> reply.success
        True
    """

    CANNED_REPLIES = [
        (("menu", "food", "dish"), "Our menu has cooked meals and ready-to-cook packs. Browse the tabs to see everything available today."),
        (("order", "status"), "You can follow your orders from the My Orders page once you are logged in."),
        (("deliver", "address"), "We deliver to the address you enter at checkout. Please include a phone number we can reach."),
        (("hello", "hi", "hey"), "Hello! What would you like to eat today?"),
    ]

    def __init__(self, min_latency: float = 0.0, max_latency: float = 0.0):
        self.min_latency = min_latency
        self.max_latency = max_latency
        logger.info("MockAssistantService initialized")

    @property
    def provider_name(self) -> str:
        return "mock"

    async def _simulate_latency(self) -> float:
        latency = random.uniform(self.min_latency, self.max_latency)
        if latency:
            await asyncio.sleep(latency)
        return latency * 1000

    async def send_message(self, session_id: str, message: str) -> AssistantReply:
        latency_ms = await self._simulate_latency()
        lowered = message.lower()

        for keywords, reply in self.CANNED_REPLIES:
            if any(word in lowered for word in keywords):
                content = reply
                break
        else:
            content = f"I received your message: \"{message}\""

        logger.debug(f"Mock: {session_id} -> {content[:40]}")
        return AssistantReply(success=True, content=content, response_time_ms=latency_ms)

    async def health_check(self) -> bool:
        return True
