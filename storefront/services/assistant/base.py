"""
Assistant Service Abstract Base Class

Defines the contract for the chat assistant. The storefront only relays
messages; the conversation logic lives behind the automation webhook
(or the mock in development).
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional


FALLBACK_REPLY = "I received your message!"
CONNECTION_ERROR_REPLY = (
    "Sorry, I'm having trouble connecting right now. Please try again in a moment."
)


@dataclass
class AssistantReply:
    """
    Result of relaying one chat message.

    Attributes:
        success: Whether the automation answered
        content: Text to show in the chat window (always set)
        error_message: Underlying failure, for logs only
        response_time_ms: Round trip to the automation
    """
    success: bool
    content: str
    error_message: Optional[str] = None
    response_time_ms: float = 0.0


class BaseAssistantService(ABC):
    """
    Abstract base class for assistant services.

    Implementations never raise for delivery problems; they return an
    unsuccessful AssistantReply carrying a user-facing apology instead.
    """

    @property
    @abstractmethod
    def provider_name(self) -> str:
        pass

    @abstractmethod
    async def send_message(self, session_id: str, message: str) -> AssistantReply:
        """
        Relay a user message and return the assistant's answer.

        Args:
            session_id: Conversation id that groups messages of one chat
            message: Non-empty user text
        """
        pass

    @abstractmethod
    async def health_check(self) -> bool:
        pass
