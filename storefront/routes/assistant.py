"""
Assistant chat endpoints. Messages are relayed under the caller's
session chat id so the automation can keep conversation context.
"""

from fastapi import APIRouter, Depends

from storefront.models import AuthSession
from storefront.routes.deps import require_session
from storefront.schemas import ChatRequest, ChatResponse, GreetingResponse
from storefront.services.assistant import (
    BaseAssistantService,
    get_assistant_service,
    greeting_text,
)

router = APIRouter(prefix="/api/assistant", tags=["Assistant"])


@router.get("/greeting", response_model=GreetingResponse)
async def greeting() -> GreetingResponse:
    return GreetingResponse(content=greeting_text())


@router.post("/chat", response_model=ChatResponse, summary="Send Chat Message")
async def chat(
    request: ChatRequest,
    session: AuthSession = Depends(require_session),
    assistant: BaseAssistantService = Depends(get_assistant_service),
) -> ChatResponse:
    """
    Relay one message.

    Delivery failures still answer 200 with ``success=false`` and an
    apology the chat window can show as the assistant's reply.
    """
    reply = await assistant.send_message(session.chat_session_id, request.message)
    return ChatResponse(
        success=reply.success,
        content=reply.content,
        session_id=session.chat_session_id,
    )
