from fastapi import APIRouter, Depends, Query

from ...api.deps import get_conversation_service
from ...schemas.api import MessagesResponse, SessionCreateResponse
from ...schemas.session import Session
from ...services.conversation_service import ConversationService

router = APIRouter(prefix="/api/session", tags=["Session"])


@router.post("", response_model=SessionCreateResponse)
def create_session(service: ConversationService = Depends(get_conversation_service)):
    return SessionCreateResponse(session_id=service.create_session())


@router.get("", response_model=Session)
def get_session(
    session_id: str = Query(..., alias="sessionId", min_length=1),
    service: ConversationService = Depends(get_conversation_service),
):
    return service.get_session(session_id)


@router.get("/{session_id}/messages", response_model=MessagesResponse)
def get_session_messages(
    session_id: str,
    service: ConversationService = Depends(get_conversation_service),
):
    return MessagesResponse(messages=service.get_messages(session_id))
