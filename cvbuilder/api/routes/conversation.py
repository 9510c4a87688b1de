from fastapi import APIRouter, Depends

from ...api.deps import enforce_rate_limit, get_conversation_service
from ...schemas.api import (
    ConversationStartRequest,
    ConversationStartResponse,
    MessageRequest,
    MessageResponse,
)
from ...services.conversation_service import ConversationService

router = APIRouter(prefix="/api/conversation", tags=["Conversation"])


@router.post("/start", response_model=ConversationStartResponse)
def start_conversation(
    payload: ConversationStartRequest,
    service: ConversationService = Depends(get_conversation_service),
):
    assistant_id, thread_id = service.start_conversation(
        payload.session_id,
        payload.credential,
    )
    return ConversationStartResponse(assistant_id=assistant_id, thread_id=thread_id)


# Sync handler: FastAPI runs it in the threadpool while the run is polled
@router.post(
    "/message",
    response_model=MessageResponse,
    dependencies=[Depends(enforce_rate_limit)],
)
def send_message(
    payload: MessageRequest,
    service: ConversationService = Depends(get_conversation_service),
):
    outcome = service.send_message(
        payload.session_id,
        payload.credential,
        payload.message,
    )
    return MessageResponse(
        messages=outcome.messages,
        status=outcome.status,
        cv_data=outcome.cv_data,
        completed=outcome.completed,
    )
