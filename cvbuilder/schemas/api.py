from typing import Any, Dict, List, Optional

from pydantic import AliasChoices, Field

from .session import CamelModel, ChatMessage, StageStatus


class SessionCreateResponse(CamelModel):
    session_id: str


class ConversationStartRequest(CamelModel):
    session_id: str = Field(..., min_length=1)
    credential: str = Field(
        ...,
        min_length=1,
        validation_alias=AliasChoices("credential", "apiKey"),
    )


class ConversationStartResponse(CamelModel):
    assistant_id: str
    thread_id: str


class MessageRequest(ConversationStartRequest):
    message: str = Field(..., min_length=1)


class MessageResponse(CamelModel):
    messages: List[ChatMessage]
    status: StageStatus
    cv_data: Optional[Dict[str, Any]] = None
    completed: bool


class MessagesResponse(CamelModel):
    messages: List[ChatMessage]


class GeneratePdfRequest(CamelModel):
    session_id: str = Field(..., min_length=1)


class GeneratePdfResponse(CamelModel):
    pdf_url: str
