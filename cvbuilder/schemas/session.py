from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class StageStatus(str, Enum):
    STARTED = "started"
    COLLECTING_PROFESSION = "collecting_profession"
    SELECTING_SECTIONS = "selecting_sections"
    COLLECTING_DETAILS = "collecting_details"
    REVIEW = "review"
    COMPLETED = "completed"


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ChatMessage(CamelModel):
    role: Literal["user", "assistant"]
    content: str
    timestamp: datetime = Field(default_factory=utcnow)


class Session(CamelModel):
    session_id: str
    assistant_id: Optional[str] = None
    thread_id: Optional[str] = None
    profession: Optional[str] = None
    sections: Optional[List[str]] = None
    cv_data: Optional[Dict[str, Any]] = None
    status: StageStatus = StageStatus.STARTED
    completed: bool = False

    @property
    def initialized(self) -> bool:
        return bool(self.assistant_id and self.thread_id)
