from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field, field_validator

MAX_MESSAGE_LENGTH = 2000


class ChatRequest(BaseModel):
    message: Any = Field(default=None, validate_default=True)
    sessionId: Optional[str] = None

    @field_validator("message", mode="before")
    @classmethod
    def message_text(cls, v):
        if not v or not isinstance(v, str):
            raise ValueError("Invalid message")
        if len(v) > MAX_MESSAGE_LENGTH:
            raise ValueError("Message too long")
        return v


class ChatMessageResponse(BaseModel):
    id: str
    session_id: str
    role: str
    content: str
    metadata: Optional[Dict[str, Any]] = Field(default=None, validation_alias="message_metadata")
    tokens_used: Optional[int] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ChatSessionResponse(BaseModel):
    id: str
    title: str
    is_active: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True
