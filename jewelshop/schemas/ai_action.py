from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field, field_validator

from jewelshop.schemas.common import require_text


class ActionProposal(BaseModel):
    """Body of POST /ai/actions. extracted_data is checked by the executor's own schema."""
    action_type: Optional[str] = Field(default=None, validate_default=True)
    extracted_data: Dict[str, Any] = {}

    @field_validator("action_type", mode="before")
    @classmethod
    def type_required(cls, v):
        return require_text(v, "Action type is required")


class ExecuteActionRequest(BaseModel):
    actionId: Optional[str] = Field(default=None, validate_default=True)

    @field_validator("actionId", mode="before")
    @classmethod
    def id_required(cls, v):
        return require_text(v, "Action ID is required")


class AIActionResponse(BaseModel):
    id: str
    user_id: str
    action_type: str
    extracted_data: Optional[Dict[str, Any]] = None
    status: str
    entity_id: Optional[str] = None
    error_message: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    executed_at: Optional[datetime] = None

    class Config:
        from_attributes = True
