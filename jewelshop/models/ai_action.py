"""
AIAction: an operation proposed by the assistant, run ONLY after the owner confirms it.

Status flow (forward-only):
    awaiting_confirmation -> executing -> completed | failed

Status is never assigned directly on a loaded row; every move goes through a
conditional UPDATE in agent/state_machine.py.
"""
from sqlalchemy import Column, String, DateTime, Text
from sqlalchemy.sql import func
from sqlalchemy.types import JSON
from jewelshop.db.base import Base, generate_uuid


class AIAction(Base):
    __tablename__ = "ai_actions"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    user_id = Column(String(64), nullable=False, index=True)
    action_type = Column(String(64), nullable=False)  # e.g. create_invoice
    extracted_data = Column(JSON, nullable=True)  # shape depends on action_type
    status = Column(String(32), nullable=False, default="awaiting_confirmation")
    entity_id = Column(String(64), nullable=True)  # id of the record created on success
    error_message = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
    executed_at = Column(DateTime(timezone=True), nullable=True)

    def __repr__(self):
        return f"<AIAction id={self.id} type={self.action_type} status={self.status}>"
