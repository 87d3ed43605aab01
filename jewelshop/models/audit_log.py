from sqlalchemy import Column, Integer, String, Boolean, DateTime
from sqlalchemy.sql import func
from sqlalchemy.types import JSON
from jewelshop.db.base import Base


class AuditLogEntry(Base):
    __tablename__ = "audit_logs"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String(64), nullable=True, index=True)
    action = Column(String(64), nullable=False)  # e.g. ai_invoice_create, file_upload
    entity = Column(String(64), nullable=False)  # invoice, customer, file, ai_action...
    entity_id = Column(String(512), nullable=True)
    details = Column("metadata", JSON, nullable=True)
    success = Column(Boolean, nullable=False, default=True)
    request_id = Column(String(64), nullable=True)
    route = Column(String(255), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
