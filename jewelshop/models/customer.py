from sqlalchemy import Column, String, Text, DateTime
from sqlalchemy.sql import func
from jewelshop.db.base import Base, generate_uuid


class Customer(Base):
    __tablename__ = "customers"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    user_id = Column(String(64), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=True)
    phone = Column(String(64), nullable=True)
    address = Column(Text, nullable=True)
    notes = Column(Text, nullable=True)
    identity_type = Column(String(32), nullable=True)  # pan_card | aadhaar_card | others | none
    identity_reference = Column(String(128), nullable=True)
    identity_doc = Column(String(512), nullable=True)  # storage path in identity_docs bucket
    referred_by = Column(String(255), nullable=True)
    referral_notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
