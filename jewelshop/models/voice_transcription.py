from sqlalchemy import Column, String, Integer, Float, Boolean, DateTime, Text
from sqlalchemy.sql import func
from jewelshop.db.base import Base, generate_uuid


class VoiceTranscription(Base):
    __tablename__ = "voice_transcriptions"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    user_id = Column(String(64), nullable=False, index=True)
    session_id = Column(String(64), nullable=False)
    audio_duration = Column(Float, nullable=True, default=0)
    audio_size = Column(Integer, nullable=False)
    audio_format = Column(String(64), nullable=True)
    original_text = Column(Text, nullable=False)
    detected_language = Column(String(8), nullable=True)  # en | hi | mr | hi-en
    confidence_score = Column(Float, nullable=True)
    needs_translation = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
