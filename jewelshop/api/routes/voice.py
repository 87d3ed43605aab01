"""Voice input: speech-to-text for the assistant."""
import logging

from fastapi import APIRouter, Depends, File, Form, UploadFile
from sqlalchemy.orm import Session

from jewelshop.ai.groq_client import AIServiceBusy, AIServiceUnavailable
from jewelshop.api.deps import get_db, get_current_user_id, get_transcriber, get_request_id
from jewelshop.core.audit import AuditLog
from jewelshop.core.config import settings
from jewelshop.core.exceptions import BusinessError
from jewelshop.models.voice_transcription import VoiceTranscription
from jewelshop.services.transcription_service import SUPPORTED_LANGUAGES, transcribe_audio

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/voice/transcribe")
async def transcribe(
    audio: UploadFile = File(None),
    session_id: str = Form(None, alias="sessionId"),
    language: str = Form(None),
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
    transcriber=Depends(get_transcriber),
    request_id: str = Depends(get_request_id),
):
    if audio is None or not session_id:
        raise BusinessError.bad_request("Audio file and sessionId are required")
    if language and language not in SUPPORTED_LANGUAGES:
        raise BusinessError.bad_request(
            f"Unsupported language: {language}. Supported: {', '.join(SUPPORTED_LANGUAGES)}"
        )

    too_large = "Audio file too large. Maximum size is 25MB."
    if audio.size is not None and audio.size > settings.MAX_AUDIO_BYTES:
        raise BusinessError.bad_request(too_large)
    content = await audio.read()
    if len(content) > settings.MAX_AUDIO_BYTES:
        raise BusinessError.bad_request(too_large)
    if not content:
        raise BusinessError.bad_request("Audio file is empty")

    try:
        result = transcribe_audio(transcriber, content, audio.filename or "recording.webm", language)
    except AIServiceBusy:
        raise BusinessError.rate_limit_exceeded("Speech service is busy. Please try again in a moment.")
    except AIServiceUnavailable as e:
        logger.warning(f"Transcription unavailable for user {user_id}: {e}")
        raise BusinessError.service_unavailable("Voice transcription is temporarily unavailable. Please try again later.")

    if not result.text:
        raise BusinessError.bad_request("No speech detected in the recording")

    record = VoiceTranscription(
        user_id=user_id,
        session_id=session_id,
        audio_size=len(content),
        audio_format=audio.content_type,
        original_text=result.text,
        detected_language=result.detected_language,
        confidence_score=result.confidence,
        needs_translation=result.needs_translation,
    )
    db.add(record)
    db.commit()
    db.refresh(record)

    AuditLog.record(user_id, "voice_transcription", "voice_transcription", record.id,
                    {"language": result.detected_language, "size": len(content)},
                    request_id=request_id, route="/ai/voice/transcribe")

    return {
        "success": True,
        "transcription": {
            "id": record.id,
            "text": result.text,
            "detectedLanguage": result.detected_language,
            "confidence": result.confidence,
            "needsTranslation": result.needs_translation,
        },
    }
