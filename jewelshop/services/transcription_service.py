"""Voice transcription: language handling and confidence on top of Whisper."""
import logging
import re
from dataclasses import dataclass
from typing import Optional

from jewelshop.ai.prompts import TRANSCRIPTION_CONTEXT_PROMPT

logger = logging.getLogger(__name__)

SUPPORTED_LANGUAGES = ("en", "hi", "mr", "hi-en")

# Whisper has no Hinglish code; Hindi decodes it best
_WHISPER_CODES = {"en": "en", "hi": "hi", "mr": "mr", "hi-en": "hi"}

# verbose_json reports either ISO codes or lowercase language names
_WHISPER_NAMES = {"english": "en", "hindi": "hi", "marathi": "mr"}

_LATIN_WORD = re.compile(r"[a-zA-Z]{3,}")
_DEVANAGARI = re.compile(r"[\u0900-\u097F]")


@dataclass
class TranscriptionResult:
    text: str
    detected_language: str
    confidence: float
    needs_translation: bool


def detect_language(text: str, whisper_language: Optional[str]) -> str:
    """Map Whisper's guess to one of SUPPORTED_LANGUAGES, spotting Hinglish from the script mix."""
    lang = (whisper_language or "").strip().lower()
    lang = _WHISPER_NAMES.get(lang, lang)
    if lang == "en":
        return "en"
    if lang == "hi":
        has_latin = bool(_LATIN_WORD.search(text))
        has_devanagari = bool(_DEVANAGARI.search(text))
        if has_latin and has_devanagari:
            return "hi-en"
        if has_latin:
            return "en"
        return "hi"
    if lang == "mr":
        return "mr"
    return "en"


def estimate_confidence(text: str) -> float:
    """Whisper gives no score; treat inaudible markers, ellipses or tiny output as uncertain."""
    lowered = text.lower()
    uncertain = "[inaudible]" in lowered or "..." in lowered or len(lowered) < 5
    return 0.7 if uncertain else 0.95


def transcribe_audio(transcriber, content: bytes, filename: str, language: Optional[str] = None) -> TranscriptionResult:
    raw_text, whisper_language = transcriber.transcribe(
        content,
        filename,
        language=_WHISPER_CODES.get(language) if language else None,
        prompt=TRANSCRIPTION_CONTEXT_PROMPT,
    )
    text = (raw_text or "").strip()
    detected = detect_language(text, whisper_language)
    result = TranscriptionResult(
        text=text,
        detected_language=detected,
        confidence=estimate_confidence(text),
        needs_translation=detected != "en",
    )
    logger.info(f"Transcribed {len(content)} bytes: language={detected}, confidence={result.confidence}")
    return result
