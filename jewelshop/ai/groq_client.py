"""
Groq API clients for the shop assistant.

GroqChatClient     - chat completions for POST /ai/chat
GroqTranscriber    - Whisper speech-to-text for POST /ai/voice/transcribe
GroqBillReader     - vision model that reads supplier bills for POST /ai/extract-bill

No client touches the database. Errors surface as AIServiceBusy
(provider rate limit, HTTP 429) or AIServiceUnavailable (anything else,
HTTP 503) so routes can map them without knowing the SDK.
"""

import base64
import json
import logging
import time
from typing import List, Optional, Tuple

from groq import Groq, APIError, APITimeoutError, RateLimitError

from jewelshop.ai.prompts import BILL_EXTRACTION_PROMPT, BILL_EXTRACTION_USER_TEXT
from jewelshop.core.config import settings

# NEVER log API keys
logger = logging.getLogger(__name__)


class AIServiceBusy(Exception):
    """Provider is rate limiting us."""


class AIServiceUnavailable(Exception):
    """Provider unreachable, misconfigured or returned an error."""


class UnreadableResponse(Exception):
    """Provider answered, but not with the structure we asked for."""


def _build_client() -> Optional[Groq]:
    if not settings.GROQ_API_KEY:
        logger.warning(
            "GROQ_API_KEY not found in environment. "
            "AI chat, voice transcription and bill reading are DISABLED. "
            "Add your key to the .env file."
        )
        return None
    return Groq(api_key=settings.GROQ_API_KEY)


class GroqChatClient:
    """
    Chat completions for the shop assistant.

    - Model: settings.CHAT_MODEL (llama-3.3-70b-versatile by default)
    - Temperature 0.7: conversational answers, not extraction
    - Max tokens 1000
    - Retries: timeouts only, with exponential backoff
    """

    TEMPERATURE = 0.7
    MAX_TOKENS = 1000

    def __init__(self, client: Optional[Groq] = None, model: Optional[str] = None):
        self.client = client if client is not None else _build_client()
        self.model = model or settings.CHAT_MODEL

    def is_available(self) -> bool:
        return self.client is not None

    def complete(self, messages: List[dict], max_retries: int = 2) -> Tuple[str, int]:
        """
        Send the conversation and return (reply text, total tokens used).

        Args:
            messages: [{"role": "system" | "user" | "assistant", "content": str}, ...]
        """
        if not self.is_available():
            raise AIServiceUnavailable("AI assistant is not configured")

        for attempt in range(max_retries + 1):
            try:
                response = self.client.chat.completions.create(
                    model=self.model,
                    messages=messages,
                    temperature=self.TEMPERATURE,
                    max_tokens=self.MAX_TOKENS,
                    stream=False,
                )
            except APITimeoutError:
                if attempt < max_retries:
                    wait_time = 0.5 * (2 ** attempt)
                    logger.warning(f"Groq timeout, retry {attempt + 1}/{max_retries} after {wait_time}s")
                    time.sleep(wait_time)
                    continue
                logger.warning(f"Groq API timeout after {max_retries} retries")
                raise AIServiceUnavailable("AI provider timed out")
            except RateLimitError as e:
                logger.warning(f"Groq rate limit hit: {e}")
                raise AIServiceBusy("AI provider rate limit")
            except APIError as e:
                logger.error(f"Groq API error: {e}")
                raise AIServiceUnavailable("AI provider error")

            content = ""
            if response.choices:
                content = response.choices[0].message.content or ""
            tokens = response.usage.total_tokens if response.usage else 0
            logger.debug(f"LLM response received: {len(content)} chars, {tokens} tokens (attempt {attempt + 1})")
            return content, tokens

        raise AIServiceUnavailable("AI provider timed out")


class GroqTranscriber:
    """Whisper transcription via Groq. Returns raw text plus Whisper's language guess."""

    TEMPERATURE = 0.2  # Lower temperature for more literal transcripts

    def __init__(self, client: Optional[Groq] = None, model: Optional[str] = None):
        self.client = client if client is not None else _build_client()
        self.model = model or settings.TRANSCRIPTION_MODEL

    def is_available(self) -> bool:
        return self.client is not None

    def transcribe(
        self,
        content: bytes,
        filename: str,
        language: Optional[str] = None,
        prompt: Optional[str] = None,
    ) -> Tuple[str, Optional[str]]:
        """Return (text, detected language name or code as reported by Whisper)."""
        if not self.is_available():
            raise AIServiceUnavailable("Speech-to-text is not configured")

        kwargs = {
            "file": (filename, content),
            "model": self.model,
            "response_format": "verbose_json",
            "temperature": self.TEMPERATURE,
        }
        if language:
            kwargs["language"] = language
        if prompt:
            kwargs["prompt"] = prompt

        try:
            response = self.client.audio.transcriptions.create(**kwargs)
        except RateLimitError as e:
            logger.warning(f"Groq transcription rate limit: {e}")
            raise AIServiceBusy("Speech-to-text rate limit")
        except APIError as e:
            logger.error(f"Groq transcription error: {e}")
            raise AIServiceUnavailable("Speech-to-text provider error")

        return response.text, getattr(response, "language", None)


class GroqBillReader:
    """
    Reads a supplier bill image with a Groq vision model.

    - Model: settings.VISION_MODEL
    - Temperature 0.1: extraction, not conversation
    - JSON mode: the reply is parsed as one object and returned raw;
      validation is the caller's job
    """

    TEMPERATURE = 0.1
    MAX_TOKENS = 2000

    def __init__(self, client: Optional[Groq] = None, model: Optional[str] = None):
        self.client = client if client is not None else _build_client()
        self.model = model or settings.VISION_MODEL

    def is_available(self) -> bool:
        return self.client is not None

    def read_bill(self, content: bytes, mime_type: str) -> dict:
        if not self.is_available():
            raise AIServiceUnavailable("Bill reading is not configured")

        data_url = f"data:{mime_type};base64,{base64.b64encode(content).decode('ascii')}"
        messages = [
            {"role": "system", "content": BILL_EXTRACTION_PROMPT},
            {
                "role": "user",
                "content": [
                    {"type": "text", "text": BILL_EXTRACTION_USER_TEXT},
                    {"type": "image_url", "image_url": {"url": data_url}},
                ],
            },
        ]

        try:
            response = self.client.chat.completions.create(
                model=self.model,
                messages=messages,
                temperature=self.TEMPERATURE,
                max_tokens=self.MAX_TOKENS,
                response_format={"type": "json_object"},
            )
        except RateLimitError as e:
            logger.warning(f"Groq vision rate limit: {e}")
            raise AIServiceBusy("Bill reading rate limit")
        except APIError as e:
            logger.error(f"Groq vision error: {e}")
            raise AIServiceUnavailable("Bill reading provider error")

        raw = response.choices[0].message.content if response.choices else None
        try:
            parsed = json.loads(raw or "")
        except ValueError:
            logger.warning(f"Vision model returned non-JSON bill data ({len(raw or '')} chars)")
            raise UnreadableResponse("Failed to extract bill information from image")
        if not isinstance(parsed, dict):
            raise UnreadableResponse("Failed to extract bill information from image")
        return parsed
