"""Groq-backed chat, speech-to-text and bill-reading clients for the shop assistant."""

from .groq_client import (
    GroqChatClient, GroqTranscriber, GroqBillReader, AIServiceBusy, AIServiceUnavailable, UnreadableResponse,
)

__all__ = [
    "GroqChatClient", "GroqTranscriber", "GroqBillReader",
    "AIServiceBusy", "AIServiceUnavailable", "UnreadableResponse",
]
