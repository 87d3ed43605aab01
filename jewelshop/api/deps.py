"""FastAPI dependencies: DB session, caller identity and external collaborators.

Everything with state or credentials comes in through here so tests can
swap it with app.dependency_overrides.
"""
import uuid
from typing import Generator, Iterable, Optional

from fastapi import Depends, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session

from jewelshop.agent.executor import ExecutorRegistry, build_default_registry
from jewelshop.ai.groq_client import GroqBillReader, GroqChatClient, GroqTranscriber
from jewelshop.core.exceptions import BusinessError
from jewelshop.core.rate_limiter import RateLimiter, chat_rate_limiter
from jewelshop.core.security import decode_access_token
from jewelshop.db.session import SessionLocal
from jewelshop.services.storage_service import LocalBlobStore, get_local_blob_store, is_owned_path

security = HTTPBearer(auto_error=False)

_registry: Optional[ExecutorRegistry] = None


def get_db() -> Generator[Session, None, None]:
    """Get database session."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_current_user_id(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> str:
    """
    Verify the bearer token and return its subject (the user id).

    SECURITY: Runs before any handler body, so nothing is looked up
    for unauthenticated callers.
    """
    if not credentials or not credentials.credentials:
        raise BusinessError.unauthorized("missing bearer token")

    user_id = decode_access_token(credentials.credentials)
    if not user_id:
        raise BusinessError.unauthorized("invalid or expired token")
    return user_id


def get_request_id(request: Request) -> str:
    return getattr(request.state, "request_id", None) or str(uuid.uuid4())


def get_action_registry() -> ExecutorRegistry:
    global _registry
    if _registry is None:
        _registry = build_default_registry()
    return _registry


def get_blob_store() -> LocalBlobStore:
    return get_local_blob_store()


def get_chat_client() -> GroqChatClient:
    return GroqChatClient()


def get_transcriber() -> GroqTranscriber:
    return GroqTranscriber()


def get_bill_reader() -> GroqBillReader:
    return GroqBillReader()


def get_chat_rate_limiter() -> RateLimiter:
    return chat_rate_limiter


def require_owned_paths(user_id: str, paths: Iterable[Optional[str]]) -> None:
    """Stored object paths must sit under the caller's own folder."""
    for path in paths:
        if path and not is_owned_path(user_id, path):
            raise BusinessError.bad_request("Invalid storage path")
