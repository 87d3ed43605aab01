"""AI chat: sessions, history and assistant replies."""
import logging

from fastapi import APIRouter, Depends, Query
from sqlalchemy import func, update
from sqlalchemy.orm import Session

from jewelshop.ai.groq_client import AIServiceBusy, AIServiceUnavailable
from jewelshop.ai.prompts import CHAT_SYSTEM_PROMPT, CHAT_HISTORY_LIMIT
from jewelshop.api.deps import get_db, get_current_user_id, get_chat_client, get_chat_rate_limiter
from jewelshop.core.exceptions import BusinessError
from jewelshop.core.rate_limiter import RateLimiter
from jewelshop.models.chat import ChatSession, ChatMessage
from jewelshop.schemas.chat import ChatRequest, ChatMessageResponse, ChatSessionResponse

logger = logging.getLogger(__name__)
router = APIRouter()

NEW_SESSION_TITLE = "New Chat"
TITLE_LENGTH = 50


def _get_owned_session(db: Session, user_id: str, session_id: str) -> ChatSession:
    """SECURITY: ownership is checked before any message is read or written."""
    session = (
        db.query(ChatSession)
        .filter(ChatSession.id == session_id, ChatSession.user_id == user_id)
        .first()
    )
    if not session:
        raise BusinessError.not_found("Session")
    return session


def _title_from(message: str) -> str:
    title = message.strip().splitlines()[0] if message.strip() else NEW_SESSION_TITLE
    return title if len(title) <= TITLE_LENGTH else title[:TITLE_LENGTH - 3] + "..."


@router.post("/chat")
def chat(
    data: ChatRequest,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
    chat_client=Depends(get_chat_client),
    limiter: RateLimiter = Depends(get_chat_rate_limiter),
):
    allowed, _ = limiter.is_allowed(user_id)
    if not allowed:
        raise BusinessError.rate_limit_exceeded("Too many requests. Please wait a moment before trying again.")

    if data.sessionId:
        session = _get_owned_session(db, user_id, data.sessionId)
    else:
        session = ChatSession(user_id=user_id, title=_title_from(data.message))
        db.add(session)
        db.flush()

    history = (
        db.query(ChatMessage)
        .filter(ChatMessage.session_id == session.id)
        .order_by(ChatMessage.created_at.desc())
        .limit(CHAT_HISTORY_LIMIT)
        .all()
    )
    history.reverse()

    user_message = ChatMessage(session_id=session.id, user_id=user_id, role="user", content=data.message)
    db.add(user_message)
    # Keep the user's message even if the provider fails below
    db.commit()

    messages = [{"role": "system", "content": CHAT_SYSTEM_PROMPT}]
    messages += [{"role": m.role, "content": m.content} for m in history if m.role in ("user", "assistant")]
    messages.append({"role": "user", "content": data.message})

    try:
        reply, tokens = chat_client.complete(messages)
    except AIServiceBusy:
        raise BusinessError.rate_limit_exceeded("AI service is busy. Please try again in a moment.")
    except AIServiceUnavailable as e:
        logger.warning(f"Chat unavailable for user {user_id}: {e}")
        raise BusinessError.service_unavailable("AI assistant is temporarily unavailable. Please try again later.")

    assistant_message = ChatMessage(
        session_id=session.id,
        user_id=user_id,
        role="assistant",
        content=reply,
        message_metadata={"model": getattr(chat_client, "model", None)},
        tokens_used=tokens,
    )
    db.add(assistant_message)
    db.execute(
        update(ChatSession)
        .where(ChatSession.id == session.id)
        .values(updated_at=func.now())
        .execution_options(synchronize_session=False)
    )
    db.commit()
    logger.info(f"Chat reply in session {session.id} for user {user_id}, {tokens} tokens")

    return {
        "response": reply,
        "sessionId": session.id,
        "messageId": assistant_message.id,
        "userMessageId": user_message.id,
        "tokensUsed": tokens,
    }


@router.get("/chat/sessions")
def list_sessions(db: Session = Depends(get_db), user_id: str = Depends(get_current_user_id)):
    counts = (
        db.query(ChatMessage.session_id, func.count(ChatMessage.id))
        .filter(ChatMessage.user_id == user_id)
        .group_by(ChatMessage.session_id)
        .all()
    )
    count_by_session = dict(counts)
    sessions = (
        db.query(ChatSession)
        .filter(ChatSession.user_id == user_id)
        .order_by(ChatSession.updated_at.desc(), ChatSession.created_at.desc())
        .all()
    )
    return {
        "sessions": [
            {**ChatSessionResponse.model_validate(s).model_dump(mode="json"),
             "message_count": count_by_session.get(s.id, 0)}
            for s in sessions
        ]
    }


@router.get("/chat/history")
def chat_history(
    session_id: str = Query(None, alias="sessionId"),
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    if not session_id:
        raise BusinessError.bad_request("Session ID is required")
    session = _get_owned_session(db, user_id, session_id)

    q = db.query(ChatMessage).filter(ChatMessage.session_id == session.id)
    total = q.count()
    rows = q.order_by(ChatMessage.created_at.asc()).offset(offset).limit(limit).all()
    return {
        "messages": [ChatMessageResponse.model_validate(m) for m in rows],
        "session": ChatSessionResponse.model_validate(session),
        "hasMore": offset + len(rows) < total,
        "total": total,
    }


@router.post("/chat/new-session")
def new_session(db: Session = Depends(get_db), user_id: str = Depends(get_current_user_id)):
    """Deactivate the caller's open sessions and start a fresh one."""
    db.execute(
        update(ChatSession)
        .where(ChatSession.user_id == user_id, ChatSession.is_active.is_(True))
        .values(is_active=False)
        .execution_options(synchronize_session=False)
    )
    session = ChatSession(user_id=user_id, title=NEW_SESSION_TITLE, is_active=True)
    db.add(session)
    db.commit()
    db.refresh(session)
    return {"sessionId": session.id, "title": session.title}


@router.delete("/chat/session/{session_id}")
def delete_session(
    session_id: str,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    session = _get_owned_session(db, user_id, session_id)
    db.delete(session)
    db.commit()
    logger.info(f"Deleted chat session {session_id} for user {user_id}")
    return {"success": True}
