"""Bearer token verification.

Sessions are issued by the external auth provider. This module only verifies
the HS256 signature and expiry and hands back the subject (the user id).
create_access_token mints compatible tokens for local tooling and tests.
"""
import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt

from jewelshop.core.config import settings

logger = logging.getLogger(__name__)


def create_access_token(subject: str, expires_minutes: Optional[int] = None) -> str:
    expire = datetime.now(timezone.utc) + timedelta(
        minutes=expires_minutes if expires_minutes is not None else settings.ACCESS_TOKEN_EXPIRE_MINUTES
    )
    payload = {"sub": subject, "exp": expire}
    if settings.JWT_AUDIENCE:
        payload["aud"] = settings.JWT_AUDIENCE
    return jwt.encode(payload, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def decode_access_token(token: str) -> Optional[str]:
    """Return the token subject, or None when the token is invalid or expired."""
    options = {"require": ["exp", "sub"]}
    kwargs = {}
    if settings.JWT_AUDIENCE:
        kwargs["audience"] = settings.JWT_AUDIENCE
    else:
        options["verify_aud"] = False
    try:
        payload = jwt.decode(
            token,
            settings.SECRET_KEY,
            algorithms=[settings.ALGORITHM],
            options=options,
            **kwargs,
        )
    except jwt.ExpiredSignatureError:
        logger.info("Rejected expired access token")
        return None
    except jwt.InvalidTokenError as e:
        logger.info(f"Rejected invalid access token: {e}")
        return None
    sub = payload.get("sub")
    return str(sub) if sub else None
