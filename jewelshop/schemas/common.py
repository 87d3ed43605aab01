"""Shared field rules for request schemas.

Validators raise ValueError with the exact message the client should see;
main.py strips pydantic's "Value error, " prefix.
"""
import re
from typing import Any, Optional

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


def clean_str(v: Any) -> Optional[str]:
    """Trim strings; blank becomes None."""
    if v is None:
        return None
    if not isinstance(v, str):
        raise ValueError("Expected a string")
    v = v.strip()
    return v or None


def require_text(v: Any, message: str) -> str:
    if not isinstance(v, str) or not v.strip():
        raise ValueError(message)
    return v.strip()


def check_email(v: Any) -> Optional[str]:
    v = clean_str(v)
    if v and not EMAIL_RE.match(v):
        raise ValueError("Invalid email format")
    return v


def non_negative_number(v: Any, message: str, blank: Optional[float] = 0) -> Optional[float]:
    """Accept numbers or numeric strings >= 0. None/"" map to `blank`."""
    if v is None or (isinstance(v, str) and not v.strip()):
        return blank
    if isinstance(v, bool):
        raise ValueError(message)
    try:
        number = float(v)
    except (TypeError, ValueError):
        raise ValueError(message)
    if number != number or number < 0:  # NaN check
        raise ValueError(message)
    return number


def non_negative_int(v: Any, message: str) -> Optional[int]:
    if v is None or (isinstance(v, str) and not v.strip()):
        return None
    if isinstance(v, bool):
        raise ValueError(message)
    try:
        number = int(v)
    except (TypeError, ValueError):
        raise ValueError(message)
    if number < 0:
        raise ValueError(message)
    return number
