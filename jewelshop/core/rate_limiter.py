"""
Rate limiting to prevent brute force and DoS attacks.

Counters live in process memory, so each worker limits independently.

Two limiters:
- rate_limiter: every request, keyed by bearer token hash or client IP (middleware)
- chat_rate_limiter: POST /ai/chat, keyed by user id (dependency)
"""
import hashlib
import time
import logging
from collections import defaultdict
from typing import Dict, Tuple
from fastapi import Request, status
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from jewelshop.core.config import settings

logger = logging.getLogger(__name__)


class RateLimiter:
    """In-memory rate limiter with sliding window."""

    def __init__(self, requests: int = 100, window: int = 60):
        """
        Args:
            requests: Maximum requests allowed in window
            window: Time window in seconds
        """
        self.requests = requests
        self.window = window
        # Dict[client_id, List[timestamp]]
        self.clients: Dict[str, list] = defaultdict(list)
        self.last_cleanup = time.time()

    def is_allowed(self, client_id: str) -> Tuple[bool, int]:
        """
        Check if client is allowed to make request.

        Returns:
            (allowed: bool, remaining: int)
        """
        now = time.time()

        # Cleanup old entries every 5 minutes
        if now - self.last_cleanup > 300:
            self._cleanup(now)
            self.last_cleanup = now

        cutoff = now - self.window
        timestamps = [ts for ts in self.clients[client_id] if ts > cutoff]
        self.clients[client_id] = timestamps

        if len(timestamps) < self.requests:
            timestamps.append(now)
            return True, self.requests - len(timestamps)
        return False, 0

    def reset(self) -> None:
        self.clients.clear()

    def _cleanup(self, now: float):
        """Remove expired entries to prevent memory bloat."""
        cutoff = now - self.window
        for client_id in list(self.clients.keys()):
            timestamps = [ts for ts in self.clients[client_id] if ts > cutoff]
            if timestamps:
                self.clients[client_id] = timestamps
            else:
                del self.clients[client_id]

        logger.info(f"Rate limiter cleanup: {len(self.clients)} active clients")


rate_limiter = RateLimiter(
    requests=settings.RATE_LIMIT_REQUESTS,
    window=settings.RATE_LIMIT_WINDOW_SECONDS
)

chat_rate_limiter = RateLimiter(requests=settings.CHAT_RATE_LIMIT_PER_MINUTE, window=60)


def _client_id(request: Request) -> str:
    auth_header = request.headers.get("authorization", "")
    if auth_header.startswith("Bearer "):
        # Whole-token hash: JWT prefixes are identical across users
        digest = hashlib.sha256(auth_header[7:].encode()).hexdigest()[:32]
        return f"token:{digest}"
    client_ip = request.client.host if request.client else "unknown"
    return f"ip:{client_ip}"


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Middleware to apply rate limiting to all requests."""

    async def dispatch(self, request: Request, call_next):
        # Skip rate limiting for health checks and docs
        if request.url.path in ["/health", "/docs", "/redoc", "/openapi.json"]:
            return await call_next(request)

        client_id = _client_id(request)
        allowed, remaining = rate_limiter.is_allowed(client_id)

        if not allowed:
            logger.warning(
                f"Rate limit exceeded for {client_id} on {request.method} {request.url.path}"
            )
            # Raising HTTPException here would bypass the exception handlers
            return JSONResponse(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                content={"error": f"Rate limit exceeded. Try again in {settings.RATE_LIMIT_WINDOW_SECONDS} seconds."},
                headers={
                    "Retry-After": str(settings.RATE_LIMIT_WINDOW_SECONDS),
                    "X-RateLimit-Limit": str(settings.RATE_LIMIT_REQUESTS),
                    "X-RateLimit-Remaining": "0"
                }
            )

        response = await call_next(request)
        response.headers["X-RateLimit-Limit"] = str(settings.RATE_LIMIT_REQUESTS)
        response.headers["X-RateLimit-Remaining"] = str(remaining)
        response.headers["X-RateLimit-Window"] = str(settings.RATE_LIMIT_WINDOW_SECONDS)

        return response
