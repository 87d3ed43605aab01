"""
Jewelry shop backend: owner-scoped records plus an AI assistant.

ARCHITECTURE:
- FastAPI: business logic, ownership enforcement, persistence
- SQL database: source of truth for all state
- Groq: chat replies, speech-to-text and bill reading, never writes data itself
- Local blob store: identity documents, stock photos, purchase bills

SAFETY MODEL:
- The assistant only PROPOSES actions (AIAction, awaiting_confirmation)
- Records are written only when the owner confirms via /ai/execute-action
- Every row is scoped to the bearer token's subject

Error envelope for every failure: {"error": "<message>"}.
"""
import logging
import uuid
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.trustedhost import TrustedHostMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from jewelshop.api.routes import customers, purchases, stock, storage, invoices, ai_actions, bills, chat, voice
from jewelshop.api.routes import settings as settings_routes
from jewelshop.core.config import settings
from jewelshop.core.exceptions import DomainError, store_message
from jewelshop.core.rate_limiter import RateLimitMiddleware
from jewelshop.db.init_db import init_db

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create tables on startup. The blob store and AI clients are built per request."""
    logger.info("Initializing database...")
    init_db()
    logger.info("Database initialized")
    if not settings.GROQ_API_KEY:
        logger.warning("GROQ_API_KEY not set: /ai/chat, /ai/voice/transcribe and /ai/extract-bill will answer 503")
    yield


app = FastAPI(
    title="Jewelry Shop API",
    description="Customers, purchases, stock, invoices and a confirm-before-execute AI assistant.",
    version="0.1.0",
    lifespan=lifespan,
)


# ─── Error envelope ───────────────────────────────────────────────

def _validation_message(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "Invalid request"
    first = errors[0]
    error_type = first.get("type", "")
    loc = [str(part) for part in first.get("loc", ()) if part not in ("body", "query", "path", "form")]
    field = loc[-1] if loc else ""

    if error_type == "json_invalid":
        return "Invalid JSON body"
    if error_type == "value_error":
        return str(first.get("msg", "")).removeprefix("Value error, ")
    if error_type == "missing":
        return f"{field} is required" if field else "Request body is required"
    return f"Invalid {field}" if field else "Invalid request"


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.detail},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    message = _validation_message(exc)
    logger.info(f"Validation failed on {request.method} {request.url.path}: {message}")
    return JSONResponse(status_code=400, content={"error": message})


@app.exception_handler(DomainError)
async def domain_error_handler(request: Request, exc: DomainError):
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


@app.exception_handler(SQLAlchemyError)
async def database_error_handler(request: Request, exc: SQLAlchemyError):
    logger.error(f"Database error on {request.method} {request.url.path}: {exc}", exc_info=True)
    return JSONResponse(status_code=500, content={"error": store_message(exc)})


# ─── Middleware (last added runs first) ───────────────────────────

# SECURITY: Trust only configured hosts
app.add_middleware(TrustedHostMiddleware, allowed_hosts=settings.ALLOWED_HOSTS)

# SECURITY: Restrict CORS to specific methods and headers (not wildcards)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=[
        "Content-Type",
        "Authorization",
        "Accept",
        "Origin",
        "X-Request-ID",
    ],
    max_age=600,  # Cache preflight for 10 minutes
    expose_headers=["Content-Type", "X-Request-ID"],
)

# SECURITY: Rate limiting to prevent brute force and DoS attacks
app.add_middleware(RateLimitMiddleware)


@app.middleware("http")
async def add_security_headers(request: Request, call_next):
    response = await call_next(request)
    response.headers["X-Content-Type-Options"] = "nosniff"
    response.headers["X-Frame-Options"] = "DENY"
    response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"
    response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
    return response


@app.middleware("http")
async def add_request_id(request: Request, call_next):
    """Tag the request for audit records and echo the id back."""
    request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
    request.state.request_id = request_id
    response = await call_next(request)
    response.headers["X-Request-ID"] = request_id
    return response


app.include_router(customers.router, prefix="/customers", tags=["customers"])
app.include_router(purchases.router, prefix="/purchases", tags=["purchases"])
app.include_router(settings_routes.router, prefix="/settings", tags=["settings"])
app.include_router(stock.router, prefix="/stock", tags=["stock"])
app.include_router(storage.router, prefix="/storage", tags=["storage"])
app.include_router(invoices.router, prefix="/invoices", tags=["invoices"])
app.include_router(ai_actions.router, prefix="/ai", tags=["ai"])
app.include_router(chat.router, prefix="/ai", tags=["ai"])
app.include_router(voice.router, prefix="/ai", tags=["ai"])
app.include_router(bills.router, prefix="/ai", tags=["ai"])


@app.get("/health")
def health():
    return {"status": "ok"}
