"""Application configuration with security-first defaults.

Environment variables override all defaults.
CRITICAL: SECRET_KEY verifies every bearer token - will fail fast if missing in production.
"""

import os
from pathlib import Path
from typing import List


# Load .env for local development (safe no-op if not installed)
try:
    from dotenv import load_dotenv  # type: ignore

    _PROJECT_DIR = Path(__file__).resolve().parents[2]
    load_dotenv(dotenv_path=_PROJECT_DIR / ".env", override=False)
except ImportError:
    pass


def _csv(name: str, default: str) -> List[str]:
    return [item.strip() for item in os.getenv(name, default).split(",") if item.strip()]


class Settings:
    # Database Configuration
    DATABASE_URL: str = os.getenv("DATABASE_URL", "sqlite:///./jewelshop.db")

    # Token verification - CRITICAL
    # Tokens are issued by the external auth provider and signed with this secret.
    SECRET_KEY: str = os.getenv("SECRET_KEY", None)
    if not SECRET_KEY:
        if os.getenv("ENVIRONMENT", "development") == "production":
            raise ValueError(
                "CRITICAL: SECRET_KEY must be set in production environment. "
                "Use the JWT secret of your auth provider."
            )
        import warnings
        warnings.warn(
            "SECRET_KEY not set in environment. Using development default. "
            "Set SECRET_KEY in .env to the auth provider's JWT secret.",
            RuntimeWarning
        )
        SECRET_KEY = "development-only-weak-default-change-in-production"

    ALGORITHM: str = "HS256"
    # Supabase-style tokens carry aud="authenticated"; empty disables the check
    JWT_AUDIENCE: str = os.getenv("JWT_AUDIENCE", "")
    # Only used by create_access_token (local tooling and tests)
    ACCESS_TOKEN_EXPIRE_MINUTES: int = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "60"))

    # CORS (Restrictive - specific origins only, no wildcards)
    CORS_ORIGINS: List[str] = _csv(
        "CORS_ORIGINS",
        "http://localhost:3000,http://127.0.0.1:3000,http://localhost:3001,http://127.0.0.1:3001",
    )
    ALLOWED_HOSTS: List[str] = _csv("ALLOWED_HOSTS", "localhost,127.0.0.1")

    # Groq (chat, speech-to-text, bill reading). Must be set via .env, never in code
    GROQ_API_KEY: str = os.getenv("GROQ_API_KEY", "")
    CHAT_MODEL: str = os.getenv("CHAT_MODEL", "llama-3.3-70b-versatile")
    TRANSCRIPTION_MODEL: str = os.getenv("TRANSCRIPTION_MODEL", "whisper-large-v3")
    VISION_MODEL: str = os.getenv("VISION_MODEL", "meta-llama/llama-4-scout-17b-16e-instruct")

    # Rate Limiting
    RATE_LIMIT_REQUESTS: int = int(os.getenv("RATE_LIMIT_REQUESTS", "100"))
    RATE_LIMIT_WINDOW_SECONDS: int = int(os.getenv("RATE_LIMIT_WINDOW_SECONDS", "60"))
    CHAT_RATE_LIMIT_PER_MINUTE: int = int(os.getenv("CHAT_RATE_LIMIT_PER_MINUTE", "10"))

    # File storage
    STORAGE_ROOT: str = os.getenv("STORAGE_ROOT", "./storage")
    STORAGE_PUBLIC_BASE_URL: str = os.getenv("STORAGE_PUBLIC_BASE_URL", "http://localhost:8000")
    SIGNED_URL_DEFAULT_EXPIRY: int = int(os.getenv("SIGNED_URL_DEFAULT_EXPIRY", "3600"))
    MAX_UPLOAD_BYTES: int = int(os.getenv("MAX_UPLOAD_BYTES", str(5 * 1024 * 1024)))
    MAX_AUDIO_BYTES: int = int(os.getenv("MAX_AUDIO_BYTES", str(25 * 1024 * 1024)))
    MAX_BILL_IMAGE_BYTES: int = int(os.getenv("MAX_BILL_IMAGE_BYTES", str(10 * 1024 * 1024)))

    # Security Features
    ENVIRONMENT: str = os.getenv("ENVIRONMENT", "development")
    DEBUG: bool = ENVIRONMENT == "development"
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")


settings = Settings()
