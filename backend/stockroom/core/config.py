"""Application configuration.

Environment variables override all defaults. A `.env` file in the backend
directory is loaded for local development and never overrides real
environment variables.
"""

import logging
import os
import warnings
from pathlib import Path
from typing import List

from dotenv import load_dotenv

_BACKEND_DIR = Path(__file__).resolve().parents[2]
load_dotenv(dotenv_path=_BACKEND_DIR / ".env", override=False)

logger = logging.getLogger(__name__)


def _split_csv(value: str) -> List[str]:
    return [part.strip() for part in value.split(",") if part.strip()]


class Settings:
    ENVIRONMENT: str = os.getenv("ENVIRONMENT", "development")
    DEBUG: bool = os.getenv("DEBUG", str(ENVIRONMENT == "development")).lower() in ("1", "true", "yes")

    # Data backend: "sql" talks to DATABASE_URL through SQLAlchemy,
    # "supabase" talks to the hosted PostgREST API.
    DATA_BACKEND: str = os.getenv("DATA_BACKEND", "sql")
    DATABASE_URL: str = os.getenv("DATABASE_URL", "sqlite:///./stockroom.db")
    SUPABASE_URL: str = os.getenv("SUPABASE_URL", "")
    SUPABASE_ANON_KEY: str = os.getenv("SUPABASE_ANON_KEY", "")
    SUPABASE_TIMEOUT_SECONDS: float = float(os.getenv("SUPABASE_TIMEOUT_SECONDS", "10"))

    # EmailJS transactional email (never commit keys)
    EMAILJS_API_URL: str = os.getenv("EMAILJS_API_URL", "https://api.emailjs.com/api/v1.0/email/send")
    EMAILJS_SERVICE_ID: str = os.getenv("EMAILJS_SERVICE_ID", "")
    EMAILJS_TEMPLATE_ID: str = os.getenv("EMAILJS_TEMPLATE_ID", "")
    EMAILJS_PUBLIC_KEY: str = os.getenv("EMAILJS_PUBLIC_KEY", "")
    # Private key only in trusted (server-side) environments
    EMAILJS_PRIVATE_KEY: str = os.getenv("EMAILJS_PRIVATE_KEY", "")
    EMAIL_TIMEOUT_SECONDS: float = float(os.getenv("EMAIL_TIMEOUT_SECONDS", "10"))
    NOTIFICATION_WORKERS: int = int(os.getenv("NOTIFICATION_WORKERS", "2"))

    # Budget approval routing
    APPROVER_NAME: str = os.getenv("APPROVER_NAME", "Approver")
    APPROVER_EMAIL: str = os.getenv("APPROVER_EMAIL", "")
    APPROVAL_CC_EMAILS: str = os.getenv("APPROVAL_CC_EMAILS", "")
    APPROVAL_BASE_URL: str = os.getenv("APPROVAL_BASE_URL", "http://localhost:8000")

    # Snapshot tuning
    MOVEMENT_FETCH_LIMIT: int = int(os.getenv("MOVEMENT_FETCH_LIMIT", "100"))

    CORS_ORIGINS: List[str] = _split_csv(
        os.getenv(
            "CORS_ORIGINS",
            "http://localhost:3000,http://127.0.0.1:3000,http://localhost:5173,http://127.0.0.1:5173",
        )
    )

    @property
    def email_enabled(self) -> bool:
        return bool(self.EMAILJS_SERVICE_ID and self.EMAILJS_TEMPLATE_ID and self.EMAILJS_PUBLIC_KEY)

    def check(self) -> None:
        """Fail fast on a misconfigured production deployment, warn otherwise."""
        if self.DATA_BACKEND not in ("sql", "supabase"):
            raise ValueError(f"DATA_BACKEND must be 'sql' or 'supabase', got {self.DATA_BACKEND!r}")
        if self.DATA_BACKEND == "supabase" and not (self.SUPABASE_URL and self.SUPABASE_ANON_KEY):
            raise ValueError("SUPABASE_URL and SUPABASE_ANON_KEY must be set when DATA_BACKEND=supabase")
        if not self.email_enabled:
            if self.ENVIRONMENT == "production":
                raise ValueError("EmailJS service, template and public key must be set in production")
            warnings.warn(
                "EmailJS is not configured. Budget request notifications will not be sent.",
                RuntimeWarning,
            )
            logger.warning("EmailJS not configured; approval emails disabled")


settings = Settings()
