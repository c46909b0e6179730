"""
Runtime configuration read from the environment.

Values are resolved once at import time. Defaults are meant for local
development; production deployments must at least override JWT_SECRET.
"""

import os


def _flag(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() in ("1", "true", "yes")


# "development" echoes password reset tokens back to the caller
ENVIRONMENT = os.getenv("ENVIRONMENT", "production")

# --- Tokens & passwords ---
JWT_SECRET = os.getenv("JWT_SECRET", "change-me-in-production")
JWT_ALGORITHM = "HS256"
JWT_EXPIRES_MINUTES = int(os.getenv("JWT_EXPIRES_MINUTES", str(7 * 24 * 60)))

PASSWORD_HASH_ROUNDS = int(os.getenv("PASSWORD_HASH_ROUNDS", "29000"))
RESET_TOKEN_TTL_SECONDS = int(os.getenv("RESET_TOKEN_TTL_SECONDS", "3600"))

# Used to build password reset links
FRONTEND_URL = os.getenv("FRONTEND_URL", "http://localhost:5173")

# --- Email ---
EMAIL_ENABLED = _flag("EMAIL_ENABLED", "false")
SMTP_HOST = os.getenv("SMTP_HOST", "localhost")
SMTP_PORT = int(os.getenv("SMTP_PORT", "587"))
SMTP_USER = os.getenv("SMTP_USER", "")
SMTP_PASS = os.getenv("SMTP_PASS", "")
EMAIL_FROM = os.getenv("EMAIL_FROM", "no-reply@localhost")
COMPANY_NAME = os.getenv("COMPANY_NAME", "Quantum Partners and Co")


def is_development() -> bool:
    return ENVIRONMENT.lower() == "development"
