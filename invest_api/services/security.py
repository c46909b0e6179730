"""Credential helpers - password hashing, bearer tokens and generated keys."""

import secrets
import string
import time
import uuid
from datetime import timedelta

import jwt
from passlib.context import CryptContext

from invest_api import config
from invest_api.database import utcnow

pwd_context = CryptContext(
    schemes=["pbkdf2_sha256"],
    deprecated="auto",
    pbkdf2_sha256__rounds=config.PASSWORD_HASH_ROUNDS,
)

_KEY_ALPHABET = string.ascii_uppercase + string.digits


def generate_id() -> str:
    """Generate a unique document ID."""
    return str(uuid.uuid4())


def hash_password(password: str) -> str:
    """Hash a password for storage."""
    return pwd_context.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    """Check a candidate password against a stored hash."""
    if not password_hash:
        return False
    return pwd_context.verify(password, password_hash)


def create_access_token(user_id: str, expires_minutes: int | None = None) -> str:
    """Issue a signed bearer token for a user.

    Args:
        user_id: ID of the authenticated user
        expires_minutes: Token lifetime, defaults to JWT_EXPIRES_MINUTES

    Returns:
        Encoded JWT
    """
    if expires_minutes is None:
        expires_minutes = config.JWT_EXPIRES_MINUTES
    now = utcnow()
    payload = {
        "sub": user_id,
        "iat": now,
        "exp": now + timedelta(minutes=expires_minutes),
    }
    return jwt.encode(payload, config.JWT_SECRET, algorithm=config.JWT_ALGORITHM)


def decode_access_token(token: str) -> str:
    """Verify a bearer token and return the user ID it was issued for.

    Raises:
        jwt.ExpiredSignatureError: If the token has expired
        jwt.InvalidTokenError: If the token is malformed or badly signed
    """
    payload = jwt.decode(token, config.JWT_SECRET, algorithms=[config.JWT_ALGORITHM])
    user_id = payload.get("sub")
    if not user_id:
        raise jwt.InvalidTokenError("Token has no subject")
    return user_id


def generate_activation_key() -> str:
    """Six-character upper-case activation key, e.g. ``"7KQ2ZD"``."""
    return "".join(secrets.choice(_KEY_ALPHABET) for _ in range(6))


def generate_reset_token() -> str:
    """64 hex characters."""
    return secrets.token_hex(32)


def generate_transaction_id() -> str:
    """External transaction reference: ``TXN`` + epoch millis + 6 random chars.

    Uniqueness is backed by the column's unique index, not by this function.
    """
    suffix = "".join(secrets.choice(_KEY_ALPHABET) for _ in range(6))
    return f"TXN{int(time.time() * 1000)}{suffix}"
