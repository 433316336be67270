"""Security utilities: session tokens, password hashing and signatures."""

import hashlib
import hmac
import secrets
import uuid
from datetime import datetime, timedelta, timezone
from uuid import UUID

import bcrypt
import jwt

from mediature.core.config import settings


# =============================================================================
# Session Token (JWT in cookie)
# =============================================================================

def create_session_token(user_id: UUID, token_version: int) -> str:
    """
    Create signed session JWT.

    Always signs with current secret (JWT_SECRET).
    """
    payload = {
        "sub": str(user_id),
        "token_version": token_version,
        "iat": datetime.now(timezone.utc),
        "exp": datetime.now(timezone.utc) + timedelta(hours=settings.JWT_EXPIRES_HOURS),
    }
    return jwt.encode(payload, settings.JWT_SECRET, algorithm="HS256")


def decode_session_token(token: str) -> dict:
    """
    Decode and verify session JWT.

    Tries current secret first, then previous (for rotation support).

    Raises:
        jwt.InvalidTokenError: If token invalid with all secrets
    """
    last_error = None
    for secret in settings.jwt_secrets:
        try:
            return jwt.decode(token, secret, algorithms=["HS256"])
        except jwt.InvalidTokenError as e:
            last_error = e
            continue
    raise last_error  # type: ignore


# =============================================================================
# Passwords
# =============================================================================

def hash_password(password: str) -> str:
    """Hash password using bcrypt with auto-generated salt."""
    return bcrypt.hashpw(password.encode(), bcrypt.gensalt()).decode()


def verify_password(password: str, password_hash: str) -> bool:
    """Verify password against bcrypt hash."""
    return bcrypt.checkpw(password.encode(), password_hash.encode())


# =============================================================================
# Tokens and signatures
# =============================================================================

def generate_invitation_token() -> str:
    """Fresh random identifier carried by sign-up links."""
    return str(uuid.uuid4())


def generate_password_reset_token() -> str:
    return secrets.token_urlsafe(32)


def hash_token(token: str) -> str:
    """SHA-256 hex digest, the form in which reset tokens are stored."""
    return hashlib.sha256(token.encode()).hexdigest()


def generate_live_chat_session_token() -> str:
    return secrets.token_urlsafe(32)


def sign_email(email: str) -> str:
    """HMAC-SHA256 of the email, used by the live chat to verify user identity."""
    return hmac.new(
        settings.LIVE_CHAT_SIGNATURE_SECRET.encode(),
        email.encode(),
        hashlib.sha256,
    ).hexdigest()
