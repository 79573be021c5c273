"""Password hashing and JWT handling."""

import secrets
from datetime import UTC, datetime, timedelta
from typing import Any

from jose import JWTError, jwt
from passlib.context import CryptContext

from .config import settings

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

TOKEN_TYPE_ACCESS = "access"
TOKEN_TYPE_REFRESH = "refresh"


def hash_password(password: str) -> str:
    """Hash a password using bcrypt.

    Args:
        password: Plain text password

    Returns:
        Hashed password
    """
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against a hash.

    Args:
        plain_password: Plain text password
        hashed_password: Hashed password from database

    Returns:
        True if password matches, False otherwise
    """
    return pwd_context.verify(plain_password, hashed_password)


def _encode(data: dict[str, Any], token_type: str, secret: str, lifetime: timedelta) -> str:
    issued_at = datetime.now(UTC)
    claims = {
        **data,
        "exp": issued_at + lifetime,
        "iat": issued_at,
        "type": token_type,
        # Two tokens for the same subject within one second must still differ
        "jti": secrets.token_hex(8),
    }
    return jwt.encode(claims, secret, algorithm=settings.JWT_ALGORITHM)


def _decode(token: str, token_type: str, secret: str) -> dict[str, Any] | None:
    try:
        payload = jwt.decode(token, secret, algorithms=[settings.JWT_ALGORITHM])
    except JWTError:
        return None
    if payload.get("type") != token_type:
        return None
    return payload


def create_access_token(data: dict[str, Any], expires_delta: timedelta | None = None) -> str:
    """Create a JWT access token.

    Args:
        data: Claims to encode (``sub``, ``email``)
        expires_delta: Optional custom lifetime

    Returns:
        Encoded JWT token
    """
    lifetime = expires_delta or timedelta(minutes=settings.JWT_ACCESS_TOKEN_EXPIRE_MINUTES)
    return _encode(data, TOKEN_TYPE_ACCESS, settings.JWT_SECRET_KEY, lifetime)


def create_refresh_token(data: dict[str, Any], expires_delta: timedelta | None = None) -> str:
    """Create a JWT refresh token signed with the refresh secret."""
    lifetime = expires_delta or timedelta(days=settings.JWT_REFRESH_TOKEN_EXPIRE_DAYS)
    return _encode(data, TOKEN_TYPE_REFRESH, settings.refresh_secret_key, lifetime)


def decode_access_token(token: str) -> dict[str, Any] | None:
    """Decode and verify an access token.

    Returns:
        Decoded payload, or None if the token is invalid, expired or not an
        access token
    """
    return _decode(token, TOKEN_TYPE_ACCESS, settings.JWT_SECRET_KEY)


def decode_refresh_token(token: str) -> dict[str, Any] | None:
    return _decode(token, TOKEN_TYPE_REFRESH, settings.refresh_secret_key)


def generate_tokens(user_id: str, email: str) -> tuple[str, str, datetime]:
    """Generate an access and refresh token pair.

    Args:
        user_id: Subject of both tokens
        email: Included in the access token only

    Returns:
        Tuple of (access_token, refresh_token, refresh_expires_at)
    """
    access_token = create_access_token({"sub": user_id, "email": email})
    refresh_token = create_refresh_token({"sub": user_id})
    refresh_expires_at = datetime.now(UTC) + timedelta(days=settings.JWT_REFRESH_TOKEN_EXPIRE_DAYS)
    return access_token, refresh_token, refresh_expires_at
