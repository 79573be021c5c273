"""Service for password reset flow."""

from __future__ import annotations

import hashlib
import logging
import secrets
from datetime import timedelta

from sqlalchemy import update
from sqlalchemy.orm import Session

from halosuite.core.config import settings
from halosuite.core.exceptions import NotFoundError, ValidationFailedError
from halosuite.core.security import hash_password
from halosuite.models import PasswordResetToken, User
from halosuite.models.base import utcnow

logger = logging.getLogger(__name__)


class PasswordResetError(ValidationFailedError):
    """Base exception for password reset errors."""

    default_message = "Invalid reset token"


class InvalidTokenError(PasswordResetError):
    pass


class ExpiredTokenError(PasswordResetError):
    default_message = "Reset token has expired"


class UsedTokenError(PasswordResetError):
    default_message = "Reset token has already been used"


def hash_token(token: str) -> str:
    """SHA-256 hex digest of a raw token; only digests are stored."""
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


class PasswordResetService:
    """Handle password reset token creation and consumption."""

    def __init__(self, db: Session) -> None:
        """Initialize the service with a database session.

        Args:
            db: SQLAlchemy database session
        """
        self.db = db

    def create_token(self, user: User) -> str:
        """Create a reset token, replacing any earlier one for the user.

        Args:
            user: User to create token for

        Returns:
            Raw token string, to be delivered out of band
        """
        raw_token = secrets.token_urlsafe(32)
        expires_at = utcnow() + timedelta(minutes=settings.PASSWORD_RESET_TOKEN_EXPIRE_MINUTES)

        try:
            self.db.query(PasswordResetToken).filter(
                PasswordResetToken.user_id == user.id
            ).delete(synchronize_session=False)
            self.db.add(
                PasswordResetToken(
                    user_id=user.id, token_hash=hash_token(raw_token), expires_at=expires_at
                )
            )
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        logger.info("Created password reset token for user %s", user.id)
        return raw_token

    def _reject(self, token_hash: str) -> PasswordResetError:
        """Work out why a token could not be consumed."""
        record = (
            self.db.query(PasswordResetToken)
            .filter(PasswordResetToken.token_hash == token_hash)
            .first()
        )
        if not record:
            logger.warning("Invalid password reset token attempted")
            return InvalidTokenError()
        if record.is_used():
            logger.warning("Used password reset token attempted for user %s", record.user_id)
            return UsedTokenError()
        if record.is_expired(utcnow()):
            logger.warning("Expired password reset token attempted for user %s", record.user_id)
            return ExpiredTokenError()
        return InvalidTokenError()

    def reset_password(self, token: str, new_password: str) -> User:
        """Consume a token and set the user's password.

        The token is marked used by a single conditional UPDATE, so of two
        concurrent requests with the same token only one succeeds.

        Args:
            token: Raw token string
            new_password: New password to set

        Returns:
            User whose password was reset

        Raises:
            InvalidTokenError: If token is invalid
            UsedTokenError: If token has been used
            ExpiredTokenError: If token has expired
            NotFoundError: If the user no longer exists
        """
        token_hash = hash_token(token)
        now = utcnow()

        try:
            row = self.db.execute(
                update(PasswordResetToken)
                .where(
                    PasswordResetToken.token_hash == token_hash,
                    PasswordResetToken.used_at.is_(None),
                    PasswordResetToken.expires_at > now,
                )
                .values(used_at=now)
                .returning(PasswordResetToken.user_id)
            ).fetchone()

            if not row:
                raise self._reject(token_hash)

            user = self.db.query(User).filter(User.id == row[0], User.deleted_at.is_(None)).first()
            if not user:
                raise NotFoundError("User not found for token")

            user.password = hash_password(new_password)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        logger.info("Password reset completed for user %s", user.id)
        return user

    def verify_token(self, token: str) -> User:
        """Check a reset token without consuming it.

        Raises:
            PasswordResetError: If the token cannot be used
            NotFoundError: If the user no longer exists
        """
        token_hash = hash_token(token)
        record = (
            self.db.query(PasswordResetToken)
            .filter(PasswordResetToken.token_hash == token_hash)
            .first()
        )
        if not record or record.is_used() or record.is_expired(utcnow()):
            raise self._reject(token_hash)

        user = self.db.query(User).filter(User.id == record.user_id).first()
        if not user:
            raise NotFoundError("User not found for token")
        return user

    def cleanup_expired_tokens(self) -> int:
        """Remove all expired tokens.

        Returns:
            Number of tokens deleted
        """
        count = (
            self.db.query(PasswordResetToken)
            .filter(PasswordResetToken.expires_at < utcnow())
            .delete(synchronize_session=False)
        )
        self.db.commit()
        logger.info("Cleaned up %d expired password reset tokens", count)
        return count
