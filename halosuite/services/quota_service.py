"""Per-user storage quota ledger.

``users.quota_used`` is only ever adjusted relative to its stored value
(``quota_used + size``) inside the caller's transaction, so concurrent
uploads and deletes cannot overwrite each other's adjustment.
"""

import logging

from sqlalchemy import case, update
from sqlalchemy.orm import Session

from halosuite.core.config import settings
from halosuite.core.exceptions import NotFoundError
from halosuite.models import User
from halosuite.schemas.file import StorageInfo

logger = logging.getLogger(__name__)


class QuotaLedger:
    """Charge and release storage against a user's quota.

    ``charge`` and ``release`` never commit; they must run inside the same
    transaction as the file row change they account for.
    """

    def __init__(self, db: Session) -> None:
        self.db = db

    def charge(self, user_id: str, size: int) -> None:
        """Add ``size`` bytes to the user's consumed quota."""
        if size <= 0:
            return
        result = self.db.execute(
            update(User)
            .where(User.id == user_id)
            .values(quota_used=User.quota_used + size)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            raise NotFoundError("User not found")
        logger.info("Charged %d bytes to user %s", size, user_id)

    def release(self, user_id: str, size: int) -> None:
        """Subtract ``size`` bytes from the user's consumed quota, never below zero."""
        if size <= 0:
            return
        self.db.execute(
            update(User)
            .where(User.id == user_id)
            .values(
                quota_used=case(
                    (User.quota_used >= size, User.quota_used - size),
                    else_=0,
                )
            )
            .execution_options(synchronize_session=False)
        )
        logger.info("Released %d bytes from user %s", size, user_id)

    def used(self, user_id: str) -> int:
        used = self.db.query(User.quota_used).filter(User.id == user_id).scalar()
        if used is None:
            raise NotFoundError("User not found")
        return used

    def get_storage_info(self, user_id: str) -> StorageInfo:
        """Report usage against the configured quota ceiling.

        Args:
            user_id: User to report on

        Returns:
            Used, total and available bytes, and the truncated percentage used
        """
        used = self.used(user_id)
        total = settings.STORAGE_QUOTA_BYTES
        used_percent = int(used / total * 100) if total > 0 else 0
        return StorageInfo(used=used, total=total, available=total - used, usedPercent=used_percent)
