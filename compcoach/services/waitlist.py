import logging
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from compcoach.core.errors import StorageError, ValidationError
from compcoach.db.upsert import insert_if_absent
from compcoach.models.waitlist_entry import WaitlistEntry

logger = logging.getLogger(__name__)


class WaitlistService:
    def __init__(self, session_factory: sessionmaker):
        self._session_factory = session_factory

    def join(self, email: Optional[str], name: Optional[str] = None, tier: Optional[str] = None) -> bool:
        """Add email to the waitlist. Returns False when it was already on it."""
        normalized = (email or "").strip().lower()
        if not normalized or "@" not in normalized:
            raise ValidationError("Valid email required")

        session = self._session_factory()
        try:
            added = insert_if_absent(
                session,
                WaitlistEntry,
                WaitlistEntry.email,
                {
                    "email": normalized,
                    "name": name or None,
                    "tier_interest": tier or "pro",
                    "source": "website",
                    "status": "pending",
                },
            )
            session.commit()
        except SQLAlchemyError as e:
            session.rollback()
            logger.error("Waitlist error: %s", e)
            raise StorageError("Failed to join waitlist") from e
        finally:
            session.close()

        if added:
            logger.info("Added %s to waitlist", normalized)
        return added
