"""
Account Store: the only writer of the accounts table.

Every public method is its own unit of work (fresh session, one transaction). Database
failures surface as StorageError and are never retried here.
"""
import logging
from contextlib import contextmanager
from typing import Iterator, Optional

from sqlalchemy import or_, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from compcoach.core.errors import StorageError
from compcoach.core.plan_limits import SubscriptionStatus, Tier
from compcoach.db.upsert import insert_if_absent
from compcoach.models.account import Account

logger = logging.getLogger(__name__)


class AccountStore:
    def __init__(self, session_factory: sessionmaker, default_tier: str = Tier.FREE.value):
        self._session_factory = session_factory
        self.default_tier = default_tier

    @contextmanager
    def _unit_of_work(self, operation: str) -> Iterator[Session]:
        session = self._session_factory()
        try:
            yield session
            session.commit()
        except SQLAlchemyError as e:
            session.rollback()
            logger.error("[AccountStore] %s failed: %s", operation, e)
            raise StorageError("Database error") from e
        finally:
            session.close()

    def get(self, identity_ref: str) -> Optional[Account]:
        with self._unit_of_work("get") as session:
            return session.execute(
                select(Account).where(Account.identity_ref == identity_ref)
            ).scalar_one_or_none()

    def get_or_create(self, identity_ref: str) -> Account:
        """
        Fetch the account for identity_ref, creating it with the default tier if absent.
        Concurrent first requests race on the unique identity_ref column, never on a
        read-then-insert, so exactly one row is ever created.
        """
        if not identity_ref:
            raise ValueError("identity_ref is required")

        with self._unit_of_work("get_or_create") as session:
            account = session.execute(
                select(Account).where(Account.identity_ref == identity_ref)
            ).scalar_one_or_none()
            if account is not None:
                return account

            created = insert_if_absent(
                session,
                Account,
                Account.identity_ref,
                {
                    "identity_ref": identity_ref,
                    "tier": self.default_tier,
                    "status": SubscriptionStatus.ACTIVE.value,
                    "usage_count": 0,
                },
            )
            if created:
                logger.info("[AccountStore] Created account for %s (tier=%s)", identity_ref, self.default_tier)

            return session.execute(
                select(Account).where(Account.identity_ref == identity_ref)
            ).scalar_one()

    def set_billing_customer_ref(self, identity_ref: str, customer_ref: str) -> None:
        """Attach the Stripe customer to the account. No write when it is already set to customer_ref."""
        with self._unit_of_work("set_billing_customer_ref") as session:
            session.execute(
                update(Account)
                .where(
                    Account.identity_ref == identity_ref,
                    or_(
                        Account.billing_customer_ref.is_(None),
                        Account.billing_customer_ref != customer_ref,
                    ),
                )
                .values(billing_customer_ref=customer_ref)
                .execution_options(synchronize_session=False)
            )

    def apply_billing_update(
        self,
        customer_ref: str,
        tier: str,
        status: str,
        subscription_ref: Optional[str] = None,
    ) -> bool:
        """
        Set tier/status (and the subscription ref when given) on the account owning
        customer_ref. Returns False when no account matches, which is not an error.
        """
        values = {"tier": tier, "status": status}
        if subscription_ref is not None:
            values["billing_subscription_ref"] = subscription_ref

        with self._unit_of_work("apply_billing_update") as session:
            result = session.execute(
                update(Account)
                .where(Account.billing_customer_ref == customer_ref)
                .values(**values)
                .execution_options(synchronize_session=False)
            )
            return result.rowcount > 0

    def increment_usage(self, identity_ref: str) -> int:
        """Atomically add one to usage_count and return the new value."""
        with self._unit_of_work("increment_usage") as session:
            new_count = session.execute(
                update(Account)
                .where(Account.identity_ref == identity_ref)
                .values(usage_count=Account.usage_count + 1)
                .returning(Account.usage_count)
                .execution_options(synchronize_session=False)
            ).scalar_one_or_none()

            if new_count is None:
                raise StorageError(f"No account for {identity_ref}")
            return new_count
