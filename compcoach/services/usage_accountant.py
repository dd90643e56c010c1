import logging

from compcoach.services.account_store import AccountStore

logger = logging.getLogger(__name__)


class UsageAccountant:
    """
    Charges one chat call to an account. Call it exactly once per request, only after the
    provider returned success, so failed upstream calls never consume quota.
    """

    def __init__(self, store: AccountStore):
        self._store = store

    def record_success(self, identity_ref: str) -> int:
        usage_count = self._store.increment_usage(identity_ref)
        logger.info("Recorded chat call for %s (usage_count=%s)", identity_ref, usage_count)
        return usage_count
