"""
Entitlement Resolver: compares an account's usage against its tier's chat quota.
Read-only; it never touches usage_count.
"""
from dataclasses import dataclass
from typing import Union

from compcoach.core.errors import QuotaExceeded
from compcoach.core.plan_limits import UNLIMITED, get_plan_limit
from compcoach.models.account import Account


@dataclass(frozen=True)
class Allowed:
    tier: str
    quota: int
    usage_count: int


def get_chat_quota(tier: str) -> int:
    return get_plan_limit(tier, "max_chat_calls")


def check_quota(account: Account) -> Union[Allowed, QuotaExceeded]:
    """Allowed iff the tier is unlimited or usage_count < quota. Unknown tiers get the free quota."""
    quota = get_chat_quota(account.tier)
    usage_count = account.usage_count or 0

    if quota == UNLIMITED or usage_count < quota:
        return Allowed(tier=account.tier, quota=quota, usage_count=usage_count)
    return QuotaExceeded(tier=account.tier, quota=quota, usage_count=usage_count)
