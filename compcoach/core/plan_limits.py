from enum import Enum
from typing import Dict


class Tier(str, Enum):
    FREE = "free"
    INDIVIDUAL = "individual"
    PREMIUM = "premium"


class SubscriptionStatus(str, Enum):
    ACTIVE = "active"
    CANCELED = "canceled"


UNLIMITED = -1  # -1 means unlimited

# AI chat calls allowed per tier. Free is a lifetime cap, usage is never reset.
PLAN_LIMITS: Dict[str, Dict[str, int]] = {
    Tier.FREE.value: {
        "max_chat_calls": 3,
    },
    Tier.INDIVIDUAL.value: {
        "max_chat_calls": UNLIMITED,
    },
    Tier.PREMIUM.value: {
        "max_chat_calls": UNLIMITED,
    },
}


def get_plan_limit(plan_tier: str, limit_type: str) -> int:
    """Get the limit value for a specific plan and limit type. Unknown plans get free limits."""
    return PLAN_LIMITS.get(plan_tier, PLAN_LIMITS[Tier.FREE.value]).get(limit_type, 0)
