from compcoach.models.account import Account
from compcoach.models.waitlist_entry import WaitlistEntry

__all__ = [
    "Account",
    "WaitlistEntry",
]
