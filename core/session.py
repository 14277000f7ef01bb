"""
The authenticated context of the console.
"""
from dataclasses import dataclass, field
from datetime import datetime

from django.utils import timezone


@dataclass(frozen=True)
class Session:
    """One logged-in account. Held by a ReservationManager, never global."""
    username: str
    is_admin: bool = False
    started_at: datetime = field(default_factory=timezone.now)

    @classmethod
    def for_account(cls, account):
        return cls(username=account.username, is_admin=account.is_admin)
