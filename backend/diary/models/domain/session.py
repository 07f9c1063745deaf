"""Server-side session record."""

from dataclasses import dataclass
from datetime import datetime


@dataclass
class Session:
    """Binding between an opaque token and a user id. Holds no credentials."""
    token: str
    user_id: str
    issued_at: datetime
    expires_at: datetime

    def is_expired(self, now: datetime) -> bool:
        return now >= self.expires_at
