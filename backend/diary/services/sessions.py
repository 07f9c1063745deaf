"""
Server-side session management.

Tokens are random and opaque; the only thing a token maps to is a user id.
Records live in process memory and are never written to the database.
"""

import hashlib
import secrets
from collections.abc import Callable
from datetime import datetime, timedelta, timezone

from diary.logging import get_logger
from diary.models import Session, User
from diary.services.credentials import CredentialStore

logger = get_logger('services.sessions')


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def fingerprint(token: str) -> str:
    """Short, non-reversible tag for a token, safe to put in logs."""
    return hashlib.sha256(token.encode("utf-8")).hexdigest()[:10]


class SessionManager:
    """Issues, resolves and destroys sessions."""

    def __init__(
        self,
        credentials: CredentialStore,
        ttl: timedelta = timedelta(hours=24),
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.credentials = credentials
        self.ttl = ttl
        self.clock = clock
        self._sessions: dict[str, Session] = {}

    def create_session(self, user: User) -> str:
        self.purge_expired()
        now = self.clock()
        token = secrets.token_urlsafe(32)
        self._sessions[token] = Session(
            token=token,
            user_id=user.id,
            issued_at=now,
            expires_at=now + self.ttl,
        )
        logger.info(f"Session {fingerprint(token)} issued for user {user.id[:8]}")
        return token

    def lookup(self, token: str | None) -> Session | None:
        """Return the live session record for ``token``, evicting it if expired."""
        if not token:
            return None
        session = self._sessions.get(token)
        if session is None:
            return None
        if session.is_expired(self.clock()):
            self._sessions.pop(token, None)
            logger.info(f"Session {fingerprint(token)} expired")
            return None
        return session

    async def resolve_session(self, token: str | None) -> User | None:
        session = self.lookup(token)
        if session is None:
            return None
        user = await self.credentials.get_user(session.user_id)
        if user is None:
            self._sessions.pop(session.token, None)
            return None
        return user

    def destroy_session(self, token: str | None) -> None:
        if token and self._sessions.pop(token, None) is not None:
            logger.info(f"Session {fingerprint(token)} destroyed")

    def purge_expired(self) -> int:
        now = self.clock()
        expired = [t for t, s in self._sessions.items() if s.is_expired(now)]
        for token in expired:
            del self._sessions[token]
        if expired:
            logger.debug(f"Purged {len(expired)} expired sessions")
        return len(expired)

    @property
    def active_count(self) -> int:
        return len(self._sessions)
