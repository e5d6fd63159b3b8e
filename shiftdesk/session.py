import logging
import secrets
from collections.abc import Callable
from datetime import UTC, datetime, timedelta

from pydantic import BaseModel

from shiftdesk.exceptions import AuthorizationError
from shiftdesk.models import Role

logger = logging.getLogger(__name__)

NowFn = Callable[[], datetime]


class Session(BaseModel):
    """Who is acting: set at login and handed to every operation."""

    restaurant_id: str
    role: Role
    username: str
    employee_id: str | None = None


def require_role(session: Session, role: Role) -> None:
    if session.role != role:
        raise AuthorizationError(f"This action requires the {role} role")


class SessionStore:
    """Token -> session mapping. A session expires ``ttl`` after it was opened."""

    def __init__(
        self,
        *,
        ttl: timedelta,
        now_fn: NowFn = lambda: datetime.now(UTC),
    ) -> None:
        self._ttl = ttl
        self._now_fn = now_fn
        self._sessions: dict[str, tuple[Session, datetime]] = {}

    def open(self, session: Session) -> str:
        now = self._now_fn()
        self._purge_expired(now)

        token = secrets.token_urlsafe(32)
        self._sessions[token] = (session, now + self._ttl)
        logger.info(
            "Opened %s session for %s in restaurant %s",
            session.role,
            session.username,
            session.restaurant_id,
        )
        return token

    def get(self, token: str) -> Session | None:
        entry = self._sessions.get(token)
        if entry is None:
            return None

        session, expires_at = entry
        if self._now_fn() >= expires_at:
            self._sessions.pop(token, None)
            logger.info("Session for %s expired", session.username)
            return None
        return session

    def close(self, token: str) -> None:
        self._sessions.pop(token, None)

    def __len__(self) -> int:
        return len(self._sessions)

    def _purge_expired(self, now: datetime) -> None:
        expired = [
            token
            for token, (_session, expires_at) in self._sessions.items()
            if now >= expires_at
        ]
        for token in expired:
            del self._sessions[token]
        if expired:
            logger.debug("Dropped %d expired sessions", len(expired))
