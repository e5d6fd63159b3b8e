from datetime import UTC, datetime, timedelta

from helpers import _banner, _p
from shiftdesk.models import Role
from shiftdesk.session import Session, SessionStore


class Clock:
    def __init__(self) -> None:
        self.now = datetime(2025, 7, 2, 8, 0, tzinfo=UTC)

    def __call__(self) -> datetime:
        return self.now


def _manager(n: int) -> Session:
    return Session(restaurant_id="r1", role=Role.MANAGER, username=f"boss-{n}")


def test_opening_a_session_drops_expired_ones() -> None:
    _banner("abandoned expired sessions are dropped on the next login")
    clock = Clock()
    sessions = SessionStore(ttl=timedelta(minutes=30), now_fn=clock)

    abandoned = [sessions.open(_manager(n)) for n in range(1000)]
    assert len(sessions) == 1000

    clock.now += timedelta(minutes=30)
    fresh = sessions.open(_manager(1000))
    _p(f"sessions held after expiry + one login: {len(sessions)}")

    assert len(sessions) == 1
    assert sessions.get(fresh) is not None
    assert all(sessions.get(token) is None for token in abandoned)


def test_live_sessions_survive_a_sweep() -> None:
    clock = Clock()
    sessions = SessionStore(ttl=timedelta(minutes=30), now_fn=clock)

    old = sessions.open(_manager(1))
    clock.now += timedelta(minutes=29)
    new = sessions.open(_manager(2))

    assert len(sessions) == 2
    assert sessions.get(old).username == "boss-1"
    assert sessions.get(new).username == "boss-2"
