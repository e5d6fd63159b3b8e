import asyncio
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

from httpx import AsyncClient

from shiftdesk.database import InMemoryDocumentStore, shifts_path
from shiftdesk.session import Session


def _p(msg: str) -> None:
    # pytest captures stdout unless you run with -s
    print(msg, flush=True)


def _banner(name: str) -> None:
    _p("\n" + "=" * 88)
    _p(f"test: {name}")
    _p("=" * 88)


class FreezegunSleeper:
    """Sleep stand-in that only wakes when frozen time is ticked past its deadline."""

    def __init__(self, frozen_time):
        self.frozen_time = frozen_time
        self._event = asyncio.Event()

    def tick(self, *, delta: timedelta) -> None:
        self.frozen_time.tick(delta=delta)
        _p(f"clock +{delta} -> {datetime.now(UTC):%H:%M:%S}")
        self._event.set()

    async def sleep(self, seconds: float) -> None:
        wake_at = datetime.now(UTC) + timedelta(seconds=seconds)
        while datetime.now(UTC) < wake_at:
            await self._event.wait()
            self._event.clear()
        _p(f"timer of {seconds}s fired at {wake_at:%H:%M:%S}")


@dataclass
class Seed:
    restaurant_id: str
    manager: Session
    alice: Session
    bob: Session


async def put_shift(
    store: InMemoryDocumentStore,
    restaurant_id: str,
    *,
    date: str,
    shift_type: str,
    needed: int,
    requests: list[str] | None = None,
    assigned: list[str] | None = None,
) -> str:
    return await store.add(
        shifts_path(restaurant_id),
        {
            "date": date,
            "shiftType": shift_type,
            "neededEmployees": needed,
            "assignedEmployees": list(assigned or []),
            "requests": list(requests or []),
        },
    )


async def flush() -> None:
    # one loop turn delivers every snapshot push queued so far
    await asyncio.sleep(0)


async def login(
    client: AsyncClient,
    *,
    username: str,
    password: str,
    role: str,
    restaurant_code: str = "PASTA-42",
) -> dict[str, str]:
    resp = await client.post(
        "/login",
        json={
            "restaurantCode": restaurant_code,
            "username": username,
            "password": password,
            "role": role,
        },
    )
    assert resp.status_code == 200, resp.json()
    return {"X-Session-Token": resp.json()["token"]}
