import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from helpers import Seed, flush
from shiftdesk.api import create_app
from shiftdesk.auth import register_restaurant
from shiftdesk.config import Settings
from shiftdesk.database import InMemoryDocumentStore
from shiftdesk.employees import NewEmployee, add_employee
from shiftdesk.models import Role
from shiftdesk.session import Session


@pytest.fixture
def store() -> InMemoryDocumentStore:
    return InMemoryDocumentStore()


@pytest_asyncio.fixture
async def seed(store: InMemoryDocumentStore) -> Seed:
    restaurant_id = await register_restaurant(
        store,
        restaurant_code="PASTA-42",
        manager_username="boss",
        manager_password="s3cret",
    )
    manager = Session(restaurant_id=restaurant_id, role=Role.MANAGER, username="boss")

    alice_id = await add_employee(
        NewEmployee(
            first_name="Alice", last_name="Ongwele", username="alice", password="pw-a"
        ),
        session=manager,
        store=store,
    )
    bob_id = await add_employee(
        NewEmployee(
            first_name="Bob", last_name="Kozumikov", username="bob", password="pw-b"
        ),
        session=manager,
        store=store,
    )

    return Seed(
        restaurant_id=restaurant_id,
        manager=manager,
        alice=Session(
            restaurant_id=restaurant_id,
            role=Role.EMPLOYEE,
            username="alice",
            employee_id=alice_id,
        ),
        bob=Session(
            restaurant_id=restaurant_id,
            role=Role.EMPLOYEE,
            username="bob",
            employee_id=bob_id,
        ),
    )


@pytest_asyncio.fixture
async def app(store: InMemoryDocumentStore):
    app = create_app(Settings(), store=store)
    yield app

    # unsubscribe live boards and cancel pending badge timers
    app.state.boards.close_all()
    app.state.submit_statuses.cancel_all()
    await flush()


@pytest_asyncio.fixture
async def client(app):
    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test"
    ) as async_client:
        yield async_client
