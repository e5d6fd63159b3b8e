import logging

from werkzeug.security import check_password_hash, generate_password_hash

from shiftdesk.database import RESTAURANTS, InMemoryDocumentStore, employees_path
from shiftdesk.exceptions import AuthenticationError, ValidationError
from shiftdesk.models import Employee, ManagerCredentials, Restaurant, Role
from shiftdesk.session import Session

logger = logging.getLogger(__name__)


async def register_restaurant(
    store: InMemoryDocumentStore,
    *,
    restaurant_code: str,
    manager_username: str,
    manager_password: str,
) -> str:
    code = (restaurant_code or "").strip()
    if not code or not manager_username or not manager_password:
        raise ValidationError(
            "Restaurant code, manager username and password are required"
        )
    if await store.query(RESTAURANTS, "restaurantCode", code):
        raise ValidationError("Restaurant code is already in use")

    manager = ManagerCredentials(
        username=manager_username,
        password_hash=generate_password_hash(manager_password),
    )
    restaurant_id = await store.add(
        RESTAURANTS,
        {
            "restaurantCode": code,
            "manager": manager.model_dump(by_alias=True),
        },
    )
    logger.info("Registered restaurant %s (%s)", restaurant_id, code)
    return restaurant_id


async def authenticate(
    store: InMemoryDocumentStore,
    *,
    restaurant_code: str,
    username: str,
    password: str,
    role: Role,
) -> Session:
    """
    Resolve a restaurant by its access code and verify the credentials for
    the requested role. Raises AuthenticationError with a message meant for
    the person logging in.
    """
    matches = await store.query(RESTAURANTS, "restaurantCode", restaurant_code)
    if not matches:
        raise AuthenticationError("Invalid restaurant code.")

    restaurant = Restaurant.model_validate(matches[0])

    if role == Role.MANAGER:
        manager = restaurant.manager
        if manager.username == username and check_password_hash(
            manager.password_hash, password
        ):
            return Session(
                restaurant_id=restaurant.id,
                role=Role.MANAGER,
                username=username,
            )
        raise AuthenticationError("Invalid manager credentials.")

    candidates = await store.query(
        employees_path(restaurant.id), "username", username
    )
    for doc in candidates:
        employee = Employee.model_validate(doc)
        if check_password_hash(employee.password_hash, password):
            return Session(
                restaurant_id=restaurant.id,
                role=Role.EMPLOYEE,
                username=username,
                employee_id=employee.id,
            )
    raise AuthenticationError("Invalid employee credentials.")
