import logging

from pydantic import BaseModel, ConfigDict, Field
from werkzeug.security import generate_password_hash

from shiftdesk.database import InMemoryDocumentStore, employees_path
from shiftdesk.exceptions import ValidationError
from shiftdesk.models import Employee, Role
from shiftdesk.session import Session, require_role

logger = logging.getLogger(__name__)


class NewEmployee(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    first_name: str = Field(alias="firstName")
    last_name: str = Field(alias="lastName")
    username: str
    password: str


class EmployeeOut(BaseModel):
    """Public view of an employee; never carries the password hash."""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    first_name: str = Field(alias="firstName")
    last_name: str = Field(alias="lastName")
    username: str

    @classmethod
    def from_employee(cls, employee: Employee) -> "EmployeeOut":
        return cls(
            id=employee.id,
            first_name=employee.first_name,
            last_name=employee.last_name,
            username=employee.username,
        )


async def add_employee(
    new: NewEmployee,
    *,
    session: Session,
    store: InMemoryDocumentStore,
) -> str:
    require_role(session, Role.MANAGER)
    fields = [new.first_name, new.last_name, new.username, new.password]
    if not all(f.strip() for f in fields):
        raise ValidationError(
            "First name, last name, username and password are required"
        )

    collection = employees_path(session.restaurant_id)
    if await store.query(collection, "username", new.username):
        raise ValidationError(f"Username {new.username} is already taken")

    employee_id = await store.add(
        collection,
        {
            "firstName": new.first_name,
            "lastName": new.last_name,
            "username": new.username,
            "passwordHash": generate_password_hash(new.password),
        },
    )
    logger.info("Added employee %s (%s)", new.username, employee_id)
    return employee_id


async def list_employees(
    *, session: Session, store: InMemoryDocumentStore
) -> list[EmployeeOut]:
    require_role(session, Role.MANAGER)
    docs = await store.all(employees_path(session.restaurant_id))
    return [EmployeeOut.from_employee(Employee.model_validate(d)) for d in docs]
