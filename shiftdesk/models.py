"""
Domain models for restaurants, employees and shifts.

Field names follow the stored document layout (camelCase aliases); Python
code uses the snake_case attributes.
"""

from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field


class Role(StrEnum):
    MANAGER = "manager"
    EMPLOYEE = "employee"


class ShiftType(StrEnum):
    MORNING = "morning"
    NOON = "noon"
    EVENING = "evening"


SHIFT_TYPE_RANK: dict[ShiftType, int] = {
    ShiftType.MORNING: 1,
    ShiftType.NOON: 2,
    ShiftType.EVENING: 3,
}


class StoredModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class ManagerCredentials(StoredModel):
    username: str
    password_hash: str = Field(alias="passwordHash")


class Restaurant(StoredModel):
    id: str
    restaurant_code: str = Field(alias="restaurantCode")
    manager: ManagerCredentials


class Employee(StoredModel):
    id: str
    first_name: str = Field(alias="firstName")
    last_name: str = Field(alias="lastName")
    username: str
    password_hash: str = Field(alias="passwordHash")

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"


class Shift(StoredModel):
    id: str
    date: str
    shift_type: ShiftType = Field(alias="shiftType")
    needed_employees: int = Field(alias="neededEmployees")
    assigned_employees: list[str] = Field(
        default_factory=list, alias="assignedEmployees"
    )
    requests: list[str] = Field(default_factory=list)


class RequestRecord(BaseModel):
    """One pending (employee, shift) request as shown in the manager queue."""

    model_config = ConfigDict(populate_by_name=True)

    employee_name: str = Field(alias="employeeName")
    employee_id: str = Field(alias="employeeId")
    date: str
    shift_type: ShiftType = Field(alias="shiftType")
    shift_id: str = Field(alias="shiftId")
