import logging
from collections.abc import Iterable

from pydantic import BaseModel, ConfigDict, Field

from shiftdesk.database import InMemoryDocumentStore, shifts_path
from shiftdesk.dates import normalize_day
from shiftdesk.exceptions import NotFoundError, StoreError, ValidationError
from shiftdesk.models import SHIFT_TYPE_RANK, Role, Shift, ShiftType
from shiftdesk.session import Session, require_role

logger = logging.getLogger(__name__)


class DaySlot(BaseModel):
    """One editable row of the day editor. ``id`` is None for an empty slot."""

    model_config = ConfigDict(populate_by_name=True)

    id: str | None = None
    shift_type: ShiftType = Field(alias="shiftType")
    needed_employees: int = Field(alias="neededEmployees")


class DaySaveResult(BaseModel):
    created: list[str] = Field(default_factory=list)
    updated: list[str] = Field(default_factory=list)
    deleted: list[str] = Field(default_factory=list)
    failed: list[ShiftType] = Field(default_factory=list)


def load_day(shifts: Iterable[Shift], day: str) -> list[DaySlot]:
    """
    Slots for the day editor: every existing shift on ``day`` plus an empty
    slot for each shift type the day does not have yet.
    """
    day = normalize_day(day)
    existing = [s for s in shifts if s.date == day]
    slots = [
        DaySlot(
            id=s.id,
            shift_type=s.shift_type,
            needed_employees=s.needed_employees,
        )
        for s in existing
    ]
    present = {s.shift_type for s in existing}
    slots.extend(
        DaySlot(shift_type=t, needed_employees=0)
        for t in ShiftType
        if t not in present
    )
    return sorted(slots, key=lambda s: SHIFT_TYPE_RANK[s.shift_type])


async def add_shift(
    day: str,
    shift_type: ShiftType,
    needed_employees: int,
    *,
    session: Session,
    store: InMemoryDocumentStore,
) -> str:
    require_role(session, Role.MANAGER)
    if needed_employees < 0:
        raise ValidationError("Needed employees cannot be negative")

    shift_id = await store.add(
        shifts_path(session.restaurant_id),
        {
            "date": normalize_day(day),
            "shiftType": ShiftType(shift_type).value,
            "neededEmployees": needed_employees,
            "assignedEmployees": [],
            "requests": [],
        },
    )
    logger.info("Added %s shift on %s (%s)", shift_type, day, shift_id)
    return shift_id


async def save_day(
    day: str,
    slots: Iterable[DaySlot],
    *,
    session: Session,
    store: InMemoryDocumentStore,
) -> DaySaveResult:
    """
    Persist the day editor. A needed count of zero deletes an existing shift,
    so a zero-staff shift and no shift are the same state; a positive count
    updates the existing shift or creates a new one. Slot ids must belong to
    shifts on ``day``. A slot whose write fails is logged and skipped.
    """
    require_role(session, Role.MANAGER)
    slots = list(slots)
    if any(slot.needed_employees < 0 for slot in slots):
        raise ValidationError("Needed employees cannot be negative")

    collection = shifts_path(session.restaurant_id)
    day_key = normalize_day(day)
    on_day = {
        doc["id"] for doc in await store.all(collection) if doc.get("date") == day_key
    }
    unknown = [s.id for s in slots if s.id is not None and s.id not in on_day]
    if unknown:
        raise NotFoundError(f"No shifts {unknown} on {day}")

    result = DaySaveResult()
    for slot in slots:
        try:
            if slot.id is not None:
                if slot.needed_employees == 0:
                    await store.delete(collection, slot.id)
                    result.deleted.append(slot.id)
                else:
                    await store.update(
                        collection,
                        slot.id,
                        {
                            "shiftType": slot.shift_type.value,
                            "neededEmployees": slot.needed_employees,
                        },
                    )
                    result.updated.append(slot.id)
            elif slot.needed_employees > 0:
                result.created.append(
                    await add_shift(
                        day,
                        slot.shift_type,
                        slot.needed_employees,
                        session=session,
                        store=store,
                    )
                )
        except StoreError:
            logger.exception("Error saving %s shift on %s", slot.shift_type, day)
            result.failed.append(slot.shift_type)

    return result
