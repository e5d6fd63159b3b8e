import logging

from shiftdesk.database import ArrayRemove, InMemoryDocumentStore, shifts_path
from shiftdesk.exceptions import NotFoundError, StoreError
from shiftdesk.live import ShiftBoard
from shiftdesk.models import RequestRecord, Role, Shift
from shiftdesk.session import Session, require_role

logger = logging.getLogger(__name__)


async def accept_request(
    record: RequestRecord,
    *,
    session: Session,
    store: InMemoryDocumentStore,
    board: ShiftBoard,
) -> bool:
    """
    Move the employee from the shift's requests to its assigned employees in
    a single write, then mirror the written shift into the board's local
    overlay. Returns False, leaving local state untouched, when the write
    fails.
    """
    require_role(session, Role.MANAGER)
    collection = shifts_path(session.restaurant_id)

    try:
        doc = await store.get(collection, record.shift_id)
        if doc is None:
            raise NotFoundError(f"Shift {record.shift_id} not found")

        shift = Shift.model_validate(doc)
        assigned = [*shift.assigned_employees, record.employee_id]
        requests = [e for e in shift.requests if e != record.employee_id]
        await store.update(
            collection,
            record.shift_id,
            {"assignedEmployees": assigned, "requests": requests},
        )
    except (NotFoundError, StoreError):
        logger.exception(
            "Error accepting request of %s for shift %s",
            record.employee_id,
            record.shift_id,
        )
        return False

    board.apply_local(
        shift.model_copy(
            update={"assigned_employees": assigned, "requests": requests}
        )
    )
    logger.info(
        "Accepted %s for %s shift on %s",
        record.employee_id,
        record.shift_type,
        record.date,
    )
    return True


async def reject_request(
    record: RequestRecord,
    *,
    session: Session,
    store: InMemoryDocumentStore,
    board: ShiftBoard,
) -> bool:
    require_role(session, Role.MANAGER)

    try:
        await store.update(
            shifts_path(session.restaurant_id),
            record.shift_id,
            {"requests": ArrayRemove(record.employee_id)},
        )
    except StoreError:
        logger.exception(
            "Error rejecting request of %s for shift %s",
            record.employee_id,
            record.shift_id,
        )
        return False

    local = board.shift(record.shift_id)
    if local is not None:
        board.apply_local(
            local.model_copy(
                update={
                    "requests": [
                        e for e in local.requests if e != record.employee_id
                    ]
                }
            )
        )
    logger.info(
        "Rejected %s for %s shift on %s",
        record.employee_id,
        record.shift_type,
        record.date,
    )
    return True
