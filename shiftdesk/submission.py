import asyncio
import logging
from collections.abc import Awaitable, Callable
from enum import StrEnum

from shiftdesk.database import ArrayUnion, InMemoryDocumentStore, shifts_path
from shiftdesk.exceptions import NotFoundError, StoreError, ValidationError
from shiftdesk.models import Role
from shiftdesk.session import Session, require_role

logger = logging.getLogger(__name__)

SleepFn = Callable[[float], Awaitable[None]]


class SubmitStatus(StrEnum):
    SUBMITTING = "submitting"
    SUBMITTED = "submitted"
    ERROR = "error"


async def submit_shift_request(
    shift_id: str,
    *,
    session: Session,
    store: InMemoryDocumentStore,
) -> bool:
    """
    Add the session's employee to a shift's requests. Returns False when the
    request was already there (nothing written), True after a write.
    """
    require_role(session, Role.EMPLOYEE)
    employee_id = session.employee_id
    if not employee_id:
        raise ValidationError("No employee is linked to this session")

    collection = shifts_path(session.restaurant_id)
    doc = await store.get(collection, shift_id)
    if doc is None:
        raise NotFoundError(f"Shift {shift_id} not found")
    if employee_id in doc.get("requests", []):
        return False

    await store.update(collection, shift_id, {"requests": ArrayUnion(employee_id)})
    logger.info("Employee %s requested shift %s", employee_id, shift_id)
    return True


class SubmitStatusBoard:
    """
    Transient per-(employee, shift) submission badges. ``submitted`` and
    ``error`` clear themselves ``clear_after`` seconds later; ``submitting``
    stays until the request settles.
    """

    def __init__(self, *, clear_after: float, sleep_fn: SleepFn) -> None:
        self._clear_after = clear_after
        self._sleep_fn = sleep_fn
        self._statuses: dict[tuple[str, str], SubmitStatus] = {}
        self._clear_tasks: dict[tuple[str, str], asyncio.Task] = {}

    def get(self, employee_id: str, shift_id: str) -> SubmitStatus | None:
        return self._statuses.get((employee_id, shift_id))

    async def track(
        self, employee_id: str, shift_id: str, submission: Awaitable[bool]
    ) -> SubmitStatus:
        key = (employee_id, shift_id)
        self._set(key, SubmitStatus.SUBMITTING)
        try:
            await submission
        except (NotFoundError, StoreError):
            logger.exception("Error requesting shift %s", shift_id)
            status = SubmitStatus.ERROR
        else:
            status = SubmitStatus.SUBMITTED

        self._set(key, status)
        self._schedule_clear(key, status)
        return status

    def cancel_all(self) -> None:
        for task in self._clear_tasks.values():
            task.cancel()
        self._clear_tasks.clear()

    def _set(self, key: tuple[str, str], status: SubmitStatus) -> None:
        previous = self._clear_tasks.pop(key, None)
        if previous is not None:
            previous.cancel()
        self._statuses[key] = status

    def _schedule_clear(self, key: tuple[str, str], status: SubmitStatus) -> None:
        task = asyncio.create_task(self._clear_later(key, status))
        self._clear_tasks[key] = task

        def _cleanup(t: asyncio.Task) -> None:
            if self._clear_tasks.get(key) is t:
                self._clear_tasks.pop(key, None)

        task.add_done_callback(_cleanup)

    async def _clear_later(self, key: tuple[str, str], status: SubmitStatus) -> None:
        try:
            await self._sleep_fn(self._clear_after)
        except asyncio.CancelledError:
            return
        if self._statuses.get(key) == status:
            del self._statuses[key]

    @property
    def pending_clears(self) -> int:
        return len(self._clear_tasks)


async def request_shift(
    shift_id: str,
    *,
    session: Session,
    store: InMemoryDocumentStore,
    statuses: SubmitStatusBoard,
) -> SubmitStatus:
    """Validate locally, then submit while tracking the transient status."""
    require_role(session, Role.EMPLOYEE)
    if not session.employee_id:
        raise ValidationError("No employee is linked to this session")

    return await statuses.track(
        session.employee_id,
        shift_id,
        submit_shift_request(shift_id, session=session, store=store),
    )
