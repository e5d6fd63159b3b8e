import asyncio
import logging
from collections.abc import Callable

from shiftdesk.database import (
    Document,
    InMemoryDocumentStore,
    Unsubscribe,
    employees_path,
    shifts_path,
)
from shiftdesk.models import Employee, RequestRecord, Shift
from shiftdesk.reconciler import build_request_queue, staffing_by_date

logger = logging.getLogger(__name__)


class LiveCollection:
    """
    Local mirror of one remote collection. Each pushed snapshot replaces the
    previous one wholesale; nothing is merged.
    """

    def __init__(
        self,
        store: InMemoryDocumentStore,
        collection: str,
        *,
        on_snapshot: Callable[[list[Document]], None] | None = None,
    ) -> None:
        self._store = store
        self.collection = collection
        self._on_snapshot = on_snapshot
        self._unsubscribe: Unsubscribe | None = None
        self._ready = asyncio.Event()
        self.documents: list[Document] = []

    def open(self) -> None:
        if self._unsubscribe is None:
            self._unsubscribe = self._store.subscribe(
                self.collection, self.receive
            )

    def close(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    async def wait_ready(self) -> None:
        await self._ready.wait()

    def receive(self, documents: list[Document]) -> None:
        self.documents = documents
        self._ready.set()
        if self._on_snapshot is not None:
            self._on_snapshot(documents)


class ShiftBoard:
    """
    Live view of one restaurant's shifts and employees.

    Two layers back the shift view: the confirmed snapshot last pushed by the
    store, and a local overlay of shift documents patched after a successful
    write. Last write wins by arrival: an overlay entry shadows its confirmed
    copy until the next shifts snapshot arrives, and every arriving snapshot
    drops the whole overlay, even when that snapshot is older than the
    local patch.
    """

    def __init__(self, store: InMemoryDocumentStore, restaurant_id: str) -> None:
        self.restaurant_id = restaurant_id
        self._shifts = LiveCollection(
            store,
            shifts_path(restaurant_id),
            on_snapshot=self._discard_overlay,
        )
        self._employees = LiveCollection(store, employees_path(restaurant_id))
        self._overlay: dict[str, Shift] = {}

    async def open(self) -> None:
        self._shifts.open()
        self._employees.open()
        await asyncio.gather(
            self._shifts.wait_ready(), self._employees.wait_ready()
        )

    def close(self) -> None:
        self._shifts.close()
        self._employees.close()

    @property
    def shifts(self) -> list[Shift]:
        confirmed = [Shift.model_validate(d) for d in self._shifts.documents]
        return [self._overlay.get(s.id, s) for s in confirmed]

    @property
    def employees(self) -> list[Employee]:
        return [Employee.model_validate(d) for d in self._employees.documents]

    @property
    def pending_overlay(self) -> dict[str, Shift]:
        return dict(self._overlay)

    def shift(self, shift_id: str) -> Shift | None:
        return next((s for s in self.shifts if s.id == shift_id), None)

    def apply_local(self, shift: Shift) -> None:
        self._overlay[shift.id] = shift

    def request_queue(self) -> list[RequestRecord]:
        return build_request_queue(self.shifts, self.employees)

    def fully_staffed(self) -> dict[str, bool]:
        return staffing_by_date(self.shifts)

    def _discard_overlay(self, _documents: list[Document]) -> None:
        if self._overlay:
            logger.debug(
                "Shifts snapshot for %s replaced %d local edits",
                self.restaurant_id,
                len(self._overlay),
            )
        self._overlay.clear()


class BoardRegistry:
    """Opens one ShiftBoard per restaurant on first use and keeps it live."""

    def __init__(self, store: InMemoryDocumentStore) -> None:
        self._store = store
        self._boards: dict[str, ShiftBoard] = {}
        self._lock = asyncio.Lock()

    async def get(self, restaurant_id: str) -> ShiftBoard:
        async with self._lock:
            board = self._boards.get(restaurant_id)
            if board is None:
                board = ShiftBoard(self._store, restaurant_id)
                await board.open()
                self._boards[restaurant_id] = board
                logger.info("Opened live board for restaurant %s", restaurant_id)
            return board

    def close_all(self) -> None:
        for board in self._boards.values():
            board.close()
        self._boards.clear()
