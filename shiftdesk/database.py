import asyncio
import copy
import uuid
from collections import defaultdict
from collections.abc import Callable, MutableMapping
from dataclasses import dataclass
from typing import Any

from shiftdesk.exceptions import StoreError

Document = dict[str, Any]
Listener = Callable[[list[Document]], None]
Unsubscribe = Callable[[], None]

RESTAURANTS = "restaurants"


def employees_path(restaurant_id: str) -> str:
    return f"{RESTAURANTS}/{restaurant_id}/employees"


def shifts_path(restaurant_id: str) -> str:
    return f"{RESTAURANTS}/{restaurant_id}/shifts"


@dataclass(frozen=True)
class ArrayUnion:
    """Update transform: append values not already present in a list field."""

    values: tuple[Any, ...]

    def __init__(self, *values: Any) -> None:
        object.__setattr__(self, "values", values)


@dataclass(frozen=True)
class ArrayRemove:
    """Update transform: drop every occurrence of values from a list field."""

    values: tuple[Any, ...]

    def __init__(self, *values: Any) -> None:
        object.__setattr__(self, "values", values)


class InMemoryDocumentStore:
    """
    In-memory document store with per-collection change feeds.

    Documents live in collections addressed by slash-separated paths
    (``restaurants/{id}/shifts``). Reads return deep copies that include the
    document id under ``"id"``. Every write pushes the full snapshot of the
    touched collection to its listeners; delivery is scheduled on the running
    event loop, so listeners never run inside the writer's call.
    """

    def __init__(self) -> None:
        self._collections: MutableMapping[str, MutableMapping[str, Document]] = (
            defaultdict(dict)
        )
        self._listeners: MutableMapping[str, list[Listener]] = defaultdict(
            list
        )

    async def get(self, collection: str, doc_id: str) -> Document | None:
        data = self._collections[collection].get(doc_id)
        if data is None:
            return None
        return _with_id(doc_id, data)

    async def all(self, collection: str) -> list[Document]:
        return self._snapshot(collection)

    async def query(
        self, collection: str, field: str, value: Any
    ) -> list[Document]:
        return [d for d in self._snapshot(collection) if d.get(field) == value]

    async def add(self, collection: str, data: Document) -> str:
        doc_id = uuid.uuid4().hex
        self._collections[collection][doc_id] = _strip_id(data)
        self._publish(collection)
        return doc_id

    async def set(self, collection: str, doc_id: str, data: Document) -> None:
        self._collections[collection][doc_id] = _strip_id(data)
        self._publish(collection)

    async def update(
        self, collection: str, doc_id: str, changes: Document
    ) -> None:
        """
        Apply a partial update. Plain values replace the field;
        ``ArrayUnion``/``ArrayRemove`` transform a list field in place.
        All fields are applied together or not at all.
        """
        current = self._collections[collection].get(doc_id)
        if current is None:
            raise StoreError(f"No document {collection}/{doc_id} to update")

        updated = copy.deepcopy(current)
        for field, change in changes.items():
            if isinstance(change, ArrayUnion):
                items = list(updated.get(field) or [])
                items.extend(v for v in change.values if v not in items)
                updated[field] = items
            elif isinstance(change, ArrayRemove):
                updated[field] = [
                    v for v in updated.get(field) or [] if v not in change.values
                ]
            else:
                updated[field] = copy.deepcopy(change)

        self._collections[collection][doc_id] = updated
        self._publish(collection)

    async def delete(self, collection: str, doc_id: str) -> None:
        if self._collections[collection].pop(doc_id, None) is not None:
            self._publish(collection)

    def subscribe(self, collection: str, listener: Listener) -> Unsubscribe:
        """
        Register a listener for full-snapshot pushes of a collection.
        The current snapshot is pushed once right after subscribing.
        Must be called with an event loop running.
        """
        self._listeners[collection].append(listener)
        self._schedule(collection, listener, self._snapshot(collection))

        def unsubscribe() -> None:
            listeners = self._listeners[collection]
            if listener in listeners:
                listeners.remove(listener)

        return unsubscribe

    def _snapshot(self, collection: str) -> list[Document]:
        return [
            _with_id(doc_id, data)
            for doc_id, data in self._collections[collection].items()
        ]

    def _publish(self, collection: str) -> None:
        for listener in list(self._listeners[collection]):
            self._schedule(collection, listener, self._snapshot(collection))

    def _schedule(
        self, collection: str, listener: Listener, snapshot: list[Document]
    ) -> None:
        def deliver() -> None:
            # listener may have unsubscribed while the push was queued
            if listener in self._listeners[collection]:
                listener(snapshot)

        asyncio.get_running_loop().call_soon(deliver)


def _with_id(doc_id: str, data: Document) -> Document:
    return {"id": doc_id, **copy.deepcopy(data)}


def _strip_id(data: Document) -> Document:
    return {k: copy.deepcopy(v) for k, v in data.items() if k != "id"}
