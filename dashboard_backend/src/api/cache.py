from __future__ import annotations

import logging
from contextlib import contextmanager
from threading import Lock, RLock
from typing import Callable, Dict, Generic, Iterable, Iterator, List, Optional, Protocol, TypeVar

logger = logging.getLogger(__name__)


class _HasId(Protocol):
    @property
    def id(self) -> int: ...


T = TypeVar("T", bound=_HasId)

Listener = Callable[[List[T]], None]


# PUBLIC_INTERFACE
class ClientCache(Generic[T]):
    """
    Ordered, session-scoped mirror of the records loaded for one user.

    Only mutation handlers write to it. Every change notifies the subscribed
    listeners with a snapshot of the new contents; projections read snapshots
    and never mutate the cache.
    """

    def __init__(self) -> None:
        self._lock = RLock()
        self._items: List[T] = []
        self._listeners: List[Listener] = []

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a change listener. Returns a callable that removes it."""
        with self._lock:
            self._listeners.append(listener)

        def _unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return _unsubscribe

    def _notify(self) -> None:
        snapshot = list(self._items)
        for listener in list(self._listeners):
            listener(snapshot)

    def snapshot(self) -> List[T]:
        with self._lock:
            return list(self._items)

    def get(self, record_id: int) -> Optional[T]:
        with self._lock:
            for item in self._items:
                if item.id == record_id:
                    return item
            return None

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)

    def replace_all(self, items: Iterable[T]) -> None:
        with self._lock:
            self._items = list(items)
            self._notify()

    def prepend(self, item: T) -> None:
        with self._lock:
            self._items.insert(0, item)
            self._notify()

    def append(self, item: T) -> None:
        with self._lock:
            self._items.append(item)
            self._notify()

    def replace(self, item: T) -> bool:
        """Swap the entry with the same id in place. Return False if it is not cached."""
        with self._lock:
            for index, existing in enumerate(self._items):
                if existing.id == item.id:
                    self._items[index] = item
                    self._notify()
                    return True
            return False

    def remove(self, record_id: int) -> bool:
        with self._lock:
            remaining = [i for i in self._items if i.id != record_id]
            if len(remaining) == len(self._items):
                return False
            self._items = remaining
            self._notify()
            return True


# PUBLIC_INTERFACE
class RecordLocks:
    """
    One write lock per record id.

    A mutation holds the lock of its record from reading the cached state until
    the confirmed write is reflected, so an edit and a counter change on the
    same goal cannot overwrite each other.
    """

    def __init__(self) -> None:
        self._guard = Lock()
        self._locks: Dict[int, Lock] = {}

    def _lock_for(self, record_id: int) -> Lock:
        with self._guard:
            lock = self._locks.get(record_id)
            if lock is None:
                lock = self._locks[record_id] = Lock()
            return lock

    @contextmanager
    def hold(self, record_id: int) -> Iterator[None]:
        lock = self._lock_for(record_id)
        with lock:
            yield

    def discard(self, record_id: int) -> None:
        with self._guard:
            self._locks.pop(record_id, None)
