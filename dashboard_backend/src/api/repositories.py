from __future__ import annotations

import copy
import logging
from abc import ABC, abstractmethod
from datetime import datetime
from functools import lru_cache
from threading import RLock
from typing import Any, Dict, List, Optional

from .errors import RecordStoreError
from .models import TABLES, RecordRow
from .settings import get_settings

logger = logging.getLogger(__name__)


def _check_table(table: str) -> None:
    if table not in TABLES:
        raise RecordStoreError(f"Unknown table: {table}")


# PUBLIC_INTERFACE
class RecordStore(ABC):
    """
    Abstract contract for the per-owner Record Store.

    Every operation is scoped by ``owner``; rows belonging to other users are
    invisible. Failures raise RecordStoreError.
    """

    @abstractmethod
    def select(self, table: str, owner: str, newest_first: bool = True) -> List[RecordRow]:
        """Return all rows of ``owner`` ordered by created_at."""

    @abstractmethod
    def insert(self, table: str, owner: str, info: Any) -> RecordRow:
        """Insert a row and return it with its store-assigned id and timestamps."""

    @abstractmethod
    def update(self, table: str, record_id: int, owner: str, info: Any) -> Optional[RecordRow]:
        """Replace ``info`` and re-stamp updated_at. Return the row, or None if no row matched."""

    @abstractmethod
    def delete(self, table: str, record_id: int, owner: str) -> bool:
        """Delete a row. Return True if deleted, False if no row matched."""


class InMemoryRecordStore(RecordStore):
    """
    Thread-safe in-memory store suitable for testing and default runtime.
    """

    def __init__(self) -> None:
        self._lock = RLock()
        self._tables: Dict[str, Dict[int, RecordRow]] = {t: {} for t in TABLES}
        self._next_id = 1

    def _now(self) -> datetime:
        return datetime.now()

    def _allocate_id(self) -> int:
        with self._lock:
            i = self._next_id
            self._next_id += 1
            return i

    def select(self, table: str, owner: str, newest_first: bool = True) -> List[RecordRow]:
        _check_table(table)
        with self._lock:
            rows = [r for r in self._tables[table].values() if r["user_id"] == owner]
            rows.sort(key=lambda r: (r["created_at"], r["id"]), reverse=newest_first)
            return [copy.deepcopy(r) for r in rows]

    def insert(self, table: str, owner: str, info: Any) -> RecordRow:
        _check_table(table)
        now = self._now()
        row: RecordRow = {
            "id": self._allocate_id(),
            "user_id": owner,
            "info": copy.deepcopy(info),
            "created_at": now,
            "updated_at": now,
        }
        with self._lock:
            self._tables[table][row["id"]] = row
            return copy.deepcopy(row)

    def update(self, table: str, record_id: int, owner: str, info: Any) -> Optional[RecordRow]:
        _check_table(table)
        with self._lock:
            existing = self._tables[table].get(record_id)
            if existing is None or existing["user_id"] != owner:
                return None
            updated = existing.copy()
            updated["info"] = copy.deepcopy(info)
            updated["updated_at"] = self._now()
            self._tables[table][record_id] = updated
            return copy.deepcopy(updated)

    def delete(self, table: str, record_id: int, owner: str) -> bool:
        _check_table(table)
        with self._lock:
            existing = self._tables[table].get(record_id)
            if existing is None or existing["user_id"] != owner:
                return False
            del self._tables[table][record_id]
            return True


# PUBLIC_INTERFACE
@lru_cache(maxsize=1)
def get_record_store() -> RecordStore:
    """
    Factory returning the process-wide Record Store configured in settings.
    - memory: InMemoryRecordStore
    - sqlite: SQLiteRecordStore
    """
    settings = get_settings()
    if settings.persistence_backend == "sqlite":
        from .db import SQLiteRecordStore

        logger.info("Using sqlite record store at %s", settings.sqlite_db_path)
        return SQLiteRecordStore(settings.sqlite_db_path)
    logger.info("Using in-memory record store")
    return InMemoryRecordStore()
