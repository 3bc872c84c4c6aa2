from __future__ import annotations

import json
import os
import sqlite3
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Generator, List, Optional

from .errors import RecordStoreError
from .models import TABLES, RecordRow
from .repositories import RecordStore, _check_table


@dataclass(frozen=True)
class _Cols:
    id: str = "id"
    user_id: str = "user_id"
    info: str = "info"
    created_at: str = "created_at"
    updated_at: str = "updated_at"


_COLS = _Cols()


class SQLiteRecordStore(RecordStore):
    """
    Lightweight SQLite store implementing the RecordStore interface.

    ``info`` is kept as JSON text; it is decoded on read without any schema
    check, malformed payloads are left to the info parser.
    """

    def __init__(self, db_path: str) -> None:
        os.makedirs(os.path.dirname(db_path) or ".", exist_ok=True)
        self._db_path = db_path
        self._init_db()

    @contextmanager
    def _conn(self) -> Generator[sqlite3.Connection, None, None]:
        try:
            conn = sqlite3.connect(self._db_path)
        except sqlite3.Error as e:
            raise RecordStoreError(f"Could not open database: {e}") from e
        conn.row_factory = sqlite3.Row
        try:
            yield conn
            conn.commit()
        except sqlite3.Error as e:
            conn.rollback()
            raise RecordStoreError(str(e)) from e
        finally:
            conn.close()

    def _init_db(self) -> None:
        with self._conn() as conn:
            for table in TABLES:
                conn.execute(
                    f"""
                    CREATE TABLE IF NOT EXISTS {table} (
                        {_COLS.id} INTEGER PRIMARY KEY AUTOINCREMENT,
                        {_COLS.user_id} TEXT NOT NULL,
                        {_COLS.info} TEXT NOT NULL,
                        {_COLS.created_at} TEXT NOT NULL,
                        {_COLS.updated_at} TEXT NOT NULL
                    )
                    """
                )
                conn.execute(
                    f"CREATE INDEX IF NOT EXISTS idx_{table}_user_id ON {table}({_COLS.user_id})"
                )
                conn.execute(
                    f"CREATE INDEX IF NOT EXISTS idx_{table}_created_at ON {table}({_COLS.created_at})"
                )

    def _row_to_record(self, row: sqlite3.Row) -> RecordRow:
        try:
            info = json.loads(row[_COLS.info])
        except (TypeError, ValueError):
            info = None
        return {
            "id": int(row[_COLS.id]),
            "user_id": str(row[_COLS.user_id]),
            "info": info,
            "created_at": datetime.fromisoformat(row[_COLS.created_at]),
            "updated_at": datetime.fromisoformat(row[_COLS.updated_at]),
        }

    def _fetch(self, conn: sqlite3.Connection, table: str, record_id: int) -> Optional[sqlite3.Row]:
        return conn.execute(f"SELECT * FROM {table} WHERE {_COLS.id} = ?", (record_id,)).fetchone()

    def select(self, table: str, owner: str, newest_first: bool = True) -> List[RecordRow]:
        _check_table(table)
        direction = "DESC" if newest_first else "ASC"
        with self._conn() as conn:
            rows = conn.execute(
                f"""
                SELECT * FROM {table}
                WHERE {_COLS.user_id} = ?
                ORDER BY {_COLS.created_at} {direction}, {_COLS.id} {direction}
                """,
                (owner,),
            ).fetchall()
            return [self._row_to_record(r) for r in rows]

    def insert(self, table: str, owner: str, info: Any) -> RecordRow:
        _check_table(table)
        now = datetime.now().isoformat()
        with self._conn() as conn:
            cur = conn.execute(
                f"""
                INSERT INTO {table} ({_COLS.user_id}, {_COLS.info}, {_COLS.created_at}, {_COLS.updated_at})
                VALUES (?, ?, ?, ?)
                """,
                (owner, json.dumps(info), now, now),
            )
            row = self._fetch(conn, table, cur.lastrowid)
            assert row is not None
            return self._row_to_record(row)

    def update(self, table: str, record_id: int, owner: str, info: Any) -> Optional[RecordRow]:
        _check_table(table)
        with self._conn() as conn:
            cur = conn.execute(
                f"""
                UPDATE {table}
                SET {_COLS.info} = ?, {_COLS.updated_at} = ?
                WHERE {_COLS.id} = ? AND {_COLS.user_id} = ?
                """,
                (json.dumps(info), datetime.now().isoformat(), record_id, owner),
            )
            if cur.rowcount == 0:
                return None
            row = self._fetch(conn, table, record_id)
            assert row is not None
            return self._row_to_record(row)

    def delete(self, table: str, record_id: int, owner: str) -> bool:
        _check_table(table)
        with self._conn() as conn:
            cur = conn.execute(
                f"DELETE FROM {table} WHERE {_COLS.id} = ? AND {_COLS.user_id} = ?",
                (record_id, owner),
            )
            return cur.rowcount > 0
