from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Optional, TypedDict

GOALS_TABLE = "goals"
EVENTS_TABLE = "events"
TABLES = (GOALS_TABLE, EVENTS_TABLE)


# PUBLIC_INTERFACE
class RecordRow(TypedDict):
    """
    A row as persisted by the Record Store.

    Fields:
    - id: Unique integer identifier assigned by the store
    - user_id: Identifier of the owning user; every query is scoped to it
    - info: Untyped JSON payload, parsed at the boundary by ``info.py``
    - created_at: Creation timestamp
    - updated_at: Re-stamped on every update
    """

    id: int
    user_id: str
    info: Any
    created_at: datetime
    updated_at: datetime


# PUBLIC_INTERFACE
@dataclass(frozen=True)
class GoalInfo:
    """Typed shape of the ``info`` column in the goals table."""

    title: str = ""
    deadline: Optional[str] = None
    target: Optional[int] = None
    counter: int = 0
    completed: bool = False


# PUBLIC_INTERFACE
@dataclass(frozen=True)
class EventInfo:
    """
    Typed shape of the ``info`` column in the events table.

    ``start`` and ``end`` are epoch milliseconds. ``is_todo`` decides whether the
    event is shown in the to-do list (True) or on the calendar grid (False).
    """

    title: str = ""
    start: int = 0
    end: int = 0
    all_day: bool = False
    color: Optional[str] = None
    description: Optional[str] = None
    is_todo: bool = False


@dataclass(frozen=True)
class Goal:
    id: int
    owner: str
    info: GoalInfo
    created_at: datetime
    updated_at: datetime


@dataclass(frozen=True)
class Event:
    id: int
    owner: str
    info: EventInfo
    created_at: datetime
    updated_at: datetime
