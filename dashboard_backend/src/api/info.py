"""
Boundary between the untyped ``info`` JSON column and the typed records.

Every parser here is total: whatever the Record Store hands back, the result is
a fully populated ``GoalInfo`` / ``EventInfo``. Serializers produce the exact
persisted layout, so parse followed by serialize round-trips well-formed rows.
"""
from __future__ import annotations

import math
from collections.abc import Mapping
from typing import Any, Dict, Optional

from .models import EventInfo, GoalInfo
from .utils import in_instant_range


def _is_record(raw: Any) -> bool:
    return isinstance(raw, Mapping) and "title" in raw


def _string(value: Any) -> str:
    return value if isinstance(value, str) else ""


def _optional_string(value: Any) -> Optional[str]:
    if value is None or value == "":
        return None
    return str(value)


def _finite_int(value: Any, default: Optional[int]) -> Optional[int]:
    # bool is an int subclass; it is not a number here.
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return default
    if isinstance(value, float):
        if not math.isfinite(value):
            return default
        return int(value)
    return value


def _flag(value: Any) -> bool:
    return value is True


# PUBLIC_INTERFACE
def default_goal_info() -> GoalInfo:
    """Canonical empty goal: no title, deadline or target, zero counter, not completed."""
    return GoalInfo()


# PUBLIC_INTERFACE
def parse_goal_info(raw: Any) -> GoalInfo:
    """Coerce a persisted goal payload into a GoalInfo, never raising."""
    if not _is_record(raw):
        return default_goal_info()
    counter = _finite_int(raw.get("counter"), 0)
    target = _finite_int(raw.get("target"), None)
    return GoalInfo(
        title=_string(raw.get("title")),
        deadline=_optional_string(raw.get("deadline")),
        target=target if target is not None and target >= 0 else None,
        counter=counter if counter is not None else 0,
        completed=_flag(raw.get("completed")),
    )


# PUBLIC_INTERFACE
def goal_info_to_json(info: GoalInfo) -> Dict[str, Any]:
    return {
        "title": info.title,
        "deadline": info.deadline,
        "target": info.target,
        "counter": info.counter,
        "completed": info.completed,
    }


# PUBLIC_INTERFACE
def default_event_info() -> EventInfo:
    """Canonical empty event: untitled, at epoch 0, on the calendar."""
    return EventInfo()


# PUBLIC_INTERFACE
def parse_event_info(raw: Any) -> EventInfo:
    """
    Coerce a persisted event payload into an EventInfo, never raising.

    Times no datetime can represent are treated as missing: ``start`` becomes
    0 and ``end`` falls back to ``start``, as it does when missing or not a
    finite number. ``is_todo`` is always a definite bool (only a literal
    ``true`` routes the event to the to-do list).
    """
    if not _is_record(raw):
        return default_event_info()
    start = _finite_int(raw.get("start"), 0) or 0
    if not in_instant_range(start):
        start = 0
    end = _finite_int(raw.get("end"), None)
    if end is not None and not in_instant_range(end):
        end = None
    return EventInfo(
        title=_string(raw.get("title")),
        start=start,
        end=start if end is None else end,
        all_day=_flag(raw.get("allday")),
        color=_optional_string(raw.get("color")),
        description=_optional_string(raw.get("desc")),
        is_todo=_flag(raw.get("toDo")),
    )


# PUBLIC_INTERFACE
def event_info_to_json(info: EventInfo) -> Dict[str, Any]:
    return {
        "start": info.start,
        "end": info.end,
        "title": info.title,
        "desc": info.description or "",
        "color": info.color or "",
        "allday": info.all_day,
        "toDo": info.is_todo,
    }
