from __future__ import annotations

from typing import Iterable, List

from .models import Event, Goal, GoalInfo

GOAL_VIEWS = ("all", "active", "completed")
EVENT_VIEWS = ("all", "calendar", "todo")


def active_goals(goals: Iterable[Goal]) -> List[Goal]:
    return [g for g in goals if not g.info.completed]


def completed_goals(goals: Iterable[Goal]) -> List[Goal]:
    return [g for g in goals if g.info.completed]


def calendar_events(events: Iterable[Event]) -> List[Event]:
    return [e for e in events if e.info.is_todo is False]


def todo_events(events: Iterable[Event]) -> List[Event]:
    return [e for e in events if e.info.is_todo is True]


# PUBLIC_INTERFACE
def project_goals(goals: Iterable[Goal], view: str) -> List[Goal]:
    """Return the goals shown by ``view`` ('all', 'active' or 'completed')."""
    if view == "active":
        return active_goals(goals)
    if view == "completed":
        return completed_goals(goals)
    return list(goals)


# PUBLIC_INTERFACE
def project_events(events: Iterable[Event], view: str) -> List[Event]:
    """Return the events shown by ``view`` ('all', 'calendar' or 'todo')."""
    if view == "calendar":
        return calendar_events(events)
    if view == "todo":
        return todo_events(events)
    return list(events)


def progress_label(info: GoalInfo) -> str:
    """'3 / 10' for a goal with a target, the bare counter otherwise."""
    if info.target is not None:
        return f"{info.counter} / {info.target}"
    return str(info.counter)


def can_decrement(info: GoalInfo) -> bool:
    return info.counter > 0


def can_increment(info: GoalInfo) -> bool:
    return info.target is None or info.counter < info.target
