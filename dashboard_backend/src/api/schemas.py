from __future__ import annotations

from datetime import date, datetime
from typing import Any, Dict, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .drag import TRANSFER_MIME_TYPE, DragPayload
from .events import DEFAULT_COLOR, EVENT_COLOR_MAX, EVENT_DESCRIPTION_MAX, EVENT_TITLE_MAX
from .goals import GOAL_TITLE_MAX
from .models import Event, Goal
from .projections import can_decrement, can_increment, progress_label
from .utils import from_epoch_ms, parse_deadline, parse_instant


def _bounded_title(v: Optional[str], max_len: int) -> str:
    if v is None:
        raise ValueError("title is required")
    s = v.strip()
    if not (1 <= len(s) <= max_len):
        raise ValueError(f"title length must be between 1 and {max_len} characters")
    return s


# PUBLIC_INTERFACE
class GoalCreate(BaseModel):
    """
    Schema for creating a goal, also used for the full replacement done by the
    edit dialog. A blank, non-numeric or negative target is stored as null.
    """

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "title": "Read 10 books",
                "deadline": "2025-12-31",
                "target": "10",
            }
        }
    )

    title: str = Field(..., description="Goal title", min_length=1, max_length=GOAL_TITLE_MAX)
    deadline: Optional[date] = Field(default=None, description="Optional ISO8601 date; blank means none")
    target: Optional[Union[int, float, str]] = Field(
        default=None, description="Optional non-negative target count; text and fractions keep their leading integer"
    )

    @field_validator("title")
    @classmethod
    def validate_title(cls, v: str) -> str:
        """Strip whitespace and enforce the length bound."""
        return _bounded_title(v, GOAL_TITLE_MAX)

    @field_validator("deadline", mode="before")
    @classmethod
    def normalize_deadline(cls, v: Any) -> Optional[str]:
        """Collapse blank input to None and require an ISO8601 date otherwise."""
        return parse_deadline(v)


# PUBLIC_INTERFACE
class CounterChange(BaseModel):
    delta: Literal[1, -1] = Field(..., description="+1 to increment, -1 to decrement")


# PUBLIC_INTERFACE
class GoalOut(BaseModel):
    """Schema returned by the API for a goal."""

    id: int
    title: str
    deadline: Optional[str] = None
    target: Optional[int] = None
    counter: int
    completed: bool
    progress_label: str = Field(..., description="'counter / target', or the bare counter without a target")
    can_increment: bool
    can_decrement: bool
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_goal(cls, goal: Goal) -> "GoalOut":
        info = goal.info
        return cls(
            id=goal.id,
            title=info.title,
            deadline=info.deadline,
            target=info.target,
            counter=info.counter,
            completed=info.completed,
            progress_label=progress_label(info),
            can_increment=can_increment(info),
            can_decrement=can_decrement(info),
            created_at=goal.created_at,
            updated_at=goal.updated_at,
        )


def _instant_field(v: Any) -> Optional[int]:
    return parse_instant(v)


# PUBLIC_INTERFACE
class EventCreate(BaseModel):
    """
    Schema for creating an event. Times accept epoch milliseconds or ISO8601
    strings. Without a start the event spans the next hour.
    """

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "title": "Call the bank",
                "description": "Ask about the card",
                "color": "#00ffff",
                "is_todo": True,
            }
        }
    )

    title: str = Field(..., description="Event title", min_length=1, max_length=EVENT_TITLE_MAX)
    description: Optional[str] = Field(default=None, max_length=EVENT_DESCRIPTION_MAX)
    color: Optional[str] = Field(default=DEFAULT_COLOR, max_length=EVENT_COLOR_MAX)
    start: Optional[int] = Field(default=None, description="Start instant (epoch ms or ISO8601)")
    end: Optional[int] = Field(default=None, description="End instant (epoch ms or ISO8601)")
    all_day: bool = False
    is_todo: bool = Field(default=True, description="True for the to-do list, False for the calendar")

    @field_validator("title")
    @classmethod
    def validate_title(cls, v: str) -> str:
        return _bounded_title(v, EVENT_TITLE_MAX)

    @field_validator("start", "end", mode="before")
    @classmethod
    def parse_times(cls, v: Any) -> Optional[int]:
        return _instant_field(v)


# PUBLIC_INTERFACE
class EventUpdate(BaseModel):
    """
    Edit dialog payload. Omitted description, color and times keep their
    current value; an empty string clears description or color. is_todo is
    never changed here.
    """

    title: str = Field(..., min_length=1, max_length=EVENT_TITLE_MAX)
    description: Optional[str] = Field(default=None, max_length=EVENT_DESCRIPTION_MAX)
    color: Optional[str] = Field(default=None, max_length=EVENT_COLOR_MAX)
    start: Optional[int] = None
    end: Optional[int] = None

    @field_validator("title")
    @classmethod
    def validate_title(cls, v: str) -> str:
        return _bounded_title(v, EVENT_TITLE_MAX)

    @field_validator("start", "end", mode="before")
    @classmethod
    def parse_times(cls, v: Any) -> Optional[int]:
        return _instant_field(v)


# PUBLIC_INTERFACE
class ScheduleChange(BaseModel):
    """New slot for a calendar drag/resize or for a to-do dropped on the calendar."""

    start: int = Field(..., description="Start instant (epoch ms or ISO8601)")
    end: Optional[int] = Field(default=None, description="End instant; omitted keeps the duration")
    all_day: Optional[bool] = None

    @field_validator("start", "end", mode="before")
    @classmethod
    def parse_times(cls, v: Any) -> Optional[int]:
        return _instant_field(v)


# PUBLIC_INTERFACE
class EventOut(BaseModel):
    """Schema returned by the API for an event."""

    id: int
    title: str
    description: Optional[str] = None
    color: Optional[str] = None
    start: int = Field(..., description="Epoch milliseconds")
    end: int = Field(..., description="Epoch milliseconds")
    start_at: datetime
    end_at: datetime
    all_day: bool
    is_todo: bool
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_event(cls, event: Event) -> "EventOut":
        info = event.info
        return cls(
            id=event.id,
            title=info.title,
            description=info.description,
            color=info.color,
            start=info.start,
            end=info.end,
            start_at=from_epoch_ms(info.start),
            end_at=from_epoch_ms(info.end),
            all_day=info.all_day,
            is_todo=info.is_todo,
            created_at=event.created_at,
            updated_at=event.updated_at,
        )


# PUBLIC_INTERFACE
class DragStart(BaseModel):
    event_id: int


# PUBLIC_INTERFACE
class DragPayloadOut(BaseModel):
    """The drag snapshot plus the text to attach to the native drag transfer."""

    id: int
    title: str
    start: int
    end: int
    all_day: bool
    color: Optional[str] = None
    description: Optional[str] = None
    is_todo: bool
    mime_type: str = TRANSFER_MIME_TYPE
    transfer: str

    @classmethod
    def from_payload(cls, payload: DragPayload) -> "DragPayloadOut":
        return cls(
            id=payload.id,
            title=payload.title,
            start=payload.start,
            end=payload.end,
            all_day=payload.all_day,
            color=payload.color,
            description=payload.description,
            is_todo=payload.is_todo,
            transfer=payload.to_transfer(),
        )


# PUBLIC_INTERFACE
class TodoDrop(BaseModel):
    """Native drop on the to-do surface; ``transfer`` is whatever the drag carried, if anything."""

    transfer: Optional[Union[str, Dict[str, Any]]] = None


# PUBLIC_INTERFACE
class PointerRelease(BaseModel):
    x: float
    y: float
    event_id: Optional[int] = None


# PUBLIC_INTERFACE
class CalendarDrop(ScheduleChange):
    event_id: int


# PUBLIC_INTERFACE
class DropResult(BaseModel):
    moved: bool = Field(..., description="Whether the drop changed the event")
    event: Optional[EventOut] = None


# PUBLIC_INTERFACE
class ZoneBounds(BaseModel):
    left: float
    top: float
    width: float = Field(..., ge=0)
    height: float = Field(..., ge=0)


# PUBLIC_INTERFACE
class SessionOut(BaseModel):
    user_id: Optional[str] = None
    signed_in: bool
    selected_goal_id: Optional[int] = None
    last_error: Optional[str] = None
