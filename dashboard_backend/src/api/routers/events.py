from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, Query, status

from ..auth import get_session, get_signed_in_session
from ..projections import EVENT_VIEWS, project_events
from ..schemas import EventCreate, EventOut, EventUpdate, ScheduleChange
from ..sessions import DashboardSession

router = APIRouter(
    prefix="/api/v1/events",
    tags=["events"],
)


# PUBLIC_INTERFACE
@router.get(
    "/",
    response_model=List[EventOut],
    summary="List Events",
    description=(
        "List the caller's events in creation order.\n\n"
        "- view: all (default), calendar (is_todo false) or todo (is_todo true)"
    ),
)
def list_events(
    view: str = Query("all", pattern="^(all|calendar|todo)$", description=f"One of {', '.join(EVENT_VIEWS)}"),
    session: DashboardSession = Depends(get_session),
) -> List[EventOut]:
    return [EventOut.from_event(e) for e in project_events(session.events.events(), view)]


# PUBLIC_INTERFACE
@router.post(
    "/",
    response_model=EventOut,
    status_code=status.HTTP_201_CREATED,
    summary="Create Event",
    responses={
        201: {"description": "Event created"},
        401: {"description": "Not signed in"},
        502: {"description": "Record Store write failed"},
    },
)
def create_event(payload: EventCreate, session: DashboardSession = Depends(get_signed_in_session)) -> EventOut:
    event = session.events.create(
        payload.title,
        description=payload.description,
        color=payload.color,
        start=payload.start,
        end=payload.end,
        all_day=payload.all_day,
        is_todo=payload.is_todo,
    )
    return EventOut.from_event(event)


# PUBLIC_INTERFACE
@router.post(
    "/reload",
    response_model=List[EventOut],
    summary="Reload Events",
    description="Replace the session cache with the rows currently in the Record Store.",
)
def reload_events(session: DashboardSession = Depends(get_signed_in_session)) -> List[EventOut]:
    return [EventOut.from_event(e) for e in session.events.reload()]


# PUBLIC_INTERFACE
@router.put(
    "/{event_id}",
    response_model=EventOut,
    summary="Edit Event",
    description=(
        "Edit title, description, color and times. Omitted fields keep their value and an empty "
        "description or color clears it. Whether it is a to-do is not changed."
    ),
    responses={
        404: {"description": "Event not found"},
        502: {"description": "Record Store write failed"},
    },
)
def edit_event(event_id: int, payload: EventUpdate, session: DashboardSession = Depends(get_signed_in_session)) -> EventOut:
    event = session.events.edit(
        event_id,
        payload.title,
        description=payload.description,
        color=payload.color,
        start=payload.start,
        end=payload.end,
    )
    return EventOut.from_event(event)


# PUBLIC_INTERFACE
@router.patch(
    "/{event_id}/schedule",
    response_model=EventOut,
    summary="Move Or Resize Event",
    description="Drag or resize inside the calendar. On failure the previous slot is restored.",
)
def move_event(
    event_id: int, payload: ScheduleChange, session: DashboardSession = Depends(get_signed_in_session)
) -> EventOut:
    return EventOut.from_event(session.events.move(event_id, payload.start, payload.end, payload.all_day))


# PUBLIC_INTERFACE
@router.delete(
    "/{event_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete Event",
    responses={
        204: {"description": "Event deleted"},
        404: {"description": "Event not found"},
        502: {"description": "Record Store write failed"},
    },
)
def delete_event(event_id: int, session: DashboardSession = Depends(get_signed_in_session)) -> None:
    session.events.delete(event_id)
    return None
