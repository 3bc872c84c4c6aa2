from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status

from ..auth import get_signed_in_session
from ..drag import Rect
from ..models import Event
from ..schemas import (
    CalendarDrop,
    DragPayloadOut,
    DragStart,
    DropResult,
    EventOut,
    PointerRelease,
    TodoDrop,
    ZoneBounds,
)
from ..sessions import DashboardSession

router = APIRouter(
    prefix="/api/v1/drag",
    tags=["drag"],
)


def _result(moved: Optional[Event]) -> DropResult:
    if moved is None:
        return DropResult(moved=False, event=None)
    return DropResult(moved=True, event=EventOut.from_event(moved))


# PUBLIC_INTERFACE
@router.post(
    "/start",
    response_model=DragPayloadOut,
    summary="Start Drag",
    description=(
        "Snapshot an event at drag start. The snapshot is kept in the session's drag mailbox and "
        "returned with a `transfer` string to attach to the native drag data."
    ),
)
def drag_start(payload: DragStart, session: DashboardSession = Depends(get_signed_in_session)) -> DragPayloadOut:
    return DragPayloadOut.from_payload(session.events.drag_start(payload.event_id))


# PUBLIC_INTERFACE
@router.post(
    "/end",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="End Drag",
    description="The mailbox payload expires shortly after this call.",
)
def drag_end(session: DashboardSession = Depends(get_signed_in_session)) -> None:
    session.events.drag_end()
    return None


# PUBLIC_INTERFACE
@router.post(
    "/drop/todo",
    response_model=DropResult,
    summary="Drop On To-Do List",
    description="Native drop on the to-do surface. Uses the transfer data, else the mailbox.",
)
def drop_on_todo(payload: TodoDrop, session: DashboardSession = Depends(get_signed_in_session)) -> DropResult:
    return _result(session.events.drop_on_todo(payload.transfer))


# PUBLIC_INTERFACE
@router.post(
    "/release",
    response_model=DropResult,
    summary="Pointer Release",
    description="Pointer released at page coordinates; a release over the to-do zone moves the event there.",
)
def pointer_release(payload: PointerRelease, session: DashboardSession = Depends(get_signed_in_session)) -> DropResult:
    return _result(session.events.release(payload.x, payload.y, payload.event_id))


# PUBLIC_INTERFACE
@router.post(
    "/drop/calendar",
    response_model=DropResult,
    summary="Drop On Calendar",
    description="A to-do item dropped on a calendar slot leaves the to-do list and takes the slot.",
)
def drop_on_calendar(payload: CalendarDrop, session: DashboardSession = Depends(get_signed_in_session)) -> DropResult:
    return _result(session.events.drop_on_calendar(payload.event_id, payload.start, payload.end, payload.all_day))


# PUBLIC_INTERFACE
@router.put(
    "/zones/{name}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Register Drop Zone",
)
def register_zone(name: str, bounds: ZoneBounds, session: DashboardSession = Depends(get_signed_in_session)) -> None:
    session.zones.register(name, Rect(bounds.left, bounds.top, bounds.width, bounds.height))
    return None


# PUBLIC_INTERFACE
@router.delete(
    "/zones/{name}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Unregister Drop Zone",
)
def unregister_zone(name: str, session: DashboardSession = Depends(get_signed_in_session)) -> None:
    if not session.zones.unregister(name):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Drop zone not found")
    return None
