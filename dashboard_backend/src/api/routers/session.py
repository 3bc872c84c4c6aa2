from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, status

from ..auth import get_current_user_id, get_session
from ..errors import NotSignedIn
from ..schemas import SessionOut
from ..sessions import DashboardSession, SessionRegistry, get_session_registry

router = APIRouter(
    prefix="/api/v1/session",
    tags=["session"],
)


# PUBLIC_INTERFACE
@router.get("", response_model=SessionOut, summary="Session State")
def get_session_state(session: DashboardSession = Depends(get_session)) -> SessionOut:
    """Who is signed in, which goal dialog is open and the pending error message."""
    return SessionOut(
        user_id=session.user_id,
        signed_in=session.signed_in,
        selected_goal_id=session.goals.selected_id,
        last_error=session.errors.message,
    )


# PUBLIC_INTERFACE
@router.delete(
    "",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="End Session",
    description=(
        "Drop the caller's cached session: goals, events, dialog selection, pending error and drag state. "
        "The next request loads everything again from the Record Store."
    ),
    responses={401: {"description": "Not signed in"}},
)
def end_session(
    user_id: Optional[str] = Depends(get_current_user_id),
    registry: SessionRegistry = Depends(get_session_registry),
) -> None:
    if user_id is None:
        raise NotSignedIn("Not signed in")
    registry.end(user_id)
    return None


# PUBLIC_INTERFACE
@router.delete("/error", status_code=status.HTTP_204_NO_CONTENT, summary="Dismiss Error")
def dismiss_error(session: DashboardSession = Depends(get_session)) -> None:
    session.errors.dismiss()
    return None
