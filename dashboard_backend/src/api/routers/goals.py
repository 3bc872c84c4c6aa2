from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, Query, status

from ..auth import get_session, get_signed_in_session
from ..projections import GOAL_VIEWS, project_goals
from ..schemas import CounterChange, GoalCreate, GoalOut
from ..sessions import DashboardSession

router = APIRouter(
    prefix="/api/v1/goals",
    tags=["goals"],
)


# PUBLIC_INTERFACE
@router.get(
    "/",
    response_model=List[GoalOut],
    summary="List Goals",
    description=(
        "List the caller's goals, newest first.\n\n"
        "- view: all (default), active or completed\n\n"
        "Callers without an identity get an empty list."
    ),
)
def list_goals(
    view: str = Query("all", pattern="^(all|active|completed)$", description=f"One of {', '.join(GOAL_VIEWS)}"),
    session: DashboardSession = Depends(get_session),
) -> List[GoalOut]:
    return [GoalOut.from_goal(g) for g in project_goals(session.goals.goals(), view)]


# PUBLIC_INTERFACE
@router.post(
    "/",
    response_model=GoalOut,
    status_code=status.HTTP_201_CREATED,
    summary="Create Goal",
    responses={
        201: {"description": "Goal created"},
        401: {"description": "Not signed in"},
        502: {"description": "Record Store write failed"},
    },
)
def create_goal(payload: GoalCreate, session: DashboardSession = Depends(get_signed_in_session)) -> GoalOut:
    """Create a goal with counter 0; it is placed first in the list."""
    goal = session.goals.create(payload.title, payload.deadline, payload.target)
    return GoalOut.from_goal(goal)


# PUBLIC_INTERFACE
@router.post(
    "/reload",
    response_model=List[GoalOut],
    summary="Reload Goals",
    description="Replace the session cache with the rows currently in the Record Store.",
)
def reload_goals(session: DashboardSession = Depends(get_signed_in_session)) -> List[GoalOut]:
    return [GoalOut.from_goal(g) for g in session.goals.reload()]


# PUBLIC_INTERFACE
@router.put(
    "/{goal_id}",
    response_model=GoalOut,
    summary="Edit Goal",
    description="Replace title, deadline and target. Counter and completion are kept.",
    responses={
        404: {"description": "Goal not found"},
        502: {"description": "Record Store write failed"},
    },
)
def edit_goal(goal_id: int, payload: GoalCreate, session: DashboardSession = Depends(get_signed_in_session)) -> GoalOut:
    goal = session.goals.edit(goal_id, payload.title, payload.deadline, payload.target)
    return GoalOut.from_goal(goal)


# PUBLIC_INTERFACE
@router.delete(
    "/selection",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Close Goal Dialog",
)
def clear_goal_selection(session: DashboardSession = Depends(get_signed_in_session)) -> None:
    session.goals.clear_selection()
    return None


# PUBLIC_INTERFACE
@router.delete(
    "/{goal_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete Goal",
    responses={
        204: {"description": "Goal deleted"},
        404: {"description": "Goal not found"},
        502: {"description": "Record Store write failed"},
    },
)
def delete_goal(goal_id: int, session: DashboardSession = Depends(get_signed_in_session)) -> None:
    """Delete a goal; a dialog open on it is closed."""
    session.goals.delete(goal_id)
    return None


# PUBLIC_INTERFACE
@router.post(
    "/{goal_id}/counter",
    response_model=GoalOut,
    summary="Change Progress",
    description="Add +1 or -1 to the counter, clamped to [0, target]. Out-of-range steps change nothing.",
)
def change_counter(
    goal_id: int, payload: CounterChange, session: DashboardSession = Depends(get_signed_in_session)
) -> GoalOut:
    return GoalOut.from_goal(session.goals.change_counter(goal_id, payload.delta))


# PUBLIC_INTERFACE
@router.post(
    "/{goal_id}/toggle",
    response_model=GoalOut,
    summary="Toggle Completion",
)
def toggle_complete(goal_id: int, session: DashboardSession = Depends(get_signed_in_session)) -> GoalOut:
    return GoalOut.from_goal(session.goals.toggle_complete(goal_id))


# PUBLIC_INTERFACE
@router.post(
    "/{goal_id}/select",
    response_model=GoalOut,
    summary="Open Goal Dialog",
)
def select_goal(goal_id: int, session: DashboardSession = Depends(get_signed_in_session)) -> GoalOut:
    return GoalOut.from_goal(session.goals.select(goal_id))
