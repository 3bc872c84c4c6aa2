"""
Goal mutation handlers.

Every handler validates first, writes the full ``info`` payload to the Record
Store and only reflects the confirmed row in the cache. A failed write leaves
the cache untouched and is reported through the session's ErrorReport.
"""
from __future__ import annotations

import logging
from dataclasses import replace
from datetime import date
from typing import List, Optional, Union

from .cache import ClientCache, RecordLocks
from .errors import ErrorReport, InvalidInput, NotSignedIn, RecordStoreError, UnknownRecord, WriteFailed
from .info import goal_info_to_json, parse_goal_info
from .models import GOALS_TABLE, Goal, GoalInfo, RecordRow
from .projections import active_goals, completed_goals
from .repositories import RecordStore
from .utils import parse_deadline, parse_target

logger = logging.getLogger(__name__)

GOAL_TITLE_MAX = 200


def goal_from_row(row: RecordRow) -> Goal:
    return Goal(
        id=row["id"],
        owner=row["user_id"],
        info=parse_goal_info(row["info"]),
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


def _clean_title(title: Optional[str]) -> str:
    s = (title or "").strip()
    if not s:
        raise InvalidInput("title is required")
    if len(s) > GOAL_TITLE_MAX:
        raise InvalidInput(f"title length must be between 1 and {GOAL_TITLE_MAX} characters")
    return s


def _clean_deadline(deadline: Optional[Union[date, str]]) -> Optional[str]:
    try:
        return parse_deadline(deadline)
    except ValueError as e:
        raise InvalidInput(str(e)) from e


class GoalSession:
    """Goals of one signed-in user: cache, dialog selection and mutation handlers."""

    def __init__(self, owner: Optional[str], store: RecordStore, errors: Optional[ErrorReport] = None) -> None:
        self.owner = owner
        self.store = store
        self.errors = errors or ErrorReport()
        self.cache: ClientCache[Goal] = ClientCache()
        self.selected_id: Optional[int] = None
        self._locks = RecordLocks()

    # -- helpers ---------------------------------------------------------

    def _require_owner(self) -> str:
        if self.owner is None:
            raise NotSignedIn("Sign in to manage your goals.")
        return self.owner

    def _require_goal(self, goal_id: int) -> Goal:
        goal = self.cache.get(goal_id)
        if goal is None:
            raise UnknownRecord("Goal not found")
        return goal

    def _fail(self, message: str, exc: Exception) -> WriteFailed:
        logger.error("%s (user=%s): %s", message, self.owner, exc)
        self.errors.report(message)
        return WriteFailed(message)

    def _write(self, goal: Goal, info: GoalInfo, message: str) -> Goal:
        """Persist ``info`` for ``goal`` and reflect the confirmed row in place."""
        owner = self._require_owner()
        try:
            row = self.store.update(GOALS_TABLE, goal.id, owner, goal_info_to_json(info))
            if row is None:
                raise RecordStoreError(f"goal {goal.id} no longer exists")
        except RecordStoreError as e:
            raise self._fail(message, e) from e
        updated = goal_from_row(row)
        self.cache.replace(updated)
        return updated

    # -- reads -----------------------------------------------------------

    def _fetch(self) -> List[Goal]:
        if self.owner is None:
            return []
        rows = self.store.select(GOALS_TABLE, self.owner, newest_first=True)
        return [goal_from_row(r) for r in rows]

    def load(self) -> List[Goal]:
        """Fill the cache from the store, newest first. Anonymous sessions stay empty."""
        try:
            goals = self._fetch()
        except RecordStoreError as e:
            logger.error("Error fetching goals (user=%s): %s", self.owner, e)
            goals = []
        self.cache.replace_all(goals)
        return goals

    def reload(self) -> List[Goal]:
        """Re-read the source of truth; on failure the cache is kept as is."""
        try:
            goals = self._fetch()
        except RecordStoreError as e:
            logger.error("Error reloading goals (user=%s): %s", self.owner, e)
            return self.cache.snapshot()
        self.cache.replace_all(goals)
        if self.selected_id is not None and self.cache.get(self.selected_id) is None:
            self.selected_id = None
        return goals

    def goals(self) -> List[Goal]:
        return self.cache.snapshot()

    def active(self) -> List[Goal]:
        return active_goals(self.cache.snapshot())

    def completed(self) -> List[Goal]:
        return completed_goals(self.cache.snapshot())

    # -- dialog selection --------------------------------------------------

    def select(self, goal_id: int) -> Goal:
        """Open the edit dialog on ``goal_id``."""
        goal = self._require_goal(goal_id)
        self.selected_id = goal.id
        return goal

    def clear_selection(self) -> None:
        self.selected_id = None

    # -- mutations -------------------------------------------------------

    def create(
        self,
        title: Optional[str],
        deadline: Optional[Union[date, str]] = None,
        target: Optional[Union[int, str]] = None,
    ) -> Goal:
        owner = self._require_owner()
        info = GoalInfo(
            title=_clean_title(title),
            deadline=_clean_deadline(deadline),
            target=parse_target(target),
            counter=0,
            completed=False,
        )
        try:
            row = self.store.insert(GOALS_TABLE, owner, goal_info_to_json(info))
        except RecordStoreError as e:
            raise self._fail("Failed to create goal. Please try again.", e) from e
        goal = goal_from_row(row)
        self.cache.prepend(goal)
        logger.info("Goal %s created (user=%s)", goal.id, owner)
        return goal

    def edit(
        self,
        goal_id: int,
        title: Optional[str],
        deadline: Optional[Union[date, str]] = None,
        target: Optional[Union[int, str]] = None,
    ) -> Goal:
        self._require_owner()
        new_title = _clean_title(title)
        new_deadline = _clean_deadline(deadline)
        new_target = parse_target(target)
        with self._locks.hold(goal_id):
            goal = self._require_goal(goal_id)
            counter = goal.info.counter
            if new_target is not None:
                counter = min(counter, new_target)
            info = replace(goal.info, title=new_title, deadline=new_deadline, target=new_target, counter=counter)
            updated = self._write(goal, info, "Failed to update goal. Please try again.")
        if self.selected_id == goal_id:
            self.selected_id = None
        return updated

    def delete(self, goal_id: int) -> None:
        owner = self._require_owner()
        with self._locks.hold(goal_id):
            self._require_goal(goal_id)
            try:
                found = self.store.delete(GOALS_TABLE, goal_id, owner)
            except RecordStoreError as e:
                raise self._fail("Failed to delete goal. Please try again.", e) from e
            if not found:
                logger.warning("Goal %s was already gone from the store (user=%s)", goal_id, owner)
            self.cache.remove(goal_id)
        self._locks.discard(goal_id)
        if self.selected_id == goal_id:
            self.selected_id = None
        logger.info("Goal %s deleted (user=%s)", goal_id, owner)

    def change_counter(self, goal_id: int, delta: int) -> Goal:
        """
        Move the counter by ``delta`` (+1 or -1), clamped to [0, target].

        Hitting the floor or the ceiling is a no-op: nothing is written.
        """
        self._require_owner()
        if delta not in (1, -1):
            raise InvalidInput("delta must be 1 or -1")
        with self._locks.hold(goal_id):
            goal = self._require_goal(goal_id)
            info = goal.info
            nxt = max(info.counter + delta, 0)
            if info.target is not None:
                nxt = min(nxt, info.target)
            if nxt == info.counter:
                return goal
            return self._write(goal, replace(info, counter=nxt), "Failed to update progress. Please try again.")

    def toggle_complete(self, goal_id: int) -> Goal:
        self._require_owner()
        with self._locks.hold(goal_id):
            goal = self._require_goal(goal_id)
            info = replace(goal.info, completed=not goal.info.completed)
            return self._write(goal, info, "Failed to update goal. Please try again.")
