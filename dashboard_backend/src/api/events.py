"""
Event mutation handlers for the calendar grid and the to-do list.

Both surfaces read the same cache; ``is_todo`` alone decides which projection
an event belongs to. Explicit create/edit/delete are write-then-reflect. The
drag paths that flip ``is_todo`` also write first, but a failure reloads the
whole cache from the store. Moving or resizing inside the calendar updates the
cache optimistically and reverts the entry when the write fails.
"""
from __future__ import annotations

import logging
import time
from dataclasses import replace
from typing import Any, List, Optional

from .cache import ClientCache, RecordLocks
from .drag import TODO_ZONE, DragMailbox, DragPayload, DropZoneRegistry
from .errors import ErrorReport, InvalidInput, NotSignedIn, RecordStoreError, UnknownRecord, WriteFailed
from .info import event_info_to_json, parse_event_info
from .models import EVENTS_TABLE, Event, EventInfo, RecordRow
from .projections import calendar_events, todo_events
from .repositories import RecordStore
from .utils import InstantInput, check_instant, parse_instant

logger = logging.getLogger(__name__)

EVENT_TITLE_MAX = 50
EVENT_DESCRIPTION_MAX = 200
EVENT_COLOR_MAX = 7
DEFAULT_COLOR = "#00ffff"
DEFAULT_DURATION_MS = 60 * 60 * 1000


def event_from_row(row: RecordRow) -> Event:
    return Event(
        id=row["id"],
        owner=row["user_id"],
        info=parse_event_info(row["info"]),
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


def _now_ms() -> int:
    return int(time.time() * 1000)


def _clean_title(title: Optional[str]) -> str:
    s = (title or "").strip()
    if not s:
        raise InvalidInput("title is required")
    if len(s) > EVENT_TITLE_MAX:
        raise InvalidInput(f"title length must be between 1 and {EVENT_TITLE_MAX} characters")
    return s


def _clean_description(description: Optional[str]) -> Optional[str]:
    s = (description or "").strip()
    if len(s) > EVENT_DESCRIPTION_MAX:
        raise InvalidInput(f"description must be at most {EVENT_DESCRIPTION_MAX} characters")
    return s or None


def _clean_color(color: Optional[str]) -> Optional[str]:
    s = (color or "").strip()
    if len(s) > EVENT_COLOR_MAX:
        raise InvalidInput(f"color must be at most {EVENT_COLOR_MAX} characters")
    return s or None


def _instant(value: Optional[InstantInput], field: str) -> Optional[int]:
    try:
        return parse_instant(value)
    except ValueError as e:
        raise InvalidInput(f"Invalid {field}: {e}") from e


def _shifted_end(start_ms: int, duration_ms: int) -> int:
    try:
        return check_instant(start_ms + duration_ms)
    except ValueError as e:
        raise InvalidInput(f"Invalid end: {e}") from e


class EventSession:
    """Events of one signed-in user, shared by the calendar and the to-do list."""

    def __init__(
        self,
        owner: Optional[str],
        store: RecordStore,
        errors: Optional[ErrorReport] = None,
        mailbox: Optional[DragMailbox] = None,
        zones: Optional[DropZoneRegistry] = None,
    ) -> None:
        self.owner = owner
        self.store = store
        self.errors = errors or ErrorReport()
        self.mailbox = mailbox or DragMailbox()
        self.zones = zones or DropZoneRegistry()
        self.cache: ClientCache[Event] = ClientCache()
        self._locks = RecordLocks()

    # -- helpers ---------------------------------------------------------

    def _require_owner(self) -> str:
        if self.owner is None:
            raise NotSignedIn("Sign in to manage your calendar.")
        return self.owner

    def _require_event(self, event_id: int) -> Event:
        event = self.cache.get(event_id)
        if event is None:
            raise UnknownRecord("Event not found")
        return event

    def _fail(self, message: str, exc: Exception) -> WriteFailed:
        logger.error("%s (user=%s): %s", message, self.owner, exc)
        self.errors.report(message)
        return WriteFailed(message)

    def _persist(self, event_id: int, info: EventInfo) -> Event:
        owner = self._require_owner()
        row = self.store.update(EVENTS_TABLE, event_id, owner, event_info_to_json(info))
        if row is None:
            raise RecordStoreError(f"event {event_id} no longer exists")
        return event_from_row(row)

    def _reflect(self, event: Event) -> None:
        if not self.cache.replace(event):
            self.cache.append(event)

    # -- reads -----------------------------------------------------------

    def load(self) -> List[Event]:
        """Fill the cache from the store in creation order. Anonymous sessions stay empty."""
        if self.owner is None:
            self.cache.replace_all([])
            return []
        rows = self.store.select(EVENTS_TABLE, self.owner, newest_first=False)
        events = [event_from_row(r) for r in rows]
        self.cache.replace_all(events)
        return events

    def reload(self) -> List[Event]:
        """Re-read the source of truth; on failure the cache is kept as is."""
        try:
            return self.load()
        except RecordStoreError as e:
            logger.error("Error reloading events (user=%s): %s", self.owner, e)
            return self.cache.snapshot()

    def events(self) -> List[Event]:
        return self.cache.snapshot()

    def calendar(self) -> List[Event]:
        return calendar_events(self.cache.snapshot())

    def todo(self) -> List[Event]:
        return todo_events(self.cache.snapshot())

    # -- explicit mutations ----------------------------------------------

    def create(
        self,
        title: Optional[str],
        description: Optional[str] = None,
        color: Optional[str] = DEFAULT_COLOR,
        start: Optional[InstantInput] = None,
        end: Optional[InstantInput] = None,
        all_day: bool = False,
        is_todo: bool = True,
    ) -> Event:
        """
        Create an event. Without a start it spans the next hour from now;
        without an end it ends when it starts.
        """
        owner = self._require_owner()
        clean_title = _clean_title(title)
        clean_description = _clean_description(description)
        clean_color = _clean_color(color)
        start_ms = _instant(start, "start")
        end_ms = _instant(end, "end")
        if start_ms is None:
            start_ms = _now_ms()
            if end_ms is None:
                end_ms = start_ms + DEFAULT_DURATION_MS
        info = EventInfo(
            title=clean_title,
            start=start_ms,
            end=start_ms if end_ms is None else end_ms,
            all_day=all_day,
            color=clean_color,
            description=clean_description,
            is_todo=is_todo,
        )
        try:
            row = self.store.insert(EVENTS_TABLE, owner, event_info_to_json(info))
        except RecordStoreError as e:
            message = "Failed to create to-do item. Please try again." if is_todo else "Failed to create event. Please try again."
            raise self._fail(message, e) from e
        event = event_from_row(row)
        self.cache.append(event)
        logger.info("Event %s created (user=%s, todo=%s)", event.id, owner, is_todo)
        return event

    def edit(
        self,
        event_id: int,
        title: Optional[str],
        description: Optional[str] = None,
        color: Optional[str] = None,
        start: Optional[InstantInput] = None,
        end: Optional[InstantInput] = None,
    ) -> Event:
        """
        Edit dialog save. ``is_todo`` and ``all_day`` are kept, and so is every
        field passed as None. An empty description or color clears it.
        """
        self._require_owner()
        clean_title = _clean_title(title)
        clean_description = _clean_description(description)
        clean_color = _clean_color(color)
        start_ms = _instant(start, "start")
        end_ms = _instant(end, "end")
        with self._locks.hold(event_id):
            event = self._require_event(event_id)
            info = replace(
                event.info,
                title=clean_title,
                description=event.info.description if description is None else clean_description,
                color=event.info.color if color is None else clean_color,
                start=event.info.start if start_ms is None else start_ms,
                end=event.info.end if end_ms is None else end_ms,
            )
            try:
                updated = self._persist(event_id, info)
            except RecordStoreError as e:
                raise self._fail("Failed to update event. Please try again.", e) from e
            self.cache.replace(updated)
            return updated

    def delete(self, event_id: int) -> None:
        owner = self._require_owner()
        with self._locks.hold(event_id):
            self._require_event(event_id)
            try:
                found = self.store.delete(EVENTS_TABLE, event_id, owner)
            except RecordStoreError as e:
                raise self._fail("Failed to delete event. Please try again.", e) from e
            if not found:
                logger.warning("Event %s was already gone from the store (user=%s)", event_id, owner)
            self.cache.remove(event_id)
        self._locks.discard(event_id)
        logger.info("Event %s deleted (user=%s)", event_id, owner)

    def move(
        self,
        event_id: int,
        start: InstantInput,
        end: Optional[InstantInput] = None,
        all_day: Optional[bool] = None,
    ) -> Event:
        """
        Drag or resize inside the calendar. The cache shows the new slot right
        away; a failed write puts the previous entry back.
        """
        self._require_owner()
        start_ms = _instant(start, "start")
        if start_ms is None:
            raise InvalidInput("start is required")
        end_ms = _instant(end, "end")
        with self._locks.hold(event_id):
            previous = self._require_event(event_id)
            info = replace(
                previous.info,
                start=start_ms,
                end=_shifted_end(start_ms, previous.info.end - previous.info.start) if end_ms is None else end_ms,
                all_day=previous.info.all_day if all_day is None else all_day,
            )
            self.cache.replace(replace(previous, info=info))
            try:
                updated = self._persist(event_id, info)
            except RecordStoreError as e:
                self.cache.replace(previous)
                raise self._fail("Failed to update event. Please try again.", e) from e
            self.cache.replace(updated)
            return updated

    # -- drag and drop ---------------------------------------------------

    def drag_start(self, event_id: int) -> DragPayload:
        """Snapshot the dragged event and post it to the mailbox."""
        payload = DragPayload.from_event(self._require_event(event_id))
        self.mailbox.set(payload)
        return payload

    def drag_end(self) -> None:
        self.mailbox.end_drag()

    def _flip(self, event_id: int, info: EventInfo, message: str) -> Event:
        try:
            updated = self._persist(event_id, info)
        except RecordStoreError as e:
            failure = self._fail(message, e)
            self.reload()
            raise failure from e
        self._reflect(updated)
        return updated

    def _move_to_todo(self, payload: DragPayload) -> Optional[Event]:
        self._require_owner()
        with self._locks.hold(payload.id):
            cached = self.cache.get(payload.id)
            if (cached is not None and cached.info.is_todo) or (cached is None and payload.is_todo):
                logger.debug("Event %s is already a to-do; drop ignored", payload.id)
                return None
            if cached is not None:
                base = cached.info
            else:
                base = EventInfo(
                    title=payload.title,
                    start=payload.start,
                    end=payload.end,
                    all_day=payload.all_day,
                    color=payload.color,
                    description=payload.description,
                    is_todo=False,
                )
            updated = self._flip(
                payload.id,
                replace(base, is_todo=True),
                "Failed to move event to to-do list. Please try again.",
            )
            logger.info("Event %s moved to the to-do list (user=%s)", payload.id, self.owner)
            return updated

    def drop_on_todo(self, transfer: Any = None) -> Optional[Event]:
        """
        Native drop on the to-do surface. The transfer data is tried first, the
        mailbox second; the mailbox is emptied either way. Returns None when
        there was nothing to drop or the event already was a to-do.
        """
        payload = DragPayload.from_transfer(transfer) if transfer is not None else None
        mailed = self.mailbox.take()
        payload = payload or mailed
        if payload is None:
            logger.debug("Drop on to-do list without a drag payload")
            return None
        return self._move_to_todo(payload)

    def release(self, x: float, y: float, event_id: Optional[int] = None) -> Optional[Event]:
        """
        Pointer released at page coordinates (x, y). When the point lies in the
        to-do zone this converges on the same mutation as a native drop;
        anywhere else nothing happens.
        """
        if self.zones.zone_at(x, y) != TODO_ZONE:
            return None
        if event_id is not None:
            payload: Optional[DragPayload] = DragPayload.from_event(self._require_event(event_id))
            self.mailbox.clear()
        else:
            payload = self.mailbox.take()
        if payload is None:
            return None
        return self._move_to_todo(payload)

    def drop_on_calendar(
        self,
        event_id: int,
        start: InstantInput,
        end: Optional[InstantInput] = None,
        all_day: Optional[bool] = None,
    ) -> Event:
        """
        A to-do item dropped on a calendar slot: it leaves the to-do list and
        takes the slot's start. Without an explicit end it keeps its duration.
        """
        self._require_owner()
        start_ms = _instant(start, "start")
        if start_ms is None:
            raise InvalidInput("start is required")
        end_ms = _instant(end, "end")
        with self._locks.hold(event_id):
            event = self._require_event(event_id)
            duration = max(event.info.end - event.info.start, 0)
            info = replace(
                event.info,
                start=start_ms,
                end=_shifted_end(start_ms, duration) if end_ms is None else end_ms,
                all_day=event.info.all_day if all_day is None else all_day,
                is_todo=False,
            )
            updated = self._flip(event_id, info, "Failed to move to-do item to the calendar. Please try again.")
            logger.info("Event %s moved to the calendar (user=%s)", event_id, self.owner)
            return updated
