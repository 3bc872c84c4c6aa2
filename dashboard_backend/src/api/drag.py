"""
Cross-view drag plumbing: the drag payload, the single-slot mailbox that carries
it between surfaces, and the registry of drop zones used for pointer-release
hit testing.
"""
from __future__ import annotations

import json
import logging
import time
from dataclasses import asdict, dataclass
from threading import Lock
from typing import Any, Callable, Dict, Optional

from .models import Event

logger = logging.getLogger(__name__)

TRANSFER_MIME_TYPE = "application/json"
TODO_ZONE = "todo"


# PUBLIC_INTERFACE
@dataclass(frozen=True)
class DragPayload:
    """Snapshot of an event taken when a drag starts."""

    id: int
    title: str
    start: int
    end: int
    all_day: bool
    color: Optional[str]
    description: Optional[str]
    is_todo: bool

    @classmethod
    def from_event(cls, event: Event) -> "DragPayload":
        info = event.info
        return cls(
            id=event.id,
            title=info.title,
            start=info.start,
            end=info.end,
            all_day=info.all_day,
            color=info.color,
            description=info.description,
            is_todo=info.is_todo,
        )

    def to_transfer(self) -> str:
        """Serialize for the native drag transfer (``application/json``)."""
        return json.dumps(asdict(self))

    @classmethod
    def from_transfer(cls, data: Any) -> Optional["DragPayload"]:
        """
        Decode a native transfer. Accepts the JSON text or an already decoded
        mapping; anything unusable yields None so the caller can fall back to
        the mailbox.
        """
        if isinstance(data, str):
            if not data.strip():
                return None
            try:
                data = json.loads(data)
            except ValueError:
                logger.debug("Ignoring undecodable drag transfer")
                return None
        if not isinstance(data, dict):
            return None
        try:
            record_id = int(data["id"])
            start = int(data.get("start") or 0)
            end = data.get("end")
            return cls(
                id=record_id,
                title=str(data.get("title") or ""),
                start=start,
                end=start if end is None else int(end),
                all_day=data.get("all_day") is True,
                color=data.get("color") or None,
                description=data.get("description") or None,
                is_todo=data.get("is_todo") is True,
            )
        except (KeyError, TypeError, ValueError):
            logger.debug("Ignoring malformed drag transfer: %r", data)
            return None


# PUBLIC_INTERFACE
class DragMailbox:
    """
    Single-slot channel holding the payload of the drag in progress.

    ``set`` stores a payload at drag start. ``end_drag`` arms an expiry ``ttl_ms``
    later; after that ``peek``/``take`` see an empty slot. ``take`` empties the
    slot so a payload is consumed at most once.
    """

    def __init__(self, ttl_ms: int = 100, clock: Callable[[], float] = time.monotonic) -> None:
        self._lock = Lock()
        self._ttl = ttl_ms / 1000.0
        self._clock = clock
        self._payload: Optional[DragPayload] = None
        self._expires_at: Optional[float] = None

    def _expire(self) -> None:
        if self._expires_at is not None and self._clock() >= self._expires_at:
            self._payload = None
            self._expires_at = None

    def set(self, payload: DragPayload) -> None:
        with self._lock:
            self._payload = payload
            self._expires_at = None

    def end_drag(self) -> None:
        with self._lock:
            if self._payload is not None:
                self._expires_at = self._clock() + self._ttl

    def peek(self) -> Optional[DragPayload]:
        with self._lock:
            self._expire()
            return self._payload

    def take(self) -> Optional[DragPayload]:
        with self._lock:
            self._expire()
            payload = self._payload
            self._payload = None
            self._expires_at = None
            return payload

    def clear(self) -> None:
        with self._lock:
            self._payload = None
            self._expires_at = None


# PUBLIC_INTERFACE
@dataclass(frozen=True)
class Rect:
    """Bounding box in page coordinates."""

    left: float
    top: float
    width: float
    height: float

    @property
    def right(self) -> float:
        return self.left + self.width

    @property
    def bottom(self) -> float:
        return self.top + self.height

    def contains(self, x: float, y: float) -> bool:
        return self.left <= x <= self.right and self.top <= y <= self.bottom


# PUBLIC_INTERFACE
class DropZoneRegistry:
    """
    Drop surfaces register their current bounds here; the coordinator answers
    which zone lies under a point without reaching into any surface.
    When zones overlap, the most recently registered one wins.
    """

    def __init__(self) -> None:
        self._lock = Lock()
        self._zones: Dict[str, Rect] = {}

    def register(self, name: str, rect: Rect) -> None:
        with self._lock:
            self._zones.pop(name, None)
            self._zones[name] = rect

    def unregister(self, name: str) -> bool:
        with self._lock:
            return self._zones.pop(name, None) is not None

    def zone_at(self, x: float, y: float) -> Optional[str]:
        with self._lock:
            for name, rect in reversed(list(self._zones.items())):
                if rect.contains(x, y):
                    return name
            return None
