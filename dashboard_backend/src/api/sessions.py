from __future__ import annotations

import logging
from functools import lru_cache
from threading import Lock
from typing import Callable, Dict, List, Optional

from .drag import DragMailbox, DropZoneRegistry
from .errors import ErrorReport
from .events import EventSession
from .goals import GoalSession
from .models import Event
from .repositories import RecordStore, get_record_store
from .settings import get_settings

logger = logging.getLogger(__name__)


# PUBLIC_INTERFACE
class DashboardSession:
    """
    Top-level coordinator for one user: owns the goal and event caches, the
    shared error slot, the drag mailbox and the drop-zone registry.

    A session without a user id is the read-only empty view.
    """

    def __init__(self, user_id: Optional[str], store: RecordStore, mailbox_ttl_ms: int = 100) -> None:
        self.user_id = user_id
        self.errors = ErrorReport()
        self.mailbox = DragMailbox(ttl_ms=mailbox_ttl_ms)
        self.zones = DropZoneRegistry()
        self.goals = GoalSession(user_id, store, self.errors)
        self.events = EventSession(user_id, store, self.errors, self.mailbox, self.zones)

    @property
    def signed_in(self) -> bool:
        return self.user_id is not None

    def load(self) -> None:
        self.goals.load()
        self.events.reload()

    def on_events_change(self, listener: Callable[[List[Event]], None]) -> Callable[[], None]:
        """Subscribe a surface to event cache changes. Returns the unsubscribe callable."""
        return self.events.cache.subscribe(listener)


# PUBLIC_INTERFACE
class SessionRegistry:
    """
    Keeps one DashboardSession per user id, loaded on first use.

    The registry lock only guards the maps; a first load holds the lock of its
    own user, so a slow store does not hold up other users.
    """

    def __init__(self, store: RecordStore, mailbox_ttl_ms: int = 100) -> None:
        self._store = store
        self._mailbox_ttl_ms = mailbox_ttl_ms
        self._lock = Lock()
        self._sessions: Dict[str, DashboardSession] = {}
        self._user_locks: Dict[str, Lock] = {}

    def _user_lock(self, user_id: str) -> Lock:
        with self._lock:
            lock = self._user_locks.get(user_id)
            if lock is None:
                lock = self._user_locks[user_id] = Lock()
            return lock

    def for_user(self, user_id: Optional[str]) -> DashboardSession:
        """Return the session for ``user_id``; None yields a fresh anonymous session."""
        if user_id is None:
            return DashboardSession(None, self._store, self._mailbox_ttl_ms)
        with self._lock:
            session = self._sessions.get(user_id)
        if session is not None:
            return session
        with self._user_lock(user_id):
            with self._lock:
                session = self._sessions.get(user_id)
            if session is not None:
                return session
            session = DashboardSession(user_id, self._store, self._mailbox_ttl_ms)
            session.load()
            with self._lock:
                self._sessions[user_id] = session
            logger.info("Session started for user %s", user_id)
            return session

    def end(self, user_id: str) -> bool:
        """Drop the cached session of ``user_id``; the next request starts a fresh one."""
        with self._lock:
            self._user_locks.pop(user_id, None)
            ended = self._sessions.pop(user_id, None) is not None
        if ended:
            logger.info("Session ended for user %s", user_id)
        return ended

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)


# PUBLIC_INTERFACE
@lru_cache(maxsize=1)
def get_session_registry() -> SessionRegistry:
    """Process-wide registry bound to the configured Record Store."""
    return SessionRegistry(get_record_store(), get_settings().drag_mailbox_ttl_ms)
