import json

import pytest

from src.api.drag import TODO_ZONE, DragMailbox, DragPayload, DropZoneRegistry, Rect
from src.api.errors import WriteFailed

T0 = 1_900_000_000_000
HOUR = 60 * 60 * 1000


class FakeClock:
    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now


def payload(event_id=1, is_todo=False):
    return DragPayload(
        id=event_id,
        title="Dentist",
        start=T0,
        end=T0 + HOUR,
        all_day=False,
        color="#ff0000",
        description="Bring card",
        is_todo=is_todo,
    )


class TestMailbox:
    def test_take_empties_the_slot(self):
        box = DragMailbox()
        box.set(payload())
        assert box.peek() == payload()
        assert box.take() == payload()
        assert box.take() is None

    def test_payload_expires_after_drag_end(self):
        clock = FakeClock()
        box = DragMailbox(ttl_ms=100, clock=clock)
        box.set(payload())
        clock.now = 50.0
        assert box.peek() is not None  # no expiry while the drag is in progress
        box.end_drag()
        clock.now = 50.05
        assert box.peek() is not None
        clock.now = 50.2
        assert box.peek() is None
        assert box.take() is None

    def test_new_drag_replaces_payload_and_disarms_expiry(self):
        clock = FakeClock()
        box = DragMailbox(ttl_ms=100, clock=clock)
        box.set(payload(1))
        box.end_drag()
        box.set(payload(2))
        clock.now = 10.0
        assert box.peek().id == 2

    def test_clear(self):
        box = DragMailbox()
        box.set(payload())
        box.clear()
        assert box.peek() is None


class TestDropZones:
    def test_rect_edges_are_inside(self):
        rect = Rect(10, 20, 100, 50)
        assert rect.contains(10, 20)
        assert rect.contains(110, 70)
        assert not rect.contains(111, 70)
        assert not rect.contains(50, 19.5)

    def test_zone_at(self):
        zones = DropZoneRegistry()
        zones.register("calendar", Rect(0, 0, 800, 600))
        zones.register(TODO_ZONE, Rect(820, 0, 200, 400))
        assert zones.zone_at(100, 100) == "calendar"
        assert zones.zone_at(900, 100) == TODO_ZONE
        assert zones.zone_at(900, 500) is None

    def test_latest_registration_wins_on_overlap(self):
        zones = DropZoneRegistry()
        zones.register(TODO_ZONE, Rect(0, 0, 100, 100))
        zones.register("calendar", Rect(50, 50, 100, 100))
        assert zones.zone_at(75, 75) == "calendar"
        zones.register(TODO_ZONE, Rect(0, 0, 100, 100))
        assert zones.zone_at(75, 75) == TODO_ZONE

    def test_unregister(self):
        zones = DropZoneRegistry()
        zones.register(TODO_ZONE, Rect(0, 0, 10, 10))
        assert zones.unregister(TODO_ZONE) is True
        assert zones.unregister(TODO_ZONE) is False
        assert zones.zone_at(5, 5) is None


class TestTransfer:
    def test_round_trip(self):
        assert DragPayload.from_transfer(payload().to_transfer()) == payload()

    def test_decoded_mapping(self):
        assert DragPayload.from_transfer(json.loads(payload().to_transfer())) == payload()

    @pytest.mark.parametrize("data", ["", "   ", "{not json", "[1, 2]", '{"title": "no id"}', '{"id": "abc"}', 42])
    def test_unusable_transfer_yields_none(self, data):
        assert DragPayload.from_transfer(data) is None

    def test_missing_end_defaults_to_start(self):
        assert DragPayload.from_transfer({"id": 3, "start": 10}).end == 10


@pytest.fixture
def calendar_event(session):
    return session.events.create(
        "Dentist", description="Bring card", color="#ff0000", start=T0, end=T0 + HOUR, is_todo=False
    )


@pytest.fixture
def todo_zone(session):
    session.zones.register(TODO_ZONE, Rect(1000, 0, 300, 600))
    session.zones.register("calendar", Rect(0, 0, 980, 800))


class TestDragToTodo:
    def test_native_drop_moves_event_to_todo_list(self, session, store, calendar_event, assert_synced):
        transfer = session.events.drag_start(calendar_event.id).to_transfer()
        moved = session.events.drop_on_todo(transfer)
        assert moved.id == calendar_event.id
        assert moved.info.is_todo is True
        assert moved.info.title == "Dentist"
        assert moved.info.description == "Bring card"
        assert moved.info.color == "#ff0000"
        assert (moved.info.start, moved.info.end) == (T0, T0 + HOUR)
        assert session.events.calendar() == []
        assert [e.id for e in session.events.todo()] == [calendar_event.id]
        assert session.mailbox.peek() is None
        assert_synced(session)

    def test_mailbox_covers_missing_transfer(self, session, calendar_event):
        session.events.drag_start(calendar_event.id)
        moved = session.events.drop_on_todo(None)
        assert moved.info.is_todo is True

    def test_malformed_transfer_falls_back_to_mailbox(self, session, calendar_event):
        session.events.drag_start(calendar_event.id)
        moved = session.events.drop_on_todo("{broken")
        assert moved is not None
        assert moved.info.is_todo is True

    def test_drop_without_any_payload_is_ignored(self, session, store, calendar_event):
        writes = store.writes
        assert session.events.drop_on_todo(None) is None
        assert store.writes == writes

    def test_drop_after_mailbox_expired_is_ignored(self, store, calendar_event, session):
        clock = FakeClock()
        session.events.mailbox = DragMailbox(ttl_ms=100, clock=clock)
        session.events.drag_start(calendar_event.id)
        session.events.drag_end()
        clock.now = 1.0
        assert session.events.drop_on_todo(None) is None
        assert session.events.cache.get(calendar_event.id).info.is_todo is False

    def test_dropping_a_todo_is_idempotent(self, session, store):
        todo = session.events.create("Already")
        writes = store.writes
        transfer = session.events.drag_start(todo.id).to_transfer()
        assert session.events.drop_on_todo(transfer) is None
        assert store.writes == writes

    def test_release_over_todo_zone(self, session, store, calendar_event, todo_zone):
        session.events.drag_start(calendar_event.id)
        moved = session.events.release(1100, 300)
        assert moved.info.is_todo is True
        assert session.mailbox.peek() is None

    def test_release_with_explicit_event(self, session, calendar_event, todo_zone):
        moved = session.events.release(1100, 300, event_id=calendar_event.id)
        assert moved.id == calendar_event.id
        assert moved.info.is_todo is True

    def test_release_elsewhere_does_nothing(self, session, store, calendar_event, todo_zone):
        session.events.drag_start(calendar_event.id)
        writes = store.writes
        assert session.events.release(500, 300) is None
        assert session.events.release(5000, 5000) is None
        assert store.writes == writes
        assert session.events.cache.get(calendar_event.id).info.is_todo is False

    def test_native_drop_and_release_apply_once(self, session, store, calendar_event, todo_zone):
        transfer = session.events.drag_start(calendar_event.id).to_transfer()
        writes = store.writes
        assert session.events.drop_on_todo(transfer) is not None
        assert session.events.release(1100, 300, event_id=calendar_event.id) is None
        assert session.events.release(1100, 300) is None
        assert store.writes == writes + 1

    def test_release_then_late_native_drop_apply_once(self, session, store, calendar_event, todo_zone):
        transfer = session.events.drag_start(calendar_event.id).to_transfer()
        writes = store.writes
        assert session.events.release(1100, 300) is not None
        assert session.events.drop_on_todo(transfer) is None
        assert store.writes == writes + 1

    def test_failed_flip_reloads_from_store(self, session, store, calendar_event, assert_synced):
        transfer = session.events.drag_start(calendar_event.id).to_transfer()
        store.fail_writes = True
        with pytest.raises(WriteFailed) as exc_info:
            session.events.drop_on_todo(transfer)
        assert exc_info.value.message == "Failed to move event to to-do list. Please try again."
        assert session.errors.message == exc_info.value.message
        assert [e.id for e in session.events.calendar()] == [calendar_event.id]
        assert session.events.todo() == []
        assert_synced(session)


class TestDropOnCalendar:
    def test_drop_sets_slot_and_leaves_todo_list(self, session, store, assert_synced):
        todo = session.events.create("Plan trip")
        moved = session.events.drop_on_calendar(todo.id, T0 + 2 * HOUR, T0 + 4 * HOUR)
        assert moved.id == todo.id
        assert moved.info.is_todo is False
        assert (moved.info.start, moved.info.end) == (T0 + 2 * HOUR, T0 + 4 * HOUR)
        assert session.events.todo() == []
        assert [e.id for e in session.events.calendar()] == [todo.id]
        assert_synced(session)

    def test_drop_without_end_keeps_duration(self, session):
        todo = session.events.create("Plan trip", start=T0, end=T0 + 2 * HOUR)
        moved = session.events.drop_on_calendar(todo.id, "2030-01-01", all_day=True)
        assert moved.info.end - moved.info.start == 2 * HOUR
        assert moved.info.all_day is True

    def test_failed_drop_reloads(self, session, store, assert_synced):
        todo = session.events.create("Plan trip")
        store.fail_writes = True
        with pytest.raises(WriteFailed):
            session.events.drop_on_calendar(todo.id, T0)
        assert [e.id for e in session.events.todo()] == [todo.id]
        assert_synced(session)

    def test_round_trip_between_views(self, session, todo_zone):
        event = session.events.create("Ping-pong", start=T0, end=T0 + HOUR, is_todo=False)
        session.events.drag_start(event.id)
        session.events.drop_on_todo(None)
        back = session.events.drop_on_calendar(event.id, T0 + HOUR)
        assert back.info.is_todo is False
        assert (back.info.start, back.info.end) == (T0 + HOUR, T0 + 2 * HOUR)
        assert back.info.title == "Ping-pong"
