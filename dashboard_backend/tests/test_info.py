import math

import pytest

from src.api.info import (
    default_event_info,
    default_goal_info,
    event_info_to_json,
    goal_info_to_json,
    parse_event_info,
    parse_goal_info,
)
from src.api.models import EventInfo, GoalInfo


class TestGoalInfo:
    def test_well_formed_round_trip(self):
        raw = {"title": "Read", "deadline": "2099-12-31", "target": 10, "counter": 4, "completed": True}
        assert goal_info_to_json(parse_goal_info(raw)) == raw

    @pytest.mark.parametrize("raw", [None, 42, "Read", [], ["title"], {"counter": 3}, {"deadline": "2099-01-01"}])
    def test_not_a_record_yields_default(self, raw):
        assert parse_goal_info(raw) == default_goal_info()

    def test_default_shape(self):
        info = default_goal_info()
        assert info == GoalInfo(title="", deadline=None, target=None, counter=0, completed=False)

    def test_field_coercion(self):
        info = parse_goal_info(
            {
                "title": 12,
                "deadline": "",
                "target": "10",
                "counter": "3",
                "completed": "true",
            }
        )
        assert info.title == ""
        assert info.deadline is None
        assert info.target is None
        assert info.counter == 0
        assert info.completed is False

    @pytest.mark.parametrize("bad", [math.nan, math.inf, -math.inf, True, None, {}])
    def test_non_finite_numbers_fall_back(self, bad):
        info = parse_goal_info({"title": "x", "target": bad, "counter": bad})
        assert info.target is None
        assert info.counter == 0

    def test_float_numbers_are_truncated(self):
        info = parse_goal_info({"title": "x", "target": 10.0, "counter": 2.7})
        assert info.target == 10
        assert info.counter == 2

    def test_deadline_kept_as_text(self):
        assert parse_goal_info({"title": "x", "deadline": "2099-01-31"}).deadline == "2099-01-31"

    def test_normalizing_malformed_input_is_deterministic(self):
        raw = {"title": None, "target": "many", "counter": -math.inf, "completed": 1}
        first = parse_goal_info(raw)
        second = parse_goal_info(raw)
        assert first == second
        assert parse_goal_info(goal_info_to_json(first)) == first


class TestEventInfo:
    def test_well_formed_round_trip(self):
        raw = {
            "start": 1_900_000_000_000,
            "end": 1_900_000_360_000,
            "title": "Dentist",
            "desc": "Bring card",
            "color": "#ff0000",
            "allday": False,
            "toDo": True,
        }
        assert event_info_to_json(parse_event_info(raw)) == raw

    def test_blank_optional_strings_round_trip(self):
        raw = {"start": 5, "end": 6, "title": "t", "desc": "", "color": "", "allday": True, "toDo": False}
        info = parse_event_info(raw)
        assert info.description is None
        assert info.color is None
        assert event_info_to_json(info) == raw

    @pytest.mark.parametrize("raw", [None, 0, "x", [1, 2], {"start": 1, "end": 2}])
    def test_not_a_record_yields_default(self, raw):
        info = parse_event_info(raw)
        assert info == default_event_info()
        assert info.is_todo is False

    def test_end_defaults_to_start(self):
        assert parse_event_info({"title": "x", "start": 1000}).end == 1000
        assert parse_event_info({"title": "x", "start": 1000, "end": "later"}).end == 1000

    def test_unrepresentable_times_are_treated_as_missing(self):
        info = parse_event_info({"title": "x", "start": 1e300, "end": -1e300})
        assert (info.start, info.end) == (0, 0)
        info = parse_event_info({"title": "x", "start": 1000, "end": 9_000_000_000_000_000})
        assert info.end == 1000

    @pytest.mark.parametrize("flag", [None, "true", 1, "yes", {}])
    def test_is_todo_only_on_literal_true(self, flag):
        info = parse_event_info({"title": "x", "toDo": flag})
        assert info.is_todo is False

    def test_is_todo_always_defined(self):
        for raw in ({"title": "x"}, {"title": "x", "toDo": True}, None):
            assert isinstance(parse_event_info(raw).is_todo, bool)

    def test_parse_is_idempotent(self):
        raw = {"title": ["bad"], "start": "soon", "allday": "yes", "color": 7}
        first = parse_event_info(raw)
        assert first == parse_event_info(raw)
        assert first == EventInfo(title="", start=0, end=0, all_day=False, color="7", description=None, is_todo=False)
