"""Tests for StepNavigator bounds and transitions."""

import pytest

from tracegraph.errors import NavigationError
from tracegraph.navigator import StepNavigator


def _make_navigator(step_count):
    navigator = StepNavigator()
    navigator.load(step_count)
    return navigator


class TestStepNavigator:
    def test_load_starts_at_first_step(self):
        navigator = _make_navigator(4)
        assert navigator.current_step_index == 0
        assert navigator.at_first
        assert not navigator.at_last

    def test_out_of_range_go_to_is_a_no_op(self):
        navigator = _make_navigator(3)
        navigator.go_to(1)

        assert navigator.go_to(-1) is False
        assert navigator.go_to(3) is False
        assert navigator.current_step_index == 1

    def test_next_walks_to_last_step_then_stops(self):
        n = 5
        navigator = _make_navigator(n)
        navigator.go_to(0)
        for _ in range(n - 1):
            assert navigator.next()
        assert navigator.current_step_index == n - 1
        assert navigator.at_last

        assert navigator.next() is False
        assert navigator.current_step_index == n - 1

    def test_prev_stops_at_zero(self):
        navigator = _make_navigator(2)
        assert navigator.prev() is False
        assert navigator.current_step_index == 0

    def test_first_and_last(self):
        navigator = _make_navigator(6)
        navigator.last()
        assert navigator.current_step_index == 5
        navigator.first()
        assert navigator.current_step_index == 0

    def test_single_step_trace(self):
        navigator = _make_navigator(1)
        assert navigator.at_first and navigator.at_last
        assert navigator.next() is False

    def test_reload_resets_to_zero(self):
        navigator = _make_navigator(5)
        navigator.last()
        navigator.load(2)
        assert navigator.current_step_index == 0
        assert navigator.step_count == 2

    def test_use_before_load_raises(self):
        navigator = StepNavigator()
        assert not navigator.has_trace
        with pytest.raises(NavigationError):
            navigator.go_to(0)
        with pytest.raises(NavigationError):
            _ = navigator.current_step_index

    def test_empty_trace_is_rejected(self):
        with pytest.raises(ValueError):
            StepNavigator().load(0)
