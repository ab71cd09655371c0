"""Tests for TraceSession — navigation, output sink and failure handling."""

from dataclasses import replace

import pytest

from tracegraph.errors import TraceFormatError
from tracegraph.graph_types import Position
from tracegraph.render_types import RenderConfig
from tracegraph.runner import RecordedTraceRunner, StepOutputSink, TraceRunner
from tracegraph.session import TraceSession
from tracegraph.trace_types import RawTrace, parse_execution_trace


class _ListSink(StepOutputSink):
    def __init__(self):
        self.outputs: list[str] = []

    def on_step_output(self, text: str) -> None:
        self.outputs.append(text)


class _FakeRunner(TraceRunner):
    def __init__(self, trace: RawTrace):
        self.trace = trace
        self.calls: list[tuple[str, str]] = []

    def run_trace(self, code: str, language: str) -> RawTrace:
        self.calls.append((code, language))
        return self.trace


def _make_python_step(line, globals_, heap=None, stdout=""):
    return {
        "event": "step_line",
        "line": line,
        "globals": globals_,
        "ordered_globals": list(globals_),
        "stack_to_render": [],
        "heap": heap or {},
        "stdout": stdout,
    }


def _make_trace(*steps, status="success"):
    return parse_execution_trace({"code": "", "trace": list(steps), "status": status})


LIST_TRACE = _make_trace(
    _make_python_step(1, {"xs": ["REF", 1]}, {"1": ["LIST", 1]}),
    _make_python_step(2, {"xs": ["REF", 1]}, {"1": ["LIST", 1, 2]}, stdout="[1, 2]\n"),
    _make_python_step(3, {"xs": ["REF", 1], "n": 2}, {"1": ["LIST", 1, 2]}, stdout="[1, 2]\n"),
)


class TestTraceSessionNavigation:
    def test_load_shows_first_step(self):
        session = TraceSession("python")
        view = session.load(LIST_TRACE)

        assert view.step_index == 0
        assert view.step_count == 3
        assert view.line == 1
        assert view.ok
        assert {n.id for n in view.nodes} == {"frame-globals", "heap-1"}
        assert len(view.edges) == 1

    def test_next_and_prev(self):
        session = TraceSession("python")
        session.load(LIST_TRACE)

        assert session.next().line == 2
        assert session.next().line == 3
        assert session.prev().line == 2

    def test_out_of_range_returns_current_view(self):
        session = TraceSession("python")
        first = session.load(LIST_TRACE)

        assert session.prev() is first
        assert session.go_to(99) is first
        assert session.navigator.current_step_index == 0

    def test_last_and_first(self):
        session = TraceSession("python")
        session.load(LIST_TRACE)
        assert session.last().step_index == 2
        assert session.first().step_index == 0

    def test_moved_nodes_keep_their_position(self):
        session = TraceSession("python")
        view = session.load(LIST_TRACE)
        dragged = [replace(node, position=Position(x=7, y=9)) for node in view.nodes]
        session.remember_positions(dragged)

        nxt = session.next()
        assert {n.position for n in nxt.nodes} == {Position(x=7, y=9)}

    def test_graph_keeps_default_positions(self):
        session = TraceSession("python")
        session.load(LIST_TRACE)
        session.remember_positions([])
        view = session.next()
        heap = view.graph.node("heap-1")
        assert heap.position == Position(x=400, y=50)


class TestTraceSessionOutput:
    def test_sink_receives_each_shown_steps_stdout(self):
        sink = _ListSink()
        session = TraceSession("python", output_sink=sink)
        session.load(LIST_TRACE)
        session.next()
        session.go_to(7)

        assert sink.outputs == ["", "[1, 2]\n"]

    def test_run_uses_runner(self):
        runner = _FakeRunner(LIST_TRACE)
        session = TraceSession("python", runner=runner)

        view = session.run("xs = [1]\n")

        assert runner.calls == [("xs = [1]\n", "python")]
        assert view.step_index == 0

    def test_run_without_runner_raises(self):
        with pytest.raises(ValueError):
            TraceSession("python").run("x = 1")

    def test_recorded_runner_fills_in_code(self):
        runner = RecordedTraceRunner(
            {"trace": [_make_python_step(1, {"x": 1})], "status": "success"}
        )
        trace = runner.run_trace("x = 1\n", "python")
        assert trace.code == "x = 1\n"


class TestTraceSessionFailures:
    def test_malformed_step_is_reported_and_navigable(self):
        trace = _make_trace(
            _make_python_step(1, {"x": 1}),
            _make_python_step(2, {"x": ["MODULE", "os"]}),
            _make_python_step(3, {"x": 3}),
        )
        session = TraceSession("python")
        session.load(trace)

        bad = session.next()
        assert not bad.ok
        assert bad.error == "unsupported or malformed trace"
        assert bad.nodes == ()
        assert bad.line == 2

        good = session.next()
        assert good.ok
        assert good.line == 3

    def test_mistyped_address_values_give_an_error_view(self):
        def c_step(line, locals_, heap=None):
            return {
                "event": "step_line",
                "line": line,
                "stack_to_render": [
                    {
                        "func_name": "main",
                        "frame_id": 1,
                        "ordered_varnames": list(locals_),
                        "encoded_locals": locals_,
                    }
                ],
                "heap": heap or {},
            }

        array = [
            "C_ARRAY",
            "0x100",
            {"elt_bytes": "8", "oob_addr": "0x110"},
            ["C_DATA", "0x100", "int", 1, {"bytes": 8}],
            ["C_DATA", "0x108", "int", 2, {"bytes": 8}],
        ]
        pointer = ["C_DATA", "0x20", "pointer", "0x104", {"bytes": 8, "target_type": "int"}]
        trace = _make_trace(
            c_step(1, {"x": [["C_DATA"], "0x10", "int", 1, {"bytes": 4}]}),
            c_step(2, {"p": pointer}, {"0x100": array}),
            c_step(3, {"n": ["C_DATA", "0x10", "int", 1, {"bytes": 4}]}),
        )
        session = TraceSession("c")

        first = session.load(trace)
        second = session.next()
        third = session.next()

        assert first.error == "unsupported or malformed trace"
        assert second.error == "unsupported or malformed trace"
        assert third.ok

    def test_non_ascii_digit_heap_key_renders(self):
        trace = _make_trace(
            _make_python_step(1, {"xs": ["REF", "²"]}, {"²": ["LIST", 1]})
        )
        view = TraceSession("python").load(trace)

        assert view.ok
        assert [e.target for e in view.edges] == ["heap-²"]

    def test_upstream_failure_still_renders(self):
        step = _make_python_step(1, {"x": 1})
        step["event"] = "uncaught_exception"
        step["exception_msg"] = "ZeroDivisionError: division by zero"
        session = TraceSession("python")

        view = session.load(_make_trace(step, status="error"))

        assert session.upstream_failed
        assert view.ok
        assert view.exception_msg == "ZeroDivisionError: division by zero"

    def test_empty_trace_is_rejected(self):
        with pytest.raises(TraceFormatError):
            TraceSession("python").load(_make_trace())

    def test_address_language_session(self):
        step = {
            "event": "step_line",
            "line": 4,
            "stack_to_render": [
                {
                    "func_name": "main",
                    "frame_id": 1,
                    "ordered_varnames": ["n"],
                    "encoded_locals": {"n": ["C_DATA", "0x10", "int", 1, {"bytes": 4}]},
                }
            ],
            "heap": {},
        }
        session = TraceSession("c", config=RenderConfig(include_heap=False))
        view = session.load(_make_trace(step))
        assert [n.id for n in view.nodes] == ["frame-1"]
