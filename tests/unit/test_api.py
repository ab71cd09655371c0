"""Tests for the composable API functions in tracegraph.api."""

import json

import pytest

from tracegraph.api import (
    build_step_graph,
    build_trace_graphs,
    dump_step_graph,
    load_trace,
    summarize_output,
)
from tracegraph.errors import DecodeError
from tracegraph.graph_types import StepGraph

C_TRACE = {
    "code": "int main() { int x = 3; int *p = &x; }",
    "status": "success",
    "trace": [
        {
            "event": "step_line",
            "line": 1,
            "stack_to_render": [
                {
                    "func_name": "main",
                    "frame_id": "0x7ff0",
                    "ordered_varnames": ["x", "p"],
                    "encoded_locals": {
                        "x": ["C_DATA", "0x7ff0", "int", 3, {"bytes": 4}],
                        "p": [
                            "C_DATA",
                            "0x7ff8",
                            "pointer",
                            "<UNINITIALIZED>",
                            {"bytes": 8, "target_type": "int"},
                        ],
                    },
                }
            ],
            "heap": {},
        },
        {
            "event": "step_line",
            "line": 1,
            "stack_to_render": [
                {
                    "func_name": "main",
                    "frame_id": "0x7ff0",
                    "ordered_varnames": ["x", "p"],
                    "encoded_locals": {
                        "x": ["C_DATA", "0x7ff0", "int", 3, {"bytes": 4}],
                        "p": [
                            "C_DATA",
                            "0x7ff8",
                            "pointer",
                            "0x7ff0",
                            {"bytes": 8, "target_type": "int"},
                        ],
                    },
                }
            ],
            "heap": {},
            "stdout": "done\n",
        },
    ],
}


class TestLoadTrace:
    def test_returns_raw_trace(self):
        trace = load_trace(json.dumps(C_TRACE))
        assert trace.step_count == 2


class TestBuildStepGraph:
    def test_returns_step_graph(self):
        trace = load_trace(C_TRACE)
        graph = build_step_graph(trace.trace[0], language="c")
        assert isinstance(graph, StepGraph)
        assert graph.node_ids == {"frame-0x7ff0"}

    def test_uninitialized_then_initialized_pointer(self):
        trace = load_trace(C_TRACE)
        before = build_step_graph(trace.trace[0], language="c")
        after = build_step_graph(trace.trace[1], language="c")

        assert before.edges == ()
        assert len(after.edges) == 1
        assert after.edges[0].source == after.edges[0].target == "frame-0x7ff0"
        assert after.edges[0].target_handle == "var-0x7ff0"

    def test_wrong_profile_raises_decode_error(self):
        trace = load_trace(C_TRACE)
        with pytest.raises(DecodeError):
            build_step_graph(trace.trace[0], language="python")

    def test_build_trace_graphs_covers_every_step(self):
        graphs = build_trace_graphs(load_trace(C_TRACE), language="cpp")
        assert [len(g.edges) for g in graphs] == [0, 1]


class TestDumpStepGraph:
    def test_renderer_payload_shape(self):
        trace = load_trace(C_TRACE)
        payload = json.loads(dump_step_graph(trace.trace[1], language="c"))

        assert set(payload) == {"nodes", "edges"}
        node = payload["nodes"][0]
        assert node["type"] == "stack-frame"
        assert node["position"] == {"x": 50, "y": 100}
        assert [v["name"] for v in node["data"]["variables"]] == ["x", "p"]
        edge = payload["edges"][0]
        assert edge["sourceHandle"] == "var-0x7ff8"
        assert edge["targetHandle"] == "var-0x7ff0"

    def test_uninitialized_value_is_serialized_as_marker(self):
        trace = load_trace(C_TRACE)
        payload = json.loads(dump_step_graph(trace.trace[0], language="c"))
        p = payload["nodes"][0]["data"]["variables"][1]["value"]
        assert p["value"] == "<UNINITIALIZED>"


class TestSummarizeOutput:
    def test_last_step_stdout(self):
        assert summarize_output(load_trace(C_TRACE)) == "done"
