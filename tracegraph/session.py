"""Orchestrator — turns the navigator's current step into a renderable graph."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterable

from .errors import DecodeError, TraceFormatError
from .graph_types import GraphEdge, GraphNode, StepGraph
from .navigator import StepNavigator
from .profiles import Profile, get_profile
from .render_types import RenderConfig
from .runner import NullOutputSink, StepOutputSink, TraceRunner
from .stabilizer import stabilize
from .trace_types import RawStep, RawTrace
from . import constants

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StepView:
    """Everything the UI needs to show one step."""

    step_index: int
    step_count: int
    event: str
    line: int | None
    nodes: tuple[GraphNode, ...] = ()
    graph: StepGraph = field(default_factory=StepGraph)
    stdout: str = ""
    exception_msg: str | None = None
    error: str | None = None

    @property
    def edges(self) -> tuple[GraphEdge, ...]:
        return self.graph.edges

    @property
    def ok(self) -> bool:
        return self.error is None

    def to_dict(self) -> dict:
        d = {
            "step_index": self.step_index,
            "step_count": self.step_count,
            "event": self.event,
            "line": self.line,
            "nodes": [n.to_dict() for n in self.nodes],
            "edges": [e.to_dict() for e in self.edges],
            "stdout": self.stdout,
        }
        if self.exception_msg is not None:
            d["exception_msg"] = self.exception_msg
        if self.error is not None:
            d["error"] = self.error
        return d


def build_step_view(
    profile: Profile,
    step: RawStep,
    step_index: int,
    step_count: int,
    previous_nodes: Iterable[GraphNode] = (),
) -> StepView:
    """Decode → index → graph → stabilize one step.

    A DecodeError leaves the step navigable: the view carries a user-facing
    error and an empty graph instead of raising.
    """
    common = dict(
        step_index=step_index,
        step_count=step_count,
        event=step.event,
        line=step.line,
        stdout=step.stdout or "",
        exception_msg=step.exception_msg,
    )
    try:
        graph = profile.render(step)
    except DecodeError as exc:
        logger.warning("Step %d has no graph: %s", step_index, exc)
        return StepView(error=constants.MALFORMED_TRACE_MESSAGE, **common)

    logger.info("Step %d rendered: %s", step_index, graph.stats.report())
    return StepView(
        nodes=tuple(stabilize(graph.nodes, previous_nodes)), graph=graph, **common
    )


class TraceSession:
    """Stateful front end: one loaded trace, one navigator, one output sink.

    The previously rendered node set is the only state carried between
    steps, and it is passed explicitly into the stabilizer.
    """

    def __init__(
        self,
        language: str,
        config: RenderConfig = RenderConfig(),
        runner: TraceRunner | None = None,
        output_sink: StepOutputSink | None = None,
    ):
        self.language = language
        self.profile = get_profile(language, config)
        self.navigator = StepNavigator()
        self._runner = runner
        self._sink = output_sink or NullOutputSink()
        self._trace: RawTrace | None = None
        self._previous_nodes: tuple[GraphNode, ...] = ()
        self._view: StepView | None = None

    @property
    def trace(self) -> RawTrace | None:
        return self._trace

    @property
    def upstream_failed(self) -> bool:
        return self._trace is not None and self._trace.upstream_failed

    @property
    def current(self) -> StepView | None:
        return self._view

    def run(self, code: str) -> StepView:
        """Request a trace for *code* from the runner and show its first step."""
        if self._runner is None:
            raise ValueError("TraceSession has no TraceRunner to execute code")
        logger.info("Requesting trace (%s, %d bytes)", self.language, len(code))
        return self.load(self._runner.run_trace(code, self.language))

    def load(self, trace: RawTrace) -> StepView:
        """Replace the current trace and show step 0."""
        if not trace.trace:
            raise TraceFormatError("Trace has no steps")
        self._trace = trace
        self._previous_nodes = ()
        self.navigator.load(trace.step_count)
        if trace.upstream_failed:
            logger.info("Traced program failed: %s", trace.console_output())
        return self._show()

    def remember_positions(self, on_screen: Iterable[GraphNode]) -> None:
        """Record the renderer's current nodes (e.g. after the user dragged some)."""
        self._previous_nodes = tuple(on_screen)

    def go_to(self, index: int) -> StepView:
        if not self.navigator.go_to(index):
            return self._view
        return self._show()

    def next(self) -> StepView:
        return self.go_to(self.navigator.current_step_index + 1)

    def prev(self) -> StepView:
        return self.go_to(self.navigator.current_step_index - 1)

    def first(self) -> StepView:
        return self.go_to(0)

    def last(self) -> StepView:
        return self.go_to(self.navigator.step_count - 1)

    def _show(self) -> StepView:
        index = self.navigator.current_step_index
        view = build_step_view(
            self.profile,
            self._trace.trace[index],
            index,
            self._trace.step_count,
            self._previous_nodes,
        )
        if view.ok:
            self._previous_nodes = view.nodes
        self._view = view
        self._sink.on_step_output(view.stdout)
        return view
