"""Execution trace to memory graph conversion package."""

from .session import TraceSession, StepView  # noqa: F401
from .api import (  # noqa: F401
    load_trace,
    build_step_graph,
    build_trace_graphs,
    dump_step_graph,
    summarize_output,
)
