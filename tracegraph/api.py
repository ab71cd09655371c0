"""Composable API functions for turning execution traces into step graphs.

Each function corresponds to a CLI workflow (render one step, dump JSON,
summarize output) but is callable programmatically without argparse.
"""

from __future__ import annotations

import json
import logging
from typing import Any

from .graph_types import StepGraph
from .profiles import get_profile
from .render_types import RenderConfig
from .trace_types import RawStep, RawTrace, parse_execution_trace

logger = logging.getLogger(__name__)


def load_trace(payload: str | bytes | dict[str, Any]) -> RawTrace:
    """Parse an execution service response.

    Args:
        payload: JSON text or an already-decoded JSON object.

    Returns:
        The validated RawTrace.

    Raises:
        TraceFormatError: If the payload is not a trace.
    """
    return parse_execution_trace(payload)


def build_step_graph(
    step: RawStep,
    language: str = "python",
    config: RenderConfig = RenderConfig(),
) -> StepGraph:
    """Build the graph (nodes at default positions, edges) for one step.

    Args:
        step: One step of a parsed trace.
        language: Source language name (e.g. "c", "cpp", "python").
        config: Layout and filtering options.

    Returns:
        The StepGraph for *step*.

    Raises:
        ValueError: If *language* has no profile.
        DecodeError: If the step contains values outside the profile's grammar.
    """
    logger.info("Building step graph (%s, line=%s)", language, step.line)
    return get_profile(language, config).render(step)


def build_trace_graphs(
    trace: RawTrace,
    language: str = "python",
    config: RenderConfig = RenderConfig(),
) -> list[StepGraph]:
    """Build a StepGraph for every step of *trace*, in order."""
    profile = get_profile(language, config)
    return [profile.render(step) for step in trace.trace]


def dump_step_graph(
    step: RawStep,
    language: str = "python",
    config: RenderConfig = RenderConfig(),
) -> str:
    """Build one step's graph and return it as indented JSON."""
    graph = build_step_graph(step, language=language, config=config)
    return json.dumps(graph.to_dict(), indent=2, default=str)


def summarize_output(trace: RawTrace) -> str:
    """Console text for a finished run: last step's output, or its error."""
    return trace.console_output()
