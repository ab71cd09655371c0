#!/usr/bin/env python3
"""Render a captured execution trace as per-step memory graphs.

Reads an execution service response (JSON with a ``trace`` list), walks
the requested steps through a TraceSession and prints each step's graph.

Usage:
    python scripts/render_trace.py trace.json --language c
    python scripts/render_trace.py trace.json -l python --step 3
    python scripts/render_trace.py trace.json -l python --all --verbose
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

# Ensure repo root is importable
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from tracegraph.errors import TraceGraphError
from tracegraph.profiles import SUPPORTED_LANGUAGES
from tracegraph.render_types import RenderConfig
from tracegraph.runner import RecordedTraceRunner, StepOutputSink
from tracegraph.session import StepView, TraceSession


class _StderrSink(StepOutputSink):
    def on_step_output(self, text: str) -> None:
        if text:
            print(text, end="" if text.endswith("\n") else "\n", file=sys.stderr)


def _print_view(view: StepView) -> None:
    print(f"═══ Step {view.step_index + 1}/{view.step_count} (line {view.line}) ═══")
    if view.error:
        print(f"  {view.error}")
        return
    print(json.dumps(view.to_dict(), indent=2, default=str))
    print(f"  {view.graph.stats.report()}")


def main():
    parser = argparse.ArgumentParser(description="Render trace steps as graphs")
    parser.add_argument("file", help="Execution trace JSON file")
    parser.add_argument(
        "--language",
        "-l",
        default="python",
        choices=SUPPORTED_LANGUAGES,
        help="Traced program's language (default: python)",
    )
    parser.add_argument(
        "--step", "-s", type=int, default=0, help="Zero-based step to render"
    )
    parser.add_argument(
        "--all", "-a", action="store_true", help="Render every step in order"
    )
    parser.add_argument(
        "--no-heap", action="store_true", help="Only render stack frame nodes"
    )
    parser.add_argument(
        "--show-output",
        action="store_true",
        help="Echo each step's captured stdout to stderr",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable debug logging",
    )
    args = parser.parse_args()

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(name)s: %(message)s")

    payload = Path(args.file).read_text()
    try:
        runner = RecordedTraceRunner(payload)
    except TraceGraphError as exc:
        print(f"error: {exc}", file=sys.stderr)
        sys.exit(1)

    session = TraceSession(
        args.language,
        config=RenderConfig(include_heap=not args.no_heap),
        runner=runner,
        output_sink=_StderrSink() if args.show_output else None,
    )
    view = session.run("")

    if session.upstream_failed:
        print(f"Program failed: {session.trace.console_output()}", file=sys.stderr)

    if args.all:
        _print_view(view)
        while not session.navigator.at_last:
            _print_view(session.next())
        return

    if args.step != 0:
        moved = session.go_to(args.step)
        if session.navigator.current_step_index != args.step:
            print(
                f"error: step {args.step} out of range (0..{view.step_count - 1})",
                file=sys.stderr,
            )
            sys.exit(1)
        view = moved
    _print_view(view)


if __name__ == "__main__":
    main()
