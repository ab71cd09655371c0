"""Collaborator interfaces — where traces come from and where step output goes."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any

from .trace_types import RawTrace, parse_execution_trace

logger = logging.getLogger(__name__)


class TraceRunner(ABC):
    """Abstract source of execution traces (normally a remote sandbox)."""

    @abstractmethod
    def run_trace(self, code: str, language: str) -> RawTrace:
        """Execute *code* and return its fully materialised trace."""
        ...


class RecordedTraceRunner(TraceRunner):
    """Replays one previously captured execution service response."""

    def __init__(self, payload: str | bytes | dict[str, Any]):
        self._trace = parse_execution_trace(payload)

    def run_trace(self, code: str, language: str) -> RawTrace:
        logger.debug(
            "RecordedTraceRunner.run_trace: language=%s, %d steps",
            language,
            self._trace.step_count,
        )
        if code and not self._trace.code:
            return self._trace.model_copy(update={"code": code})
        return self._trace


class StepOutputSink(ABC):
    """Receives the captured stdout of the step being shown."""

    @abstractmethod
    def on_step_output(self, text: str) -> None: ...


class NullOutputSink(StepOutputSink):
    def on_step_output(self, text: str) -> None:
        pass
