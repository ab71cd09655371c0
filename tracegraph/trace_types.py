"""Raw trace data types — the wire shape produced by the execution service."""

from __future__ import annotations

import json
import logging
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, ValidationError

from .errors import TraceFormatError
from . import constants

logger = logging.getLogger(__name__)


class RawFrame(BaseModel):
    """One function activation record as captured by the tracer."""

    model_config = ConfigDict(extra="ignore")

    func_name: str = ""
    frame_id: str | int | None = None
    unique_hash: str | None = None
    line: int | None = None
    is_highlighted: bool = False
    ordered_varnames: list[str] = []
    encoded_locals: dict[str, Any] = {}

    def identity(self, position: int) -> str:
        """Stable frame identity; falls back to name and stack depth."""
        if self.frame_id is not None:
            return str(self.frame_id)
        if self.unique_hash:
            return self.unique_hash
        return f"{self.func_name}-{position}"


class RawStep(BaseModel):
    """A single captured snapshot of program state."""

    model_config = ConfigDict(extra="ignore")

    event: str = constants.EVENT_STEP_LINE
    line: int | None = None
    func_name: str | None = None
    stack_to_render: list[RawFrame] = []
    heap: dict[str, Any] = {}
    globals: dict[str, Any] | None = None
    ordered_globals: list[str] | None = None
    stdout: str | None = None
    exception_msg: str | None = None

    @property
    def is_uncaught_exception(self) -> bool:
        return self.event == constants.EVENT_UNCAUGHT_EXCEPTION

    def global_names(self) -> list[str]:
        """Global variable names in display order."""
        if self.globals is None:
            return []
        if self.ordered_globals is not None:
            return [name for name in self.ordered_globals if name in self.globals]
        return list(self.globals)


class RawTrace(BaseModel):
    """A complete execution trace: the source plus one step per executed line."""

    model_config = ConfigDict(extra="ignore")

    code: str = ""
    trace: list[RawStep]
    status: Literal["success", "error"] = constants.STATUS_SUCCESS

    @property
    def step_count(self) -> int:
        return len(self.trace)

    @property
    def upstream_failed(self) -> bool:
        """True when the traced program itself failed."""
        if self.status == constants.STATUS_ERROR:
            return True
        return len(self.trace) == 1 and self.trace[0].is_uncaught_exception

    def console_output(self) -> str:
        """Text for the console panel after a run.

        Uses the last step's stdout, or its exception message when there is
        no output, with blank lines removed.
        """
        if not self.trace:
            return constants.NO_OUTPUT_MESSAGE
        last = self.trace[-1]
        raw = last.stdout or last.exception_msg or ""
        cleaned = "\n".join(line for line in raw.split("\n") if line.strip()).strip()
        return cleaned or constants.NO_OUTPUT_MESSAGE


def parse_execution_trace(payload: str | bytes | dict[str, Any]) -> RawTrace:
    """Parse an execution service response body into a RawTrace.

    Args:
        payload: JSON text, or an already-decoded JSON object.

    Returns:
        The validated RawTrace.

    Raises:
        TraceFormatError: If the payload is not JSON, has no ``trace`` list,
            or does not match the step/frame shape.
    """
    if isinstance(payload, (str, bytes)):
        try:
            data = json.loads(payload)
        except json.JSONDecodeError as exc:
            raise TraceFormatError(f"Trace payload is not valid JSON: {exc}") from exc
    else:
        data = payload

    if not isinstance(data, dict) or not isinstance(data.get("trace"), list):
        raise TraceFormatError("Invalid trace data format")

    try:
        trace = RawTrace.model_validate(data)
    except ValidationError as exc:
        raise TraceFormatError(f"Invalid trace data format: {exc}") from exc

    logger.info(
        "Parsed execution trace: %d steps, status=%s", trace.step_count, trace.status
    )
    return trace
