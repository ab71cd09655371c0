"""Step navigator — clamped movement over a loaded trace's steps."""

from __future__ import annotations

import logging

from .errors import NavigationError

logger = logging.getLogger(__name__)


class StepNavigator:
    """Holds the current step index into a fixed-length sequence of steps.

    Out-of-range moves are silently ignored; every transition except
    ``load`` requires a loaded trace.
    """

    def __init__(self):
        self._step_count: int | None = None
        self._current: int = 0

    @property
    def has_trace(self) -> bool:
        return self._step_count is not None

    @property
    def step_count(self) -> int:
        self._require_trace()
        return self._step_count

    @property
    def current_step_index(self) -> int:
        self._require_trace()
        return self._current

    @property
    def at_first(self) -> bool:
        return self.current_step_index == 0

    @property
    def at_last(self) -> bool:
        return self.current_step_index == self.step_count - 1

    def _require_trace(self) -> None:
        if self._step_count is None:
            raise NavigationError("No trace loaded")

    def load(self, step_count: int) -> None:
        """Enter the loaded state at step 0; replaces any previous trace."""
        if step_count < 1:
            raise ValueError(f"A trace needs at least one step, got {step_count}")
        self._step_count = step_count
        self._current = 0
        logger.debug("Navigator loaded with %d steps", step_count)

    def go_to(self, index: int) -> bool:
        """Move to *index*. Returns False (and stays put) when out of range."""
        self._require_trace()
        if index < 0 or index >= self._step_count:
            logger.debug("Ignoring out-of-range step %d", index)
            return False
        self._current = index
        return True

    def next(self) -> bool:
        return self.go_to(self.current_step_index + 1)

    def prev(self) -> bool:
        return self.go_to(self.current_step_index - 1)

    def first(self) -> bool:
        return self.go_to(0)

    def last(self) -> bool:
        return self.go_to(self.step_count - 1)
