"""Render pipeline data types (pure data, no business logic)."""

from __future__ import annotations

from dataclasses import dataclass

from . import constants


@dataclass(frozen=True)
class RenderConfig:
    """Groups graph-building configuration."""

    frame_x: float = constants.DEFAULT_FRAME_X
    frame_y: float = constants.DEFAULT_FRAME_Y
    frame_y_spacing: float = constants.DEFAULT_FRAME_Y_SPACING
    heap_x: float = constants.DEFAULT_HEAP_X
    heap_y: float = constants.DEFAULT_HEAP_Y
    heap_y_spacing: float = constants.DEFAULT_HEAP_Y_SPACING
    include_heap: bool = True
    hide_unreferenced_functions: bool = True
    resolve_interior_pointers: bool = True


@dataclass
class GraphStats:
    """Counts collected while building one step's graph."""

    frame_nodes: int = 0
    heap_nodes: int = 0
    edges: int = 0
    lookup_misses: int = 0
    uninitialized_links: int = 0
    filtered_heap_entries: int = 0

    def report(self) -> str:
        return (
            f"{self.frame_nodes} frames, {self.heap_nodes} heap objects,"
            f" {self.edges} edges ({self.lookup_misses} unresolved,"
            f" {self.uninitialized_links} uninitialized)"
        )
