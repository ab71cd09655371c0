"""Carry presentation state over to re-built nodes whose identity is unchanged."""

from __future__ import annotations

from dataclasses import replace
from typing import Iterable

from .graph_types import GraphNode


def stabilize(
    new_nodes: Iterable[GraphNode], previous_nodes: Iterable[GraphNode] = ()
) -> list[GraphNode]:
    """Merge *new_nodes* with the previously rendered set, keyed by node id.

    A node whose id was already on screen keeps its old position and takes
    the new payload; any other node keeps its default position. Neither
    input is modified.
    """
    previous_positions = {node.id: node.position for node in previous_nodes}
    return [
        replace(node, position=previous_positions[node.id])
        if node.id in previous_positions
        else node
        for node in new_nodes
    ]
