"""Graph data types (pure data, no business logic)."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from .render_types import GraphStats
from . import constants

# ── Nodes ────────────────────────────────────────────────────────


@dataclass(frozen=True)
class Position:
    x: float
    y: float

    def to_dict(self) -> dict:
        return {"x": self.x, "y": self.y}


@dataclass(frozen=True)
class FramePayload:
    """A frame node's data: its variables in display order."""

    name: str
    label: str
    variables: tuple[tuple[str, Any], ...] = ()

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "label": self.label,
            "variables": [
                {"name": name, "value": value.to_dict()}
                for name, value in self.variables
            ],
        }


@dataclass(frozen=True)
class HeapPayload:
    """A heap node's data: the decoded value living at one address or ref."""

    key: str
    label: str
    variant: str
    value: Any
    readonly: bool = False

    def to_dict(self) -> dict:
        d: dict[str, Any] = {
            "key": self.key,
            "label": self.label,
            "variant": self.variant,
            "value": self.value.to_dict(),
        }
        if self.readonly:
            d["readonly"] = True
        return d


@dataclass(frozen=True)
class GraphNode:
    id: str
    type: str
    data: FramePayload | HeapPayload
    position: Position

    @property
    def is_frame(self) -> bool:
        return self.type == constants.NODE_TYPE_STACK_FRAME

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "type": self.type,
            "data": self.data.to_dict(),
            "position": self.position.to_dict(),
        }


# ── Edges ────────────────────────────────────────────────────────


@dataclass(frozen=True)
class GraphEdge:
    """A resolved pointer/reference link between two nodes.

    ``path`` is the logical location of the link inside its owner
    (``p``, ``head.next``, ``[3]``) and only serves traceability.
    """

    id: str
    source: str
    source_handle: str
    target: str
    target_handle: str
    path: str

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "source": self.source,
            "sourceHandle": self.source_handle,
            "target": self.target,
            "targetHandle": self.target_handle,
            "label": self.path,
        }


# ── Identity index ───────────────────────────────────────────────


@dataclass(frozen=True)
class ArraySpan:
    """Byte range of an array, for pointers that land between element addresses."""

    node_id: str
    base: int
    end: int
    elt_bytes: int
    element_keys: tuple[str, ...]


@dataclass(frozen=True)
class Resolution:
    node_id: str
    anchor_key: str


@dataclass
class IdentityIndex:
    """Map from address/ref key to the id of the node that owns it."""

    owners: dict[str, str] = field(default_factory=dict)
    spans: list[ArraySpan] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.owners)

    def resolve(self, key: str, address: int | None = None) -> Resolution | None:
        """Find the node owning *key*.

        When the exact key misses and *address* is given, fall back to the
        array span containing it, anchoring on the element it falls in.
        """
        node_id = self.owners.get(key)
        if node_id is not None:
            return Resolution(node_id=node_id, anchor_key=key)
        if address is None:
            return None
        for span in self.spans:
            if span.base <= address < span.end and span.elt_bytes > 0:
                index = (address - span.base) // span.elt_bytes
                if index < len(span.element_keys):
                    return Resolution(
                        node_id=span.node_id, anchor_key=span.element_keys[index]
                    )
        return None


# ── Step graph ───────────────────────────────────────────────────


@dataclass(frozen=True)
class StepGraph:
    nodes: tuple[GraphNode, ...] = ()
    edges: tuple[GraphEdge, ...] = ()
    stats: GraphStats = field(default_factory=GraphStats)

    @property
    def node_ids(self) -> set[str]:
        return {node.id for node in self.nodes}

    def node(self, node_id: str) -> GraphNode:
        for n in self.nodes:
            if n.id == node_id:
                return n
        raise KeyError(node_id)

    def to_dict(self) -> dict:
        return {
            "nodes": [n.to_dict() for n in self.nodes],
            "edges": [e.to_dict() for e in self.edges],
        }
