"""Profile — language-agnostic decode → index → graph pipeline."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Generic, Iterable, TypeVar

from ..errors import IdentityConflictError
from ..graph_types import (
    FramePayload,
    GraphEdge,
    GraphNode,
    HeapPayload,
    IdentityIndex,
    Position,
    StepGraph,
)
from ..render_types import GraphStats, RenderConfig
from ..trace_types import RawFrame, RawStep
from .. import constants

logger = logging.getLogger(__name__)

V = TypeVar("V")  # frame variable type
H = TypeVar("H")  # heap entry type


@dataclass(frozen=True)
class DecodedFrame(Generic[V]):
    node_id: str
    name: str
    label: str
    variables: tuple[tuple[str, V], ...]


@dataclass(frozen=True)
class DecodedHeapEntry(Generic[H]):
    node_id: str
    key: str
    value: H


@dataclass(frozen=True)
class DecodedStep(Generic[V, H]):
    frames: tuple[DecodedFrame[V], ...] = ()
    heap: tuple[DecodedHeapEntry[H], ...] = ()
    filtered_heap_entries: int = 0


@dataclass
class EdgeWalk:
    """Mutable accumulator threaded through one step's edge walk."""

    index: IdentityIndex
    visible: set[str]
    edges: list[GraphEdge] = field(default_factory=list)
    stats: GraphStats = field(default_factory=GraphStats)


def frame_node_id(identity: str) -> str:
    return f"{constants.FRAME_NODE_PREFIX}{identity}"


def heap_node_id(key: str) -> str:
    return f"{constants.HEAP_NODE_PREFIX}{key}"


def anchor_id(key: str) -> str:
    return f"{constants.VARIABLE_ANCHOR_PREFIX}{key}"


def claim(index: IdentityIndex, key: str, node_id: str) -> None:
    """Record *node_id* as the owner of *key*, refusing a second owner."""
    existing = index.owners.get(key)
    if existing is not None and existing != node_id:
        raise IdentityConflictError(key, existing, node_id)
    index.owners[key] = node_id


class Profile(ABC, Generic[V, H]):
    """Base class for language profiles.

    Subclasses supply the decoder, the per-variant index contributions and
    the per-variant edge walk; frame/heap iteration, node construction,
    default positions and edge emission are shared.
    """

    NAME: str = ""

    def __init__(self, config: RenderConfig = RenderConfig()):
        self.config = config

    # ── per-profile hooks ────────────────────────────────────────

    @abstractmethod
    def decode(self, raw: Any) -> V:
        """Decode one raw encoded value into a typed variable."""
        ...

    @abstractmethod
    def decode_heap_entry(self, key: str, raw: Any) -> H:
        """Decode one heap-map entry stored under *key*."""
        ...

    @abstractmethod
    def heap_key(self, raw_key: str) -> str:
        """Canonical form of a heap-map key."""
        ...

    @abstractmethod
    def index_frame_variable(
        self, index: IdentityIndex, node_id: str, name: str, value: V
    ) -> None: ...

    @abstractmethod
    def index_heap_entry(
        self, index: IdentityIndex, entry: DecodedHeapEntry[H]
    ) -> None: ...

    @abstractmethod
    def walk(self, value: Any, acc: EdgeWalk, owner_id: str, path: str) -> None:
        """Emit edges for every resolvable link reachable from *value*."""
        ...

    @abstractmethod
    def heap_payload(self, entry: DecodedHeapEntry[H]) -> HeapPayload: ...

    @abstractmethod
    def heap_root(self, entry: DecodedHeapEntry[H]) -> Any:
        """The value the edge walk starts from for a heap entry."""
        ...

    def decode_frame_variable(self, frame_name: str, name: str, raw: Any) -> V:
        return self.decode(raw)

    def frame_label(self, frame: RawFrame) -> str:
        return frame.func_name

    def ordered_heap_items(self, heap: dict[str, Any]) -> list[tuple[str, Any]]:
        return list(heap.items())

    def filter_heap(
        self,
        frames: tuple[DecodedFrame[V], ...],
        heap: list[DecodedHeapEntry[H]],
    ) -> list[DecodedHeapEntry[H]]:
        return heap

    # ── decode ───────────────────────────────────────────────────

    def _decode_variables(
        self, frame_name: str, names: Iterable[str], encoded: dict[str, Any]
    ) -> tuple[tuple[str, V], ...]:
        variables: list[tuple[str, V]] = []
        for name in names:
            if name not in encoded:
                logger.debug("Frame %s lists %s without a value", frame_name, name)
                continue
            variables.append(
                (name, self.decode_frame_variable(frame_name, name, encoded[name]))
            )
        return tuple(variables)

    def decode_frames(self, step: RawStep) -> tuple[DecodedFrame[V], ...]:
        frames: list[DecodedFrame[V]] = []
        if step.globals is not None:
            frames.append(
                DecodedFrame(
                    node_id=frame_node_id(constants.GLOBALS_FRAME_ID),
                    name=constants.GLOBALS_FRAME_ID,
                    label=constants.GLOBALS_FRAME_LABEL,
                    variables=self._decode_variables(
                        constants.GLOBALS_FRAME_ID, step.global_names(), step.globals
                    ),
                )
            )
        for position, raw_frame in enumerate(step.stack_to_render):
            frames.append(
                DecodedFrame(
                    node_id=frame_node_id(raw_frame.identity(position)),
                    name=raw_frame.func_name,
                    label=self.frame_label(raw_frame),
                    variables=self._decode_variables(
                        raw_frame.func_name,
                        raw_frame.ordered_varnames,
                        raw_frame.encoded_locals,
                    ),
                )
            )
        return tuple(frames)

    def decode_step(self, step: RawStep) -> DecodedStep[V, H]:
        """Decode every frame variable and heap entry of *step*.

        Raises:
            DecodeError: If any value is outside the profile's grammar.
        """
        frames = self.decode_frames(step)
        heap: list[DecodedHeapEntry[H]] = []
        for raw_key, raw_value in self.ordered_heap_items(step.heap):
            key = self.heap_key(raw_key)
            heap.append(
                DecodedHeapEntry(
                    node_id=heap_node_id(key),
                    key=key,
                    value=self.decode_heap_entry(key, raw_value),
                )
            )
        kept = self.filter_heap(frames, heap)
        return DecodedStep(
            frames=frames,
            heap=tuple(kept),
            filtered_heap_entries=len(heap) - len(kept),
        )

    # ── index ────────────────────────────────────────────────────

    def build_index(self, decoded: DecodedStep[V, H]) -> IdentityIndex:
        """Map every address/ref in the step to the id of its owning node."""
        index = IdentityIndex()
        for entry in decoded.heap:
            self.index_heap_entry(index, entry)
        for frame in decoded.frames:
            for name, value in frame.variables:
                self.index_frame_variable(index, frame.node_id, name, value)
        logger.debug("Identity index holds %d keys", len(index))
        return index

    # ── graph ────────────────────────────────────────────────────

    def _frame_nodes(self, decoded: DecodedStep[V, H]) -> list[GraphNode]:
        return [
            GraphNode(
                id=frame.node_id,
                type=constants.NODE_TYPE_STACK_FRAME,
                data=FramePayload(
                    name=frame.name, label=frame.label, variables=frame.variables
                ),
                position=Position(
                    x=self.config.frame_x,
                    y=self.config.frame_y + i * self.config.frame_y_spacing,
                ),
            )
            for i, frame in enumerate(decoded.frames)
        ]

    def _heap_nodes(self, decoded: DecodedStep[V, H]) -> list[GraphNode]:
        if not self.config.include_heap:
            return []
        return [
            GraphNode(
                id=entry.node_id,
                type=constants.NODE_TYPE_HEAP_OBJECT,
                data=self.heap_payload(entry),
                position=Position(
                    x=self.config.heap_x,
                    y=self.config.heap_y + i * self.config.heap_y_spacing,
                ),
            )
            for i, entry in enumerate(decoded.heap)
        ]

    def build_graph(
        self, decoded: DecodedStep[V, H], index: IdentityIndex
    ) -> StepGraph:
        """Build nodes for every frame and heap entry, then walk for edges."""
        frame_nodes = self._frame_nodes(decoded)
        heap_nodes = self._heap_nodes(decoded)
        nodes = frame_nodes + heap_nodes

        acc = EdgeWalk(index=index, visible={n.id for n in nodes})
        for frame in decoded.frames:
            for name, value in frame.variables:
                self.walk(value, acc, frame.node_id, name)
        if self.config.include_heap:
            for entry in decoded.heap:
                self.walk(self.heap_root(entry), acc, entry.node_id, "value")

        acc.stats.frame_nodes = len(frame_nodes)
        acc.stats.heap_nodes = len(heap_nodes)
        acc.stats.edges = len(acc.edges)
        acc.stats.filtered_heap_entries = decoded.filtered_heap_entries
        return StepGraph(nodes=tuple(nodes), edges=tuple(acc.edges), stats=acc.stats)

    def emit_link(
        self,
        acc: EdgeWalk,
        owner_id: str,
        path: str,
        source_key: str,
        target_key: str,
        target_address: int | None = None,
    ) -> None:
        """Resolve *target_key* and append one edge, or nothing on a miss."""
        resolution = acc.index.resolve(target_key, target_address)
        if resolution is None or resolution.node_id not in acc.visible:
            acc.stats.lookup_misses += 1
            logger.debug("No node for %s (from %s.%s)", target_key, owner_id, path)
            return
        acc.edges.append(
            GraphEdge(
                id=f"{constants.EDGE_ID_PREFIX}{owner_id}-{target_key}-{path}",
                source=owner_id,
                source_handle=anchor_id(source_key),
                target=resolution.node_id,
                target_handle=anchor_id(resolution.anchor_key),
                path=path,
            )
        )

    def render(self, step: RawStep) -> StepGraph:
        """Decode, index and build the graph for one step."""
        decoded = self.decode_step(step)
        index = self.build_index(decoded)
        return self.build_graph(decoded, index)
