"""ReferenceProfile — decoding and linking for languages with object references (Python)."""

from __future__ import annotations

import json
import logging
from typing import Any

from ..errors import DecodeError, UnknownVariantError
from ..graph_types import HeapPayload, IdentityIndex
from .. import constants
from ._base import DecodedFrame, DecodedHeapEntry, EdgeWalk, Profile, claim
from .reference_types import (
    CollectionKind,
    PyClass,
    PyCollection,
    PyFunction,
    PyHeapValue,
    PyInstance,
    PyPrimitive,
    PyReference,
    PyValue,
    PyVariable,
)

logger = logging.getLogger(__name__)

_PRIMITIVE_TYPES = (str, int, float, bool)


def _is_numeric_ref(text: str) -> bool:
    return text.isascii() and text.isdecimal()


def normalize_ref(raw: Any) -> str | None:
    """Refs arrive as ints or numeric strings; ``"007"`` and ``7`` are the same object."""
    if raw is None:
        return None
    if isinstance(raw, int) and not isinstance(raw, bool):
        return str(raw)
    text = str(raw)
    return str(int(text)) if _is_numeric_ref(text) else text


def decode_primitive_or_reference(raw: Any) -> PyValue:
    """First decode attempt: a JSON primitive or a ``["REF", id]`` marker.

    Raises:
        DecodeError: If *raw* is neither.
    """
    if raw is None or isinstance(raw, _PRIMITIVE_TYPES):
        return PyPrimitive(value=raw)
    if isinstance(raw, list) and len(raw) == 2 and raw[0] == constants.REF_TAG:
        return PyReference(ref=normalize_ref(raw[1]))
    raise DecodeError(f"Not a primitive or reference: {raw!r}")


def _named_fields(tag: str, entries: list[Any]) -> tuple[tuple[str, PyValue], ...]:
    fields: list[tuple[str, PyValue]] = []
    for entry in entries:
        if not isinstance(entry, list) or len(entry) != 2:
            raise DecodeError(f"{tag} field is not a (name, value) pair: {entry!r}")
        name, raw_value = entry
        fields.append((str(name), decode_primitive_or_reference(raw_value)))
    return tuple(fields)


def _collection_entries(
    kind: CollectionKind, elements: list[Any]
) -> tuple[tuple[Any, PyValue], ...]:
    if kind is not CollectionKind.DICT:
        return tuple(
            (i, decode_primitive_or_reference(element))
            for i, element in enumerate(elements)
        )
    entries: list[tuple[Any, PyValue]] = []
    for element in elements:
        if not isinstance(element, list) or len(element) != 2:
            raise DecodeError(f"DICT entry is not a (key, value) pair: {element!r}")
        key, value = element
        entries.append(
            (decode_primitive_or_reference(key), decode_primitive_or_reference(value))
        )
    return tuple(entries)


def _require_ref(tag: str, ref: str | None) -> str:
    if ref is None:
        raise DecodeError(f"Heap reference id is required for {tag} type")
    return ref


def decode_value(raw: Any, ref: str | None = None, key: str | None = None) -> PyVariable:
    """Decode a raw value, trying the primitive/reference shape first.

    Args:
        raw: The raw encoded value.
        ref: Id of the heap slot being decoded; only known for heap-map entries.
        key: Variable name the value is bound to, if any.

    Raises:
        UnknownVariantError: If the value's tag is outside the closed set.
        DecodeError: If a heap-shaped value has no *ref* or malformed fields.
    """
    try:
        return decode_primitive_or_reference(raw)
    except DecodeError:
        pass

    tag = raw[0] if isinstance(raw, list) and raw else None

    if tag == constants.CLASS_TAG and len(raw) >= 2:
        bases = raw[2] if len(raw) >= 3 and isinstance(raw[2], list) else []
        return PyClass(
            ref=_require_ref(tag, ref),
            name=str(raw[1]),
            bases=tuple(str(b) for b in bases),
            fields=_named_fields(tag, raw[3:]),
        )
    if tag == constants.FUNCTION_TAG and len(raw) >= 2:
        return PyFunction(ref=_require_ref(tag, ref), name=str(raw[1]))
    if tag == constants.INSTANCE_TAG and len(raw) >= 2:
        return PyInstance(
            ref=_require_ref(tag, ref),
            class_name=str(raw[1]),
            fields=_named_fields(tag, raw[2:]),
        )
    if tag in constants.COLLECTION_TAGS:
        kind = CollectionKind(tag)
        return PyCollection(
            ref=_require_ref(tag, ref),
            collection_type=kind,
            entries=_collection_entries(kind, raw[1:]),
        )
    if key == constants.RETURN_VALUE_KEY:
        # Return values outside the grammar are shown verbatim.
        return PyPrimitive(value=json.dumps(raw, default=str))
    raise UnknownVariantError(constants.PROFILE_REFERENCE, tag if tag is not None else raw)


class ReferenceProfile(Profile[PyValue, PyHeapValue]):
    """Profile for traces whose frames hold primitives and heap references."""

    NAME = constants.PROFILE_REFERENCE

    def decode(self, raw: Any) -> PyVariable:
        return decode_value(raw)

    def decode_frame_variable(self, frame_name: str, name: str, raw: Any) -> PyValue:
        value = decode_value(raw, key=name)
        if not isinstance(value, (PyPrimitive, PyReference)):
            raise DecodeError(
                f"Variable {name} in frame {frame_name} is not a primitive or reference"
            )
        return value

    def decode_heap_entry(self, key: str, raw: Any) -> PyHeapValue:
        value = decode_value(raw, ref=key)
        if isinstance(value, (PyPrimitive, PyReference)):
            raise DecodeError(f"Heap entry {key} is not an object: {raw!r}")
        return value

    def heap_key(self, raw_key: str) -> str:
        return normalize_ref(raw_key)

    def ordered_heap_items(self, heap: dict[str, Any]) -> list[tuple[str, Any]]:
        numeric = sorted((k for k in heap if _is_numeric_ref(str(k))), key=int)
        other = [k for k in heap if not _is_numeric_ref(str(k))]
        return [(k, heap[k]) for k in numeric + other]

    def filter_heap(
        self,
        frames: tuple[DecodedFrame[PyValue], ...],
        heap: list[DecodedHeapEntry[PyHeapValue]],
    ) -> list[DecodedHeapEntry[PyHeapValue]]:
        """Drop function objects no frame variable refers to."""
        if not self.config.hide_unreferenced_functions:
            return heap
        held = {
            value.ref
            for frame in frames
            for _name, value in frame.variables
            if isinstance(value, PyReference)
        }
        kept = [
            entry
            for entry in heap
            if not isinstance(entry.value, PyFunction) or entry.key in held
        ]
        if len(kept) != len(heap):
            logger.debug("Hid %d unreferenced function(s)", len(heap) - len(kept))
        return kept

    # ── index ────────────────────────────────────────────────────

    def index_heap_entry(
        self, index: IdentityIndex, entry: DecodedHeapEntry[PyHeapValue]
    ) -> None:
        claim(index, entry.key, entry.node_id)

    def index_frame_variable(
        self, index: IdentityIndex, node_id: str, name: str, value: PyValue
    ) -> None:
        prefix = (
            constants.HELD_REF_KEY_PREFIX
            if isinstance(value, PyReference)
            else constants.PRIMITIVE_KEY_PREFIX
        )
        claim(index, f"{prefix}{node_id}.{name}", node_id)

    # ── graph ────────────────────────────────────────────────────

    def heap_root(self, entry: DecodedHeapEntry[PyHeapValue]) -> PyHeapValue:
        return entry.value

    def heap_payload(self, entry: DecodedHeapEntry[PyHeapValue]) -> HeapPayload:
        value = entry.value
        if isinstance(value, PyClass):
            variant, label = "class", f"class {value.name}"
        elif isinstance(value, PyInstance):
            variant, label = "instance", f"{value.class_name} instance"
        elif isinstance(value, PyFunction):
            variant, label = "function", f"function {value.name}"
        else:
            variant, label = "collection", value.collection_type.value.lower()
        return HeapPayload(key=entry.key, label=label, variant=variant, value=value)

    def walk(self, value: Any, acc: EdgeWalk, owner_id: str, path: str) -> None:
        if isinstance(value, PyReference):
            if value.ref is None:
                acc.stats.uninitialized_links += 1
                return
            self.emit_link(
                acc,
                owner_id,
                path,
                source_key=f"{owner_id}.{path}",
                target_key=value.ref,
            )
        elif isinstance(value, (PyClass, PyInstance)):
            for name, field_value in value.fields:
                self.walk(field_value, acc, owner_id, f"{path}.{name}")
        elif isinstance(value, PyCollection):
            for i, (key, element) in enumerate(value.entries):
                if isinstance(key, PyReference):
                    self.walk(key, acc, owner_id, f"{path}[{i}].key")
                self.walk(element, acc, owner_id, f"{path}[{i}]")
        elif isinstance(value, (PyPrimitive, PyFunction)):
            return
        else:
            raise UnknownVariantError(constants.PROFILE_REFERENCE, type(value).__name__)
