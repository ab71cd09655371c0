"""AddressProfile — decoding and linking for languages with explicit pointers (C, C++)."""

from __future__ import annotations

import logging
from typing import Any

from ..errors import DecodeError, UnknownVariantError
from ..graph_types import ArraySpan, HeapPayload, IdentityIndex
from ..trace_types import RawFrame
from .. import constants
from ._base import DecodedHeapEntry, EdgeWalk, Profile, claim
from .address_types import (
    UNINITIALIZED,
    CArray,
    CHeapEntry,
    CPointer,
    CPrimitive,
    CStruct,
    CVariable,
    canonical_address,
    parse_address,
)

logger = logging.getLogger(__name__)


def _metadata(props: list[Any], position: int, kind: str) -> dict[str, Any]:
    if len(props) <= position or not isinstance(props[position], dict):
        raise DecodeError(f"{kind} value is missing its metadata object")
    return props[position]


def _byte_count(metadata: dict[str, Any], key: str, kind: str) -> int:
    value = metadata.get(key, 0)
    if not isinstance(value, int) or isinstance(value, bool):
        raise DecodeError(f"{kind} metadata {key} must be an integer, got {value!r}")
    return value


def _cell_value(raw: Any) -> Any:
    if raw == constants.UNINITIALIZED_MARKER:
        return UNINITIALIZED
    return raw


def _pointer_value(raw: Any) -> Any:
    if raw == constants.UNINITIALIZED_MARKER:
        return UNINITIALIZED
    if parse_address(raw) is not None:
        return canonical_address(raw)
    return raw


def _decode_data(address: str, props: list[Any]) -> CVariable:
    if len(props) < 2:
        raise DecodeError(f"C_DATA at {address} needs a type and a value")
    type_name, raw_value = props[0], props[1]
    metadata = _metadata(props, 2, constants.C_DATA)

    if type_name == constants.POINTER_TYPE:
        return CPointer(
            address=address,
            target_type=metadata.get("target_type", ""),
            value=_pointer_value(raw_value),
            bytes=_byte_count(metadata, "bytes", constants.C_DATA),
        )

    value = _cell_value(raw_value)
    initialized = value is not UNINITIALIZED
    if type_name == constants.CHAR_TYPE:
        return CPrimitive(
            address=address,
            type_name=type_name,
            value=value,
            bytes=1,
            hex=metadata.get("hex") if initialized else None,
        )
    return CPrimitive(
        address=address,
        type_name=type_name,
        value=value,
        bytes=_byte_count(metadata, "bytes", constants.C_DATA),
        hex=metadata.get("hex") if initialized else None,
    )


def _decode_struct(address: str, props: list[Any]) -> CStruct:
    metadata = _metadata(props, 0, constants.C_STRUCT)
    fields: list[tuple[str, CVariable]] = []
    for entry in props[1:]:
        if not isinstance(entry, list) or len(entry) != 2:
            raise DecodeError(f"C_STRUCT field at {address} is not a (name, value) pair")
        name, raw_value = entry
        fields.append((name, decode_value(raw_value)))
    return CStruct(
        address=address,
        type_name=metadata.get("name", ""),
        bytes=_byte_count(metadata, "bytes", constants.C_STRUCT),
        fields=tuple(fields),
    )


def _decode_array(address: str, props: list[Any]) -> CArray:
    metadata = _metadata(props, 0, constants.C_ARRAY)
    oob = metadata.get("oob_addr")
    return CArray(
        address=address,
        elt_bytes=_byte_count(metadata, "elt_bytes", constants.C_ARRAY),
        elements=tuple(decode_value(raw) for raw in props[1:]),
        oob_addr=canonical_address(oob) if oob is not None else None,
        heap_block=bool(metadata.get("heap_block", False)),
    )


_DECODERS = {
    constants.C_DATA: _decode_data,
    constants.C_STRUCT: _decode_struct,
    constants.C_ARRAY: _decode_array,
}


def decode_value(raw: Any) -> CVariable:
    """Decode ``[kind, address, ...props]`` into a typed variable.

    Raises:
        UnknownVariantError: If *kind* is not C_DATA, C_STRUCT or C_ARRAY.
        DecodeError: If the value is not a tagged list or its fields are malformed.
    """
    if not isinstance(raw, list) or len(raw) < 2:
        raise DecodeError(f"Expected a tagged C value, got {raw!r}")
    kind, raw_address, *props = raw
    decoder = _DECODERS.get(kind) if isinstance(kind, str) else None
    if decoder is None:
        raise UnknownVariantError(constants.PROFILE_ADDRESS, kind)
    return decoder(canonical_address(raw_address), props)


def decode_heap_value(raw: Any) -> CHeapEntry:
    """Decode a heap-map value: a bare tagged list or a ``{kind, val}`` wrapper."""
    if isinstance(raw, dict):
        kind = raw.get("kind")
        if kind == constants.HEAP_KIND_READONLY:
            return CHeapEntry(kind=kind, value=decode_value(raw.get("val")))
        raise UnknownVariantError(constants.PROFILE_ADDRESS, kind)
    if isinstance(raw, list):
        return CHeapEntry(kind=constants.HEAP_KIND_SIMPLE, value=decode_value(raw))
    raise DecodeError(f"Unknown C heap structure: {raw!r}")


def _has_pointer(array: CArray) -> bool:
    return any(isinstance(e, CPointer) for e in array.elements)


class AddressProfile(Profile[CVariable, CHeapEntry]):
    """Profile for traces whose variables carry raw memory addresses."""

    NAME = constants.PROFILE_ADDRESS

    def decode(self, raw: Any) -> CVariable:
        return decode_value(raw)

    def decode_heap_entry(self, key: str, raw: Any) -> CHeapEntry:
        return decode_heap_value(raw)

    def heap_key(self, raw_key: str) -> str:
        return canonical_address(raw_key)

    def frame_label(self, frame: RawFrame) -> str:
        return f"Stack ({frame.func_name})"

    # ── index ────────────────────────────────────────────────────

    def _claim_nested(
        self, index: IdentityIndex, node_id: str, value: CVariable
    ) -> None:
        """Claim *value*'s address and every field/element address inside it."""
        claim(index, value.address, node_id)
        if isinstance(value, CStruct):
            for _name, field_value in value.fields:
                self._claim_nested(index, node_id, field_value)
        elif isinstance(value, CArray):
            for element in value.elements:
                self._claim_nested(index, node_id, element)
            if value.oob_addr is not None and value.elements:
                index.spans.append(
                    ArraySpan(
                        node_id=node_id,
                        base=parse_address(value.address),
                        end=parse_address(value.oob_addr),
                        elt_bytes=value.elt_bytes,
                        element_keys=tuple(e.address for e in value.elements),
                    )
                )

    def index_heap_entry(
        self, index: IdentityIndex, entry: DecodedHeapEntry[CHeapEntry]
    ) -> None:
        claim(index, entry.key, entry.node_id)
        self._claim_nested(index, entry.node_id, entry.value.value)

    def index_frame_variable(
        self, index: IdentityIndex, node_id: str, name: str, value: CVariable
    ) -> None:
        self._claim_nested(index, node_id, value)

    # ── graph ────────────────────────────────────────────────────

    def heap_root(self, entry: DecodedHeapEntry[CHeapEntry]) -> CVariable:
        return entry.value.value

    def heap_payload(self, entry: DecodedHeapEntry[CHeapEntry]) -> HeapPayload:
        value = entry.value.value
        prefix = constants.READONLY_LABEL_PREFIX if entry.value.readonly else ""
        if isinstance(value, CArray):
            is_string = value.elt_bytes == 1 and not _has_pointer(value)
            variant = "string" if is_string else "array"
            label = f"{prefix}array ({value.elt_bytes}B elements)"
        elif isinstance(value, CStruct):
            variant = "struct"
            label = f"{prefix}struct {value.type_name}"
        else:
            variant = "data"
            label = f"{prefix}{value.type_name}"
        return HeapPayload(
            key=entry.key,
            label=label,
            variant=variant,
            value=value,
            readonly=entry.value.readonly,
        )

    def walk(self, value: Any, acc: EdgeWalk, owner_id: str, path: str) -> None:
        if isinstance(value, CPointer):
            target = value.target_address
            if target is None:
                acc.stats.uninitialized_links += 1
                logger.debug("Skipping unset pointer %s at %s", path, value.address)
                return
            self.emit_link(
                acc,
                owner_id,
                path,
                source_key=value.address,
                target_key=hex(target),
                target_address=target if self.config.resolve_interior_pointers else None,
            )
        elif isinstance(value, CStruct):
            for name, field_value in value.fields:
                self.walk(field_value, acc, owner_id, f"{path}.{name}")
        elif isinstance(value, CArray):
            for i, element in enumerate(value.elements):
                self.walk(element, acc, owner_id, f"{path}[{i}]")
        elif isinstance(value, CPrimitive):
            return
        else:
            raise UnknownVariantError(constants.PROFILE_ADDRESS, type(value).__name__)
