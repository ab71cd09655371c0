"""Address profile — typed variables for languages with explicit memory addresses."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, ClassVar, Union

from ..errors import DecodeError
from .. import constants


class _Uninitialized:
    """Marker for a cell that has an address but no valid value yet."""

    _instance: ClassVar[_Uninitialized | None] = None

    def __new__(cls) -> _Uninitialized:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return constants.UNINITIALIZED_MARKER

    def __reduce__(self):
        return (_Uninitialized, ())


UNINITIALIZED = _Uninitialized()


def is_uninitialized(value: Any) -> bool:
    return value is UNINITIALIZED


def parse_address(raw: Any) -> int | None:
    """Parse ``0x``-prefixed hex text (or a plain int) into an int address."""
    if isinstance(raw, bool):
        return None
    if isinstance(raw, int):
        return raw
    if isinstance(raw, str) and raw[:2].lower() == "0x":
        try:
            return int(raw, 16)
        except ValueError:
            return None
    return None


def canonical_address(raw: Any) -> str:
    """Normalise an address to lower-case hex without padding (``0x0010`` → ``0x10``)."""
    parsed = parse_address(raw)
    if parsed is None:
        raise DecodeError(f"Invalid memory address: {raw!r}")
    return hex(parsed)


def _serialize_value(v: Any) -> Any:
    if is_uninitialized(v):
        return constants.UNINITIALIZED_MARKER
    return v


# ── Variants ─────────────────────────────────────────────────────


@dataclass(frozen=True)
class CPrimitive:
    """A scalar cell: int, float, char, bool, enum…"""

    address: str
    type_name: str
    value: Any
    bytes: int
    hex: str | None = None

    kind: ClassVar[str] = constants.C_DATA

    @property
    def is_uninitialized(self) -> bool:
        return is_uninitialized(self.value)

    def to_dict(self) -> dict:
        metadata: dict[str, Any] = {"bytes": self.bytes}
        if self.hex is not None:
            metadata["hex"] = self.hex
        return {
            "kind": self.kind,
            "address": self.address,
            "type": self.type_name,
            "value": _serialize_value(self.value),
            "metadata": metadata,
        }


@dataclass(frozen=True)
class CPointer:
    address: str
    target_type: str
    value: Any  # canonical address, UNINITIALIZED, None, or opaque text
    bytes: int

    kind: ClassVar[str] = constants.C_DATA
    type_name: ClassVar[str] = constants.POINTER_TYPE

    @property
    def is_uninitialized(self) -> bool:
        return is_uninitialized(self.value)

    @property
    def target_address(self) -> int | None:
        """Numeric target, or None for uninitialized, NULL and unparseable values."""
        if self.is_uninitialized or self.value is None:
            return None
        parsed = parse_address(self.value)
        if not parsed:
            return None
        return parsed

    def to_dict(self) -> dict:
        return {
            "kind": self.kind,
            "address": self.address,
            "type": self.type_name,
            "value": _serialize_value(self.value),
            "metadata": {"bytes": self.bytes, "target_type": self.target_type},
        }


@dataclass(frozen=True)
class CArray:
    address: str
    elt_bytes: int
    elements: tuple[CVariable, ...]
    oob_addr: str | None = None
    heap_block: bool = False

    kind: ClassVar[str] = constants.C_ARRAY

    def to_dict(self) -> dict:
        metadata: dict[str, Any] = {
            "elt_bytes": self.elt_bytes,
            "heap_block": self.heap_block,
        }
        if self.oob_addr is not None:
            metadata["oob_addr"] = self.oob_addr
        return {
            "kind": self.kind,
            "address": self.address,
            "metadata": metadata,
            "value": [e.to_dict() for e in self.elements],
        }


@dataclass(frozen=True)
class CStruct:
    address: str
    type_name: str
    bytes: int
    fields: tuple[tuple[str, CVariable], ...]

    kind: ClassVar[str] = constants.C_STRUCT

    def field(self, name: str) -> CVariable:
        for field_name, value in self.fields:
            if field_name == name:
                return value
        raise KeyError(name)

    def to_dict(self) -> dict:
        return {
            "kind": self.kind,
            "address": self.address,
            "metadata": {"bytes": self.bytes, "name": self.type_name},
            "objects": [
                {"variableName": name, "value": value.to_dict()}
                for name, value in self.fields
            ],
        }


CVariable = Union[CPrimitive, CPointer, CArray, CStruct]


@dataclass(frozen=True)
class CHeapEntry:
    """A heap value wrapped with its storage kind."""

    kind: str
    value: CVariable

    @property
    def readonly(self) -> bool:
        return self.kind == constants.HEAP_KIND_READONLY

    def to_dict(self) -> dict:
        return {"kind": self.kind, "value": self.value.to_dict()}
