"""Reference profile — typed variables for languages with opaque object references."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, ClassVar, Union

from .. import constants


class CollectionKind(str, Enum):
    ARRAY = "ARRAY"
    LIST = "LIST"
    TUPLE = "TUPLE"
    DICT = "DICT"
    SET = "SET"


@dataclass(frozen=True)
class PyPrimitive:
    value: str | int | float | bool | None

    type: ClassVar[str] = "PRIMITIVE"

    def to_dict(self) -> dict:
        return {"type": self.type, "value": self.value}


@dataclass(frozen=True)
class PyReference:
    ref: str | None  # None for a null reference

    type: ClassVar[str] = constants.REF_TAG

    def to_dict(self) -> dict:
        return {"type": self.type, "ref": self.ref}


# Only these two ever appear in frames, fields and collection entries.
PyValue = Union[PyPrimitive, PyReference]


@dataclass(frozen=True)
class PyClass:
    ref: str
    name: str
    bases: tuple[str, ...]
    fields: tuple[tuple[str, PyValue], ...]

    type: ClassVar[str] = constants.CLASS_TAG

    def to_dict(self) -> dict:
        return {
            "type": self.type,
            "ref": self.ref,
            "name": self.name,
            "bases": list(self.bases),
            "fields": [{"name": n, "value": v.to_dict()} for n, v in self.fields],
        }


@dataclass(frozen=True)
class PyInstance:
    ref: str
    class_name: str
    fields: tuple[tuple[str, PyValue], ...]

    type: ClassVar[str] = constants.INSTANCE_TAG

    def to_dict(self) -> dict:
        return {
            "type": self.type,
            "ref": self.ref,
            "class_name": self.class_name,
            "fields": [{"name": n, "value": v.to_dict()} for n, v in self.fields],
        }


@dataclass(frozen=True)
class PyFunction:
    ref: str
    name: str

    type: ClassVar[str] = constants.FUNCTION_TAG

    def to_dict(self) -> dict:
        return {"type": self.type, "ref": self.ref, "name": self.name}


@dataclass(frozen=True)
class PyCollection:
    """A list/tuple/set/dict; non-dict entries are keyed by position."""

    ref: str
    collection_type: CollectionKind
    entries: tuple[tuple[Any, PyValue], ...]

    type: ClassVar[str] = "COLLECTION"

    def to_dict(self) -> dict:
        return {
            "type": self.type,
            "ref": self.ref,
            "collection_type": self.collection_type.value,
            "entries": [
                {"key": _serialize_key(k), "value": v.to_dict()}
                for k, v in self.entries
            ],
        }


def _serialize_key(k: Any) -> Any:
    if isinstance(k, (PyPrimitive, PyReference)):
        return k.to_dict()
    return k


PyHeapValue = Union[PyClass, PyInstance, PyFunction, PyCollection]
PyVariable = Union[PyValue, PyHeapValue]
