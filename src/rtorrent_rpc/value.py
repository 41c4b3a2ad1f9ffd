"""Tagged values carried by XML-RPC requests and responses."""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from types import MappingProxyType
from typing import Any, Iterable, Mapping

from .errors import EncodeError, ValueKindError

INT64_MIN = -(2**63)
INT64_MAX = 2**63 - 1


class Kind(str, Enum):
    INT = "int"
    DOUBLE = "double"
    BOOLEAN = "boolean"
    STRING = "string"
    DATETIME = "dateTime.iso8601"
    BINARY = "base64"
    ARRAY = "array"
    STRUCT = "struct"
    NIL = "nil"


@dataclass(frozen=True)
class Value:
    """A single XML-RPC value.

    The kind is fixed at construction. Payloads are stored as plain Python
    objects: arrays as a tuple of `Value`, structs as a read-only mapping of
    member name to `Value`. Use the classmethod constructors rather than
    building instances directly; they validate the payload.
    """

    kind: Kind
    data: Any = None

    # Constructors.

    @classmethod
    def integer(cls, v: int) -> "Value":
        if not isinstance(v, int) or isinstance(v, bool):
            raise EncodeError(f"expected int, got {type(v).__name__}")
        if v < INT64_MIN or v > INT64_MAX:
            raise EncodeError(f"int out of 64-bit range: {v}")
        return cls(Kind.INT, int(v))

    @classmethod
    def double(cls, v: float) -> "Value":
        if not isinstance(v, (int, float)) or isinstance(v, bool):
            raise EncodeError(f"expected float, got {type(v).__name__}")
        v = float(v)
        if not math.isfinite(v):
            raise EncodeError(f"non-finite double is not representable: {v}")
        return cls(Kind.DOUBLE, v)

    @classmethod
    def boolean(cls, v: bool) -> "Value":
        if not isinstance(v, bool):
            raise EncodeError(f"expected bool, got {type(v).__name__}")
        return cls(Kind.BOOLEAN, v)

    @classmethod
    def string(cls, v: str) -> "Value":
        if not isinstance(v, str):
            raise EncodeError(f"expected str, got {type(v).__name__}")
        return cls(Kind.STRING, v)

    @classmethod
    def datetime(cls, v: datetime) -> "Value":
        if not isinstance(v, datetime):
            raise EncodeError(f"expected datetime, got {type(v).__name__}")
        # dateTime.iso8601 carries neither an offset nor sub-second precision.
        if v.tzinfo is not None:
            raise EncodeError(f"timezone-aware datetime is not representable: {v.isoformat()}")
        if v.microsecond:
            raise EncodeError(f"datetime with microseconds is not representable: {v.isoformat()}")
        return cls(Kind.DATETIME, v)

    @classmethod
    def binary(cls, v: bytes | bytearray) -> "Value":
        if not isinstance(v, (bytes, bytearray)):
            raise EncodeError(f"expected bytes, got {type(v).__name__}")
        return cls(Kind.BINARY, bytes(v))

    @classmethod
    def array(cls, items: Iterable["Value"]) -> "Value":
        items = tuple(items)
        for item in items:
            if not isinstance(item, Value):
                raise EncodeError(f"array item must be a Value, got {type(item).__name__}")
        return cls(Kind.ARRAY, items)

    @classmethod
    def struct(cls, members: Mapping[str, "Value"]) -> "Value":
        out: dict[str, Value] = {}
        for k, v in members.items():
            if not isinstance(k, str):
                raise EncodeError(f"struct member name must be str, got {type(k).__name__}")
            if not isinstance(v, Value):
                raise EncodeError(f"struct member {k!r} must be a Value, got {type(v).__name__}")
            out[k] = v
        return cls(Kind.STRUCT, MappingProxyType(out))

    @classmethod
    def nil(cls) -> "Value":
        return cls(Kind.NIL, None)

    @classmethod
    def from_python(cls, obj: Any) -> "Value":
        """Wrap a plain Python object (recursively) as a Value.

        Raises EncodeError for objects with no XML-RPC representation.
        """
        return _from_python(obj, seen=set())

    def __hash__(self) -> int:
        # mappingproxy is unhashable; hash struct members as an unordered set.
        if self.kind is Kind.STRUCT:
            return hash((self.kind, frozenset(self.data.items())))
        return hash((self.kind, self.data))

    # Safe accessors: each returns its own kind's payload or raises ValueKindError.

    def _expect(self, kind: Kind) -> Any:
        if self.kind is not kind:
            raise ValueKindError(f"expected {kind.value}, got {self.kind.value}")
        return self.data

    def as_int(self) -> int:
        return self._expect(Kind.INT)

    def as_float(self) -> float:
        return self._expect(Kind.DOUBLE)

    def as_bool(self) -> bool:
        return self._expect(Kind.BOOLEAN)

    def as_str(self) -> str:
        return self._expect(Kind.STRING)

    def as_datetime(self) -> datetime:
        return self._expect(Kind.DATETIME)

    def as_bytes(self) -> bytes:
        return self._expect(Kind.BINARY)

    def as_array(self) -> tuple["Value", ...]:
        return self._expect(Kind.ARRAY)

    def as_struct(self) -> Mapping[str, "Value"]:
        return self._expect(Kind.STRUCT)

    def is_nil(self) -> bool:
        return self.kind is Kind.NIL

    def to_python(self) -> Any:
        """Unwrap into plain Python objects (lists, dicts and scalars)."""
        if self.kind is Kind.ARRAY:
            return [item.to_python() for item in self.data]
        if self.kind is Kind.STRUCT:
            return {k: v.to_python() for k, v in self.data.items()}
        return self.data


def _from_python(obj: Any, *, seen: set[int]) -> Value:
    if isinstance(obj, Value):
        return obj
    if obj is None:
        return Value.nil()
    # bool is a subclass of int; check it first.
    if isinstance(obj, bool):
        return Value.boolean(obj)
    if isinstance(obj, int):
        return Value.integer(obj)
    if isinstance(obj, float):
        return Value.double(obj)
    if isinstance(obj, str):
        return Value.string(obj)
    if isinstance(obj, (bytes, bytearray)):
        return Value.binary(obj)
    if isinstance(obj, datetime):
        return Value.datetime(obj)

    if isinstance(obj, (list, tuple, dict)):
        if id(obj) in seen:
            raise EncodeError("cannot encode recursive container")
        seen.add(id(obj))
        try:
            if isinstance(obj, dict):
                return Value.struct({k: _from_python(v, seen=seen) for k, v in obj.items()})
            return Value.array(_from_python(item, seen=seen) for item in obj)
        finally:
            seen.discard(id(obj))

    raise EncodeError(f"unsupported argument type: {type(obj).__name__}")
