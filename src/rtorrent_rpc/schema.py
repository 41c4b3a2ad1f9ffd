"""Positional decoding of multicall responses into records.

A multicall returns one array per remote entity holding the requested fields
in the order their selectors were sent; the wire carries no field names. A
`FieldSchema` pairs every selector with a record attribute and a type, and
the same schema is used to build the request and to decode its response, so
the two orders cannot drift apart.
"""

from __future__ import annotations

from dataclasses import MISSING, dataclass, fields, is_dataclass
from enum import Enum
from typing import Any, Iterable, Iterator, TypeVar

from .errors import NotFoundError, SchemaMismatchError
from .value import Kind, Value

T = TypeVar("T")


class FieldType(str, Enum):
    STR = "str"
    INT = "int"
    FLOAT = "float"
    BOOL = "bool"


@dataclass(frozen=True)
class Field:
    selector: str
    target: str
    type: FieldType = FieldType.STR
    # Fixed divisor for values the daemon reports pre-multiplied (ratio x 1000).
    scale: int | None = None

    def __post_init__(self) -> None:
        if not self.selector:
            raise ValueError("field selector must be non-empty")
        if not self.target or not self.target.isidentifier():
            raise ValueError(f"invalid target field name: {self.target!r}")
        if self.scale is not None:
            if self.type is not FieldType.FLOAT:
                raise ValueError(f"{self.target}: scale requires a float field")
            if self.scale <= 0:
                raise ValueError(f"{self.target}: scale must be positive")

    def coerce(self, v: Value) -> Any:
        """Convert a wire value to this field's type.

        Raises SchemaMismatchError (without position) when the kind is not
        accepted for the field type.
        """
        k = v.kind
        if self.type is FieldType.STR:
            if k is Kind.STRING:
                return v.data
        elif self.type is FieldType.INT:
            if k is Kind.INT:
                return v.data
        elif self.type is FieldType.BOOL:
            if k is Kind.BOOLEAN:
                return v.data
            # rTorrent reports flags such as d.complete as 0/1 integers.
            if k is Kind.INT:
                return v.data > 0
        elif self.type is FieldType.FLOAT:
            if k in (Kind.INT, Kind.DOUBLE):
                out = float(v.data)
                if self.scale is not None:
                    out = out / self.scale
                return out
        raise SchemaMismatchError(f"expected {self.type.value}, got {k.value}")


@dataclass(frozen=True)
class FieldSchema:
    """Ordered selector -> attribute mapping for one multicall shape."""

    fields: tuple[Field, ...]

    def __post_init__(self) -> None:
        object.__setattr__(self, "fields", tuple(self.fields))
        if not self.fields:
            raise ValueError("field schema must not be empty")
        seen: set[str] = set()
        for f in self.fields:
            if f.target in seen:
                raise ValueError(f"duplicate target field: {f.target}")
            seen.add(f.target)

    @classmethod
    def of(cls, *fields_: Field) -> "FieldSchema":
        return cls(fields=fields_)

    def __len__(self) -> int:
        return len(self.fields)

    def __iter__(self) -> Iterator[Field]:
        return iter(self.fields)

    def selectors(self) -> list[str]:
        return [f.selector for f in self.fields]

    def targets(self) -> list[str]:
        return [f.target for f in self.fields]

    def decode(self, value: Value, record_type: type[T], *, index_field: str | None = None) -> list[T]:
        """Project an array-of-arrays response onto `record_type` instances.

        Every row must be exactly as wide as the schema and every element must
        coerce to its field's type; otherwise the whole decode fails with
        SchemaMismatchError and no records are returned. `index_field`, when
        given, receives each row's position.
        """
        if index_field and index_field in self.targets():
            raise ValueError(f"index field {index_field!r} is also a schema target")
        _check_record_type(record_type, [*self.targets(), *([index_field] if index_field else [])])

        if value.kind is not Kind.ARRAY:
            raise SchemaMismatchError(f"multicall result must be an array, got {value.kind.value}")

        width = len(self.fields)
        rows: list[dict[str, Any]] = []
        for i, row in enumerate(value.data):
            if row.kind is not Kind.ARRAY:
                raise SchemaMismatchError(f"row {i}: expected array, got {row.kind.value}")
            if len(row.data) != width:
                raise SchemaMismatchError(
                    f"row {i}: expected {width} values, got {len(row.data)}"
                )
            out: dict[str, Any] = {}
            for j, (f, item) in enumerate(zip(self.fields, row.data)):
                try:
                    out[f.target] = f.coerce(item)
                except SchemaMismatchError as e:
                    raise SchemaMismatchError(f"row {i} column {j} ({f.selector}): {e}") from None
            if index_field:
                out[index_field] = i
            rows.append(out)

        # Build records only once every row has been validated.
        return [record_type(**r) for r in rows]


def _check_record_type(record_type: type, targets: list[str]) -> None:
    if not is_dataclass(record_type):
        raise SchemaMismatchError(f"{record_type!r} is not a dataclass record type")
    by_name = {f.name: f for f in fields(record_type) if f.init}
    unknown = [t for t in targets if t not in by_name]
    if unknown:
        raise SchemaMismatchError(
            f"{record_type.__name__} has no field(s): {', '.join(unknown)}"
        )
    missing = sorted(
        name
        for name, f in by_name.items()
        if f.default is MISSING and f.default_factory is MISSING and name not in targets
    )
    if missing:
        raise SchemaMismatchError(
            f"schema does not fill required {record_type.__name__} field(s): {', '.join(missing)}"
        )


def find_record(records: Iterable[T], field: str, key: Any) -> T:
    """Return the first record whose `field` equals `key`.

    This is a linear scan, O(n) in the number of records. rTorrent's multicall
    has no filter-by-identifier form, so single-entity lookups list the whole
    view and filter client-side.
    """
    for r in records:
        if getattr(r, field) == key:
            return r
    raise NotFoundError(f"no record with {field}={key!r}")
