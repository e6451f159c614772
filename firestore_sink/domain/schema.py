"""
Schema model for records flowing into the Firestore sink.

Logical types form a closed enumeration (`FieldType`). Timestamps are their
own variants rather than a tag on `long`, so every consumer can dispatch on a
single value. Types Firestore cannot take (map, enum, date, ...) are still
representable so validation can name them in its failures.

Schemas are read from Avro-style JSON documents:

    {
      "type": "record",
      "name": "event",
      "fields": [
        {"name": "id", "type": "string"},
        {"name": "ts", "type": {"type": "long", "logicalType": "timestamp-micros"}},
        {"name": "note", "type": ["null", "string"]}
      ]
    }
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Iterator, Optional, Tuple

from firestore_sink.exceptions import SchemaError


class FieldType(str, Enum):
    STRING = "string"
    DOUBLE = "double"
    BOOLEAN = "boolean"
    BYTES = "bytes"
    INT = "int"
    FLOAT = "float"
    LONG = "long"
    NULL = "null"
    TIMESTAMP_MICROS = "timestamp-micros"
    TIMESTAMP_MILLIS = "timestamp-millis"
    RECORD = "record"
    ARRAY = "array"
    UNION = "union"
    # Parsed so they can be reported, never written.
    MAP = "map"
    ENUM = "enum"
    FIXED = "fixed"
    DATE = "date"
    TIME_MILLIS = "time-millis"
    TIME_MICROS = "time-micros"
    DECIMAL = "decimal"
    DATETIME = "datetime"


SUPPORTED_TYPES = frozenset(
    {
        FieldType.STRING,
        FieldType.DOUBLE,
        FieldType.BOOLEAN,
        FieldType.BYTES,
        FieldType.INT,
        FieldType.FLOAT,
        FieldType.LONG,
        FieldType.NULL,
        FieldType.TIMESTAMP_MICROS,
        FieldType.TIMESTAMP_MILLIS,
        FieldType.RECORD,
        FieldType.ARRAY,
        FieldType.UNION,
    }
)

_PRIMITIVES: Dict[str, FieldType] = {
    t.value: t
    for t in (
        FieldType.STRING,
        FieldType.DOUBLE,
        FieldType.BOOLEAN,
        FieldType.BYTES,
        FieldType.INT,
        FieldType.FLOAT,
        FieldType.LONG,
        FieldType.NULL,
    )
}

_LOGICAL: Dict[str, FieldType] = {
    t.value: t
    for t in (
        FieldType.TIMESTAMP_MICROS,
        FieldType.TIMESTAMP_MILLIS,
        FieldType.DATE,
        FieldType.TIME_MILLIS,
        FieldType.TIME_MICROS,
        FieldType.DECIMAL,
        FieldType.DATETIME,
    )
}


@dataclass(frozen=True)
class Schema:
    """
    Immutable type description.

    Only the attributes relevant to `type` are populated: `fields` for
    records, `items` for arrays (and map values), `branches` for unions.
    """

    type: FieldType
    fields: Tuple["Field", ...] = ()
    items: Optional["Schema"] = None
    branches: Tuple["Schema", ...] = ()
    name: Optional[str] = None

    @classmethod
    def of(cls, field_type: FieldType) -> "Schema":
        return cls(type=field_type)

    @classmethod
    def record(cls, fields: Tuple["Field", ...], name: Optional[str] = None) -> "Schema":
        return cls(type=FieldType.RECORD, fields=tuple(fields), name=name)

    @classmethod
    def array(cls, items: "Schema") -> "Schema":
        return cls(type=FieldType.ARRAY, items=items)

    @classmethod
    def union(cls, *branches: "Schema") -> "Schema":
        return cls(type=FieldType.UNION, branches=tuple(branches))

    @classmethod
    def nullable(cls, schema: "Schema") -> "Schema":
        return cls.union(cls.of(FieldType.NULL), schema)

    @property
    def is_nullable(self) -> bool:
        return self.type == FieldType.UNION and any(
            b.type == FieldType.NULL for b in self.branches
        )

    @property
    def non_null_branches(self) -> Tuple["Schema", ...]:
        return tuple(b for b in self.branches if b.type != FieldType.NULL)

    def non_nullable(self) -> "Schema":
        """Return the single non-null branch of a nullable union, else self."""
        if self.type == FieldType.UNION:
            remaining = self.non_null_branches
            if len(remaining) == 1:
                return remaining[0]
        return self

    def get_field(self, name: str) -> Optional["Field"]:
        for f in self.fields:
            if f.name == name:
                return f
        return None

    def iter_fields(self) -> Iterator["Field"]:
        return iter(self.fields)

    @property
    def display_name(self) -> str:
        if self.type == FieldType.UNION:
            return "union<" + ",".join(b.display_name for b in self.branches) + ">"
        if self.type == FieldType.ARRAY and self.items is not None:
            return f"array<{self.items.display_name}>"
        if self.type == FieldType.MAP and self.items is not None:
            return f"map<string,{self.items.display_name}>"
        if self.type == FieldType.RECORD and self.name:
            return f"record<{self.name}>"
        return self.type.value


@dataclass(frozen=True)
class Field:
    name: str
    schema: Schema


def parse_schema(obj: Any) -> Schema:
    """
    Parse an Avro-style schema (already decoded from JSON) into a `Schema`.

    Raises
    ------
    SchemaError
        If the document is malformed or names an unknown type.
    """
    if isinstance(obj, str):
        if obj in _PRIMITIVES:
            return Schema.of(_PRIMITIVES[obj])
        raise SchemaError(f"Unknown type '{obj}'")

    if isinstance(obj, list):
        if not obj:
            raise SchemaError("Union must declare at least one branch")
        return Schema.union(*(parse_schema(b) for b in obj))

    if not isinstance(obj, dict):
        raise SchemaError(f"Cannot parse schema from {type(obj).__name__}")

    logical = obj.get("logicalType")
    if logical is not None:
        if logical not in _LOGICAL:
            raise SchemaError(f"Unknown logical type '{logical}'")
        return Schema.of(_LOGICAL[logical])

    kind = obj.get("type")
    if kind == "record":
        return _parse_record(obj)
    if kind == "array":
        if "items" not in obj:
            raise SchemaError("Array schema is missing 'items'")
        return Schema.array(parse_schema(obj["items"]))
    if kind == "map":
        if "values" not in obj:
            raise SchemaError("Map schema is missing 'values'")
        return Schema(type=FieldType.MAP, items=parse_schema(obj["values"]))
    if kind == "enum":
        return Schema(type=FieldType.ENUM, name=obj.get("name"))
    if kind == "fixed":
        return Schema(type=FieldType.FIXED, name=obj.get("name"))
    if kind is None:
        raise SchemaError("Schema object is missing 'type'")
    # {"type": "string"} and friends
    return parse_schema(kind)


def _parse_record(obj: Dict[str, Any]) -> Schema:
    raw_fields = obj.get("fields")
    if not isinstance(raw_fields, list):
        raise SchemaError(f"Record '{obj.get('name', '')}' must declare a list of fields")

    fields = []
    seen = set()
    for raw in raw_fields:
        if not isinstance(raw, dict) or "name" not in raw or "type" not in raw:
            raise SchemaError("Every record field needs a 'name' and a 'type'")
        name = raw["name"]
        if name in seen:
            raise SchemaError(f"Duplicate field name '{name}'")
        seen.add(name)
        fields.append(Field(name=name, schema=parse_schema(raw["type"])))
    return Schema.record(tuple(fields), name=obj.get("name"))


def load_schema(path: Path | str) -> Schema:
    """Read and parse a schema JSON file."""
    p = Path(path)
    try:
        with p.open("r", encoding="utf-8") as f:
            raw = json.load(f)
    except json.JSONDecodeError as exc:
        raise SchemaError(f"Schema file {p} is not valid JSON", cause=exc) from exc
    return parse_schema(raw)


__all__ = [
    "FieldType",
    "SUPPORTED_TYPES",
    "Schema",
    "Field",
    "parse_schema",
    "load_schema",
]
