"""
Value mapping from record types to Firestore types.

Firestore has no 32-bit scalars, so `int` and `float` widen to 64-bit
integer and double. Timestamps arrive as epoch counts tagged with their unit
and become timezone-aware UTC datetimes, which the Firestore client stores as
native timestamps. `None` is always written as an explicit null.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Callable, Dict, List, Mapping, Optional

from google.api_core.datetime_helpers import from_microseconds

from firestore_sink.domain.schema import FieldType, Schema
from firestore_sink.exceptions import SchemaError, TransformError

Mapper = Callable[[Any, Schema], Any]


def _passthrough(value: Any, schema: Schema) -> Any:
    return value


def _to_long(value: Any, schema: Schema) -> int:
    return int(value)


def _to_double(value: Any, schema: Schema) -> float:
    return float(value)


def _timestamp_micros(value: Any, schema: Schema) -> datetime:
    if isinstance(value, datetime):
        return value
    return from_microseconds(int(value))


def _timestamp_millis(value: Any, schema: Schema) -> datetime:
    if isinstance(value, datetime):
        return value
    return from_microseconds(int(value) * 1000)


def _null(value: Any, schema: Schema) -> None:
    return None


def _record(value: Any, schema: Schema) -> Dict[str, Any]:
    if not isinstance(value, Mapping):
        raise TransformError(
            f"Expected a mapping for {schema.display_name}, got {type(value).__name__}"
        )
    return map_record(value, schema)


def _array(value: Any, schema: Schema) -> List[Any]:
    if isinstance(value, (str, bytes, Mapping)) or not hasattr(value, "__iter__"):
        raise TransformError(f"Expected a sequence for {schema.display_name}, got {type(value).__name__}")
    assert schema.items is not None
    return [map_value(element, schema.items) for element in value]


def _union(value: Any, schema: Schema) -> Any:
    branch = resolve_union_branch(value, schema)
    if branch is None:
        return None
    return map_value(value, branch)


_MAPPERS: Dict[FieldType, Mapper] = {
    FieldType.STRING: _passthrough,
    FieldType.BOOLEAN: _passthrough,
    FieldType.BYTES: _passthrough,
    FieldType.LONG: _passthrough,
    FieldType.DOUBLE: _passthrough,
    FieldType.INT: _to_long,
    FieldType.FLOAT: _to_double,
    FieldType.NULL: _null,
    FieldType.TIMESTAMP_MICROS: _timestamp_micros,
    FieldType.TIMESTAMP_MILLIS: _timestamp_millis,
    FieldType.RECORD: _record,
    FieldType.ARRAY: _array,
    FieldType.UNION: _union,
}


def _is_integer(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


_ACCEPTS: Dict[FieldType, Callable[[Any], bool]] = {
    FieldType.STRING: lambda v: isinstance(v, str),
    FieldType.BOOLEAN: lambda v: isinstance(v, bool),
    FieldType.BYTES: lambda v: isinstance(v, (bytes, bytearray, memoryview)),
    FieldType.INT: _is_integer,
    FieldType.LONG: _is_integer,
    FieldType.FLOAT: lambda v: isinstance(v, float),
    FieldType.DOUBLE: lambda v: isinstance(v, float),
    FieldType.TIMESTAMP_MICROS: lambda v: _is_integer(v) or isinstance(v, datetime),
    FieldType.TIMESTAMP_MILLIS: lambda v: _is_integer(v) or isinstance(v, datetime),
    FieldType.RECORD: lambda v: isinstance(v, Mapping),
    FieldType.ARRAY: lambda v: isinstance(v, (list, tuple)),
    FieldType.UNION: lambda v: True,
}


def resolve_union_branch(value: Any, schema: Schema) -> Optional[Schema]:
    """
    Pick the union branch that describes `value`.

    Returns None when the value is null (or every branch is null). A single
    non-null branch is used as-is; with several, the first branch whose type
    accepts the runtime value wins.
    """
    if value is None:
        return None
    candidates = schema.non_null_branches
    if not candidates:
        return None
    if len(candidates) == 1:
        return candidates[0]
    for branch in candidates:
        accepts = _ACCEPTS.get(branch.type)
        if accepts is not None and accepts(value):
            return branch
    raise TransformError(
        f"No branch of {schema.display_name} matches value of type {type(value).__name__}"
    )


def map_value(value: Any, schema: Schema) -> Any:
    """
    Convert one value to its Firestore representation.

    Raises
    ------
    SchemaError
        If `schema` is a type Firestore cannot store; validation rejects
        those before a run starts.
    TransformError
        If a nested value does not fit its schema.
    """
    mapper = _MAPPERS.get(schema.type)
    if mapper is None:
        raise SchemaError(f"Unsupported type '{schema.display_name}'")
    if value is None:
        return None
    return mapper(value, schema)


def map_record(record: Mapping[str, Any], schema: Schema) -> Dict[str, Any]:
    """Map every field declared by a record schema; absent keys read as None."""
    return {f.name: map_value(record.get(f.name), f.schema) for f in schema.fields}


__all__ = ["map_value", "map_record", "resolve_union_branch"]
