"""
Record sources for the CLI runner.

Reads newline-delimited JSON, one record per line. JSON has no binary type, so
fields declared as `bytes` carry base64 text and are decoded here, following
the schema into nested records, arrays and unions.
"""

from __future__ import annotations

import base64
import binascii
import json
from pathlib import Path
from typing import Any, Dict, Iterator, Mapping

from firestore_sink.domain.schema import FieldType, Schema
from firestore_sink.exceptions import TransformError
from firestore_sink.transform.type_mapper import resolve_union_branch


def _decode(value: Any, schema: Schema) -> Any:
    if value is None:
        return None
    if schema.type == FieldType.BYTES:
        if not isinstance(value, str):
            return value
        try:
            return base64.b64decode(value, validate=True)
        except binascii.Error as exc:
            raise TransformError("Bytes value is not valid base64", cause=exc) from exc
    if schema.type == FieldType.RECORD and isinstance(value, Mapping):
        return decode_record(value, schema)
    if schema.type == FieldType.ARRAY and isinstance(value, list) and schema.items is not None:
        return [_decode(v, schema.items) for v in value]
    if schema.type == FieldType.UNION:
        # JSON strings are ambiguous between string and bytes branches; a
        # declared string branch wins, same as resolve_union_branch.
        branch = resolve_union_branch(value, schema)
        return value if branch is None else _decode(value, branch)
    return value


def decode_record(raw: Mapping[str, Any], schema: Schema) -> Dict[str, Any]:
    """Convert one JSON object into a record conforming to `schema`."""
    record = dict(raw)
    for f in schema.fields:
        if f.name in record:
            record[f.name] = _decode(record[f.name], f.schema)
    return record


def read_jsonl(path: Path | str, schema: Schema) -> Iterator[Dict[str, Any]]:
    """
    Yield records from a JSONL file, skipping blank lines.

    Raises
    ------
    TransformError
        If a line is not a JSON object.
    """
    p = Path(path)
    with p.open("r", encoding="utf-8") as f:
        for line_no, line in enumerate(f, start=1):
            if not line.strip():
                continue
            try:
                raw = json.loads(line)
            except json.JSONDecodeError as exc:
                raise TransformError(f"{p}:{line_no} is not valid JSON", cause=exc) from exc
            if not isinstance(raw, dict):
                raise TransformError(f"{p}:{line_no} must hold a JSON object")
            yield decode_record(raw, schema)


__all__ = ["decode_record", "read_jsonl"]
