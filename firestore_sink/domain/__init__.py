"""
Domain package for the Firestore sink.

Exports the schema model and the record/document types used by the
transformation core and the writers. Keep this package free of I/O.
"""

from firestore_sink.domain.models import Document, IdType, Record, TransformConfig
from firestore_sink.domain.schema import (
    SUPPORTED_TYPES,
    Field,
    FieldType,
    Schema,
    load_schema,
    parse_schema,
)

__all__ = [
    "Document",
    "IdType",
    "Record",
    "TransformConfig",
    "SUPPORTED_TYPES",
    "Field",
    "FieldType",
    "Schema",
    "load_schema",
    "parse_schema",
]
