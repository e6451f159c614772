"""
Transformation core: record values to Firestore values, records to documents.

Everything here is pure; validation and I/O live elsewhere.
"""

from firestore_sink.transform.document_builder import DocumentBuilder
from firestore_sink.transform.type_mapper import map_record, map_value, resolve_union_branch

__all__ = [
    "DocumentBuilder",
    "map_record",
    "map_value",
    "resolve_union_branch",
]
