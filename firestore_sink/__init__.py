"""
Firestore Sink - batched writer from typed tabular records to Cloud Firestore.

The package maps each record field to its Firestore representation, builds one
document per record (with a store-assigned or a record-supplied id), and
commits documents in bounded atomic batches:

- TypeMapper: per-type value conversion (`firestore_sink.transform.type_mapper`)
- DocumentBuilder: record to document, id extraction
- BatchCommitter: bounded batching over an injected store client
- Validation: every configuration problem reported before data moves
"""

from __future__ import annotations

__version__ = "0.1.0"
__license__ = "MIT"

# Public API exports
from firestore_sink.config import Settings, get_settings
from firestore_sink.domain import (
    Document,
    Field,
    FieldType,
    IdType,
    Schema,
    TransformConfig,
    load_schema,
    parse_schema,
)
from firestore_sink.exceptions import (
    CommitError,
    ConfigValidationError,
    FirestoreSinkError,
    SchemaError,
    TransformError,
    ValidationFailure,
)
from firestore_sink.runner import RunConfig, run_sink
from firestore_sink.sink import FirestoreSink
from firestore_sink.transform import DocumentBuilder, map_value
from firestore_sink.utils.logging import configure_logging, get_logger
from firestore_sink.validation import validate
from firestore_sink.writers import BatchCommitter, BatchEntry, CommitResult, StoreClient

__all__ = [
    # Version info
    "__version__",
    "__license__",
    # Configuration
    "Settings",
    "get_settings",
    "validate",
    # Domain
    "Document",
    "Field",
    "FieldType",
    "IdType",
    "Schema",
    "TransformConfig",
    "load_schema",
    "parse_schema",
    # Errors
    "CommitError",
    "ConfigValidationError",
    "FirestoreSinkError",
    "SchemaError",
    "TransformError",
    "ValidationFailure",
    # Transformation and writing
    "DocumentBuilder",
    "map_value",
    "BatchCommitter",
    "BatchEntry",
    "CommitResult",
    "StoreClient",
    "FirestoreSink",
    # Runs
    "RunConfig",
    "run_sink",
    # Logging
    "configure_logging",
    "get_logger",
]
