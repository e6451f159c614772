"""
Pre-run validation of sink settings against the input schema.

Every check records its problems on a FailureCollector instead of raising, so
one ConfigValidationError reports everything that is wrong. Nothing here runs
once records start flowing; the transformation core trusts its result.
"""

from __future__ import annotations

import re
from typing import Callable, List, Optional

from firestore_sink.config import DEFAULT_DATABASE, Settings
from firestore_sink.domain.models import IdType, TransformConfig
from firestore_sink.domain.schema import SUPPORTED_TYPES, FieldType, Schema
from firestore_sink.exceptions import ConfigValidationError, ValidationFailure
from firestore_sink.infrastructure.firestore_factory import check_connection
from firestore_sink.utils.logging import get_logger
from firestore_sink.writers.batch_committer import MAX_BATCH_SIZE

log = get_logger(__name__)

PROPERTY_BATCH_SIZE = "batch_size"
PROPERTY_DATABASE = "database_name"
PROPERTY_ID_TYPE = "id_type"
PROPERTY_ID_ALIAS = "id_alias"
PROPERTY_PROJECT = "project"

SUPPORTED_TYPES_HINT = (
    "Supported types are: string, double, boolean, bytes, int, float, long, "
    "record, array, union and timestamp."
)

_DATABASE_CHARS = re.compile(r"^[a-zA-Z0-9-]+$")
_UUID = re.compile(r"^[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{12}$")


class FailureCollector:
    """Accumulates validation failures until the caller asks for the verdict."""

    def __init__(self) -> None:
        self.failures: List[ValidationFailure] = []

    def add_failure(
        self,
        message: str,
        corrective_action: Optional[str] = None,
        *,
        config_property: Optional[str] = None,
        schema_field: Optional[str] = None,
    ) -> ValidationFailure:
        failure = ValidationFailure(
            message=message,
            corrective_action=corrective_action,
            config_property=config_property,
            schema_field=schema_field,
        )
        self.failures.append(failure)
        return failure

    def get_or_raise(self) -> None:
        if self.failures:
            raise ConfigValidationError(self.failures)


def validate_batch_size(batch_size: int, collector: FailureCollector) -> None:
    if batch_size < 1 or batch_size > MAX_BATCH_SIZE:
        collector.add_failure(
            f"Invalid Firestore batch size '{batch_size}'.",
            f"Ensure the batch size is at least 1 or at most '{MAX_BATCH_SIZE}'",
            config_property=PROPERTY_BATCH_SIZE,
        )


def validate_database_name(database_name: Optional[str], collector: FailureCollector) -> None:
    """Apply Firestore's database naming rules; `(default)` is always allowed."""
    if not database_name:
        collector.add_failure("Database Name must be specified.", config_property=PROPERTY_DATABASE)
        return
    if database_name == DEFAULT_DATABASE:
        return

    def fail(message: str) -> None:
        collector.add_failure(message, config_property=PROPERTY_DATABASE)

    if not _DATABASE_CHARS.match(database_name):
        fail("Database name can only include letters, numbers and hyphen characters.")
    if database_name != database_name.lower():
        fail("Database name must be in lowercase.")
    if not database_name[0].isalpha():
        fail("Database name's first character can only be an alphabet.")
    if not database_name[-1].isalnum():
        fail("Database name's last character can only be a letter or a number.")
    if len(database_name) < 4:
        fail("Database name should be at least 4 letters.")
    if len(database_name) > 63:
        fail("Database name cannot be more than 63 characters.")
    if _UUID.match(database_name):
        fail("Database name cannot contain a UUID.")


def _validate_field_schema(field_name: str, schema: Schema, collector: FailureCollector) -> None:
    if schema.type not in SUPPORTED_TYPES:
        collector.add_failure(
            f"Field '{field_name}' is of unsupported type '{schema.display_name}'",
            SUPPORTED_TYPES_HINT,
            schema_field=field_name,
        )
        return

    if schema.type == FieldType.UNION:
        for branch in schema.branches:
            _validate_field_schema(field_name, branch, collector)
    elif schema.type == FieldType.RECORD:
        for nested in schema.fields:
            _validate_field_schema(f"{field_name}.{nested.name}", nested.schema, collector)
    elif schema.type == FieldType.ARRAY and schema.items is not None:
        _validate_field_schema(field_name, schema.items, collector)


def validate_schema(schema: Schema, collector: FailureCollector) -> None:
    if schema.type != FieldType.RECORD:
        collector.add_failure(
            f"Input schema must be a record, got '{schema.display_name}'",
        )
        return
    if not schema.fields:
        collector.add_failure("Sink schema must contain at least one field")
        return
    for f in schema.fields:
        _validate_field_schema(f.name, f.schema, collector)


def validate_id_type(
    id_type_value: str,
    id_alias: Optional[str],
    schema: Optional[Schema],
    collector: FailureCollector,
) -> Optional[IdType]:
    """
    Check the id mode and, for custom ids, the id field.

    Returns the parsed IdType, or None when the value is not recognised.
    """
    id_type = IdType.from_value(id_type_value)
    if id_type is None:
        collector.add_failure(
            f"Unsupported id type value: {id_type_value}",
            f"Supported types are: {', '.join(IdType.supported_values())}",
            config_property=PROPERTY_ID_TYPE,
        )
        return None

    if id_type == IdType.AUTO_GENERATED:
        return id_type

    if not id_alias:
        collector.add_failure(
            f"Id field must be specified when id type is '{IdType.CUSTOM.value}'.",
            config_property=PROPERTY_ID_ALIAS,
        )
        return id_type

    if schema is None:
        return id_type

    field = schema.get_field(id_alias)
    if field is None:
        collector.add_failure(
            f"Id field '{id_alias}' does not exist in the schema",
            "Change the Id field to be one of the schema fields.",
            config_property=PROPERTY_ID_ALIAS,
        )
        return id_type

    if field.schema.type != FieldType.STRING:
        collector.add_failure(
            f"Id field '{id_alias}' is of unsupported type '{field.schema.non_nullable().display_name}'",
            "Ensure the type is non-nullable string",
            config_property=PROPERTY_ID_ALIAS,
            schema_field=id_alias,
        )
    return id_type


def validate_connection(
    settings: Settings,
    collector: FailureCollector,
    connect: Callable[[Settings], None] = check_connection,
) -> None:
    try:
        connect(settings)
    except Exception as exc:  # noqa: BLE001 - any connection failure becomes a validation failure
        log.debug("Connection check failed", exc_info=True)
        collector.add_failure(
            str(exc) or type(exc).__name__,
            "Ensure properties like project, service account file path, database name are correct.",
            config_property=PROPERTY_PROJECT,
        )


def validate(
    settings: Settings,
    schema: Optional[Schema] = None,
    *,
    check_connectivity: bool = False,
    connect: Callable[[Settings], None] = check_connection,
) -> Optional[IdType]:
    """
    Run every check and raise once if anything failed.

    Raises
    ------
    ConfigValidationError
        Carrying every collected failure.
    """
    collector = FailureCollector()
    validate_batch_size(settings.batch_size, collector)
    validate_database_name(settings.database_name, collector)
    if check_connectivity:
        validate_connection(settings, collector, connect=connect)
    if schema is not None:
        validate_schema(schema, collector)
    id_type = validate_id_type(settings.id_type, settings.id_alias, schema, collector)

    if collector.failures:
        log.error(
            f"[VALIDATION FAILED] {len(collector.failures)} problem(s)",
            extra={"failures": [str(f) for f in collector.failures]},
        )
    collector.get_or_raise()
    return id_type


def build_transform_config(settings: Settings, schema: Schema, **kwargs) -> TransformConfig:
    """Validate settings against the schema and freeze the result for the run."""
    id_type = validate(settings, schema, **kwargs)
    assert id_type is not None
    return TransformConfig(
        schema=schema,
        id_type=id_type,
        id_field=settings.id_alias if id_type == IdType.CUSTOM else None,
    )


__all__ = [
    "FailureCollector",
    "build_transform_config",
    "validate",
    "validate_batch_size",
    "validate_connection",
    "validate_database_name",
    "validate_id_type",
    "validate_schema",
]
