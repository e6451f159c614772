"""
Exception hierarchy for the Firestore sink.

Configuration problems surface before any data moves (SchemaError,
ConfigValidationError); runtime problems abort the current unit of work
(TransformError, CommitError).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, List, Optional, Sequence

if TYPE_CHECKING:
    from firestore_sink.writers.abstract import BatchEntry


class FirestoreSinkError(Exception):
    """Base class for Firestore sink errors."""

    def __init__(self, message: str, *, cause: Optional[Exception] = None):
        super().__init__(message)
        self.message = message
        self.cause = cause

    def __str__(self) -> str:
        base = f"{type(self).__name__}: {self.message}"
        if self.cause:
            return f"{base} (caused by {repr(self.cause)})"
        return base


class SchemaError(FirestoreSinkError):
    """Unsupported field type, bad schema document, or unusable id field."""


class TransformError(FirestoreSinkError):
    """A record could not be turned into a document."""


@dataclass(frozen=True)
class ValidationFailure:
    """
    One configuration problem.

    `config_property` and `schema_field` point at the offending setting or
    input field so the user can locate the problem.
    """

    message: str
    corrective_action: Optional[str] = None
    config_property: Optional[str] = None
    schema_field: Optional[str] = None

    def __str__(self) -> str:
        location = ", ".join(
            part
            for part in (
                f"property '{self.config_property}'" if self.config_property else None,
                f"field '{self.schema_field}'" if self.schema_field else None,
            )
            if part
        )
        text = self.message
        if location:
            text = f"{text} [{location}]"
        if self.corrective_action:
            text = f"{text} {self.corrective_action}"
        return text


class ConfigValidationError(FirestoreSinkError):
    """Raised once with every failure collected during validation."""

    def __init__(self, failures: Sequence[ValidationFailure]):
        self.failures: List[ValidationFailure] = list(failures)
        lines = "; ".join(str(f) for f in self.failures)
        super().__init__(f"{len(self.failures)} validation failure(s): {lines}")


class CommitError(FirestoreSinkError):
    """
    The store rejected a whole batch.

    Carries every entry of the rejected batch so the caller can resubmit the
    unit of work; there is no per-document status.
    """

    def __init__(
        self,
        message: str,
        entries: Sequence["BatchEntry"],
        *,
        cause: Optional[Exception] = None,
    ):
        super().__init__(message, cause=cause)
        self.entries: List["BatchEntry"] = list(entries)

    @property
    def document_ids(self) -> List[Optional[str]]:
        """Custom ids of the rejected documents (None for auto-generated ones)."""
        return [entry.document.id for entry in self.entries]


__all__ = [
    "FirestoreSinkError",
    "SchemaError",
    "TransformError",
    "ValidationFailure",
    "ConfigValidationError",
    "CommitError",
]
