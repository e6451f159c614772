"""
Domain models for the Firestore sink.

`TransformConfig` is fixed before the first record flows and handed to the
document builder; nothing mutates it afterwards.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional

from pydantic import BaseModel, Field

from firestore_sink.domain.schema import Schema
from firestore_sink.exceptions import SchemaError

Record = Mapping[str, Any]


class IdType(str, Enum):
    """How a document gets its identifier."""

    AUTO_GENERATED = "Auto-generated id"
    CUSTOM = "Custom name"

    @classmethod
    def from_value(cls, value: Optional[str]) -> Optional["IdType"]:
        """
        Resolve a configured id type.

        Accepts the display values ("Auto-generated id", "Custom name") and the
        member names, case-insensitively. Returns None when nothing matches.
        """
        if value is None:
            return None
        needle = value.strip().lower()
        for member in cls:
            if needle in (member.value.lower(), member.name.lower()):
                return member
        return None

    @classmethod
    def supported_values(cls) -> List[str]:
        return [member.value for member in cls]


@dataclass(frozen=True)
class TransformConfig:
    """
    Everything the document builder needs, frozen at run start.

    Attributes
    ----------
    schema : Schema
        Record schema of the input; must be a record type.
    id_type : IdType
        Identifier resolution mode for the whole run.
    id_field : str | None
        Source field holding the custom id. Required iff id_type is CUSTOM.
    """

    schema: Schema
    id_type: IdType = IdType.AUTO_GENERATED
    id_field: Optional[str] = None

    def __post_init__(self) -> None:
        if self.id_type == IdType.CUSTOM and not self.id_field:
            raise SchemaError("Custom id type requires an id field")

    @property
    def uses_custom_id(self) -> bool:
        return self.id_type == IdType.CUSTOM


class Document(BaseModel):
    """
    A Firestore-bound document.

    Equality compares the body as a mapping, so field order is irrelevant.
    """

    data: Dict[str, Any] = Field(default_factory=dict, description="Document body, already mapped to Firestore types.")
    id: Optional[str] = Field(None, description="Document id; None when the store assigns it at write time.")

    model_config = {
        "frozen": True,
        "arbitrary_types_allowed": True,
    }


__all__ = ["Record", "IdType", "TransformConfig", "Document"]
