from __future__ import annotations

from pydantic import ValidationError

from firestore_sink.domain.models import Document, Record, TransformConfig
from firestore_sink.exceptions import TransformError
from firestore_sink.transform.type_mapper import map_record


class DocumentBuilder:
    """
    Turn input records into Firestore documents.

    In custom-id mode the id field is lifted out of the body and becomes the
    document id. The schema has already been validated, so the id field is
    known to exist and to be a non-null string.
    """

    def __init__(self, config: TransformConfig) -> None:
        self.config = config

    def build(self, record: Record) -> Document:
        data = map_record(record, self.config.schema)
        if not self.config.uses_custom_id:
            return Document(data=data)

        doc_id = data.pop(self.config.id_field)
        try:
            return Document(data=data, id=doc_id)
        except ValidationError as exc:
            raise TransformError(
                f"Id field '{self.config.id_field}' holds {type(doc_id).__name__}, expected a string",
                cause=exc,
            ) from exc


__all__ = ["DocumentBuilder"]
