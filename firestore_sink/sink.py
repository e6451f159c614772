"""
Firestore sink: one worker's path from records to committed batches.

    from firestore_sink.sink import FirestoreSink

    sink = FirestoreSink.from_settings(settings, schema)
    try:
        result = sink.write(records)
    finally:
        sink.close()

`from_settings` validates before anything is built, so a misconfigured run
fails with every problem listed and no data written.
"""

from __future__ import annotations

from typing import Iterable, List, Optional, TypedDict

from firestore_sink.config import Settings
from firestore_sink.domain.models import Record, TransformConfig
from firestore_sink.domain.schema import Schema
from firestore_sink.exceptions import CommitError
from firestore_sink.infrastructure.firestore_store import FirestoreStore
from firestore_sink.transform.document_builder import DocumentBuilder
from firestore_sink.utils.logging import get_logger
from firestore_sink.validation import build_transform_config
from firestore_sink.writers.abstract import CommitResult, StoreClient
from firestore_sink.writers.batch_committer import BatchCommitter

log = get_logger(__name__)


class SinkResult(TypedDict, total=False):
    rows: int
    documents: int
    batches: int
    document_ids: List[str]


class FirestoreSink:
    """
    Transform records and hand them to a batch committer.

    The sink owns one committer and one pending batch; run one sink per
    worker.
    """

    def __init__(self, config: TransformConfig, store: StoreClient, batch_size: int) -> None:
        self.config = config
        self.store = store
        self.builder = DocumentBuilder(config)
        self.committer = BatchCommitter(store, batch_size=batch_size, id_type=config.id_type)
        self.rows_seen = 0

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        schema: Schema,
        store: Optional[StoreClient] = None,
        check_connectivity: bool = False,
    ) -> "FirestoreSink":
        """
        Validate settings against the schema and build a ready sink.

        When `store` is omitted, a FirestoreStore for the configured
        collection is created.
        """
        config = build_transform_config(settings, schema, check_connectivity=check_connectivity)
        if store is None:
            store = FirestoreStore.from_settings(settings)
        return cls(config, store, settings.batch_size)

    def transform(self, record: Record) -> Optional[CommitResult]:
        """Build the document for one record and queue it."""
        self.rows_seen += 1
        return self.committer.add(self.builder.build(record))

    def write(self, records: Iterable[Record]) -> SinkResult:
        """
        Write a whole record stream and flush the tail batch.

        Raises
        ------
        CommitError
            When a batch is rejected. Batches committed earlier stay written.
        """
        try:
            for record in records:
                self.transform(record)
            self.committer.flush()
        except CommitError:
            log.error(
                "[SINK ABORTED] batch rejected by store",
                extra={
                    "rows": self.rows_seen,
                    "documents_committed": self.committer.documents_committed,
                    "batches_committed": self.committer.batches_committed,
                },
            )
            raise

        return SinkResult(
            rows=self.rows_seen,
            documents=self.committer.documents_committed,
            batches=self.committer.batches_committed,
            document_ids=list(self.committer.document_ids),
        )

    def close(self) -> None:
        self.store.close()


__all__ = ["FirestoreSink", "SinkResult"]
