"""
Batch coordinator between the document builder and a store client.

Documents accumulate in a bounded batch; the batch is committed when it is
full and once more at end of stream. One committer belongs to one worker, so
no locking happens here.
"""

from __future__ import annotations

import time
from typing import List, Optional

from firestore_sink.domain.models import Document, IdType
from firestore_sink.exceptions import CommitError, TransformError
from firestore_sink.utils.logging import get_logger
from firestore_sink.writers.abstract import BatchEntry, CommitResult, StoreClient

log = get_logger(__name__)

MAX_BATCH_SIZE = 500


class BatchCommitter:
    """
    Accumulate documents and commit them in bounded batches.

    State moves Empty -> Filling -> Full; a full batch is flushed
    synchronously before the next document is admitted. A failed commit
    discards the batch and raises CommitError carrying all its entries.
    """

    def __init__(self, store: StoreClient, batch_size: int, id_type: IdType) -> None:
        if not 1 <= batch_size <= MAX_BATCH_SIZE:
            raise ValueError(f"batch_size must be between 1 and {MAX_BATCH_SIZE}, got {batch_size}")
        self.store = store
        self.batch_size = batch_size
        self.id_type = id_type
        self._batch: List[BatchEntry] = []
        self.batches_committed = 0
        self.documents_committed = 0
        self.document_ids: List[str] = []

    @property
    def pending(self) -> int:
        """Documents waiting in the current batch."""
        return len(self._batch)

    @property
    def is_full(self) -> bool:
        return len(self._batch) >= self.batch_size

    def add(self, document: Document) -> Optional[CommitResult]:
        """
        Queue a document, flushing first if the batch is already full.

        Returns the CommitResult of the flush this call triggered, if any.
        """
        if self.id_type == IdType.CUSTOM and document.id is None:
            raise TransformError("Document has no id but the sink is configured for custom ids")

        result = None
        if self.is_full:
            result = self.flush()
        self._batch.append(BatchEntry(id_type=self.id_type, document=document))
        return result

    def flush(self) -> Optional[CommitResult]:
        """Commit the pending batch. Does nothing when the batch is empty."""
        if not self._batch:
            return None

        entries, self._batch = self._batch, []
        batch_number = self.batches_committed + 1
        start = time.perf_counter()
        try:
            ids = self.store.commit_batch(entries)
        except Exception as exc:  # noqa: BLE001 - any store failure fails the whole batch
            log.error(
                f"[COMMIT FAILED] batch {batch_number}",
                extra={"batch": batch_number, "documents": len(entries), "store": self.store.name},
            )
            raise CommitError(
                f"Commit of batch {batch_number} with {len(entries)} document(s) failed",
                entries,
                cause=exc,
            ) from exc
        duration = time.perf_counter() - start

        self.batches_committed = batch_number
        self.documents_committed += len(entries)
        self.document_ids.extend(ids)

        result = CommitResult(
            batch=batch_number,
            documents=len(entries),
            auto_generated=sum(1 for e in entries if e.auto_generated),
            document_ids=list(ids),
            duration_seconds=duration,
        )
        log.debug(
            f"[COMMIT] batch {batch_number}",
            extra={"batch": batch_number, "documents": len(entries), "duration": duration},
        )
        return result


__all__ = ["BatchCommitter", "MAX_BATCH_SIZE"]
