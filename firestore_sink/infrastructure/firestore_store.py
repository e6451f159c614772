"""
Store client backed by Cloud Firestore.

Each batch becomes one `WriteBatch`: auto-id documents get a fresh reference
from `collection.document()` (the id is generated client-side, so it can be
reported back), custom-id documents target `collection.document(id)`. Bodies
are written with `set` and no merge, so an existing document is replaced.
"""

from __future__ import annotations

from typing import List, Optional, Sequence

from google.api_core.exceptions import (
    Aborted,
    DeadlineExceeded,
    InternalServerError,
    ResourceExhausted,
    ServiceUnavailable,
)
from google.cloud import firestore
from tenacity import (
    RetryCallState,
    Retrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from firestore_sink.config import Settings, get_settings
from firestore_sink.infrastructure.firestore_factory import get_client
from firestore_sink.utils.logging import get_logger
from firestore_sink.writers.abstract import AbstractStoreClient, BatchEntry

log = get_logger(__name__)

TRANSIENT_ERRORS = (
    Aborted,
    DeadlineExceeded,
    InternalServerError,
    ResourceExhausted,
    ServiceUnavailable,
)


def _log_retry(retry_state: RetryCallState) -> None:
    exc = retry_state.outcome.exception() if retry_state.outcome else None
    log.warning(
        f"[COMMIT RETRY] attempt {retry_state.attempt_number} failed",
        extra={"attempt": retry_state.attempt_number, "error": str(exc)},
    )


class FirestoreStore(AbstractStoreClient):
    """
    Commit batches to one Firestore collection.

    Parameters
    ----------
    client : firestore.Client
        Client to write through.
    collection : str
        Collection path; may be nested ("tenants/acme/events").
    max_attempts : int
        Total commit attempts per batch. Only transient API errors are retried;
        1 disables retrying.
    owns_client : bool
        Whether `close()` should close the client.
    """

    name: str = "firestore"
    retry_wait = wait_exponential(multiplier=1, min=1, max=10)

    def __init__(
        self,
        client: firestore.Client,
        collection: str,
        max_attempts: int = 1,
        owns_client: bool = False,
    ) -> None:
        self._client = client
        self.collection = collection
        self.max_attempts = max(max_attempts, 1)
        self._owns_client = owns_client

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "FirestoreStore":
        settings = settings or get_settings()
        return cls(
            client=get_client(settings),
            collection=settings.collection,
            max_attempts=settings.commit_max_attempts,
        )

    def commit_batch(self, entries: Sequence[BatchEntry]) -> List[str]:
        collection = self._client.collection(self.collection)
        batch = self._client.batch()
        ids: List[str] = []
        for entry in entries:
            doc = entry.document
            ref = collection.document() if doc.id is None else collection.document(doc.id)
            batch.set(ref, doc.data)
            ids.append(ref.id)

        retrying = Retrying(
            stop=stop_after_attempt(self.max_attempts),
            wait=self.retry_wait,
            retry=retry_if_exception_type(TRANSIENT_ERRORS),
            before_sleep=_log_retry,
            reraise=True,
        )
        retrying(batch.commit)
        return ids

    def close(self) -> None:
        if self._owns_client:
            self._client.close()


__all__ = ["FirestoreStore", "TRANSIENT_ERRORS"]
