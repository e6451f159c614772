"""
Writers package for the Firestore sink.

Re-exports the store-client contract and the batch committer so downstream
code can import from `firestore_sink.writers` directly.
"""

from firestore_sink.writers.abstract import (
    AbstractStoreClient,
    BatchEntry,
    CommitResult,
    StoreClient,
)
from firestore_sink.writers.batch_committer import MAX_BATCH_SIZE, BatchCommitter

__all__ = [
    "AbstractStoreClient",
    "BatchEntry",
    "CommitResult",
    "StoreClient",
    "BatchCommitter",
    "MAX_BATCH_SIZE",
]
