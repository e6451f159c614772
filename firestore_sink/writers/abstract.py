"""
Store-client interface and result contracts for the Firestore sink.

Concrete store clients (the Firestore adapter, test fakes) implement the
StoreClient protocol. The batch committer hands them one atomic batch at a
time and reports each flush as a CommitResult.
"""

from __future__ import annotations

import abc
from dataclasses import dataclass
from typing import List, Protocol, Sequence, TypedDict, runtime_checkable

from firestore_sink.domain.models import Document, IdType


@dataclass(frozen=True)
class BatchEntry:
    """One document queued for commit, tagged with its id mode."""

    id_type: IdType
    document: Document

    @property
    def auto_generated(self) -> bool:
        return self.id_type == IdType.AUTO_GENERATED


class CommitResult(TypedDict, total=False):
    """
    Outcome of one flushed batch.

    `document_ids` lists the id of every written document in batch order,
    store-assigned ones included.
    """

    batch: int
    documents: int
    auto_generated: int
    document_ids: List[str]
    duration_seconds: float


@runtime_checkable
class StoreClient(Protocol):
    """
    Anything that can commit a batch of documents atomically.

    Attributes
    ----------
    name : str
        A short identifier used in logs and run reports.
    """

    name: str

    def commit_batch(self, entries: Sequence[BatchEntry]) -> List[str]:
        """
        Write every entry in one atomic operation.

        Parameters
        ----------
        entries : Sequence[BatchEntry]
            The batch, in insertion order.

        Returns
        -------
        List[str]
            Identifier of each written document, in the same order.
        """
        ...

    def close(self) -> None:
        ...


class AbstractStoreClient(abc.ABC):
    """
    Optional ABC helper for class-based store clients.

    Subclasses set `name` and implement `commit_batch`.
    """

    name: str

    @abc.abstractmethod
    def commit_batch(self, entries: Sequence[BatchEntry]) -> List[str]:  # pragma: no cover - interface only
        raise NotImplementedError

    def close(self) -> None:
        return None


__all__ = [
    "BatchEntry",
    "CommitResult",
    "StoreClient",
    "AbstractStoreClient",
]
